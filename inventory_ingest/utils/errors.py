"""
Custom Exception Classes
========================

Exception hierarchy for the ingestion pipeline.

Fatal errors (unreadable file, unsupported type, broken bundle) are raised by
readers and converted by the pipeline into a failed IngestionResult.
Row errors are raised by the row processor and folded into per-row messages.
"""

from typing import Any


class InventoryIngestError(Exception):
    """Base exception for the ingestion pipeline."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ParsingError(InventoryIngestError):
    """Raised when a source file cannot be read or parsed."""

    pass


class UnsupportedFileTypeError(InventoryIngestError):
    """Raised when the declared file type has no registered reader."""

    pass


class FileSizeError(InventoryIngestError):
    """Raised when a file exceeds the maximum allowed size."""

    pass


class ArchiveError(InventoryIngestError):
    """Raised when a ZIP bundle cannot be used (empty, corrupt, no data file)."""

    pass


class ArchiveTimeoutError(ArchiveError):
    """Raised when bundle extraction exceeds its wall-clock budget."""

    pass


class ArchiveLimitError(ArchiveError):
    """Raised when a bundle exceeds the member count or uncompressed size limits."""

    pass


class StorageError(InventoryIngestError):
    """Raised when an image cannot be written to persistent storage."""

    pass


class RowValidationError(InventoryIngestError):
    """Raised when a single row cannot become an inventory record."""

    pass


class MissingMaterialError(RowValidationError):
    """Raised when a row has no usable material name."""

    def __init__(self, details: dict[str, Any] | None = None) -> None:
        super().__init__("Material name is required", details)
