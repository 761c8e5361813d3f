"""
Utilities
=========

Logging, error types and file validation shared across the package.
"""

from inventory_ingest.utils.errors import (
    ArchiveError,
    ArchiveLimitError,
    ArchiveTimeoutError,
    FileSizeError,
    InventoryIngestError,
    MissingMaterialError,
    ParsingError,
    RowValidationError,
    StorageError,
    UnsupportedFileTypeError,
)
from inventory_ingest.utils.logger import configure_logging, get_logger, ingestion_context

__all__ = [
    "ArchiveError",
    "ArchiveLimitError",
    "ArchiveTimeoutError",
    "FileSizeError",
    "InventoryIngestError",
    "MissingMaterialError",
    "ParsingError",
    "RowValidationError",
    "StorageError",
    "UnsupportedFileTypeError",
    "configure_logging",
    "get_logger",
    "ingestion_context",
]
