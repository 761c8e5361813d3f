"""
Reader Factory - Reader Selection
=================================

Maps a declared file type to the reader that handles it.

Declared types are case-insensitive and tolerate a leading dot
(``".XLSX"`` -> ``"xlsx"``). New formats are added with
``ReaderFactory.register_reader`` on a factory instance; the default
registry is read-only.
"""

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from inventory_ingest.ingest.archive_ingestor import ArchiveIngestor
from inventory_ingest.ingest.csv_reader import CsvReader
from inventory_ingest.ingest.excel_reader import ExcelReader
from inventory_ingest.ingest.pdf_reader import PdfReader
from inventory_ingest.ingest.table_reader import ReaderContext, TableReader
from inventory_ingest.utils.errors import UnsupportedFileTypeError
from inventory_ingest.utils.logger import get_logger

logger = get_logger(__name__)


DEFAULT_READERS: Mapping[str, type[TableReader]] = MappingProxyType(
    {
        "csv": CsvReader,
        "xlsx": ExcelReader,
        "xls": ExcelReader,
        "xlsm": ExcelReader,
        "excel": ExcelReader,
        "pdf": PdfReader,
        "zip": ArchiveIngestor,
    }
)


@dataclass(frozen=True)
class FileTypeInfo:
    """Extensions and MIME types accepted for one format."""

    file_type: str
    extensions: tuple[str, ...]
    mime_types: tuple[str, ...]


SUPPORTED_TYPES: tuple[FileTypeInfo, ...] = (
    FileTypeInfo("csv", (".csv",), ("text/csv", "application/csv", "text/plain")),
    FileTypeInfo(
        "xlsx",
        (".xlsx", ".xlsm"),
        ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",),
    ),
    FileTypeInfo("xls", (".xls",), ("application/vnd.ms-excel",)),
    FileTypeInfo("pdf", (".pdf",), ("application/pdf",)),
    FileTypeInfo(
        "zip",
        (".zip",),
        ("application/zip", "application/x-zip-compressed", "multipart/x-zip"),
    ),
)


def normalize_file_type(declared_type: str | None) -> str:
    """Lower-case and strip a declared type (``" .CSV "`` -> ``"csv"``)."""
    return (declared_type or "").strip().lower().lstrip(".")


def detect_file_type(filename: str | None, mime_type: str | None = None) -> str | None:
    """
    Guess the declared type of an upload.

    The file extension wins; the MIME type is used when the name has no
    known extension. ``text/plain`` alone is not trusted.

    Returns:
        A declared type such as ``"csv"``, or None when unknown
    """
    if filename:
        extension = Path(filename).suffix.lower()
        for info in SUPPORTED_TYPES:
            if extension in info.extensions:
                return info.file_type

    if mime_type:
        mime = mime_type.split(";", 1)[0].strip().lower()
        for info in SUPPORTED_TYPES:
            if mime in info.mime_types and mime != "text/plain":
                return info.file_type

    return None


def get_supported_types() -> list[dict[str, object]]:
    """Describe every accepted format (type, extensions, MIME types)."""
    return [
        {
            "type": info.file_type,
            "extensions": list(info.extensions),
            "mimeTypes": list(info.mime_types),
        }
        for info in SUPPORTED_TYPES
    ]


class ReaderFactory:
    """
    Factory for source readers.

    Usage:
        factory = ReaderFactory(ReaderContext(image_store=store))
        reader = factory.create("zip")
        result = await reader.read(path)
    """

    def __init__(
        self,
        context: ReaderContext | None = None,
        registry: Mapping[str, type[TableReader]] | None = None,
    ) -> None:
        self._context = context or ReaderContext()
        self._registry: dict[str, type[TableReader]] = dict(registry or DEFAULT_READERS)

    @property
    def context(self) -> ReaderContext:
        return self._context

    def create(self, declared_type: str) -> TableReader:
        """
        Create the reader for a declared type.

        Raises:
            UnsupportedFileTypeError: If no reader is registered for the type
        """
        key = normalize_file_type(declared_type)
        reader_class = self._registry.get(key)
        if reader_class is None:
            raise UnsupportedFileTypeError(
                message=f"Unsupported file type: {declared_type}",
                details={
                    "file_type": declared_type,
                    "supported_types": self.get_supported_types(),
                },
            )

        logger.debug("Creating reader", file_type=key, reader=reader_class.__name__)
        return reader_class.from_context(self._context)

    def get_supported_types(self) -> list[str]:
        """Declared types this factory accepts."""
        return sorted(self._registry)

    def is_supported(self, declared_type: str) -> bool:
        return normalize_file_type(declared_type) in self._registry

    def register_reader(self, declared_type: str, reader_class: type[TableReader]) -> None:
        """Register a reader for a new (or existing) declared type."""
        key = normalize_file_type(declared_type)
        self._registry[key] = reader_class
        logger.info("Reader registered", file_type=key, reader=reader_class.__name__)
