"""Source readers: CSV, Excel, PDF and ZIP bundles."""

from inventory_ingest.ingest.archive_ingestor import ArchiveIngestor
from inventory_ingest.ingest.csv_reader import CsvReader
from inventory_ingest.ingest.excel_reader import ExcelReader
from inventory_ingest.ingest.image_extractor import ImageExtractor, is_image_file, mime_type_for
from inventory_ingest.ingest.pdf_reader import PdfReader
from inventory_ingest.ingest.reader_factory import (
    ReaderFactory,
    detect_file_type,
    get_supported_types,
    normalize_file_type,
)
from inventory_ingest.ingest.table_reader import ReaderContext, TableReader
from inventory_ingest.ingest.text_table_extractor import TableTextExtractor

__all__ = [
    "ArchiveIngestor",
    "CsvReader",
    "ExcelReader",
    "ImageExtractor",
    "PdfReader",
    "ReaderContext",
    "ReaderFactory",
    "TableReader",
    "TableTextExtractor",
    "detect_file_type",
    "get_supported_types",
    "is_image_file",
    "mime_type_for",
    "normalize_file_type",
]
