"""
PDF Reader
==========

Extracts page text with pymupdf and hands it to TableTextExtractor.

Best-effort only: a PDF without a recognizable table yields zero records
and a warning, never a fatal error.
"""

from pathlib import Path

import pymupdf

from inventory_ingest.ingest.table_reader import TableReader
from inventory_ingest.ingest.text_table_extractor import TableTextExtractor
from inventory_ingest.schemas.domain import SourceReadResult
from inventory_ingest.utils.errors import ParsingError
from inventory_ingest.utils.logger import get_logger

logger = get_logger(__name__)

NO_TABLE_WARNING = "Could not extract tabular data from PDF"


class PdfReader(TableReader):
    """PDF reader for text-based catalogue exports."""

    def __init__(self, extractor: TableTextExtractor | None = None) -> None:
        self._extractor = extractor or TableTextExtractor()

    def read_sync(self, file_path: Path) -> SourceReadResult:
        log = logger.bind(file_path=str(file_path))
        log.info("Parsing PDF file")

        try:
            with pymupdf.open(file_path) as doc:
                page_count = doc.page_count
                text = "\n".join(page.get_text() for page in doc)
        except Exception as e:
            log.error("PDF parsing failed", error=str(e))
            raise ParsingError(
                message=f"Error parsing PDF file: {e}",
                details={"file_path": str(file_path), "error": str(e)},
            ) from e

        records = self._extractor.extract(text.splitlines())
        result = SourceReadResult(records=records)
        if not records:
            log.warning("No table found in PDF", page_count=page_count)
            result.warnings.append(NO_TABLE_WARNING)

        log.info("PDF parsing complete", page_count=page_count, total_rows=len(records))
        return result
