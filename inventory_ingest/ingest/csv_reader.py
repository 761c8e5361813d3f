"""
CSV Reader
==========

Reads delimited text (header row + data rows) with pandas.

All cells are read as strings so "007" or "1,250" reach the normalizer
untouched; blank and N/A-style cells become None.
"""

from pathlib import Path

import pandas as pd

from inventory_ingest.ingest.table_reader import TableReader, build_headers, rows_to_records
from inventory_ingest.schemas.domain import RawRecord, SourceReadResult
from inventory_ingest.utils.errors import ParsingError
from inventory_ingest.utils.logger import get_logger

logger = get_logger(__name__)

NA_VALUES = ["", "N/A", "n/a", "NA", "null", "NULL", "None"]


class CsvReader(TableReader):
    """
    Parser for comma (or other) delimited files.

    Features:
    - UTF-8 with BOM handling, latin-1 fallback
    - Automatic delimiter sniffing when ``delimiter=None``
    - Blank lines skipped
    - Trailing delimiters and over-long rows cut to the header width
    """

    def __init__(self, delimiter: str | None = ",", encoding: str = "utf-8-sig") -> None:
        self._delimiter = delimiter
        self._encoding = encoding

    def read_sync(self, file_path: Path) -> SourceReadResult:
        records = self.load_records(file_path)
        return SourceReadResult(records=records)

    def load_records(self, file_path: Path) -> list[RawRecord]:
        """
        Read all data rows as raw records.

        Rows with more values than the header (trailing delimiters, an
        unquoted comma in a name) keep the first header-width values instead
        of failing the file or shifting columns.

        Raises:
            ParsingError: If the file is not valid delimited text
        """
        log = logger.bind(file_path=str(file_path))

        try:
            try:
                df = self._read_frame(file_path, self._encoding)
            except UnicodeDecodeError as e:
                log.warning("utf8_decode_failed_trying_latin1", error=str(e))
                df = self._read_frame(file_path, "latin-1")
        except pd.errors.EmptyDataError:
            log.warning("CSV file is empty")
            return []
        except pd.errors.ParserError as e:
            raise ParsingError(
                message=f"Error parsing CSV file: {e}",
                details={"file_path": str(file_path)},
            ) from e
        except OSError as e:
            raise ParsingError(
                message=f"Error reading CSV file: {e}",
                details={"file_path": str(file_path)},
            ) from e

        headers = build_headers(list(df.columns))
        rows = df.astype(object).where(df.notna(), None).values.tolist()
        records = rows_to_records(headers, rows)

        log.info("CSV read complete", columns=headers, total_rows=len(records))
        return records

    def _read_frame(self, file_path: Path, encoding: str) -> pd.DataFrame:
        # index_col=False: the python engine then keeps only the header's
        # columns instead of promoting surplus leading fields to an index.
        return pd.read_csv(
            file_path,
            sep=self._delimiter,
            engine="python",
            encoding=encoding,
            dtype=str,
            na_values=NA_VALUES,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
        )
