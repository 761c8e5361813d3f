"""
Excel Reader
============

Reads the first worksheet of a workbook into raw records.

- .xlsx / .xlsm: openpyxl with calculated values (data_only=True); merged
  ranges are filled with their top-left value
- legacy .xls: pandas.read_excel (needs the xlrd engine installed)

The first non-empty row is the header row. Embedded pictures are extracted
as data URLs and mapped to rows; failures there only degrade the result.
"""

import zipfile
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from inventory_ingest.ingest.image_extractor import ImageExtractor
from inventory_ingest.ingest.table_reader import (
    ReaderContext,
    TableReader,
    build_headers,
    rows_to_records,
)
from inventory_ingest.normalize.column_resolver import ColumnResolver
from inventory_ingest.normalize.value_normalizer import cell_to_text
from inventory_ingest.schemas.domain import RawRecord, SourceReadResult
from inventory_ingest.utils.errors import InventoryIngestError, ParsingError
from inventory_ingest.utils.logger import get_logger

logger = get_logger(__name__)


class ExcelReader(TableReader):
    """
    Spreadsheet reader with merged cell support.

    Example (merged A2:A3 holding "Tiles"):
        | Category | Material     | Qty |
        | Tiles    | Vitrified 2x2| 40  |
        |          | Wall tile    | 12  |

    Both rows get Category = "Tiles".
    """

    def __init__(
        self,
        image_extractor: ImageExtractor | None = None,
        resolver: ColumnResolver | None = None,
        extract_images: bool = True,
    ) -> None:
        self._images = image_extractor or ImageExtractor()
        self._resolver = resolver or ColumnResolver()
        self._extract_images = extract_images

    @classmethod
    def from_context(cls, context: ReaderContext) -> "ExcelReader":
        return cls(resolver=context.resolver)

    def read_sync(self, file_path: Path) -> SourceReadResult:
        records = self.load_records(file_path)
        result = SourceReadResult(records=records)
        if self._extract_images and records:
            self.attach_embedded_images(file_path, result)
        return result

    def load_records(self, file_path: Path) -> list[RawRecord]:
        """
        Read the first sheet into raw records.

        Raises:
            ParsingError: If the workbook cannot be opened
        """
        log = logger.bind(file_path=str(file_path))
        log.info("Parsing Excel file")

        try:
            if zipfile.is_zipfile(file_path):
                rows = self._read_openxml(file_path)
            else:
                rows = self._read_legacy(file_path)
        except InventoryIngestError:
            raise
        except Exception as e:
            log.error("Excel parsing failed", error=str(e))
            raise ParsingError(
                message=f"Error parsing Excel file: {e}",
                details={"file_path": str(file_path), "error": str(e)},
            ) from e

        header_index = next(
            (i for i, row in enumerate(rows) if any(cell_to_text(c) is not None for c in row)),
            None,
        )
        if header_index is None:
            log.warning("Empty worksheet")
            return []

        headers = build_headers(list(rows[header_index]))
        records = rows_to_records(headers, rows[header_index + 1 :])

        log.info("Excel parsing complete", columns=headers, total_rows=len(records))
        return records

    def attach_embedded_images(self, file_path: Path, result: SourceReadResult) -> None:
        """
        Extract embedded pictures and map them onto ``result``.

        Uses positional mapping first and falls back to material-name
        similarity when no picture follows the imageN naming.
        """
        try:
            images = self._images.extract_from_workbook(file_path)
        except InventoryIngestError as e:
            logger.warning("Embedded image extraction failed", file_path=str(file_path), error=e.message)
            return

        if not images:
            return

        result.images.extend(images)
        image_map = self._images.map_images_to_rows(images, result.total_rows)
        if not image_map:
            materials = [self._resolver.resolve(r, "material") for r in result.records]
            image_map = self._images.map_images_by_material_name(images, materials)

        result.image_map.update(image_map)
        logger.info(
            "Embedded images mapped",
            file_path=str(file_path),
            image_count=len(images),
            mapped_rows=len(image_map),
        )

    def _read_openxml(self, file_path: Path) -> list[list[Any]]:
        # A file handle skips openpyxl's extension check (uploads may lack one).
        with open(file_path, "rb") as handle:
            wb = load_workbook(handle, data_only=True)
            try:
                if not wb.worksheets:
                    return []
                ws = wb.worksheets[0]
                return self._read_with_merged_fill(ws)
            finally:
                wb.close()

    def _read_with_merged_fill(self, ws: Worksheet) -> list[list[Any]]:
        merged: dict[tuple[int, int], Any] = {}
        for merged_range in ws.merged_cells.ranges:
            value = ws.cell(row=merged_range.min_row, column=merged_range.min_col).value
            for row in range(merged_range.min_row, merged_range.max_row + 1):
                for col in range(merged_range.min_col, merged_range.max_col + 1):
                    merged[(row, col)] = value

        rows: list[list[Any]] = []
        for row_idx, row in enumerate(ws.iter_rows(values_only=True), start=1):
            rows.append(
                [
                    merged.get((row_idx, col_idx), value)
                    for col_idx, value in enumerate(row, start=1)
                ]
            )
        return rows

    def _read_legacy(self, file_path: Path) -> list[list[Any]]:
        df = pd.read_excel(file_path, sheet_name=0, header=None, dtype=object)
        return df.astype(object).where(df.notna(), None).values.tolist()
