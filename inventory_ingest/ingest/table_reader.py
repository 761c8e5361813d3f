"""
Table Reader Abstract Base Class
================================

Interface implemented by every source reader (CSV, Excel, PDF, ZIP bundle).

Contract:
    - Input: path to a local file
    - Output: SourceReadResult with raw records in source order, plus any
      images the format carries
    - Errors: ParsingError / ArchiveError for fatal problems only; anything
      row-level is left to the row processor
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from inventory_ingest.config.settings import Settings
from inventory_ingest.normalize.column_resolver import ColumnResolver
from inventory_ingest.normalize.value_normalizer import cell_to_text
from inventory_ingest.schemas.domain import RawRecord, SourceReadResult
from inventory_ingest.storage.image_store import ImageStore


@dataclass
class ReaderContext:
    """Collaborators a reader may need; built once per pipeline."""

    image_store: ImageStore | None = None
    resolver: ColumnResolver = field(default_factory=ColumnResolver)
    settings: Settings | None = None


class TableReader(ABC):
    """
    Abstract base class for source readers.

    Implementations do their blocking work in ``read_sync``; ``read`` runs it
    in a worker thread so the event loop stays free while files are parsed.
    """

    @classmethod
    def from_context(cls, context: ReaderContext) -> "TableReader":
        """Build the reader from shared pipeline collaborators."""
        return cls()

    @abstractmethod
    def read_sync(self, file_path: Path) -> SourceReadResult:
        """
        Read the file and return raw records.

        Raises:
            ParsingError: If the file cannot be read at all
        """
        ...

    async def read(self, file_path: str | Path) -> SourceReadResult:
        """Read the file without blocking the event loop."""
        path = Path(file_path) if isinstance(file_path, str) else file_path
        return await asyncio.to_thread(self.read_sync, path)


def build_headers(raw_headers: list[Any]) -> list[str]:
    """
    Turn a header row into unique, non-empty column names.

    Blank headers become ``Unnamed: <index>``; duplicates get ``.1``, ``.2``
    suffixes, matching the pandas convention used by the CSV reader.
    """
    headers: list[str] = []
    seen: dict[str, int] = {}

    for index, raw in enumerate(raw_headers):
        name = cell_to_text(raw) or f"Unnamed: {index}"
        if name in seen:
            seen[name] += 1
            name = f"{name}.{seen[name]}"
        else:
            seen[name] = 0
        headers.append(name)

    return headers


def rows_to_records(headers: list[str], rows: list[list[Any]]) -> list[RawRecord]:
    """
    Zip data rows with headers, dropping rows that are entirely blank.

    Short rows are padded with None; cells beyond the header width are ignored.
    """
    records: list[RawRecord] = []
    width = len(headers)

    for row in rows:
        cells = list(row[:width]) + [None] * (width - len(row))
        if all(cell_to_text(cell) is None for cell in cells):
            continue
        records.append(dict(zip(headers, cells)))

    return records
