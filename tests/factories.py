"""Builders for the CSV, workbook and ZIP files used across tests."""

import zipfile
from pathlib import Path
from typing import Any

from openpyxl import Workbook

from inventory_ingest.storage.image_store import ImageStore, StoredImage
from inventory_ingest.utils.errors import StorageError

# Smallest valid PNG (1x1 transparent pixel).
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
)


def write_csv(path: Path, text: str, encoding: str = "utf-8") -> Path:
    path.write_bytes(text.encode(encoding))
    return path


def write_workbook(path: Path, rows: list[list[Any]], merge: list[str] | None = None) -> Path:
    """Save rows (first row = headers) to an .xlsx file."""
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    for cell_range in merge or []:
        ws.merge_cells(cell_range)
    wb.save(path)
    wb.close()
    return path


def add_zip_members(path: Path, members: dict[str, bytes]) -> Path:
    """Append members to an existing ZIP container (xlsx files included)."""
    with zipfile.ZipFile(path, "a") as archive:
        for name, payload in members.items():
            archive.writestr(name, payload)
    return path


def write_zip(path: Path, members: dict[str, bytes], compression: int = zipfile.ZIP_DEFLATED) -> Path:
    with zipfile.ZipFile(path, "w", compression=compression) as archive:
        for name, payload in members.items():
            archive.writestr(name, payload)
    return path


def workbook_bytes(tmp_path: Path, rows: list[list[Any]], name: str = "data.xlsx") -> bytes:
    return write_workbook(tmp_path / name, rows).read_bytes()


class InMemoryImageStore(ImageStore):
    """ImageStore that keeps image bytes in a dict."""

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.saved: dict[str, bytes] = {}
        self._fail_on = fail_on or set()

    def save(self, source_path: Path, original_name: str) -> StoredImage:
        if original_name in self._fail_on:
            raise StorageError(f"Failed to store image {original_name}")
        file_name = f"stored-{len(self.saved) + 1}{Path(original_name).suffix.lower()}"
        self.saved[file_name] = Path(source_path).read_bytes()
        return StoredImage(
            original_name=original_name,
            file_name=file_name,
            file_path=f"memory://{file_name}",
            web_path=f"/uploads/images/{file_name}",
        )


def corrupt_member(path: Path, name: str) -> Path:
    """Flip bytes inside one member's compressed data so reading it fails."""
    with zipfile.ZipFile(path) as archive:
        info = archive.getinfo(name)
    data = bytearray(path.read_bytes())
    offset = info.header_offset
    name_len = int.from_bytes(data[offset + 26 : offset + 28], "little")
    extra_len = int.from_bytes(data[offset + 28 : offset + 30], "little")
    start = offset + 30 + name_len + extra_len
    for i in range(start, start + info.compress_size):
        data[i] ^= 0xFF
    path.write_bytes(bytes(data))
    return path
