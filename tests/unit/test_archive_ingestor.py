"""
Unit Tests for ArchiveIngestor
==============================

Bundles are built in tmp_path; images go to an in-memory store.
"""

import zipfile
from pathlib import Path

import pytest

from inventory_ingest.ingest.archive_ingestor import (
    NO_DATA_FILE_MESSAGE,
    ArchiveIngestor,
    _Budget,
    is_ignored_member,
    is_unsafe_member,
)
from inventory_ingest.utils.errors import ArchiveError, ArchiveLimitError, ArchiveTimeoutError
from tests.factories import (
    PNG_BYTES,
    InMemoryImageStore,
    add_zip_members,
    corrupt_member,
    workbook_bytes,
    write_zip,
)

CSV_WITH_PHOTO = b"Material,Qty,Price,Photo\nDoor,2,1500,img_a.jpg\nTile,10,45,missing.jpg\n"


@pytest.fixture
def ingestor(memory_store: InMemoryImageStore) -> ArchiveIngestor:
    return ArchiveIngestor(image_store=memory_store)


def _scratch_is_empty(scratch_root: Path) -> bool:
    return not scratch_root.exists() or not any(scratch_root.iterdir())


class TestMemberFilters:
    @pytest.mark.parametrize(
        "name",
        ["__MACOSX/._data.xlsx", "._data.xlsx", "~$data.xlsx", "folder/.DS_Store", "Thumbs.db"],
    )
    def test_ignored(self, name: str) -> None:
        assert is_ignored_member(name)

    def test_regular_member_not_ignored(self) -> None:
        assert not is_ignored_member("bundle/data.xlsx")

    @pytest.mark.parametrize("name", ["../evil.csv", "a/../../evil.csv", "/etc/passwd", "C:\\evil.csv"])
    def test_unsafe(self, name: str) -> None:
        assert is_unsafe_member(name)

    def test_safe(self) -> None:
        assert not is_unsafe_member("images/door..jpg")


class TestReadBundle:
    """Tests for ArchiveIngestor.read_sync."""

    def test_csv_with_images_folder(
        self,
        ingestor: ArchiveIngestor,
        memory_store: InMemoryImageStore,
        tmp_path: Path,
        scratch_root: Path,
    ) -> None:
        bundle = write_zip(
            tmp_path / "bundle.zip",
            {"data.csv": CSV_WITH_PHOTO, "images/img_a.jpg": b"jpeg-bytes"},
        )

        result = ingestor.read_sync(bundle)

        assert result.total_rows == 2
        assert result.image_map == {1: "/uploads/images/stored-1.jpg"}
        assert memory_store.saved == {"stored-1.jpg": b"jpeg-bytes"}
        assert _scratch_is_empty(scratch_root)

    def test_nested_bundle_folder(self, ingestor: ArchiveIngestor, tmp_path: Path) -> None:
        bundle = write_zip(
            tmp_path / "bundle.zip",
            {"stock/data.csv": CSV_WITH_PHOTO, "stock/Photos/img_a.jpg": b"jpeg"},
        )

        result = ingestor.read_sync(bundle)

        assert 1 in result.image_map

    def test_images_found_in_any_folder(self, ingestor: ArchiveIngestor, tmp_path: Path) -> None:
        bundle = write_zip(
            tmp_path / "bundle.zip",
            {"data.csv": CSV_WITH_PHOTO, "assets/product-shots/img_a.jpg": b"jpeg"},
        )

        assert ingestor.read_sync(bundle).image_map == {1: "/uploads/images/stored-1.jpg"}

    def test_spreadsheet_preferred_over_csv(self, ingestor: ArchiveIngestor, tmp_path: Path) -> None:
        bundle = write_zip(
            tmp_path / "bundle.zip",
            {
                "a.csv": b"Material,Qty\nFrom CSV,1\n",
                "b.xlsx": workbook_bytes(tmp_path, [["Material", "Qty"], ["From Excel", 1]]),
            },
        )

        result = ingestor.read_sync(bundle)

        assert result.records[0]["Material"] == "From Excel"

    def test_metadata_members_skipped(self, ingestor: ArchiveIngestor, tmp_path: Path) -> None:
        bundle = write_zip(
            tmp_path / "bundle.zip",
            {
                "__MACOSX/._data.xlsx": b"resource fork",
                "~$data.xlsx": b"lock file",
                ".DS_Store": b"finder",
                "data.csv": b"Material,Qty\nDoor,1\n",
            },
        )

        assert ingestor.read_sync(bundle).records == [{"Material": "Door", "Qty": "1"}]

    def test_unsafe_member_not_written(
        self, ingestor: ArchiveIngestor, tmp_path: Path, scratch_root: Path
    ) -> None:
        bundle = write_zip(
            tmp_path / "bundle.zip",
            {"../evil.csv": b"Material,Qty\nEvil,1\n", "data.csv": b"Material,Qty\nDoor,1\n"},
        )

        result = ingestor.read_sync(bundle)

        assert result.records[0]["Material"] == "Door"
        assert not (scratch_root / "evil.csv").exists()
        assert not (tmp_path / "evil.csv").exists()

    def test_corrupt_member_is_skipped(
        self,
        ingestor: ArchiveIngestor,
        memory_store: InMemoryImageStore,
        tmp_path: Path,
        scratch_root: Path,
    ) -> None:
        bundle = write_zip(
            tmp_path / "bundle.zip",
            {
                "data.csv": CSV_WITH_PHOTO,
                "images/img_a.jpg": b"jpeg-bytes",
                "images/missing.jpg": b"second image " * 64,
            },
            compression=zipfile.ZIP_STORED,
        )
        corrupt_member(bundle, "images/missing.jpg")

        result = ingestor.read_sync(bundle)

        assert result.total_rows == 2
        assert result.image_map == {1: "/uploads/images/stored-1.jpg"}
        assert memory_store.saved == {"stored-1.jpg": b"jpeg-bytes"}
        assert _scratch_is_empty(scratch_root)

    def test_embedded_images_used_without_images_folder(
        self, ingestor: ArchiveIngestor, tmp_path: Path
    ) -> None:
        workbook = tmp_path / "pics.xlsx"
        workbook.write_bytes(workbook_bytes(tmp_path, [["Material", "Qty"], ["Door", 1]], name="src.xlsx"))

        add_zip_members(workbook, {"xl/media/image1.png": PNG_BYTES})
        bundle = write_zip(tmp_path / "bundle.zip", {"stock.xlsx": workbook.read_bytes()})

        result = ingestor.read_sync(bundle)

        assert result.image_map[1].startswith("data:image/png;base64,")


class TestFatalBundles:
    def test_no_data_file(self, ingestor: ArchiveIngestor, tmp_path: Path) -> None:
        bundle = write_zip(tmp_path / "bundle.zip", {"images/a.jpg": b"jpeg", "readme.txt": b"hi"})

        with pytest.raises(ArchiveError) as exc_info:
            ingestor.read_sync(bundle)

        assert exc_info.value.message == NO_DATA_FILE_MESSAGE

    def test_no_data_rows(self, ingestor: ArchiveIngestor, tmp_path: Path, scratch_root: Path) -> None:
        bundle = write_zip(tmp_path / "bundle.zip", {"data.csv": b"Material,Qty\n"})

        with pytest.raises(ArchiveError) as exc_info:
            ingestor.read_sync(bundle)

        assert exc_info.value.message.startswith("No data rows found")
        assert _scratch_is_empty(scratch_root)

    def test_empty_archive(self, ingestor: ArchiveIngestor, tmp_path: Path) -> None:
        bundle = write_zip(tmp_path / "bundle.zip", {})

        with pytest.raises(ArchiveError, match="empty"):
            ingestor.read_sync(bundle)

    def test_not_a_zip(self, ingestor: ArchiveIngestor, tmp_path: Path) -> None:
        bundle = tmp_path / "bundle.zip"
        bundle.write_bytes(b"definitely not a zip")

        with pytest.raises(ArchiveError, match="Failed to open ZIP file"):
            ingestor.read_sync(bundle)

    def test_timeout(self, memory_store: InMemoryImageStore, tmp_path: Path, scratch_root: Path) -> None:
        bundle = write_zip(tmp_path / "bundle.zip", {"data.csv": CSV_WITH_PHOTO})

        with pytest.raises(ArchiveTimeoutError):
            ArchiveIngestor(image_store=memory_store, timeout_seconds=0).read_sync(bundle)

        assert _scratch_is_empty(scratch_root)

    def test_too_many_members(self, memory_store: InMemoryImageStore, tmp_path: Path) -> None:
        bundle = write_zip(tmp_path / "bundle.zip", {"data.csv": CSV_WITH_PHOTO, "images/a.jpg": b"x"})

        with pytest.raises(ArchiveLimitError):
            ArchiveIngestor(image_store=memory_store, max_members=1).read_sync(bundle)

    def test_too_large(self, memory_store: InMemoryImageStore, tmp_path: Path) -> None:
        bundle = write_zip(
            tmp_path / "bundle.zip",
            {"data.csv": CSV_WITH_PHOTO, "images/big.jpg": b"\0" * (2 * 1024 * 1024)},
        )

        with pytest.raises(ArchiveLimitError):
            ArchiveIngestor(image_store=memory_store, max_uncompressed_mb=1).read_sync(bundle)


class TestAsyncRead:
    @pytest.mark.asyncio
    async def test_read_runs_in_thread(self, ingestor: ArchiveIngestor, tmp_path: Path) -> None:
        bundle = write_zip(tmp_path / "bundle.zip", {"data.csv": b"Material,Qty\nDoor,1\n"})

        result = await ingestor.read(bundle)

        assert result.total_rows == 1


class TestCopyMember:
    def test_corrupt_member_leaves_no_partial_file(self, tmp_path: Path) -> None:
        bundle = write_zip(
            tmp_path / "bundle.zip",
            {"images/b.jpg": b"pixel data " * 512},
            compression=zipfile.ZIP_STORED,
        )
        corrupt_member(bundle, "images/b.jpg")
        target = tmp_path / "out" / "b.jpg"

        with zipfile.ZipFile(bundle) as archive:
            copied = ArchiveIngestor._copy_member(
                archive, archive.getinfo("images/b.jpg"), target, _Budget(30.0, 10 * 1024 * 1024)
            )

        assert not copied
        assert not target.exists()
