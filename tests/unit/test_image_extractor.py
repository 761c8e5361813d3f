"""
Unit Tests for ImageExtractor
=============================
"""

from pathlib import Path

import pytest

from inventory_ingest.ingest.image_extractor import ImageExtractor, is_image_file, mime_type_for
from inventory_ingest.schemas.domain import ExtractedImage
from inventory_ingest.utils.errors import ParsingError
from tests.factories import PNG_BYTES, InMemoryImageStore, add_zip_members, write_workbook


def _image(name: str, sequence: int | None = None) -> ExtractedImage:
    return ExtractedImage(original_name=name, data_url=f"data:image/jpeg;base64,{name}", sequence=sequence)


@pytest.fixture
def extractor() -> ImageExtractor:
    return ImageExtractor()


class TestHelpers:
    @pytest.mark.parametrize(
        ("name", "mime"),
        [
            ("a.PNG", "image/png"),
            ("a.gif", "image/gif"),
            ("a.webp", "image/webp"),
            ("a.bmp", "image/bmp"),
            ("a.jpg", "image/jpeg"),
            ("a.unknown", "image/jpeg"),
        ],
    )
    def test_mime_type_for(self, name: str, mime: str) -> None:
        assert mime_type_for(name) == mime

    def test_is_image_file(self) -> None:
        assert is_image_file("photos/a.JPG")
        assert not is_image_file("._a.jpg")
        assert not is_image_file("notes.txt")


class TestPositionalMapping:
    def test_extra_images_are_dropped(self, extractor: ImageExtractor) -> None:
        images = [_image(f"image{i}.jpg", i) for i in range(1, 6)]

        mapping = extractor.map_images_to_rows(images, total_rows=3)

        assert sorted(mapping) == [1, 2, 3]
        assert mapping[2] == images[1].reference

    def test_unnumbered_images_ignored(self, extractor: ImageExtractor) -> None:
        assert extractor.map_images_to_rows([_image("logo.png")], total_rows=3) == {}

    def test_order_independent(self, extractor: ImageExtractor) -> None:
        images = [_image("image2.jpg", 2), _image("image1.jpg", 1)]
        mapping = extractor.map_images_to_rows(images, total_rows=2)
        assert mapping[1].endswith("image1.jpg")


class TestNameMapping:
    def test_material_name_similarity(self, extractor: ImageExtractor) -> None:
        images = [_image("steel_pipe.jpg"), _image("door.jpg")]

        mapping = extractor.map_images_by_material_name(images, ["Steel Pipe 20mm", None, "Teak"])

        assert mapping == {1: images[0].reference}

    def test_photo_file_name(self, extractor: ImageExtractor) -> None:
        images = [_image("img_a.jpg")]

        mapping = extractor.map_images_by_file_name(
            images, ["IMG_A.JPG", "images/img_a.jpg", "missing.jpg", None]
        )

        assert mapping == {1: images[0].reference, 2: images[0].reference}


class TestWorkbookExtraction:
    def test_embedded_media(self, extractor: ImageExtractor, tmp_path: Path) -> None:
        path = write_workbook(tmp_path / "stock.xlsx", [["Material", "Qty"], ["Door", 1]])
        add_zip_members(
            path,
            {
                "xl/media/image1.png": PNG_BYTES,
                "xl/media/image2.jpeg": b"\xff\xd8\xff",
                "xl/media/notes.txt": b"not an image",
            },
        )

        images = extractor.extract_from_workbook(path)

        assert [img.original_name for img in images] == ["image1.png", "image2.jpeg"]
        assert images[0].data_url.startswith("data:image/png;base64,")
        assert images[0].sequence == 1
        assert images[1].mime_type == "image/jpeg"

    def test_non_zip_workbook_has_no_images(self, extractor: ImageExtractor, tmp_path: Path) -> None:
        path = tmp_path / "legacy.xls"
        path.write_bytes(b"\xd0\xcf\x11\xe0 not a zip")
        assert extractor.extract_from_workbook(path) == []

    def test_unreadable_container_raises(
        self, extractor: ImageExtractor, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = write_workbook(tmp_path / "stock.xlsx", [["Material"], ["Door"]])

        def broken_zip(*args, **kwargs):
            raise OSError("disk error")

        monkeypatch.setattr("inventory_ingest.ingest.image_extractor.zipfile.ZipFile", broken_zip)

        with pytest.raises(ParsingError):
            extractor.extract_from_workbook(path)


class TestDirectoryExtraction:
    def test_copies_images_to_store(self, extractor: ImageExtractor, tmp_path: Path) -> None:
        folder = tmp_path / "images"
        folder.mkdir()
        (folder / "a.jpg").write_bytes(b"a")
        (folder / "b.png").write_bytes(PNG_BYTES)
        (folder / "._c.jpg").write_bytes(b"fork")
        (folder / "notes.txt").write_text("x")
        store = InMemoryImageStore()

        images = extractor.extract_from_directory(folder, store)

        assert [img.original_name for img in images] == ["a.jpg", "b.png"]
        assert all(img.web_path.startswith("/uploads/images/") for img in images)
        assert len(store.saved) == 2

    def test_storage_failure_skips_image(self, extractor: ImageExtractor, tmp_path: Path) -> None:
        folder = tmp_path / "images"
        folder.mkdir()
        (folder / "a.jpg").write_bytes(b"a")
        (folder / "b.png").write_bytes(PNG_BYTES)

        images = extractor.extract_from_directory(folder, InMemoryImageStore(fail_on={"b.png"}))

        assert [img.original_name for img in images] == ["a.jpg"]
