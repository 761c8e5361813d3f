"""
Image Extractor
===============

Pulls images out of workbooks and bundle folders and maps them to rows.

Two sources:
    - Embedded workbook media: an .xlsx file is a ZIP; pictures live under
      ``xl/media/`` as ``image1.png``, ``image2.jpeg``... and are returned as
      data URLs.
    - Bundle image folders: files are copied to the ImageStore and referenced
      by web path.

Three mapping strategies:
    - Positional: imageN -> data row N (heuristic; anchors are not read)
    - Name similarity: image file name vs material name
    - File name: photo column value vs image file name (bundles)
"""

import base64
import re
import zipfile
import zlib
from collections.abc import Iterable, Mapping
from pathlib import Path

from inventory_ingest.schemas.domain import ExtractedImage, ImageRowMap
from inventory_ingest.storage.image_store import ImageStore
from inventory_ingest.utils.errors import ParsingError, StorageError
from inventory_ingest.utils.logger import get_logger

logger = get_logger(__name__)

EMBEDDED_MEDIA_PREFIX = "xl/media/"

IMAGE_EXTENSIONS: frozenset[str] = frozenset(
    {".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".tiff", ".tif", ".svg"}
)

MIME_TYPES: dict[str, str] = {
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".tiff": "image/tiff",
    ".tif": "image/tiff",
    ".svg": "image/svg+xml",
}
DEFAULT_MIME_TYPE = "image/jpeg"

SEQUENCE_PATTERN = re.compile(r"image(\d+)\.", re.IGNORECASE)
NAME_KEY_LENGTH = 10


def mime_type_for(file_name: str) -> str:
    """Guess an image MIME type from its extension; JPEG when unknown."""
    return MIME_TYPES.get(Path(file_name).suffix.lower(), DEFAULT_MIME_TYPE)


def is_image_file(path: str | Path) -> bool:
    """True for image extensions, ignoring macOS resource forks."""
    name = Path(path).name
    return not name.startswith("._") and Path(name).suffix.lower() in IMAGE_EXTENSIONS


def _sequence_of(file_name: str) -> int | None:
    match = SEQUENCE_PATTERN.search(file_name)
    return int(match.group(1)) if match else None


def _name_key(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", value.lower())[:NAME_KEY_LENGTH]


class ImageExtractor:
    """Extracts images and builds row-index -> photo maps."""

    def extract_from_workbook(self, file_path: str | Path) -> list[ExtractedImage]:
        """
        Return every image embedded in an .xlsx workbook as a data URL.

        Members that fail to decompress are skipped with a warning.

        Raises:
            ParsingError: If the workbook container cannot be opened
        """
        path = Path(file_path)
        if not zipfile.is_zipfile(path):
            logger.debug("Workbook is not a ZIP container; no embedded images", file_path=str(path))
            return []

        images: list[ExtractedImage] = []
        try:
            with zipfile.ZipFile(path) as archive:
                for info in archive.infolist():
                    if info.is_dir() or not info.filename.startswith(EMBEDDED_MEDIA_PREFIX):
                        continue
                    if not is_image_file(info.filename):
                        continue
                    name = Path(info.filename).name
                    try:
                        payload = archive.read(info)
                    except (zipfile.BadZipFile, zlib.error, OSError) as e:
                        logger.warning("Embedded image unreadable", member=info.filename, error=str(e))
                        continue

                    mime_type = mime_type_for(name)
                    encoded = base64.b64encode(payload).decode("ascii")
                    images.append(
                        ExtractedImage(
                            original_name=name,
                            mime_type=mime_type,
                            data_url=f"data:{mime_type};base64,{encoded}",
                            sequence=_sequence_of(name),
                        )
                    )
        except (zipfile.BadZipFile, OSError) as e:
            raise ParsingError(
                message=f"Failed to read embedded images: {e}",
                details={"file_path": str(path)},
            ) from e

        logger.info("Embedded images extracted", file_path=str(path), image_count=len(images))
        return images

    def extract_from_directory(self, directory: str | Path, store: ImageStore) -> list[ExtractedImage]:
        """
        Copy every image file in ``directory`` (not recursive) into the store.

        Images the store rejects are skipped with a warning.
        """
        folder = Path(directory)
        images: list[ExtractedImage] = []

        for path in sorted(folder.iterdir()):
            if not path.is_file() or not is_image_file(path):
                continue
            try:
                stored = store.save(path, path.name)
            except StorageError as e:
                logger.warning("Bundled image not stored", image=path.name, error=e.message)
                continue
            images.append(
                ExtractedImage(
                    original_name=path.name,
                    mime_type=mime_type_for(path.name),
                    stored_path=stored.file_path,
                    web_path=stored.web_path,
                    sequence=_sequence_of(path.name),
                )
            )

        logger.info("Bundled images stored", directory=str(folder), image_count=len(images))
        return images

    @staticmethod
    def map_images_to_rows(images: Iterable[ExtractedImage], total_rows: int) -> ImageRowMap:
        """
        Map ``imageN`` to data row N.

        Workbook media numbering usually follows insertion order, which for
        catalogue sheets is top to bottom. Images without a number or beyond
        the last row are left unmapped.
        """
        mapping: ImageRowMap = {}
        numbered = sorted(
            (img for img in images if img.sequence is not None and img.reference),
            key=lambda img: img.sequence,
        )
        for image in numbered:
            if 1 <= image.sequence <= total_rows:
                mapping.setdefault(image.sequence, image.reference)
        return mapping

    @staticmethod
    def map_images_by_material_name(
        images: Iterable[ExtractedImage],
        material_names: list[str | None],
    ) -> ImageRowMap:
        """
        Map images to rows whose material name resembles the image file name.

        Both sides are reduced to their first ten lowercase alphanumerics; a
        match is mutual containment. Row indices are 1-based.
        """
        mapping: ImageRowMap = {}
        candidates = [(img, _name_key(Path(img.original_name).stem)) for img in images if img.reference]

        for index, material in enumerate(material_names, start=1):
            material_key = _name_key(material or "")
            if not material_key:
                continue
            for image, image_key in candidates:
                if image_key and (image_key in material_key or material_key in image_key):
                    mapping[index] = image.reference
                    break
        return mapping

    @staticmethod
    def map_images_by_file_name(
        images: Iterable[ExtractedImage],
        photo_values: list[str | None],
    ) -> ImageRowMap:
        """
        Map rows whose photo cell names an image file in the bundle.

        Matching is case-insensitive on the full value, then on its basename
        (so ``images/door.jpg`` finds ``door.jpg``).
        """
        by_name: Mapping[str, ExtractedImage] = {
            img.original_name.casefold(): img for img in images if img.reference
        }
        mapping: ImageRowMap = {}

        for index, value in enumerate(photo_values, start=1):
            if not value:
                continue
            key = value.strip().casefold()
            image = by_name.get(key) or by_name.get(Path(key.replace("\\", "/")).name)
            if image is not None:
                mapping[index] = image.reference
        return mapping
