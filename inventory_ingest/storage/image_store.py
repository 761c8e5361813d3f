"""
Image Store
===========

Narrow storage port for images copied out of uploaded bundles.

The parsing code only sees ``ImageStore.save()``; LocalImageStore writes to
``<uploads_dir>/<images_subdir>`` under a fresh uuid name so concurrent
uploads never collide. Tests swap in an in-memory store.
"""

import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

from inventory_ingest.config.settings import Settings, get_settings
from inventory_ingest.utils.errors import StorageError
from inventory_ingest.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StoredImage:
    """Location of a persisted image."""

    original_name: str
    file_name: str
    file_path: str
    web_path: str


class ImageStore(ABC):
    """Abstract persistent storage for bundled images."""

    @abstractmethod
    def save(self, source_path: Path, original_name: str) -> StoredImage:
        """
        Persist one image under a unique name.

        Args:
            source_path: Local file to copy
            original_name: Name the seller gave the file

        Returns:
            StoredImage describing where it landed

        Raises:
            StorageError: If the image cannot be written
        """
        ...


class LocalImageStore(ImageStore):
    """
    Filesystem-backed image store.

    Usage:
        store = LocalImageStore()
        stored = store.save(Path("/tmp/x/images/door.jpg"), "door.jpg")
        stored.web_path  # "/uploads/images/3f2c...e1.jpg"
    """

    def __init__(
        self,
        images_dir: str | Path | None = None,
        web_path_prefix: str | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._settings = settings
        self._images_dir = Path(images_dir) if images_dir else settings.images_dir
        self._web_prefix = (web_path_prefix or settings.web_path_prefix).rstrip("/")

    @property
    def images_dir(self) -> Path:
        return self._images_dir

    def save(self, source_path: Path, original_name: str) -> StoredImage:
        file_name = f"{uuid4().hex}{Path(original_name).suffix.lower()}"
        destination = self._images_dir / file_name

        try:
            self._images_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_path, destination)
        except OSError as e:
            raise StorageError(
                message=f"Failed to store image {original_name}: {e}",
                details={"source_path": str(source_path), "destination": str(destination)},
            ) from e

        logger.debug("Image stored", original_name=original_name, file_name=file_name)

        return StoredImage(
            original_name=original_name,
            file_name=file_name,
            file_path=str(destination),
            web_path=f"{self._web_prefix}/{file_name}",
        )

    def cleanup_expired(self, max_age_hours: int | None = None) -> int:
        """
        Delete stored images older than the retention window.

        Images whose record was never persisted are otherwise kept forever.

        Args:
            max_age_hours: Age threshold. Defaults to settings.image_retention_hours

        Returns:
            Number of files deleted
        """
        hours = max_age_hours or self._settings.image_retention_hours
        if not self._images_dir.is_dir():
            return 0

        cutoff = datetime.now(timezone.utc).timestamp() - hours * 3600
        deleted = 0

        for path in self._images_dir.iterdir():
            if not path.is_file():
                continue
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    deleted += 1
            except OSError as e:
                logger.warning("Image cleanup failed", path=str(path), error=str(e))

        if deleted:
            logger.info(
                "Expired images removed",
                images_dir=str(self._images_dir),
                deleted=deleted,
                max_age_hours=hours,
            )
        return deleted
