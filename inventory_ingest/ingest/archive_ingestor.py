"""
Archive Ingestor
================

Reads a ZIP bundle: one spreadsheet or CSV data file plus an optional folder
of images referenced by file name from a photo column.

Flow:
    1. Extract members into an isolated scratch directory (path-safe, with
       member count, size and wall-clock limits)
    2. Pick the data file (spreadsheet preferred over CSV)
    3. Locate the images folder and copy its images into the ImageStore
    4. Map rows to images through the photo column
    5. Remove the scratch directory, always
"""

import time
import zipfile
import zlib
from pathlib import Path, PurePosixPath

from inventory_ingest.config.settings import Settings, get_settings
from inventory_ingest.ingest.csv_reader import CsvReader
from inventory_ingest.ingest.excel_reader import ExcelReader
from inventory_ingest.ingest.image_extractor import ImageExtractor, is_image_file
from inventory_ingest.ingest.table_reader import ReaderContext, TableReader
from inventory_ingest.normalize.column_resolver import ColumnResolver
from inventory_ingest.schemas.domain import RawRecord, SourceReadResult
from inventory_ingest.storage.image_store import ImageStore, LocalImageStore
from inventory_ingest.storage.scratch import scratch_directory
from inventory_ingest.utils.errors import ArchiveError, ArchiveLimitError, ArchiveTimeoutError
from inventory_ingest.utils.logger import get_logger

logger = get_logger(__name__)

SPREADSHEET_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xlsm", ".xls")
CSV_EXTENSIONS: tuple[str, ...] = (".csv",)
IMAGE_DIR_NAMES: tuple[str, ...] = ("images", "Images", "IMAGES", "photos", "Photos", "pictures", "img")
IGNORED_PREFIXES: tuple[str, ...] = ("._", "~$")
IGNORED_NAMES: frozenset[str] = frozenset({".DS_Store", "Thumbs.db"})
IGNORED_DIRS: frozenset[str] = frozenset({"__MACOSX"})

COPY_CHUNK_SIZE = 1024 * 1024

NO_DATA_FILE_MESSAGE = "No Excel (.xlsx, .xls) or CSV file found in ZIP archive"
NO_ROWS_MESSAGE = "No data rows found in the spreadsheet inside the ZIP archive"


def is_ignored_member(path: str | Path) -> bool:
    """True for OS metadata and editor lock files."""
    parts = PurePosixPath(str(path).replace("\\", "/")).parts
    if any(part in IGNORED_DIRS for part in parts):
        return True
    name = parts[-1] if parts else ""
    return name in IGNORED_NAMES or name.startswith(IGNORED_PREFIXES)


def is_unsafe_member(name: str) -> bool:
    """True for absolute paths, drive letters and parent traversal."""
    normalized = name.replace("\\", "/")
    if normalized.startswith("/") or (len(normalized) > 1 and normalized[1] == ":"):
        return True
    return ".." in PurePosixPath(normalized).parts


class _Budget:
    """Wall-clock and byte budget for one extraction."""

    def __init__(self, timeout_seconds: float, max_bytes: int) -> None:
        self._deadline = time.monotonic() + timeout_seconds
        self._timeout = timeout_seconds
        self._max_bytes = max_bytes
        self.written = 0

    def check_time(self) -> None:
        if time.monotonic() >= self._deadline:
            raise ArchiveTimeoutError(
                message=f"ZIP extraction timed out after {self._timeout:g} seconds",
                details={"timeout_seconds": self._timeout},
            )

    def add_bytes(self, count: int) -> None:
        self.written += count
        if self.written > self._max_bytes:
            raise ArchiveLimitError(
                message="ZIP archive exceeds the maximum uncompressed size",
                details={"max_bytes": self._max_bytes},
            )


class ArchiveIngestor(TableReader):
    """
    Reader for ZIP bundles.

    Bundled images are persisted through the ImageStore before the records
    are returned; stored copies outlive the scratch directory.
    """

    def __init__(
        self,
        image_store: ImageStore | None = None,
        resolver: ColumnResolver | None = None,
        image_extractor: ImageExtractor | None = None,
        timeout_seconds: float | None = None,
        max_members: int | None = None,
        max_uncompressed_mb: int | None = None,
        scratch_parent: str | Path | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._settings = settings
        self._store = image_store
        self._resolver = resolver or ColumnResolver()
        self._images = image_extractor or ImageExtractor()
        self._timeout = (
            timeout_seconds
            if timeout_seconds is not None
            else settings.archive_extraction_timeout_seconds
        )
        self._max_members = max_members or settings.archive_max_members
        self._max_bytes = (max_uncompressed_mb or settings.archive_max_uncompressed_mb) * 1024 * 1024
        self._scratch_parent = scratch_parent

    @classmethod
    def from_context(cls, context: ReaderContext) -> "ArchiveIngestor":
        return cls(
            image_store=context.image_store,
            resolver=context.resolver,
            settings=context.settings,
        )

    @property
    def image_store(self) -> ImageStore:
        if self._store is None:
            self._store = LocalImageStore(settings=self._settings)
        return self._store

    def read_sync(self, file_path: Path) -> SourceReadResult:
        """
        Read a bundle.

        Raises:
            ArchiveError: Corrupt or empty archive, no data file, no rows
            ArchiveTimeoutError: Extraction exceeded the wall-clock budget
            ArchiveLimitError: Too many members or too many bytes
        """
        log = logger.bind(file_path=str(file_path))
        log.info("Processing ZIP bundle")

        with scratch_directory(
            prefix="bundle_", parent=self._scratch_parent, settings=self._settings
        ) as scratch:
            extracted = self.extract_members(file_path, scratch)
            data_file = self.find_data_file(extracted)
            if data_file is None:
                raise ArchiveError(
                    message=NO_DATA_FILE_MESSAGE,
                    details={"member_count": len(extracted)},
                )

            records = self._load_data_file(data_file)
            if not records:
                raise ArchiveError(message=NO_ROWS_MESSAGE, details={"data_file": data_file.name})

            result = SourceReadResult(records=records)
            images_dir = self.find_images_dir(scratch, extracted)

            if images_dir is not None:
                images = self._images.extract_from_directory(images_dir, self.image_store)
                photo_values = [self._resolver.resolve(r, "photo") for r in records]
                result.images.extend(images)
                result.image_map.update(self._images.map_images_by_file_name(images, photo_values))
            elif data_file.suffix.lower() in SPREADSHEET_EXTENSIONS:
                ExcelReader(image_extractor=self._images, resolver=self._resolver).attach_embedded_images(
                    data_file, result
                )

            log.info(
                "ZIP bundle processed",
                data_file=data_file.name,
                images_dir=str(images_dir.relative_to(scratch)) if images_dir else None,
                total_rows=len(records),
                image_count=len(result.images),
                mapped_rows=len(result.image_map),
            )
            return result

    def extract_members(self, file_path: Path, destination: Path) -> list[Path]:
        """
        Extract archive members into ``destination``.

        Unsafe and metadata members are skipped; a member that fails to
        decompress is skipped with a warning.

        Returns:
            Paths of extracted files in archive order
        """
        budget = _Budget(self._timeout, self._max_bytes)
        root = destination.resolve()

        try:
            archive = zipfile.ZipFile(file_path)
        except (zipfile.BadZipFile, OSError) as e:
            raise ArchiveError(
                message=f"Failed to open ZIP file: {e}",
                details={"file_path": str(file_path)},
            ) from e

        extracted: list[Path] = []
        with archive:
            members = archive.infolist()
            if len(members) > self._max_members:
                raise ArchiveLimitError(
                    message=f"ZIP archive has too many entries ({len(members)})",
                    details={"max_members": self._max_members},
                )
            declared = sum(info.file_size for info in members)
            if declared > self._max_bytes:
                raise ArchiveLimitError(
                    message="ZIP archive exceeds the maximum uncompressed size",
                    details={"declared_bytes": declared, "max_bytes": self._max_bytes},
                )

            for info in members:
                budget.check_time()
                if info.is_dir() or is_ignored_member(info.filename):
                    continue
                if is_unsafe_member(info.filename):
                    logger.warning("Unsafe ZIP member skipped", member=info.filename)
                    continue

                target = (root / info.filename.replace("\\", "/")).resolve()
                if not target.is_relative_to(root):
                    logger.warning("Unsafe ZIP member skipped", member=info.filename)
                    continue

                if self._copy_member(archive, info, target, budget):
                    extracted.append(target)

        if not extracted:
            raise ArchiveError(message="ZIP file appears to be empty or contains no usable files")

        logger.debug("ZIP members extracted", member_count=len(extracted))
        return extracted

    @staticmethod
    def find_data_file(extracted: list[Path]) -> Path | None:
        """First spreadsheet by sorted path, else the first CSV."""
        for extensions in (SPREADSHEET_EXTENSIONS, CSV_EXTENSIONS):
            for path in sorted(extracted):
                if path.suffix.lower() in extensions and not is_ignored_member(path.name):
                    return path
        return None

    @staticmethod
    def find_images_dir(root: Path, extracted: list[Path]) -> Path | None:
        """
        Locate the folder holding the bundle's images.

        Conventional folder names are tried at the root and one level down,
        then the root itself, then any folder that contains an image.
        """
        candidates: list[Path] = [root / name for name in IMAGE_DIR_NAMES]
        top_level = sorted(p for p in root.iterdir() if p.is_dir() and p.name not in IGNORED_DIRS)
        candidates.extend(folder / name for folder in top_level for name in IMAGE_DIR_NAMES)
        candidates.append(root)
        candidates.extend(path.parent for path in extracted if is_image_file(path))

        for candidate in candidates:
            if candidate.is_dir() and any(p.is_file() and is_image_file(p) for p in candidate.iterdir()):
                return candidate
        return None

    def _load_data_file(self, data_file: Path) -> list[RawRecord]:
        if data_file.suffix.lower() in SPREADSHEET_EXTENSIONS:
            return ExcelReader(resolver=self._resolver, extract_images=False).load_records(data_file)
        return CsvReader().load_records(data_file)

    @staticmethod
    def _copy_member(
        archive: zipfile.ZipFile,
        info: zipfile.ZipInfo,
        target: Path,
        budget: _Budget,
    ) -> bool:
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            with archive.open(info) as source, open(target, "wb") as sink:
                while chunk := source.read(COPY_CHUNK_SIZE):
                    budget.add_bytes(len(chunk))
                    budget.check_time()
                    sink.write(chunk)
        except (
            zipfile.BadZipFile,
            zlib.error,
            EOFError,
            NotImplementedError,
            RuntimeError,
            OSError,
        ) as e:
            logger.warning("ZIP member unreadable, skipped", member=info.filename, error=str(e))
            target.unlink(missing_ok=True)
            return False
        return True
