"""Scoped temporary directories for bundle extraction."""

import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from inventory_ingest.config.settings import Settings, get_settings
from inventory_ingest.utils.logger import get_logger

logger = get_logger(__name__)


@contextmanager
def scratch_directory(
    prefix: str = "bundle_",
    parent: str | Path | None = None,
    settings: Settings | None = None,
) -> Iterator[Path]:
    """
    Create an isolated temporary directory and always remove it.

    The directory name comes from ``tempfile.mkdtemp`` so simultaneous
    ingestions never share a path. Removal runs on success, on exceptions
    and on cancellation.

    Args:
        prefix: Directory name prefix
        parent: Parent directory (defaults to settings.scratch_dir, then the OS temp dir)
        settings: Settings to read scratch_dir from (defaults to get_settings())

    Yields:
        Path to the new directory
    """
    base = parent or (settings or get_settings()).scratch_dir
    if base is not None:
        Path(base).mkdir(parents=True, exist_ok=True)

    path = Path(tempfile.mkdtemp(prefix=prefix, dir=base))
    logger.debug("Scratch directory created", path=str(path))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        if path.exists():
            logger.warning("Scratch directory not fully removed", path=str(path))
        else:
            logger.debug("Scratch directory removed", path=str(path))
