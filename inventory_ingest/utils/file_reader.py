"""
Source File Validation
======================

Existence, type and size checks run before any reader touches a file.
"""

from pathlib import Path

from inventory_ingest.config.settings import get_settings
from inventory_ingest.utils.errors import FileSizeError, ParsingError
from inventory_ingest.utils.logger import get_logger

logger = get_logger(__name__)


def validate_source_file(file_path: str | Path, max_size_mb: int | None = None) -> Path:
    """
    Validate that a source file exists, is a regular file and is not too large.

    Args:
        file_path: Path to the uploaded file
        max_size_mb: Maximum file size in MB.
                    Defaults to settings.max_file_size_mb

    Returns:
        Path: Resolved path to the file

    Raises:
        ParsingError: If the file is missing or is not a regular file
        FileSizeError: If the file exceeds the size limit
    """
    path = Path(file_path)

    if not path.exists():
        raise ParsingError(
            message=f"File not found: {file_path}",
            details={"file_path": str(file_path)},
        )

    if not path.is_file():
        raise ParsingError(
            message=f"Path is not a file: {file_path}",
            details={"file_path": str(file_path)},
        )

    max_size = max_size_mb or get_settings().max_file_size_mb
    max_bytes = max_size * 1024 * 1024
    file_size = path.stat().st_size

    if file_size > max_bytes:
        logger.warning(
            "File exceeds maximum size",
            file_path=str(path),
            file_size_bytes=file_size,
            max_size_bytes=max_bytes,
        )
        raise FileSizeError(
            message=f"File exceeds maximum size of {max_size}MB",
            details={
                "file_path": str(path),
                "file_size_mb": round(file_size / (1024 * 1024), 2),
                "max_size_mb": max_size,
            },
        )

    logger.debug("File validated", file_path=str(path), file_size_bytes=file_size)
    return path.resolve()
