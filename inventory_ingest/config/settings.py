"""
Settings Configuration
======================

Environment variable management using pydantic-settings.
All variables are prefixed with INVENTORY_ (e.g., INVENTORY_UPLOADS_DIR=/data/uploads).
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Ingestion settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="INVENTORY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Runtime Configuration
    # -------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Deployment environment"
    )
    log_sample_limit: int = Field(
        default=5,
        ge=0,
        description="How many skipped rows are logged individually per ingestion",
    )

    # -------------------------------------------------------------------------
    # Storage Configuration
    # -------------------------------------------------------------------------
    uploads_dir: str = Field(default="uploads", description="Root directory for persisted uploads")
    images_subdir: str = Field(default="images", description="Image folder under uploads_dir")
    web_path_prefix: str = Field(
        default="/uploads/images",
        description="Public path prefix for stored images",
    )
    scratch_dir: str | None = Field(
        default=None,
        description="Parent directory for temporary extraction (None = OS temp dir)",
    )
    image_retention_hours: int = Field(
        default=24,
        ge=1,
        le=24 * 365,
        description="Age after which orphaned stored images may be removed",
    )

    # -------------------------------------------------------------------------
    # Limits
    # -------------------------------------------------------------------------
    max_file_size_mb: int = Field(default=50, ge=1, le=500, description="Max upload size in MB")
    archive_extraction_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Wall-clock budget for extracting one ZIP bundle",
    )
    archive_max_members: int = Field(
        default=5000, ge=1, description="Maximum number of entries in a ZIP bundle"
    )
    archive_max_uncompressed_mb: int = Field(
        default=500, ge=1, description="Maximum total uncompressed size of a ZIP bundle"
    )

    @property
    def images_dir(self) -> Path:
        """Directory where bundled images are persisted."""
        return Path(self.uploads_dir) / self.images_subdir

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache so settings are loaded once per process.
    Tests call ``get_settings.cache_clear()`` after changing the environment.
    """
    return Settings()
