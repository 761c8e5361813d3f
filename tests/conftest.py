"""
Test Configuration and Fixtures
===============================

Shared pytest fixtures for inventory_ingest tests.
"""

from pathlib import Path

import pytest

from inventory_ingest.config.settings import get_settings
from tests.factories import InMemoryImageStore


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point every filesystem setting into tmp_path."""
    monkeypatch.setenv("INVENTORY_UPLOADS_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("INVENTORY_SCRATCH_DIR", str(tmp_path / "scratch"))
    monkeypatch.setenv("INVENTORY_ENVIRONMENT", "development")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def scratch_root(tmp_path: Path) -> Path:
    return tmp_path / "scratch"


@pytest.fixture
def memory_store() -> InMemoryImageStore:
    return InMemoryImageStore()
