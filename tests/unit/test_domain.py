"""
Unit Tests for domain models, settings and file validation
==========================================================
"""

import io
import logging
from pathlib import Path

import pytest
import structlog
from pydantic import ValidationError

from inventory_ingest.config.settings import get_settings
from inventory_ingest.schemas.domain import (
    ExtractedImage,
    IngestionResult,
    NormalizedInventoryRecord,
    RowOutcome,
)
from inventory_ingest.utils.errors import FileSizeError, ParsingError
from inventory_ingest.utils.file_reader import validate_source_file
from inventory_ingest.utils.logger import configure_logging, ingestion_context


def _record(**overrides) -> NormalizedInventoryRecord:
    data = {"owner_id": "seller-1", "material": "Door", "qty": 2}
    data.update(overrides)
    return NormalizedInventoryRecord(**data)


class TestNormalizedInventoryRecord:
    def test_defaults(self) -> None:
        record = _record()

        assert record.category == "Other"
        assert record.price_today == 1.0
        assert record.project_id == "default"
        assert record.id
        assert record.created_at.tzinfo is not None

    def test_material_is_stripped(self) -> None:
        assert _record(material="  Door  ").material == "Door"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"material": "   "},
            {"qty": 0},
            {"category": "Gadgets"},
            {"price_today": 0},
            {"mrp": -1},
        ],
    )
    def test_invariants(self, overrides: dict) -> None:
        with pytest.raises(ValidationError):
            _record(**overrides)

    def test_camel_case_serialization(self) -> None:
        data = _record(price_today=500.0, inventory_value=1000.0).to_dict()

        assert data["priceToday"] == 500.0
        assert data["inventoryValue"] == 1000.0
        assert data["ownerId"] == "seller-1"
        assert "price_today" not in data

    def test_accepts_aliases(self) -> None:
        record = NormalizedInventoryRecord(ownerId="s", material="Tile", qty=1, priceToday=9.5)
        assert record.price_today == 9.5

    def test_has_real_price(self) -> None:
        assert _record(inventory_value=10.0).has_real_price
        assert not _record().has_real_price

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            _record().qty = 5  # type: ignore[misc]


class TestResults:
    def test_failure(self) -> None:
        result = IngestionResult.failure("Unsupported file type: docx", "docx")

        assert not result.success
        assert result.materials == []
        assert result.errors == ["Unsupported file type: docx"]
        assert result.to_dict()["declaredType"] == "docx"

    def test_schema_mismatch(self) -> None:
        assert IngestionResult(success=True, total_rows=3, failed_rows=3).has_schema_mismatch
        assert not IngestionResult(success=True).has_schema_mismatch

    def test_row_outcome(self) -> None:
        assert RowOutcome(row_index=2, error="bad").error_message == "Row 2: bad"
        assert RowOutcome(row_index=2).error_message is None

    def test_image_reference(self) -> None:
        stored = ExtractedImage(original_name="a.jpg", web_path="/uploads/images/x.jpg")
        inline = ExtractedImage(original_name="image1.png", data_url="data:image/png;base64,AA")

        assert stored.reference == "/uploads/images/x.jpg"
        assert inline.reference.startswith("data:")


class TestSettings:
    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("INVENTORY_MAX_FILE_SIZE_MB", "5")
        monkeypatch.setenv("INVENTORY_ENVIRONMENT", "production")
        get_settings.cache_clear()

        settings = get_settings()

        assert settings.max_file_size_mb == 5
        assert settings.is_production

    def test_images_dir(self, tmp_path: Path) -> None:
        assert get_settings().images_dir == tmp_path / "uploads" / "images"


class TestValidateSourceFile:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ParsingError, match="File not found"):
            validate_source_file(tmp_path / "nope.csv")

    def test_directory(self, tmp_path: Path) -> None:
        with pytest.raises(ParsingError, match="not a file"):
            validate_source_file(tmp_path)

    def test_too_large(self, tmp_path: Path) -> None:
        path = tmp_path / "big.csv"
        path.write_bytes(b"x" * (1024 * 1024 + 1))

        with pytest.raises(FileSizeError):
            validate_source_file(path, max_size_mb=1)

    def test_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "ok.csv"
        path.write_text("Material\nDoor\n")
        assert validate_source_file(path) == path.resolve()


class TestLogging:
    def test_ingestion_context_binds_fields(self) -> None:
        with ingestion_context(owner_id="seller-1", declared_type="csv"):
            bound = structlog.contextvars.get_contextvars()

        assert bound == {"owner_id": "seller-1", "declared_type": "csv"}
        assert structlog.contextvars.get_contextvars() == {}

    def test_configure_logging_uses_given_stream(self) -> None:
        root = logging.getLogger()
        previous = root.level
        try:
            configure_logging("debug", stream=io.StringIO())
            assert root.level == logging.DEBUG
        finally:
            root.setLevel(previous)
