"""
Domain Models
=============

Records and results passed between readers, the row processor and the caller.

RawRecord is a plain ordered dict (header -> cell); everything produced by the
pipeline is validated with pydantic before it leaves the package.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from inventory_ingest.normalize.categories import CANONICAL_CATEGORIES

# Raw header -> raw cell value, in source column order.
RawRecord = dict[str, Any]

# 1-based row index -> photo reference (URL, web path or data URL).
ImageRowMap = dict[int, str]

SENTINEL_PRICE = 1.0
DEFAULT_PROJECT_ID = "default"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Output Record
# =============================================================================


class NormalizedInventoryRecord(BaseModel):
    """
    One validated inventory line ready for bulk insertion.

    Serialized with camelCase keys (``priceToday``, ``inventoryValue``) for the
    persistence layer; Python code uses the snake_case attribute names.

    Invariants:
        - material is non-empty
        - qty is a positive integer
        - category is a member of CANONICAL_CATEGORIES
        - price_today falls back to SENTINEL_PRICE, in which case
          inventory_value is 0
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "ownerId": "seller-42",
                "projectId": "default",
                "material": "Steel Pipe",
                "brand": "Tata",
                "category": "Plumbing",
                "qty": 10,
                "unit": "pcs",
                "priceToday": 500.0,
                "inventoryValue": 5000.0,
            }
        },
    )

    id: str = Field(default_factory=lambda: str(uuid4()))
    owner_id: str = Field(..., min_length=1)
    project_id: str = Field(default=DEFAULT_PROJECT_ID, min_length=1)
    material: Annotated[str, Field(min_length=1)]
    brand: str = "n/a"
    category: str = "Other"
    condition: str = "good"
    qty: Annotated[int, Field(gt=0)]
    unit: str = "pcs"
    price_today: Annotated[float, Field(gt=0)] = SENTINEL_PRICE
    mrp: Annotated[float, Field(ge=0)] = 0.0
    price_purchased: Annotated[float, Field(ge=0)] = 0.0
    inventory_value: Annotated[float, Field(ge=0)] = 0.0
    inventory_type: str = "surplus"
    listing_type: str = "resale"
    specs: str = ""
    photo: str = ""
    specs_photo: str = ""
    dimensions: str = "n/a"
    weight: Annotated[float, Field(ge=0)] = 0.0
    created_at: datetime = Field(default_factory=_utc_now)

    @field_validator("material")
    @classmethod
    def strip_material(cls, v: str) -> str:
        """Reject whitespace-only material names."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("material cannot be empty or whitespace")
        return stripped

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        """Category must come from the closed taxonomy."""
        if v not in CANONICAL_CATEGORIES:
            raise ValueError(f"category must be one of {CANONICAL_CATEGORIES}, got {v!r}")
        return v

    @property
    def has_real_price(self) -> bool:
        """False when the price is the sentinel placeholder."""
        return self.inventory_value > 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys and JSON-safe values."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Images
# =============================================================================


class ExtractedImage(BaseModel):
    """
    Image pulled from a workbook or a bundle's images folder.

    Embedded workbook media travels inline as a data URL; bundled images are
    copied to storage and referenced by web path.
    """

    model_config = ConfigDict(frozen=True)

    original_name: str = Field(..., min_length=1)
    mime_type: str = "image/jpeg"
    data_url: str | None = None
    stored_path: str | None = None
    web_path: str | None = None
    sequence: int | None = Field(default=None, description="Number parsed from imageN.ext")

    @property
    def reference(self) -> str | None:
        """Photo reference to store on a record (data URL wins over web path)."""
        return self.data_url or self.web_path


# =============================================================================
# Reader and Row Results
# =============================================================================


@dataclass
class SourceReadResult:
    """
    Raw output of a source reader.

    Attributes:
        records: Raw records in source order
        image_map: Row index -> photo reference built by the reader
        images: All images the reader extracted (mapped or not)
        warnings: Degraded-path notes (image extraction failures etc.)
    """

    records: list[RawRecord] = field(default_factory=list)
    image_map: ImageRowMap = field(default_factory=dict)
    images: list[ExtractedImage] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class RowOutcome:
    """
    Result of processing a single row.

    Exactly one of the following holds:
        - record is set (row accepted)
        - error is set (row rejected with a visible reason)
        - both are None (row silently skipped, e.g. zero quantity)
    """

    row_index: int
    record: NormalizedInventoryRecord | None = None
    error: str | None = None

    @property
    def accepted(self) -> bool:
        return self.record is not None

    @property
    def error_message(self) -> str | None:
        """Caller-facing message in the ``Row N: reason`` form."""
        if self.error is None:
            return None
        return f"Row {self.row_index}: {self.error}"


# =============================================================================
# Pipeline Result
# =============================================================================


class IngestionResult(BaseModel):
    """
    The only object crossing the pipeline/caller boundary.

    ``success`` is False only for fatal errors (unreadable file, unsupported
    type, unusable bundle); in that case ``materials`` is empty and ``errors``
    holds the single top-level message.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    materials: list[NormalizedInventoryRecord] = Field(default_factory=list)
    total_rows: int = Field(default=0, ge=0)
    successful_rows: int = Field(default=0, ge=0)
    failed_rows: int = Field(default=0, ge=0)
    errors: list[str] = Field(default_factory=list)
    error: str | None = None
    declared_type: str | None = None

    @classmethod
    def failure(cls, message: str, declared_type: str | None = None) -> "IngestionResult":
        """Build a fatal result carrying a single top-level error."""
        return cls(
            success=False,
            error=message,
            errors=[message],
            declared_type=declared_type,
        )

    @property
    def has_schema_mismatch(self) -> bool:
        """True when the file was readable but no row matched the expected columns."""
        return self.success and self.total_rows > 0 and self.successful_rows == 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the caller with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
