"""
Schemas
=======

Pydantic models and typed containers for pipeline data.
"""

from inventory_ingest.schemas.domain import (
    DEFAULT_PROJECT_ID,
    SENTINEL_PRICE,
    ExtractedImage,
    ImageRowMap,
    IngestionResult,
    NormalizedInventoryRecord,
    RawRecord,
    RowOutcome,
    SourceReadResult,
)

__all__ = [
    "DEFAULT_PROJECT_ID",
    "SENTINEL_PRICE",
    "ExtractedImage",
    "ImageRowMap",
    "IngestionResult",
    "NormalizedInventoryRecord",
    "RawRecord",
    "RowOutcome",
    "SourceReadResult",
]
