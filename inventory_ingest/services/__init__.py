"""Row normalization and ingestion orchestration."""

from inventory_ingest.services.ingestion_pipeline import (
    IngestionPipeline,
    ingest_file,
    is_usable_photo,
    resolve_photo,
)
from inventory_ingest.services.row_processor import RowProcessor

__all__ = [
    "IngestionPipeline",
    "RowProcessor",
    "ingest_file",
    "is_usable_photo",
    "resolve_photo",
]
