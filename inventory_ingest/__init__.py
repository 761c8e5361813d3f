"""
Inventory Ingest
================

Turns seller inventory uploads (CSV, Excel, PDF, ZIP bundles) into
normalized inventory records.

Usage:
    pipeline = IngestionPipeline()
    result = await pipeline.ingest("stock.xlsx", "xlsx", owner_id="seller-1")
"""

from inventory_ingest.schemas.domain import IngestionResult, NormalizedInventoryRecord
from inventory_ingest.services.ingestion_pipeline import IngestionPipeline, ingest_file

__version__ = "0.1.0"

__all__ = [
    "IngestionPipeline",
    "IngestionResult",
    "NormalizedInventoryRecord",
    "ingest_file",
]
