"""
Ingestion Pipeline
==================

Orchestrates one upload: reader dispatch -> row normalization -> result.

Error taxonomy:
    - Fatal (unsupported type, unreadable file, unusable bundle):
      success=False with a single top-level error, zero records
    - Row rejected (no material): "Row N: Material name is required"
    - Row skipped (zero quantity): counted as failed, no message
    - Degraded (image extraction problems): logged, ingestion continues

A readable file that yields zero records is still a success; callers use
``IngestionResult.has_schema_mismatch`` to tell the seller.
"""

from pathlib import Path
from typing import Any

from pydantic import ValidationError

from inventory_ingest.config.settings import Settings, get_settings
from inventory_ingest.ingest.reader_factory import ReaderFactory
from inventory_ingest.ingest.table_reader import ReaderContext
from inventory_ingest.schemas.domain import (
    ImageRowMap,
    IngestionResult,
    RawRecord,
    RowOutcome,
    SourceReadResult,
)
from inventory_ingest.services.row_processor import RowProcessor
from inventory_ingest.storage.image_store import ImageStore
from inventory_ingest.utils.errors import InventoryIngestError
from inventory_ingest.utils.file_reader import validate_source_file
from inventory_ingest.utils.logger import get_logger, ingestion_context

logger = get_logger(__name__)

PHOTO_URL_PREFIXES: tuple[str, ...] = ("http://", "https://", "data:image/")
DIAGNOSTIC_FIELDS: tuple[str, ...] = ("material", "qty", "price_today")


def is_usable_photo(value: str | None) -> bool:
    """True for absolute URLs, inline data images and absolute web paths."""
    if not value:
        return False
    return value.lower().startswith(PHOTO_URL_PREFIXES) or value.startswith("/")


def resolve_photo(raw_photo: str | None, mapped: str | None) -> str:
    """Photo priority: mapped image, usable raw value, empty string."""
    if mapped:
        return mapped
    if is_usable_photo(raw_photo):
        return raw_photo  # type: ignore[return-value]
    return ""


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    return "; ".join(parts) or str(error)


class IngestionPipeline:
    """
    Turns an uploaded file into normalized inventory records.

    Holds only stateless collaborators; one instance may serve concurrent
    ingestions.

    Usage:
        pipeline = IngestionPipeline()
        result = await pipeline.ingest("/tmp/upload.xlsx", "xlsx", owner_id="seller-42")
    """

    def __init__(
        self,
        row_processor: RowProcessor | None = None,
        image_store: ImageStore | None = None,
        reader_factory: ReaderFactory | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._rows = row_processor or RowProcessor()
        self._factory = reader_factory or ReaderFactory(
            ReaderContext(
                image_store=image_store,
                resolver=self._rows.resolver,
                settings=self._settings,
            )
        )

    @property
    def reader_factory(self) -> ReaderFactory:
        return self._factory

    async def ingest(
        self,
        file_path: str | Path,
        declared_type: str,
        owner_id: str,
        project_id: str | None = None,
    ) -> IngestionResult:
        """
        Ingest one file.

        Args:
            file_path: Local path of the uploaded file
            declared_type: csv, xlsx, xls, excel, pdf or zip
            owner_id: Seller identifier stamped on every record
            project_id: Optional project identifier (None -> "default")

        Returns:
            IngestionResult; never raises for file or row problems
        """
        with ingestion_context(file_path=str(file_path), declared_type=declared_type, owner_id=owner_id):
            logger.info("Ingestion started", project_id=project_id)

            try:
                reader = self._factory.create(declared_type)
                path = validate_source_file(file_path, self._settings.max_file_size_mb)
                source = await reader.read(path)
            except InventoryIngestError as e:
                logger.error(
                    "Ingestion failed",
                    error=e.message,
                    error_type=type(e).__name__,
                    details=e.details,
                )
                return IngestionResult.failure(e.message, declared_type)
            except Exception as e:
                logger.exception("Unexpected ingestion failure", error=str(e))
                return IngestionResult.failure(f"Error parsing {declared_type} file: {e}", declared_type)

            result = self.assemble(source, owner_id, project_id, declared_type)
            logger.info(
                "Ingestion complete",
                total_rows=result.total_rows,
                successful_rows=result.successful_rows,
                failed_rows=result.failed_rows,
                error_count=len(result.errors),
            )
            return result

    def assemble(
        self,
        source: SourceReadResult,
        owner_id: str,
        project_id: str | None,
        declared_type: str | None = None,
    ) -> IngestionResult:
        """Fold per-row outcomes into the final result."""
        outcomes = [
            self.process_row(record, row_index, source.image_map, owner_id, project_id)
            for row_index, record in enumerate(source.records, start=1)
        ]

        self._log_skipped_rows(outcomes)

        materials = [o.record for o in outcomes if o.record is not None]
        errors = [o.error_message for o in outcomes if o.error_message is not None]
        errors.extend(source.warnings)

        if source.records and not materials:
            self._log_zero_record_diagnostics(source.records)

        return IngestionResult(
            success=True,
            materials=materials,
            total_rows=source.total_rows,
            successful_rows=len(materials),
            failed_rows=source.total_rows - len(materials),
            errors=errors,
            declared_type=declared_type,
        )

    def process_row(
        self,
        record: RawRecord,
        row_index: int,
        image_map: ImageRowMap,
        owner_id: str,
        project_id: str | None,
    ) -> RowOutcome:
        """
        Process one row; any exception becomes a row error.

        A bad row never aborts the batch.
        """
        try:
            outcome = self._rows.evaluate(record, owner_id, project_id, row_index)
        except ValidationError as e:
            return RowOutcome(row_index=row_index, error=_describe_validation_error(e))
        except Exception as e:
            logger.warning("Row processing failed", row_index=row_index, error=str(e))
            return RowOutcome(row_index=row_index, error=str(e) or type(e).__name__)

        if outcome.record is None:
            return outcome

        photo = resolve_photo(outcome.record.photo, image_map.get(row_index))
        if photo == outcome.record.photo:
            return outcome
        return RowOutcome(
            row_index=row_index,
            record=outcome.record.model_copy(update={"photo": photo}),
        )

    def _log_skipped_rows(self, outcomes: list[RowOutcome]) -> None:
        limit = self._settings.log_sample_limit
        rejected = [o for o in outcomes if o.error is not None]
        skipped = [o for o in outcomes if o.error is None and o.record is None]

        for outcome in rejected[:limit]:
            logger.debug("Row rejected", row_index=outcome.row_index, error=outcome.error)
        for outcome in skipped[:limit]:
            logger.debug("Row skipped: quantity missing or zero", row_index=outcome.row_index)

        if len(rejected) > limit or len(skipped) > limit:
            logger.debug(
                "Further skipped rows not logged",
                rejected=len(rejected),
                skipped=len(skipped),
                sample_limit=limit,
            )

    def _log_zero_record_diagnostics(self, records: list[RawRecord]) -> None:
        resolver = self._rows.resolver
        headers = list(records[0].keys())
        logger.warning(
            "No usable records in readable file",
            headers=headers,
            matched_fields=resolver.matched_fields(headers),
            searched={field: list(resolver.synonyms_for(field)) for field in DIAGNOSTIC_FIELDS},
            sample_row={k: v for k, v in list(records[0].items())[:10]},
        )


async def ingest_file(
    file_path: str | Path,
    declared_type: str,
    owner_id: str,
    project_id: str | None = None,
    **pipeline_kwargs: Any,
) -> IngestionResult:
    """Convenience wrapper: build a pipeline and ingest one file."""
    pipeline = IngestionPipeline(**pipeline_kwargs)
    return await pipeline.ingest(file_path, declared_type, owner_id, project_id)
