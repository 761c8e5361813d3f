"""
Row Processor
=============

Builds one NormalizedInventoryRecord from one raw record.

Outcomes per row:
    - record      : material present and quantity > 0
    - None        : quantity missing or <= 0 (sellers list zero-stock lines;
                    not an error)
    - raises      : MissingMaterialError when no material name is found

Price cascade:    price today -> MRP -> purchase price -> sentinel 1
Category cascade: category column -> inventory-type code -> material keywords
                  -> "Other"
"""

from typing import Any, Mapping

from inventory_ingest.normalize.categories import (
    OTHER,
    categorize_by_name,
    category_from_inventory_code,
    normalize_category,
)
from inventory_ingest.normalize.column_resolver import ColumnResolver
from inventory_ingest.normalize.value_normalizer import parse_quantity, positive_or
from inventory_ingest.schemas.domain import (
    DEFAULT_PROJECT_ID,
    SENTINEL_PRICE,
    NormalizedInventoryRecord,
    RowOutcome,
)
from inventory_ingest.utils.errors import MissingMaterialError


class RowProcessor:
    """
    Converts raw records into normalized inventory records.

    Holds no per-ingestion state; rows can be processed in any order or in
    parallel.
    """

    PRICE_FIELDS: tuple[str, ...] = ("price_today", "mrp", "price_purchased")

    def __init__(self, resolver: ColumnResolver | None = None) -> None:
        self._resolver = resolver or ColumnResolver()

    @property
    def resolver(self) -> ColumnResolver:
        return self._resolver

    def process(
        self,
        record: Mapping[str, Any],
        owner_id: str,
        project_id: str | None,
        row_index: int,
    ) -> NormalizedInventoryRecord | None:
        """
        Normalize one raw record.

        Args:
            record: Raw header -> cell mapping
            owner_id: Seller identifier
            project_id: Project identifier (None -> "default")
            row_index: 1-based position of the row in its source

        Returns:
            The normalized record, or None for zero/missing quantity

        Raises:
            MissingMaterialError: If the row has no material name
        """
        resolve = self._resolver.resolve

        material = resolve(record, "material")
        if not material:
            raise MissingMaterialError(details={"row_index": row_index})

        qty = parse_quantity(resolve(record, "qty"))
        if qty <= 0:
            return None

        price, has_real_price = self.resolve_price(record)
        inventory_value = round(price * qty, 2) if has_real_price else 0.0
        inventory_code = resolve(record, "inventory_type")

        return NormalizedInventoryRecord(
            owner_id=owner_id,
            project_id=project_id or DEFAULT_PROJECT_ID,
            material=material,
            brand=self._resolver.resolve_or(record, "brand", "n/a"),
            category=self.resolve_category(record, material, inventory_code),
            condition=self._resolver.resolve_or(record, "condition", "good"),
            qty=qty,
            unit=self._resolver.resolve_or(record, "unit", "pcs"),
            price_today=price,
            mrp=positive_or(resolve(record, "mrp")),
            price_purchased=positive_or(resolve(record, "price_purchased")),
            inventory_value=inventory_value,
            inventory_type=inventory_code or "surplus",
            specs=self._resolver.resolve_or(record, "specs", ""),
            photo=self._resolver.resolve_or(record, "photo", ""),
            specs_photo=self._resolver.resolve_or(record, "specs_photo", ""),
            dimensions=self._resolver.resolve_or(record, "dimensions", "n/a"),
            weight=positive_or(resolve(record, "weight")),
        )

    def evaluate(
        self,
        record: Mapping[str, Any],
        owner_id: str,
        project_id: str | None,
        row_index: int,
    ) -> RowOutcome:
        """
        Process a row and fold the result into a RowOutcome.

        Missing material becomes a visible error; zero quantity becomes a
        silent skip. Other exceptions propagate to the caller.
        """
        try:
            record_out = self.process(record, owner_id, project_id, row_index)
        except MissingMaterialError as e:
            return RowOutcome(row_index=row_index, error=e.message)
        return RowOutcome(row_index=row_index, record=record_out)

    def resolve_price(self, record: Mapping[str, Any]) -> tuple[float, bool]:
        """
        Pick the selling price for a row.

        Returns:
            (price, has_real_price); price is SENTINEL_PRICE when no column
            holds a positive value
        """
        for field in self.PRICE_FIELDS:
            price = positive_or(self._resolver.resolve(record, field))
            if price > 0:
                return price, True
        return SENTINEL_PRICE, False

    def resolve_category(
        self,
        record: Mapping[str, Any],
        material: str,
        inventory_code: str | None = None,
    ) -> str:
        """Walk the category cascade; always returns a taxonomy member."""
        explicit = normalize_category(self._resolver.resolve(record, "category"))
        if explicit:
            return explicit

        from_code = normalize_category(category_from_inventory_code(inventory_code))
        if from_code:
            return from_code

        return normalize_category(categorize_by_name(material)) or OTHER
