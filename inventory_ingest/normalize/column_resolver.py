"""
Column Resolver
===============

Finds the raw column holding a logical field in a record with an unknown
schema. Sellers spell headers however they like ("Qty.", "Available Quantity",
"ITEM_NAME"), so lookup goes through a static synonym table in three tiers:

    1. exact header match (case-sensitive), synonyms in order
    2. case-insensitive match on trimmed, whitespace-collapsed headers
    3. token subset: every word of the synonym appears inside one header

A tier is fully exhausted before the next one is tried, so an exact
"Unit Price" header always beats a fuzzy hit on "Cost Price". Resolution is
tier-major, not synonym-major: an exact hit on a late synonym wins over a
case-insensitive or token hit on an earlier one, so synonym order only breaks
ties within a tier. A candidate counts only when its value is non-blank.
"""

import re
from types import MappingProxyType
from typing import Any, Final, Mapping

from inventory_ingest.normalize.value_normalizer import cell_to_text, parse_number

COLUMN_SYNONYMS: Final[Mapping[str, tuple[str, ...]]] = MappingProxyType(
    {
        "material": (
            "material", "material name", "material_name", "item", "item name",
            "item_name", "product", "product name", "product_name", "name",
            "description", "item description", "product description",
            "material description", "item_description",
        ),
        "qty": (
            "qty", "qty.", "quantity", "amount", "count", "stock", "available",
            "available quantity", "available_quantity", "units", "unit quantity",
            "qty available", "stock quantity", "stock_quantity",
        ),
        "unit": (
            "unit", "units", "measurement", "uom", "unit of measure",
            "unit_of_measure", "unit type", "unit_type", "measuring unit",
        ),
        "brand": (
            "brand", "manufacturer", "make", "company", "brand name", "brand_name",
            "manufacturer name", "make name",
        ),
        "condition": (
            "condition", "state", "quality", "grade", "item condition",
            "condition status",
        ),
        "price_today": (
            "price today", "price_today", "current price", "current_price",
            "selling price", "selling_price", "price", "cost", "unit price",
            "unit_price", "rate", "selling rate", "rate per unit", "price per unit",
            "price_per_unit", "today price", "today_price",
        ),
        "mrp": (
            "mrp", "retail price", "retail_price", "original price", "original_price",
            "list price", "list_price", "msrp", "marked price", "marked_price",
        ),
        "price_purchased": (
            "price purchased", "price_purchased", "purchase price", "purchase_price",
            "bought price", "bought_price", "cost price", "cost_price", "purchase cost",
        ),
        "inventory_type": (
            "inventory type", "inventory_type", "type", "category type",
            "category_type", "stock type", "stock_type", "inventory code",
        ),
        "specs": (
            "specs", "specifications", "specification", "details", "description",
            "features", "item specs", "product specs", "technical specs",
        ),
        "photo": (
            "photo", "image", "picture", "url", "image url", "image_url", "photo url",
            "photo_url", "picture url", "img", "image link", "photo link",
        ),
        "specs_photo": (
            "specs photo", "spec photo", "spec image", "specification image",
            "tech sheet", "technical sheet",
        ),
        "category": (
            "category", "group", "class", "type", "item category", "product category",
            "category name", "classification",
        ),
        "dimensions": (
            "dimensions", "size", "measurements", "length x width",
            "length x width x height", "l x w x h", "dimension", "sizes",
        ),
        "weight": (
            "weight", "mass", "kg", "lbs", "pounds", "weight kg", "weight_kg",
        ),
    }
)

LOGICAL_FIELDS: Final[tuple[str, ...]] = tuple(COLUMN_SYNONYMS)

_WHITESPACE: Final[re.Pattern[str]] = re.compile(r"\s+")
_TOKEN_SPLIT: Final[re.Pattern[str]] = re.compile(r"[\s_\-]+")


def normalize_header(header: Any) -> str:
    """Lower-case, trim and collapse internal whitespace of a header."""
    return _WHITESPACE.sub(" ", str(header).strip()).lower()


def synonym_tokens(synonym: str) -> list[str]:
    """Split a synonym into the words the token tier looks for."""
    return [token for token in _TOKEN_SPLIT.split(synonym.lower().strip()) if token]


class ColumnResolver:
    """
    Resolves logical fields against records with arbitrary headers.

    Stateless apart from the read-only synonym table, so one instance can be
    shared across concurrent ingestions.

    Example:
        resolver = ColumnResolver()
        resolver.resolve({"Item Name": "Steel Pipe", "Qty": "10"}, "material")
        # -> "Steel Pipe"
    """

    def __init__(self, synonyms: Mapping[str, tuple[str, ...]] | None = None) -> None:
        self._synonyms = synonyms if synonyms is not None else COLUMN_SYNONYMS

    @property
    def synonyms(self) -> Mapping[str, tuple[str, ...]]:
        return self._synonyms

    def synonyms_for(self, field: str) -> tuple[str, ...]:
        """
        Return the accepted header spellings for a logical field.

        Raises:
            KeyError: If the field is not in the synonym table
        """
        try:
            return self._synonyms[field]
        except KeyError:
            raise KeyError(f"Unknown logical field: {field!r}") from None

    def resolve(self, record: Mapping[str, Any], field: str) -> str | None:
        """
        Find the value of a logical field in a raw record.

        Args:
            record: Raw header -> cell mapping
            field: Logical field name (see LOGICAL_FIELDS)

        Returns:
            Trimmed, non-empty string value, or None if no column matched
        """
        synonyms = self.synonyms_for(field)
        if not record:
            return None

        # Tier 1: exact header
        for synonym in synonyms:
            if synonym in record:
                text = cell_to_text(record[synonym])
                if text:
                    return text

        # Tier 2: case/whitespace-insensitive header
        normalized: dict[str, list[str]] = {}
        for key in record:
            normalized.setdefault(normalize_header(key), []).append(key)

        for synonym in synonyms:
            for key in normalized.get(normalize_header(synonym), ()):
                text = cell_to_text(record[key])
                if text:
                    return text

        # Tier 3: every synonym word is contained in the header
        for synonym in synonyms:
            tokens = synonym_tokens(synonym)
            if not tokens:
                continue
            for header, keys in normalized.items():
                if all(token in header for token in tokens):
                    for key in keys:
                        text = cell_to_text(record[key])
                        if text:
                            return text

        return None

    def resolve_or(self, record: Mapping[str, Any], field: str, default: str) -> str:
        """Resolve a field, falling back to a default for missing values."""
        return self.resolve(record, field) or default

    def resolve_number(self, record: Mapping[str, Any], field: str) -> float:
        """Resolve a field and parse it as a number (0.0 when missing)."""
        return parse_number(self.resolve(record, field))

    def matched_fields(self, headers: list[str]) -> dict[str, bool]:
        """
        Report which logical fields a header row can satisfy.

        Used for diagnostics when a file yields no usable rows.
        """
        sample = {header: "x" for header in headers}
        return {field: self.resolve(sample, field) is not None for field in self._synonyms}
