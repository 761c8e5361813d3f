"""
Normalize Package
=================

Pure functions and static tables that turn raw cells into clean values.

Components:
    - ColumnResolver: synonym-based lookup of logical fields in raw records
    - value_normalizer: number parsing (currency, ranges, units)
    - categories: closed category taxonomy and inference rules
"""

from inventory_ingest.normalize.categories import (
    CANONICAL_CATEGORIES,
    CATEGORY_ALIASES,
    OTHER,
    canonical_category,
    categorize_by_name,
    category_from_inventory_code,
    is_canonical,
    normalize_category,
)
from inventory_ingest.normalize.column_resolver import (
    COLUMN_SYNONYMS,
    LOGICAL_FIELDS,
    ColumnResolver,
)
from inventory_ingest.normalize.value_normalizer import (
    cell_to_text,
    parse_number,
    parse_quantity,
    positive_or,
)

__all__ = [
    "CANONICAL_CATEGORIES",
    "CATEGORY_ALIASES",
    "COLUMN_SYNONYMS",
    "LOGICAL_FIELDS",
    "OTHER",
    "ColumnResolver",
    "canonical_category",
    "categorize_by_name",
    "category_from_inventory_code",
    "cell_to_text",
    "is_canonical",
    "normalize_category",
    "parse_number",
    "parse_quantity",
    "positive_or",
]
