"""
Category Taxonomy
=================

Closed set of marketplace categories plus the lookup tables used to fold
free-form seller categories, inventory-type codes and material names into it.

Resolution order for a raw category string:
    1. exact canonical label
    2. canonical label, case-insensitive
    3. alias table (singular/plural and synonyms)
    4. ordered substring rules, more specific first
       ("Bathroom Tile" must land on Tiles, not Toilets & Sanitary)
    5. no match -> None; callers fall back to "Other"
"""

from types import MappingProxyType
from typing import Final, Mapping

OTHER: Final[str] = "Other"

CANONICAL_CATEGORIES: Final[tuple[str, ...]] = (
    "Doors",
    "Tiles",
    "Handles & Hardware",
    "Toilets & Sanitary",
    "Windows",
    "Flooring",
    "Lighting",
    "Paint & Finishes",
    "Plumbing",
    "Electrical",
    "Furniture",
    "Marbles",
    OTHER,
)

_CANONICAL_BY_UPPER: Final[Mapping[str, str]] = MappingProxyType(
    {label.upper(): label for label in CANONICAL_CATEGORIES}
)

CATEGORY_ALIASES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "TILE": "Tiles",
        "TILES": "Tiles",
        "TILE S": "Tiles",
        "HARDWARE": "Handles & Hardware",
        "HANDLES": "Handles & Hardware",
        "HANDLE": "Handles & Hardware",
        "SANITARY": "Toilets & Sanitary",
        "TOILET": "Toilets & Sanitary",
        "TOILETS": "Toilets & Sanitary",
        "BATHROOM": "Toilets & Sanitary",
        "LIGHTS": "Lighting",
        "LIGHT": "Lighting",
        "FAN": "Lighting",
        "FANS": "Lighting",
        "WINDOW": "Windows",
        "WINDOWS": "Windows",
        "FLOOR": "Flooring",
        "FLOORS": "Flooring",
        "FLOORING": "Flooring",
        "PAINT": "Paint & Finishes",
        "FINISHES": "Paint & Finishes",
        "FINISH": "Paint & Finishes",
        "PLUMB": "Plumbing",
        "PLUMBING": "Plumbing",
        "ELECTRIC": "Electrical",
        "ELECTRICAL": "Electrical",
        "DOOR": "Doors",
        "DOORS": "Doors",
        "FURNITURE": "Furniture",
        "MARBLE": "Marbles",
        "MARBLES": "Marbles",
    }
)

# Checked in order against the upper-cased input.
CATEGORY_SUBSTRING_RULES: Final[tuple[tuple[tuple[str, ...], str], ...]] = (
    (("TILE",), "Tiles"),
    (("HARDWARE", "HANDLE"), "Handles & Hardware"),
    (("SANITARY", "TOILET", "BATH"), "Toilets & Sanitary"),
    (("LIGHT", "LAMP", "FAN"), "Lighting"),
    (("WINDOW",), "Windows"),
    (("FLOOR",), "Flooring"),
    (("PAINT", "FINISH"), "Paint & Finishes"),
    (("PLUMB",), "Plumbing"),
    (("ELECTRIC",), "Electrical"),
    (("DOOR",), "Doors"),
    (("FURNITURE",), "Furniture"),
    (("MARBLE",), "Marbles"),
)

# Seller inventory-type short codes.
INVENTORY_CODE_CATEGORIES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "B": "Toilets & Sanitary",
        "BA": OTHER,  # big appliances
        "D": "Doors",
        "E": "Electrical",
        "F": "Furniture",
        "H": "Handles & Hardware",
        "L": "Lighting",
        "P": "Plumbing",
        "S": "Toilets & Sanitary",
        "SF": "Lighting",  # fans
        "T": "Tiles",
    }
)

# Keyword rules against the lower-cased material name, checked in order.
# Furniture goes first so "bathroom cabinet" is not read as sanitary ware.
MATERIAL_KEYWORD_RULES: Final[tuple[tuple[tuple[str, ...], str], ...]] = (
    (
        (
            "furniture", "cabinet", "chair", "table", "pouf", "sofa", "bed",
            "wardrobe", "dresser",
        ),
        "Furniture",
    ),
    (("geyser", "water heater", "hot water"), "Plumbing"),
    (("door",), "Doors"),
    (("marble", "granite"), "Marbles"),
    (("tile", "ceramic"), "Tiles"),
    (("handle", "knob", "lock", "hinge"), "Handles & Hardware"),
    (("toilet", "sink", "basin", "faucet", "tap"), "Toilets & Sanitary"),
    (("bath", "shower"), "Toilets & Sanitary"),
    (("window", "glass"), "Windows"),
    (("floor", "laminate", "vinyl", "carpet"), "Flooring"),
    (("light", "lamp", "bulb", "fixture"), "Lighting"),
    (("fan", "ventilat"), "Lighting"),
    (("paint", "primer", "varnish", "coating"), "Paint & Finishes"),
    (("pipe", "plumb", "valve"), "Plumbing"),
    (("wire", "electric", "switch", "outlet", "socket"), "Electrical"),
    (("appliance", "refrigerat", "washing", "dishwash"), OTHER),
)


def is_canonical(label: str | None) -> bool:
    """Check whether a label is a member of the taxonomy."""
    return label in CANONICAL_CATEGORIES


def normalize_category(value: object) -> str | None:
    """
    Fold a raw category string into the taxonomy.

    Args:
        value: Raw category cell (any type; non-strings are stringified)

    Returns:
        Canonical label, or None when nothing matches

    Examples:
        >>> normalize_category("Tiles")
        'Tiles'
        >>> normalize_category("tile")
        'Tiles'
        >>> normalize_category("Bathroom Tile")
        'Tiles'
        >>> normalize_category("Gadgets") is None
        True
    """
    if value is None:
        return None

    normalized = str(value).strip()
    if not normalized:
        return None

    if normalized in CANONICAL_CATEGORIES:
        return normalized

    upper = normalized.upper()
    if upper in _CANONICAL_BY_UPPER:
        return _CANONICAL_BY_UPPER[upper]

    if upper in CATEGORY_ALIASES:
        return CATEGORY_ALIASES[upper]

    for keywords, label in CATEGORY_SUBSTRING_RULES:
        if any(keyword in upper for keyword in keywords):
            return label

    return None


def canonical_category(value: object) -> str:
    """Like normalize_category, but always returns a taxonomy member."""
    return normalize_category(value) or OTHER


def category_from_inventory_code(code: object) -> str | None:
    """
    Map an inventory-type short code (``D``, ``SF`` …) to a category.

    Returns:
        Canonical label, or None for unknown or empty codes
    """
    if code is None:
        return None
    key = str(code).strip().upper()
    if not key:
        return None
    return INVENTORY_CODE_CATEGORIES.get(key)


def categorize_by_name(material_name: str | None) -> str:
    """
    Guess a category from keywords in the material name.

    Always returns a taxonomy member; unknown names land in "Other".
    """
    if not material_name:
        return OTHER

    name = material_name.lower()
    for keywords, label in MATERIAL_KEYWORD_RULES:
        if any(keyword in name for keyword in keywords):
            return label

    return OTHER
