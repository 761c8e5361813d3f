"""
Value Normalizer
================

Converts raw spreadsheet cells into numbers and clean strings.

Example inputs:
- "₹1,250"   → 1250.0
- "100-200"  → 150.0   (range: average of both ends)
- "665/735"  → 700.0   (two quoted prices: average)
- "12.5 kg"  → 12.5
- ""         → 0.0
- "abc"      → 0.0

Averaging ranges is a business heuristic for ambiguous seller prices, not an
accounting rule. Nothing here raises on bad input: unparseable values are 0.
"""

import math
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Final

CURRENCY_SYMBOLS: Final[str] = "$€£¥₹₽"

_CURRENCY_PATTERN: Final[re.Pattern[str]] = re.compile(f"[{re.escape(CURRENCY_SYMBOLS)},]")
_CURRENCY_WORD_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^\s*(?:rs\.?|inr)\s*", re.IGNORECASE
)
_WHITESPACE_PATTERN: Final[re.Pattern[str]] = re.compile(r"\s+")
_LEADING_FLOAT_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)")


def cell_to_text(value: Any) -> str | None:
    """
    Render a raw cell as trimmed text.

    Whole floats lose their ``.0`` (spreadsheets store 10 as 10.0), NaN and
    blank strings become None.

    Args:
        value: Raw cell value

    Returns:
        Non-empty trimmed string, or None
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()

    text = str(value).strip()
    return text or None


def _leading_float(text: str) -> float | None:
    """Parse the numeric prefix of a string, like JavaScript's parseFloat."""
    match = _LEADING_FLOAT_PATTERN.match(text.strip())
    if not match:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None


def _split_pair(text: str, separator: str) -> float | None:
    """
    Resolve "a<sep>b" to the mean of a and b.

    Falls back to whichever side is numeric; None when the string does not
    split into exactly two parts or neither side is numeric.
    """
    parts = text.split(separator)
    if len(parts) != 2:
        return None

    first = _leading_float(parts[0])
    second = _leading_float(parts[1])

    if first is not None and second is not None:
        return (first + second) / 2
    if first is not None:
        return first
    return second


def clean_numeric_string(value: str) -> str:
    """Strip currency markers, thousands separators and whitespace."""
    cleaned = _CURRENCY_WORD_PATTERN.sub("", value)
    cleaned = _CURRENCY_PATTERN.sub("", cleaned)
    return _WHITESPACE_PATTERN.sub("", cleaned)


def parse_number(value: Any) -> float:
    """
    Parse a raw cell into a float.

    Handles:
    - numeric passthrough (int, float, Decimal); NaN → 0
    - currency symbols and thousands separators ("₹1,250")
    - ranges and paired prices ("100-200", "665/735") → average
    - trailing units ("12.5 kg")

    Args:
        value: Raw cell value of any type

    Returns:
        Parsed number, 0.0 when the value is empty or not numeric
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        return 0.0 if math.isnan(number) or math.isinf(number) else number

    text = str(value).strip()
    if not text:
        return 0.0

    cleaned = clean_numeric_string(text)
    if not cleaned:
        return 0.0

    if "/" in cleaned:
        paired = _split_pair(cleaned, "/")
        if paired is not None:
            return paired

    if "-" in cleaned and not cleaned.startswith("-"):
        paired = _split_pair(cleaned, "-")
        if paired is not None:
            return paired

    number = _leading_float(cleaned)
    return 0.0 if number is None else number


def parse_quantity(value: Any) -> int:
    """
    Parse a stock quantity as a positive integer.

    Fractions are rounded half-up; a positive fraction below one counts as 1
    so "0.5" boxes still lists the item. Non-positive input returns 0.
    """
    number = parse_number(value)
    if number <= 0:
        return 0
    return max(1, math.floor(number + 0.5))


def positive_or(value: Any, default: float = 0.0) -> float:
    """Parse a number and return it only when it is positive."""
    number = parse_number(value)
    return number if number > 0 else default
