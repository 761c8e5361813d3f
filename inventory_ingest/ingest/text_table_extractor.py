"""
Text Table Extractor
====================

Best-effort recovery of inventory rows from the flat text of a PDF.

PDF text extraction loses the table grid: every cell arrives as its own line
and the only structure left is ordering. This module regroups those lines
into items and classifies the fields of each item by shape.

Known limitations:
    - Only works for the tabular catalogue layout sellers export
      (Photo | Material | Qty | Unit | Brand | Condition | MRP | Price ...)
    - Material names that contain digits only survive as the first text field
    - A brand or condition word longer than four letters can be mistaken for
      the start of a new item

Algorithm:
    1. Skip lines until a header line is seen
    2. Accumulate lines into a buffer
    3. Close the buffer when the next line looks like a material name and the
       buffer already holds enough data for one item
    4. Classify each buffered item; items missing material, qty or price are
       dropped
"""

import re
from typing import Iterable

from inventory_ingest.schemas.domain import RawRecord
from inventory_ingest.utils.logger import get_logger

logger = get_logger(__name__)

# Every token of at least one signature must appear in the header line.
HEADER_SIGNATURES: tuple[tuple[str, ...], ...] = (
    ("photomaterial", "price today"),
    ("material", "qty", "price"),
    ("material", "quantity", "price"),
    ("item", "qty", "price"),
    ("description", "qty", "rate"),
)

MATERIAL_KEYWORDS: tuple[str, ...] = (
    "basin", "shower", "pipe", "flange", "elbow", "sink", "cabin", "tanker",
    "lock", "hinge", "door", "window", "tile", "faucet", "tap", "valve",
    "counter", "health", "metro", "overhead", "bottle", "trap", "cp", "ss",
)

UNIT_LABELS: frozenset[str] = frozenset(
    {"no.", "nos", "nos.", "pcs", "pc", "kg", "ltr", "set", "box", "mtr", "sqft"}
)

MIN_FIELDS_PER_ITEM = 5
MAX_QUANTITY = 1000
FALLBACK_MAX_QUANTITY = 100

NUMERIC_PATTERN = re.compile(r"^\d+(\.\d+)?$")
ALPHA_PATTERN = re.compile(r"^[A-Za-z\s]+$")
WORD_PATTERN = re.compile(r"^[A-Za-z]+$")
CODE_PATTERN = re.compile(r"^[A-Z]{1,3}$")
MATERIAL_START_PATTERN = re.compile(r"^[A-Za-z\s]{5,}")
# Free text starts with a letter and carries at least two of them.
TEXT_PATTERN = re.compile(r"^[A-Za-z](?=.*[A-Za-z]).*$")


class TableTextExtractor:
    """
    Rebuilds inventory rows from a sequence of text lines.

    Records use human-readable headers so they flow through the same
    ColumnResolver as spreadsheet rows.

    Usage:
        extractor = TableTextExtractor()
        records = extractor.extract(page_text.splitlines())
    """

    def extract(self, lines: Iterable[str]) -> list[RawRecord]:
        """
        Extract raw records from text lines.

        Args:
            lines: Text lines in reading order (blank lines are ignored)

        Returns:
            Records for every item that classified successfully; empty when
            no header line is found
        """
        cleaned = [line.strip() for line in lines if line and line.strip()]

        items: list[list[str]] = []
        buffer: list[str] = []
        header_found = False

        for index, line in enumerate(cleaned):
            if self.is_header_line(line):
                # Repeated page headers are skipped too.
                header_found = True
                continue
            if not header_found:
                continue

            if buffer and self.looks_like_material_name(line) and self.has_enough_data(buffer):
                items.append(buffer)
                buffer = []

            buffer.append(line)

            next_line = cleaned[index + 1] if index + 1 < len(cleaned) else None
            if (
                next_line is not None
                and self.has_enough_data(buffer)
                and self.looks_like_material_name(next_line)
            ):
                items.append(buffer)
                buffer = []

        if buffer:
            items.append(buffer)

        records = [record for record in map(self.classify_item, items) if record is not None]

        logger.debug(
            "Text table extraction complete",
            line_count=len(cleaned),
            header_found=header_found,
            item_count=len(items),
            record_count=len(records),
        )
        return records

    @staticmethod
    def is_header_line(line: str) -> bool:
        lowered = line.lower()
        return any(all(token in lowered for token in sig) for sig in HEADER_SIGNATURES)

    @staticmethod
    def looks_like_material_name(line: str) -> bool:
        """True for lines that plausibly start a new item."""
        if len(line) < 3:
            return False
        lowered = line.lower()
        if any(keyword in lowered for keyword in MATERIAL_KEYWORDS):
            return True
        return MATERIAL_START_PATTERN.match(line) is not None

    @staticmethod
    def has_enough_data(fields: list[str]) -> bool:
        """An item needs some text, some numbers and at least five fields."""
        has_numbers = any(NUMERIC_PATTERN.match(f) for f in fields)
        has_text = any(ALPHA_PATTERN.match(f) and len(f) > 2 for f in fields)
        return has_text and has_numbers and len(fields) >= MIN_FIELDS_PER_ITEM

    def classify_item(self, fields: list[str]) -> RawRecord | None:
        """
        Assign buffered fields to material, brand, unit, condition, quantity,
        prices and inventory code.

        Returns:
            A raw record, or None when material, quantity or price is missing
        """
        if len(fields) < 3:
            return None

        numbers: list[float] = []
        texts: list[str] = []
        unit = "No."
        condition = "good"
        inventory_code: str | None = None

        for field in fields:
            if NUMERIC_PATTERN.match(field):
                numbers.append(float(field))
            elif field.lower() in UNIT_LABELS:
                unit = field
            elif CODE_PATTERN.match(field):
                inventory_code = field
            elif (parsed := self._condition_from(field)) is not None:
                condition = parsed
            elif TEXT_PATTERN.match(field):
                texts.append(field)

        if not texts:
            return None

        if len(texts[0]) > 5 or len(texts) == 1:
            material = texts[0]
            used = 1
        else:
            material = f"{texts[0]} {texts[1]}"
            used = 2

        brand = next(
            (t for t in texts[used:] if len(t) > 2 and WORD_PATTERN.match(t)),
            None,
        )

        qty, price_today, price_purchased, mrp = self.assign_numeric_roles(numbers)
        if qty <= 0 or price_today <= 0:
            return None

        return {
            "Material": material,
            "Qty": int(qty) if qty.is_integer() else qty,
            "Unit": unit,
            "Brand": brand,
            "Condition": condition,
            "MRP": mrp or None,
            "Price Purchased": price_purchased or None,
            "Price Today": price_today,
            "Inventory Type": inventory_code,
        }

    @staticmethod
    def assign_numeric_roles(numbers: list[float]) -> tuple[float, float, float, float]:
        """
        Guess (qty, price_today, price_purchased, mrp) from unlabeled numbers.

        Quantity is usually the smallest number below MAX_QUANTITY. Of the
        remaining numbers the largest is today's price, the smallest the
        purchase price, and with three or more prices the maximum doubles as
        MRP. Zero means "not found".
        """
        qty = price_today = price_purchased = mrp = 0.0
        ordered = sorted(numbers)

        if len(ordered) >= 2:
            if 0 < ordered[0] < MAX_QUANTITY:
                qty = ordered[0]
                prices = ordered[1:]
                price_today = prices[-1]
                if len(prices) >= 2:
                    price_purchased = prices[0]
                if len(prices) >= 3:
                    mrp = max(prices)
            elif 0 < ordered[1] < MAX_QUANTITY:
                qty = ordered[1]
                remaining = [n for n in ordered if n != qty]
                if remaining:
                    price_today = remaining[-1]
                    if len(remaining) >= 2:
                        price_purchased = remaining[0]

        if qty == 0 and numbers:
            qty = next((n for n in numbers if 0 < n < FALLBACK_MAX_QUANTITY), 1.0)
            if price_today == 0:
                larger = [n for n in numbers if n > qty]
                price_today = max(larger) if larger else 0.0

        return qty, price_today, price_purchased, mrp

    @staticmethod
    def _condition_from(field: str) -> str | None:
        lowered = field.lower()
        if lowered in ("new", "brand new"):
            return "new"
        if lowered in ("good", "packed", "sealed"):
            return "good"
        if lowered in ("old", "used"):
            return "used"
        return None
