"""Closed cell union for tabular price-list input.

Spreadsheet readers and pasted text hand over loosely typed values
(str, int, float, None, NaN, datetimes). They are converted once, at the
boundary, into one of three cell kinds so that downstream parsing never
relies on implicit string/number coercion.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Union


@dataclass(frozen=True)
class TextCell:
    """Non-numeric cell content (kept verbatim, untrimmed)."""

    value: str

    @property
    def text(self) -> str:
        return self.value

    @property
    def is_blank(self) -> bool:
        return not self.value.strip()


@dataclass(frozen=True)
class NumberCell:
    """Numeric cell content as delivered by the spreadsheet engine."""

    value: float

    @property
    def text(self) -> str:
        if self.value.is_integer():
            return str(int(self.value))
        return repr(self.value)

    @property
    def is_blank(self) -> bool:
        return self.value == 0


@dataclass(frozen=True)
class EmptyCell:
    """Missing cell (None, NaN, or past the end of a short row)."""

    @property
    def text(self) -> str:
        return ""

    @property
    def is_blank(self) -> bool:
        return True


Cell = Union[TextCell, NumberCell, EmptyCell]

EMPTY = EmptyCell()


def to_cell(value: Any) -> Cell:
    """Convert a raw reader value into a Cell.

    Args:
        value: str, int, float, Decimal, None, NaN or any other primitive

    Returns:
        TextCell, NumberCell or EmptyCell
    """
    if isinstance(value, (TextCell, NumberCell, EmptyCell)):
        return value
    if value is None:
        return EMPTY
    if isinstance(value, bool):
        # bool is an int subclass; never treat True as a price of 1
        return TextCell(str(value))
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        if math.isnan(number):
            return EMPTY
        return NumberCell(number)
    if isinstance(value, str):
        return TextCell(value) if value else EMPTY
    return TextCell(str(value))


def to_cells(values: list[Any]) -> list[Cell]:
    """Convert a raw row into cells."""
    return [to_cell(v) for v in values]


def cell_at(row: list[Cell], index: int) -> Cell:
    """Cell at ``index``, EMPTY when the column is undetected (-1) or the row is short."""
    if index < 0 or index >= len(row):
        return EMPTY
    return row[index]


def cell_text(cell: Cell) -> str | None:
    """Trimmed text of a cell, None when blank."""
    if isinstance(cell, EmptyCell):
        return None
    text = cell.text.strip()
    return text or None


_CURRENCY_TOKENS = re.compile(r"^(?:chf|eur|usd|fr\.?|€|\$)\s*|\s*(?:chf|eur|usd|fr\.?|€|\$)$", re.IGNORECASE)
_THOUSANDS = re.compile(r"(?<=\d)['\u2019\u00a0\u202f ](?=\d{3}\b)")
_GROUPED = {
    ",": re.compile(r"^[+-]?\d{1,3}(?:,\d{3})+(?:\.\d+)?$"),
    ".": re.compile(r"^[+-]?\d{1,3}(?:\.\d{3})+(?:,\d+)?$"),
}


def _unify_separators(text: str) -> str:
    """Drop ``,``/``.`` digit grouping and turn the decimal mark into ``.``.

    With both marks present the rightmost one is the decimal mark. A lone
    comma is a decimal comma, repeated dots are grouping. Grouping must come
    in blocks of three digits, otherwise the text is returned as is and
    fails to parse.
    """
    if "," in text and "." in text:
        decimal_mark = "," if text.rfind(",") > text.rfind(".") else "."
    elif text.count(",") == 1 or text.count(".") > 1:
        decimal_mark = ","
    else:
        decimal_mark = "."

    group_mark = "." if decimal_mark == "," else ","
    if group_mark in text:
        if not _GROUPED[group_mark].match(text):
            return text
        text = text.replace(group_mark, "")
    return text.replace(decimal_mark, ".")


def parse_decimal(cell: Cell) -> Decimal | None:
    """Read a price out of a cell.

    Accepted text forms, besides plain ``150.50``:
    - a leading or trailing currency token: ``CHF 80.25``, ``99.90 €``
    - apostrophe or space grouping: ``1'250.50``, ``1 250,50``
    - comma grouping with a decimal point: ``1,250.50``, ``1,250,000``
    - dot grouping with a decimal comma: ``1.250,50``, ``1.250.000``
    - a lone decimal comma: ``80,25``

    A single ``.`` or ``,`` is always a decimal mark, so ``1,250`` reads
    as 1.25.

    Returns:
        Decimal, or None when the cell is empty or not numeric
    """
    if isinstance(cell, EmptyCell):
        return None

    if isinstance(cell, NumberCell):
        if math.isinf(cell.value):
            return None
        return Decimal(str(cell.value))

    text = cell.value.strip()
    text = _CURRENCY_TOKENS.sub("", text).strip()
    text = _unify_separators(_THOUSANDS.sub("", text))

    if not text:
        return None

    try:
        number = Decimal(text)
    except InvalidOperation:
        return None

    if not number.is_finite():
        return None
    return number
