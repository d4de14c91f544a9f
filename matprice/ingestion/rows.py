"""Row parsing and validation for price-list imports.

A raw row either becomes an ImportRow or is dropped. Dropped rows (blank
separators, unparseable or non-positive prices) are expected noise in
supplier exports and are not reported. A row with a valid price but no
identifying text is NOT dropped: it fails later, at resolution, so the
operator sees it.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from matprice.ingestion.cells import Cell, cell_at, cell_text, parse_decimal, to_cells
from matprice.ingestion.columns import ColumnMap


@dataclass(frozen=True)
class ImportRow:
    """Candidate price row extracted from an external price list."""

    raw_index: int
    price: Decimal
    abbreviation: str | None = None
    description: str | None = None
    price_min: Decimal | None = None
    price_max: Decimal | None = None

    @property
    def label(self) -> str:
        """Identifying text used in error reports."""
        return self.abbreviation or self.description or f"row {self.raw_index + 1}"


def is_blank_row(row: Sequence[Cell]) -> bool:
    """True when every cell is empty or falsy."""
    return all(cell.is_blank for cell in row)


def _optional_amount(cell: Cell) -> Decimal | None:
    value = parse_decimal(cell)
    if value is None or value == 0:
        return None
    return value


def parse_row(raw_index: int, row: Sequence[Any], columns: ColumnMap) -> ImportRow | None:
    """Turn one raw row into a candidate ImportRow.

    Args:
        raw_index: Position of the row in the source (0 = header row)
        row: Raw values or Cells, in sheet column order
        columns: Detected column indices

    Returns:
        ImportRow, or None when the row is silently dropped
    """
    cells = to_cells(list(row))
    if is_blank_row(cells):
        return None

    price = parse_decimal(cell_at(cells, columns.price))
    if price is None or price <= 0:
        return None

    return ImportRow(
        raw_index=raw_index,
        price=price,
        abbreviation=cell_text(cell_at(cells, columns.abbreviation)),
        description=cell_text(cell_at(cells, columns.description)),
        price_min=_optional_amount(cell_at(cells, columns.price_min)),
        price_max=_optional_amount(cell_at(cells, columns.price_max)),
    )


def parse_rows(table: Sequence[Sequence[Any]], columns: ColumnMap) -> Iterator[ImportRow]:
    """Parse every data row of a table (header row excluded), skipping drops."""
    for raw_index, row in enumerate(table[1:], start=1):
        parsed = parse_row(raw_index, row, columns)
        if parsed is not None:
            yield parsed
