"""Tab-separated price lines pasted from supplier PDFs.

Format (one material per line):
    label<TAB>price[<TAB>price_min[<TAB>price_max]]

The label may be an abbreviation or a description, so it is offered to the
resolver as both. Row rules are the same as for spreadsheets.
"""

from __future__ import annotations

from matprice.ingestion.columns import ColumnMap
from matprice.ingestion.rows import ImportRow, parse_row

# Fixed layout of a pasted line
PASTED_COLUMNS = ColumnMap(abbreviation=0, description=0, price=1, price_min=2, price_max=3)


def split_lines(text: str) -> list[list[str]]:
    """Split pasted text into tab-separated cells, skipping blank lines."""
    return [
        [part.strip() for part in line.split("\t")]
        for line in text.splitlines()
        if line.strip()
    ]


def parse_pasted_text(text: str) -> list[ImportRow]:
    """Parse pasted lines into ImportRows.

    Args:
        text: Raw pasted text

    Returns:
        ImportRows in line order; blank lines and lines without a positive
        price are dropped
    """
    rows = []
    for raw_index, cells in enumerate(split_lines(text)):
        parsed = parse_row(raw_index, cells, PASTED_COLUMNS)
        if parsed is not None:
            rows.append(parsed)
    return rows
