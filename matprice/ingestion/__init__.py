"""Data ingestion module for matprice.

Reads supplier price lists (CSV/XLSX files or pasted text) into import rows.
"""

from matprice.ingestion.columns import ColumnMap, detect_columns
from matprice.ingestion.pasted import parse_pasted_text
from matprice.ingestion.rows import ImportRow, parse_rows
from matprice.ingestion.spreadsheet import read_table

__all__ = [
    "ColumnMap",
    "ImportRow",
    "detect_columns",
    "parse_pasted_text",
    "parse_rows",
    "read_table",
]
