"""Spreadsheet reading for price-list imports.

Reads CSV/XLSX/XLS exports as a raw table (header row included, no header
inference) and converts every value into the closed Cell union.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from zipfile import BadZipFile

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from matprice.core.exceptions import FatalInputError
from matprice.ingestion.cells import Cell, to_cells

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".csv", ".xlsx", ".xls")


def read_table(file_path: Path, sheet_name: str | int = 0) -> list[list[Cell]]:
    """Read the first (or named) sheet of a price list as rows of cells.

    Args:
        file_path: Path to CSV, XLSX or XLS file
        sheet_name: Sheet name or index for Excel files (default: first sheet)

    Returns:
        Rows of cells, header row first. An empty file yields [].

    Raises:
        FatalInputError: If the file is missing, of an unsupported type,
            or cannot be parsed
    """
    if not file_path.exists():
        raise FatalInputError(f"Price list not found: {file_path}")

    suffix = file_path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise FatalInputError(f"Unsupported file format: {suffix}")

    try:
        if suffix == ".csv":
            # Sniff the delimiter; French/Swiss exports often use ';'
            df = pd.read_csv(
                file_path,
                header=None,
                dtype=str,
                keep_default_na=False,
                sep=None,
                engine="python",
            )
        else:
            df = pd.read_excel(file_path, sheet_name=sheet_name, header=None, dtype=object)
    except pd.errors.EmptyDataError:
        logger.warning(f"Price list is empty: {file_path}")
        return []
    except (ValueError, OSError, KeyError, ImportError, BadZipFile, InvalidFileException, csv.Error) as e:
        raise FatalInputError(f"Cannot read {file_path.name}: {e}") from e

    rows = [to_cells(list(values)) for values in df.itertuples(index=False, name=None)]
    logger.info(f"Loaded {len(rows)} rows from {file_path}")
    return rows
