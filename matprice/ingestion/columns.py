"""Column auto-detection for supplier price lists.

Maps human-authored header cells to semantic fields through prioritized
synonym lists. For each field, synonyms are tried in order; for each synonym
the headers are scanned left to right, and the first header containing the
synonym as a substring wins the field.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from matprice.canonical.normalize import normalize_header
from matprice.core.exceptions import MissingColumnError

logger = logging.getLogger(__name__)

ABBREVIATION = "abbreviation"
DESCRIPTION = "description"
PRICE = "price"
PRICE_MIN = "price_min"
PRICE_MAX = "price_max"

# Common column name variations (French and English supplier exports)
DEFAULT_SYNONYMS: dict[str, list[str]] = {
    ABBREVIATION: ["abrégé", "abrege", "abrev", "abbreviation", "code", "matière", "matiere"],
    DESCRIPTION: ["description", "desc", "libellé", "libelle", "nom"],
    PRICE: ["prix", "price", "montant", "amount"],
    PRICE_MIN: ["prix min", "prix_min", "price min", "price_min", "min", "minimum"],
    PRICE_MAX: ["prix max", "prix_max", "price max", "price_max", "max", "maximum"],
}


@dataclass(frozen=True)
class ColumnMap:
    """Detected column index per field (-1 when undetected)."""

    abbreviation: int = -1
    description: int = -1
    price: int = -1
    price_min: int = -1
    price_max: int = -1

    def missing_required(self) -> list[str]:
        """Required fields left unresolved by detection."""
        missing = []
        if self.price < 0:
            missing.append(PRICE)
        if self.abbreviation < 0 and self.description < 0:
            missing.append(f"{ABBREVIATION} or {DESCRIPTION}")
        return missing

    def require(self) -> ColumnMap:
        """Return self if the price list is importable.

        Raises:
            MissingColumnError: If price, or both abbreviation and
                description, are missing
        """
        missing = self.missing_required()
        if missing:
            raise MissingColumnError(missing)
        return self


def find_column(headers: Sequence[str], synonyms: Sequence[str]) -> int:
    """Index of the first header containing the highest-priority matching synonym.

    Args:
        headers: Normalized header tokens
        synonyms: Candidate names, highest priority first

    Returns:
        Column index, or -1 if no synonym occurs in any header
    """
    for synonym in synonyms:
        token = normalize_header(synonym)
        if not token:
            continue
        for idx, header in enumerate(headers):
            if token in header:
                return idx
    return -1


def detect_columns(
    headers: Sequence[Any],
    synonyms: Mapping[str, Sequence[str]] | None = None,
) -> ColumnMap:
    """Auto-detect column mapping from header cells.

    Args:
        headers: Raw or normalized header cells, in sheet order
        synonyms: Field -> ordered synonym list (defaults to DEFAULT_SYNONYMS)

    Returns:
        ColumnMap with one index per known field
    """
    table = DEFAULT_SYNONYMS if synonyms is None else synonyms
    normalized = [normalize_header(h) for h in headers]

    indices = {
        name: find_column(normalized, table.get(name, ()))
        for name in (ABBREVIATION, DESCRIPTION, PRICE, PRICE_MIN, PRICE_MAX)
    }
    columns = ColumnMap(**indices)

    logger.debug(f"Detected columns {indices} from headers {normalized}")
    return columns
