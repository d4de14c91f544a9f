"""Text normalization for spreadsheet headers.

Normalization rules:
- Any primitive (None, number, text, cell) is stringified first
- Unicode NFKD, combining marks dropped (abrégé -> abrege)
- Lowercase
- Punctuation and underscores become single spaces (prix_min -> prix min)
- Surrounding whitespace stripped

normalize_header(normalize_header(x)) == normalize_header(x) for every x.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any

_SEPARATORS = re.compile(r"[\W_]+")


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    # Cells from matprice.ingestion.cells expose their raw text
    text = getattr(value, "text", None)
    if isinstance(text, str):
        return text
    return str(value)


def fold_text(text: str) -> str:
    """Lowercase and strip diacritics, keeping punctuation intact."""
    # Lowercase before decomposing: "İ".lower() itself yields a combining dot
    decomposed = unicodedata.normalize("NFKD", text.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower()


def normalize_header(value: Any) -> str:
    """Fold a raw header cell into a comparable token.

    Args:
        value: Raw header cell (str, number, None or Cell)

    Returns:
        Normalized string, e.g. "Prix min (CHF)" -> "prix min chf"
    """
    text = fold_text(_stringify(value))

    # Replace punctuation/underscores with space, collapsing runs
    text = _SEPARATORS.sub(" ", text)

    return text.strip()
