"""Catalog resolution for imported price rows.

Ordered match policy (first hit wins):
1. Case-insensitive exact match on abbreviation
2. Case-insensitive containment of the row description in the material
   description, first in catalog order
3. Otherwise RowResolutionError

The catalog is small and scanned linearly; it is never modified.
"""

from __future__ import annotations

from collections.abc import Sequence

from matprice.core.exceptions import RowResolutionError
from matprice.ingestion.rows import ImportRow
from matprice.models import Material


def match_abbreviation(abbreviation: str, catalog: Sequence[Material]) -> Material | None:
    """Material whose abbreviation equals ``abbreviation``, ignoring case."""
    wanted = abbreviation.lower()
    for material in catalog:
        if material.abbreviation and material.abbreviation.lower() == wanted:
            return material
    return None


def match_description(description: str, catalog: Sequence[Material]) -> Material | None:
    """First material whose description contains ``description``, ignoring case."""
    wanted = description.lower()
    for material in catalog:
        if material.description and wanted in material.description.lower():
            return material
    return None


def resolve_material(row: ImportRow, catalog: Sequence[Material]) -> Material:
    """Match an import row to a catalog material.

    Args:
        row: Parsed import row
        catalog: Full material catalog, in catalog order

    Returns:
        The matched Material

    Raises:
        RowResolutionError: If no material matches; carries the row label
    """
    if row.abbreviation:
        material = match_abbreviation(row.abbreviation, catalog)
        if material is not None:
            return material

    if row.description:
        material = match_description(row.description, catalog)
        if material is not None:
            return material

    raise RowResolutionError(row.label)
