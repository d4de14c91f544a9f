"""Pure reconciliation of import rows against the material catalog.

No I/O happens here: rows are resolved and turned into drafts, resolution
failures are folded into an immutable ImportReport. Persisting the drafts
(and counting successes) is the caller's job; the orchestrator does it row
by row with the same step function.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from functools import reduce

from matprice.core.exceptions import RowResolutionError
from matprice.ingestion.rows import ImportRow
from matprice.matching.resolver import resolve_material
from matprice.models import Material, PriceRecordDraft
from matprice.pipeline.types import ImportPolicy, ImportReport


def draft_for(row: ImportRow, material: Material, policy: ImportPolicy) -> PriceRecordDraft:
    """Build the price draft for a resolved row."""
    return PriceRecordDraft(
        material_id=material.id,
        price_source_id=policy.price_source_id,
        price=row.price,
        price_min=row.price_min,
        price_max=row.price_max,
        currency=policy.currency,
        valid_from=policy.valid_from,
        comment=policy.comment,
        origin_file=policy.origin_file,
        created_by=policy.created_by,
    )


def reconcile_row(
    report: ImportReport,
    row: ImportRow,
    catalog: Sequence[Material],
    policy: ImportPolicy,
) -> tuple[ImportReport, PriceRecordDraft | None]:
    """Resolve one row.

    Returns:
        (report, draft) on a match, (report with the error appended, None)
        when no material matches
    """
    try:
        material = resolve_material(row, catalog)
    except RowResolutionError as e:
        return report.with_error(e.row_ref, e.reason), None
    return report, draft_for(row, material, policy)


def reconcile(
    rows: Iterable[ImportRow],
    catalog: Sequence[Material],
    policy: ImportPolicy,
) -> tuple[ImportReport, list[PriceRecordDraft]]:
    """Fold rows into a report of resolution errors plus drafts to persist.

    Args:
        rows: Parsed rows, in file order
        catalog: Material catalog (read-only)
        policy: Source, validity date, currency and provenance for drafts

    Returns:
        (report, drafts). The report's success_count stays 0: a draft only
        counts as a success once the caller has persisted it.
    """

    def step(
        acc: tuple[ImportReport, tuple[PriceRecordDraft, ...]], row: ImportRow
    ) -> tuple[ImportReport, tuple[PriceRecordDraft, ...]]:
        report, drafts = acc
        report, draft = reconcile_row(report, row, catalog, policy)
        if draft is not None:
            drafts = drafts + (draft,)
        return report, drafts

    report, drafts = reduce(step, rows, (policy.empty_report(), ()))
    return report, list(drafts)
