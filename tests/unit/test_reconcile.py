"""Unit tests for pure reconciliation and the immutable import report."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from matprice.ingestion.rows import ImportRow
from matprice.pipeline.reconcile import reconcile
from matprice.pipeline.types import ImportPolicy, ImportReport, ImportStatus


def _row(idx, label, price="10"):
    return ImportRow(raw_index=idx, price=Decimal(price), abbreviation=label)


class TestReconcile:
    """reconcile(rows, catalog, policy) -> (report, drafts)."""

    def test_drafts_carry_policy_fields(self, catalog, pet, copacel):
        policy = ImportPolicy(
            price_source_id=copacel.id,
            valid_from=date(2024, 7, 1),
            currency="EUR",
            origin_file="copacel_2024_07.xlsx",
            created_by="buyer",
        )

        report, drafts = reconcile([_row(1, "PET", "150.50")], catalog, policy)

        assert report.error_count == 0
        assert len(drafts) == 1
        draft = drafts[0]
        assert draft.material_id == pet.id
        assert draft.price_source_id == copacel.id
        assert draft.price == Decimal("150.50")
        assert draft.currency == "EUR"
        assert draft.valid_from == date(2024, 7, 1)
        assert draft.valid_to is None
        assert draft.comment == "Imported from copacel_2024_07.xlsx"
        assert draft.origin_file == "copacel_2024_07.xlsx"
        assert draft.created_by == "buyer"

    def test_unresolved_rows_become_errors_in_order(self, catalog, copacel):
        rows = [_row(1, "PVC"), _row(2, "PET"), _row(3, "HDPE")]

        report, drafts = reconcile(rows, catalog, ImportPolicy(price_source_id=copacel.id))

        assert len(drafts) == 1
        assert report.success_count == 0
        assert report.error_count == 2
        assert [e.row_ref for e in report.errors] == ["PVC", "HDPE"]
        assert all(e.reason == "Material not found" for e in report.errors)

    def test_pure(self, catalog, copacel):
        rows = [_row(1, "PET"), _row(2, "nope")]
        policy = ImportPolicy(price_source_id=copacel.id, valid_from=date(2024, 1, 1))

        first = reconcile(rows, catalog, policy)
        second = reconcile(rows, catalog, policy)

        assert first == second

    def test_no_comment_without_origin_file(self, catalog, copacel):
        _, drafts = reconcile([_row(1, "ALU")], catalog, ImportPolicy(price_source_id=copacel.id))

        assert drafts[0].comment is None
        assert drafts[0].currency == "CHF"
        assert drafts[0].valid_from == date.today()


class TestImportReport:
    """Folding, status and operator messages."""

    def test_fold_returns_new_reports(self):
        empty = ImportReport()
        one = empty.with_success()
        two = one.with_error("PET", "Material not found")

        assert (empty.success_count, empty.error_count) == (0, 0)
        assert (one.success_count, one.error_count) == (1, 0)
        assert (two.success_count, two.error_count) == (1, 1)
        assert str(two.errors[0]) == "PET: Material not found"

    def test_status_and_summary(self):
        report = ImportReport()
        assert report.status == ImportStatus.SKIPPED
        assert report.summary == "No valid price found"

        report = report.with_success().with_success()
        assert report.status == ImportStatus.SUCCESS
        assert report.summary == "2 price(s) imported"
        assert report.should_refresh

        report = report.with_error("X", "Material not found")
        assert report.status == ImportStatus.PARTIAL_SUCCESS
        assert report.summary == "2 price(s) imported, 1 error(s)"

        failed = ImportReport().with_error("X", "Material not found")
        assert failed.status == ImportStatus.FAILED
        assert failed.failed
        assert not failed.should_refresh
        assert failed.summary == "No price imported. 1 error(s)"

    def test_error_detail_hidden_beyond_limit(self):
        report = ImportReport(max_reported_errors=10)
        for idx in range(10):
            report = report.with_error(f"M{idx}", "Material not found")

        assert len(report.visible_errors) == 10

        report = report.with_error("M10", "Material not found")

        assert report.error_count == 11
        assert len(report.errors) == 11
        assert report.visible_errors == ()
