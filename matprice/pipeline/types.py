"""Type definitions for price import runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from matprice.models import PriceRecord, PriceSource


class RunState(str, Enum):
    """Lifecycle of an import run."""

    IDLE = "IDLE"
    VALIDATING = "VALIDATING"
    IMPORTING = "IMPORTING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


class ImportStatus(str, Enum):
    """Outcome of a completed import run."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    PARTIAL_SUCCESS = "PARTIAL_SUCCESS"
    SKIPPED = "SKIPPED"  # every row dropped, nothing attempted


class RowFailure(BaseModel):
    """One recorded row error: the row's identifying text and why it failed."""

    model_config = ConfigDict(frozen=True)

    row_ref: str
    reason: str

    def __str__(self) -> str:
        return f"{self.row_ref}: {self.reason}"


class ImportReport(BaseModel):
    """Immutable outcome of an import run.

    Built as a fold over the rows: every step returns a new report.
    Silently dropped rows never reach the report.
    """

    model_config = ConfigDict(frozen=True)

    success_count: int = 0
    error_count: int = 0
    errors: tuple[RowFailure, ...] = ()
    max_reported_errors: int = 10

    def with_success(self) -> ImportReport:
        return self.model_copy(update={"success_count": self.success_count + 1})

    def with_error(self, row_ref: str, reason: str) -> ImportReport:
        return self.model_copy(
            update={
                "error_count": self.error_count + 1,
                "errors": self.errors + (RowFailure(row_ref=row_ref, reason=reason),),
            }
        )

    @property
    def status(self) -> ImportStatus:
        if self.success_count and self.error_count:
            return ImportStatus.PARTIAL_SUCCESS
        if self.success_count:
            return ImportStatus.SUCCESS
        if self.error_count:
            return ImportStatus.FAILED
        return ImportStatus.SKIPPED

    @property
    def should_refresh(self) -> bool:
        """Dependents (price listings) are stale once anything was persisted."""
        return self.success_count > 0

    @property
    def failed(self) -> bool:
        """Nothing persisted and at least one row error."""
        return self.success_count == 0 and self.error_count > 0

    @property
    def visible_errors(self) -> tuple[RowFailure, ...]:
        """Per-row detail, only shown while the error count stays small."""
        if self.error_count > self.max_reported_errors:
            return ()
        return self.errors

    @property
    def summary(self) -> str:
        """One-line operator message with success/error counts."""
        if self.success_count:
            message = f"{self.success_count} price(s) imported"
            if self.error_count:
                message += f", {self.error_count} error(s)"
            return message
        if self.error_count:
            return f"No price imported. {self.error_count} error(s)"
        return "No valid price found"


@dataclass
class ImportPolicy:
    """Fields applied to every draft produced by an import run."""

    price_source_id: UUID
    valid_from: date = field(default_factory=date.today)
    currency: str = "CHF"
    origin_file: str | None = None
    created_by: str = "system"
    max_reported_errors: int = 10

    @property
    def comment(self) -> str | None:
        if self.origin_file:
            return f"Imported from {self.origin_file}"
        return None

    def empty_report(self) -> ImportReport:
        return ImportReport(max_reported_errors=self.max_reported_errors)


@dataclass
class ImportResult:
    """Result of an orchestrated import run."""

    report: ImportReport
    price_source: PriceSource | None = None  # None when every row was dropped
    created: list[PriceRecord] = field(default_factory=list)
    rows_parsed: int = 0
    duration_seconds: float = 0.0

    @property
    def status(self) -> ImportStatus:
        return self.report.status

