"""Exception hierarchy for matprice.

Run-level errors (preconditions, unreadable input, concurrent runs) abort an
import before anything is persisted. Row-level errors are recorded in the
ImportReport and never abort a run.
"""

from __future__ import annotations


class MatpriceError(Exception):
    """Base class for all matprice errors."""


class PreconditionError(MatpriceError):
    """Import rejected before any row was processed."""


class MissingColumnError(PreconditionError):
    """Required column could not be detected in the header row."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required column: {', '.join(missing)}")


class NoPriceSourceError(PreconditionError):
    """No usable price source for the import."""


class EmptyImportError(PreconditionError):
    """Input has no data rows beyond the header."""


class ImportInProgressError(MatpriceError):
    """Another import run is already active."""


class FatalInputError(MatpriceError):
    """Input file is unreadable or corrupt."""


class RowError(MatpriceError):
    """Base class for errors recorded against a single import row."""

    def __init__(self, row_ref: str, reason: str):
        self.row_ref = row_ref
        self.reason = reason
        super().__init__(f"{row_ref}: {reason}")


class RowResolutionError(RowError):
    """No catalog material matched the row."""

    def __init__(self, row_ref: str):
        super().__init__(row_ref, "Material not found")


class RowPersistError(RowError):
    """The store rejected or failed the create call for a row."""


class LedgerError(MatpriceError):
    """Base class for price ledger validation errors."""


class InvalidPriceError(LedgerError):
    """Price (or price range) is negative."""


class InvalidValidityError(LedgerError):
    """valid_to is earlier than valid_from."""


class PriceNotFoundError(LedgerError):
    """No price record with the given id."""

    def __init__(self, price_id):
        self.price_id = price_id
        super().__init__(f"Price record not found: {price_id}")
