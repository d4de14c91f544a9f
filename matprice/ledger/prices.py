"""Temporal price ledger.

Every price record carries a validity interval [valid_from, valid_to]
(valid_to None = open-ended, both ends inclusive). The effective price of a
material on day D is the record whose interval covers D. Overlapping
intervals are accepted at write time; when several records cover D, the
most recently created one wins.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from matprice.core.exceptions import InvalidPriceError, InvalidValidityError, PriceNotFoundError
from matprice.models import PriceRecord, PriceRecordDraft, PriceRecordUpdate
from matprice.store.base import PriceStore

logger = logging.getLogger(__name__)


def select_effective(
    records: Iterable[PriceRecord],
    as_of: date,
    price_source_id: UUID | None = None,
) -> PriceRecord | None:
    """Pick the price record in force on ``as_of``.

    Args:
        records: Price records of a single material, in store order
        as_of: Day to evaluate
        price_source_id: Restrict to one price source

    Returns:
        The covering record with the latest created_at (later store order
        breaks exact ties), or None
    """
    best: PriceRecord | None = None
    for record in records:
        if price_source_id is not None and record.price_source_id != price_source_id:
            continue
        if not record.is_valid_on(as_of):
            continue
        if best is None or record.created_at >= best.created_at:
            best = record
    return best


def _check_amounts(price: Decimal | None, price_min: Decimal | None, price_max: Decimal | None) -> None:
    if price is None:
        raise InvalidPriceError("price is required")
    for name, value in (("price", price), ("price_min", price_min), ("price_max", price_max)):
        if value is not None and value < 0:
            raise InvalidPriceError(f"{name} must be non-negative (got {value})")


def _check_period(valid_from: date, valid_to: date | None) -> None:
    if valid_to is not None and valid_to < valid_from:
        raise InvalidValidityError(
            f"valid_to ({valid_to}) must not be earlier than valid_from ({valid_from})"
        )


class PriceLedger:
    """Time-versioned price records on top of a PriceStore."""

    def __init__(self, store: PriceStore):
        """Initialize ledger with a store.

        Args:
            store: Persistence backend (external collaborator)
        """
        self.store = store

    async def history(self, material_id: UUID) -> list[PriceRecord]:
        """All price records of a material, most recent valid_from first."""
        records = await self.store.list_prices(material_id)
        return sorted(records, key=lambda r: (r.valid_from, r.created_at), reverse=True)

    async def effective_price(
        self,
        material_id: UUID,
        as_of: date | None = None,
        price_source_id: UUID | None = None,
    ) -> PriceRecord | None:
        """Get the price in force for a material on a given day.

        Args:
            material_id: Material to price
            as_of: Day to evaluate (default: today)
            price_source_id: Optional price source filter

        Returns:
            PriceRecord if one covers the day, None otherwise
        """
        day = as_of or date.today()
        records = await self.store.list_prices(material_id)
        return select_effective(records, day, price_source_id)

    async def create(self, draft: PriceRecordDraft) -> PriceRecord:
        """Validate and persist a new price record.

        Any price >= 0 is accepted; stricter policies (e.g. price > 0 on
        import) belong to the caller.

        Raises:
            InvalidPriceError: If price or range is negative
            InvalidValidityError: If valid_to < valid_from
        """
        _check_amounts(draft.price, draft.price_min, draft.price_max)
        _check_period(draft.valid_from, draft.valid_to)

        record = await self.store.create_price(draft.material_id, draft)
        logger.debug(
            f"Created price {record.id} for material {draft.material_id}: "
            f"{record.price} {record.currency} from {record.valid_from}"
        )
        return record

    async def update(self, price_id: UUID, changes: PriceRecordUpdate) -> PriceRecord:
        """Edit price, range, currency, validity window or comment of a record.

        material_id and price_source_id cannot be changed (PriceRecordUpdate
        has no such fields).

        Raises:
            PriceNotFoundError: If the record does not exist
            InvalidPriceError: If the resulting price or range is negative
            InvalidValidityError: If the resulting window is inverted
        """
        current = await self.store.get_price(price_id)
        if current is None:
            raise PriceNotFoundError(price_id)

        fields = changes.changes()
        if fields.get("valid_from", current.valid_from) is None:
            raise InvalidValidityError("valid_from is required")
        if fields.get("currency", current.currency) is None:
            raise InvalidPriceError("currency is required")

        merged = current.model_copy(update=fields)
        _check_amounts(merged.price, merged.price_min, merged.price_max)
        _check_period(merged.valid_from, merged.valid_to)

        record = await self.store.update_price(price_id, changes)
        logger.info(f"Updated price {price_id}: {sorted(fields)}")
        return record

    async def delete(self, price_id: UUID) -> None:
        """Hard-delete a price record (no cascade).

        Raises:
            PriceNotFoundError: If the record does not exist
        """
        if await self.store.get_price(price_id) is None:
            raise PriceNotFoundError(price_id)
        await self.store.delete_price(price_id)
        logger.info(f"Deleted price {price_id}")
