"""Unit tests for the temporal price ledger.

Covers as-of queries, the created-last tie-break for overlapping validity
windows, and validation of manual writes.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from matprice.core.exceptions import InvalidPriceError, InvalidValidityError, PriceNotFoundError
from matprice.ledger.prices import PriceLedger, select_effective
from matprice.models import PriceRecord, PriceRecordDraft, PriceRecordUpdate


def _draft(material, source, price="10.00", valid_from=date(2024, 1, 1), valid_to=None, **kwargs):
    return PriceRecordDraft(
        material_id=material.id,
        price_source_id=source.id,
        price=Decimal(price),
        valid_from=valid_from,
        valid_to=valid_to,
        **kwargs,
    )


class TestSelectEffective:
    """Pure as-of selection."""

    def _record(self, valid_from, valid_to=None, created_at=datetime(2024, 1, 1), source_id=None, price="1"):
        return PriceRecord(
            material_id=uuid4(),
            price_source_id=source_id or uuid4(),
            price=Decimal(price),
            valid_from=valid_from,
            valid_to=valid_to,
            created_at=created_at,
        )

    def test_bounds_are_inclusive(self):
        record = self._record(date(2024, 1, 1), date(2024, 1, 31))

        assert select_effective([record], date(2024, 1, 1)) == record
        assert select_effective([record], date(2024, 1, 31)) == record
        assert select_effective([record], date(2023, 12, 31)) is None
        assert select_effective([record], date(2024, 2, 1)) is None

    def test_consecutive_windows(self):
        first = self._record(date(2024, 1, 1), date(2024, 6, 30), created_at=datetime(2024, 1, 1))
        second = self._record(date(2024, 7, 1), created_at=datetime(2024, 1, 2))

        assert select_effective([first, second], date(2024, 8, 1)) == second
        assert select_effective([first, second], date(2024, 3, 1)) == first

    def test_open_ended_window(self):
        record = self._record(date(2024, 1, 1))

        assert select_effective([record], date(2099, 1, 1)) == record

    def test_most_recently_created_wins(self):
        older = self._record(date(2024, 1, 1), created_at=datetime(2024, 1, 1, 8), price="1")
        newer = self._record(date(2024, 3, 1), created_at=datetime(2024, 2, 1, 8), price="2")

        assert select_effective([newer, older], date(2024, 6, 1)) == newer
        assert select_effective([older, newer], date(2024, 6, 1)) == newer
        # Only the older one covers February
        assert select_effective([older, newer], date(2024, 2, 15)) == older

    def test_exact_created_at_tie_goes_to_later_store_order(self):
        stamp = datetime(2024, 1, 1, 8)
        first = self._record(date(2024, 1, 1), created_at=stamp, price="1")
        second = self._record(date(2024, 1, 1), created_at=stamp, price="2")

        assert select_effective([first, second], date(2024, 1, 2)) == second

    def test_source_filter(self):
        wanted = uuid4()
        mine = self._record(date(2024, 1, 1), created_at=datetime(2024, 1, 1), source_id=wanted)
        other = self._record(date(2024, 1, 1), created_at=datetime(2024, 5, 1))

        assert select_effective([mine, other], date(2024, 6, 1), wanted) == mine
        assert select_effective([mine, other], date(2024, 6, 1)) == other


class TestPriceLedger:
    """Ledger operations against the fake store."""

    @pytest.mark.asyncio
    async def test_overlapping_windows_resolve_to_latest_created(self, store, pet, copacel):
        ledger = PriceLedger(store)
        await ledger.create(_draft(pet, copacel, "100.00", valid_from=date(2024, 1, 1)))
        latest = await ledger.create(
            _draft(pet, copacel, "120.00", valid_from=date(2024, 1, 1), valid_to=date(2024, 12, 31))
        )

        current = await ledger.effective_price(pet.id, as_of=date(2024, 6, 1))

        assert current == latest
        assert current.price == Decimal("120.00")

    @pytest.mark.asyncio
    async def test_effective_price_defaults_to_today(self, store, pet, copacel):
        ledger = PriceLedger(store)
        record = await ledger.create(_draft(pet, copacel, valid_from=date.today()))

        assert await ledger.effective_price(pet.id) == record

    @pytest.mark.asyncio
    async def test_no_price_in_force(self, store, pet, copacel):
        ledger = PriceLedger(store)
        await ledger.create(_draft(pet, copacel, valid_from=date(2030, 1, 1)))

        assert await ledger.effective_price(pet.id, as_of=date(2024, 1, 1)) is None

    @pytest.mark.asyncio
    async def test_history_most_recent_first(self, store, pet, carton, copacel):
        ledger = PriceLedger(store)
        jan = await ledger.create(_draft(pet, copacel, valid_from=date(2024, 1, 1)))
        jul = await ledger.create(_draft(pet, copacel, valid_from=date(2024, 7, 1)))
        await ledger.create(_draft(carton, copacel))

        assert await ledger.history(pet.id) == [jul, jan]

    @pytest.mark.asyncio
    async def test_create_accepts_zero_price(self, store, pet, copacel):
        record = await PriceLedger(store).create(_draft(pet, copacel, "0"))

        assert record.price == Decimal("0")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs",
        [{"price": "-1"}, {"price_min": Decimal("-1")}, {"price_max": Decimal("-0.01")}],
    )
    async def test_create_rejects_negative_amounts(self, store, pet, copacel, kwargs):
        with pytest.raises(InvalidPriceError):
            await PriceLedger(store).create(_draft(pet, copacel, **kwargs))

        assert store.calls_named("create_price") == []

    @pytest.mark.asyncio
    async def test_create_rejects_inverted_window(self, store, pet, copacel):
        draft = _draft(pet, copacel, valid_from=date(2024, 2, 1), valid_to=date(2024, 1, 31))

        with pytest.raises(InvalidValidityError):
            await PriceLedger(store).create(draft)

        assert store.calls_named("create_price") == []

    @pytest.mark.asyncio
    async def test_single_day_window_is_valid(self, store, pet, copacel):
        draft = _draft(pet, copacel, valid_from=date(2024, 2, 1), valid_to=date(2024, 2, 1))

        record = await PriceLedger(store).create(draft)

        assert record.is_valid_on(date(2024, 2, 1))

    @pytest.mark.asyncio
    async def test_update_editable_fields(self, store, pet, copacel):
        ledger = PriceLedger(store)
        record = await ledger.create(_draft(pet, copacel, valid_to=date(2024, 6, 30)))

        updated = await ledger.update(
            record.id,
            PriceRecordUpdate(price=Decimal("12.50"), valid_to=None, comment="renegotiated"),
        )

        assert updated.price == Decimal("12.50")
        assert updated.valid_to is None
        assert updated.comment == "renegotiated"
        assert updated.material_id == pet.id
        assert updated.price_source_id == copacel.id

    @pytest.mark.asyncio
    async def test_update_validates_merged_record(self, store, pet, copacel):
        ledger = PriceLedger(store)
        record = await ledger.create(_draft(pet, copacel, valid_from=date(2024, 3, 1)))

        with pytest.raises(InvalidValidityError):
            await ledger.update(record.id, PriceRecordUpdate(valid_to=date(2024, 2, 1)))
        with pytest.raises(InvalidPriceError):
            await ledger.update(record.id, PriceRecordUpdate(price=Decimal("-3")))
        with pytest.raises(InvalidPriceError):
            await ledger.update(record.id, PriceRecordUpdate(price=None))

        assert store.calls_named("update_price") == []

    def test_update_cannot_touch_identity_fields(self, pet, copacel):
        with pytest.raises(ValidationError):
            PriceRecordUpdate(material_id=pet.id)
        with pytest.raises(ValidationError):
            PriceRecordUpdate(price_source_id=copacel.id)

    @pytest.mark.asyncio
    async def test_update_missing_record(self, store):
        with pytest.raises(PriceNotFoundError):
            await PriceLedger(store).update(uuid4(), PriceRecordUpdate(price=Decimal("1")))

    @pytest.mark.asyncio
    async def test_delete(self, store, pet, copacel):
        ledger = PriceLedger(store)
        record = await ledger.create(_draft(pet, copacel))

        await ledger.delete(record.id)

        assert await ledger.history(pet.id) == []
        with pytest.raises(PriceNotFoundError):
            await ledger.delete(record.id)
