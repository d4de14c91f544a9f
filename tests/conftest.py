"""Pytest configuration and fixtures for matprice tests.

Provides a small material catalog, price sources and an in-memory
price store that records every call.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID, uuid4

import pytest

from matprice.models import Material, PriceRecord, PriceRecordDraft, PriceRecordUpdate, PriceSource


class FakePriceStore:
    """In-memory PriceStore + MaterialCatalog.

    created_at is a strictly increasing fake clock so "created last" is
    deterministic. Set ``fail_on`` to a material id (or a callable taking the
    draft) to make create_price raise for it.
    """

    def __init__(self, materials: list[Material] | None = None, sources: list[PriceSource] | None = None):
        self.materials = list(materials or [])
        self.sources = list(sources or [])
        self.records: list[PriceRecord] = []
        self.calls: list[tuple[str, object]] = []
        self.fail_on = None
        self._clock = datetime(2024, 1, 1, 12, 0, 0)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    async def list_materials(self) -> list[Material]:
        self.calls.append(("list_materials", None))
        return list(self.materials)

    async def list_price_sources(self) -> list[PriceSource]:
        self.calls.append(("list_price_sources", None))
        return list(self.sources)

    async def list_prices(self, material_id: UUID) -> list[PriceRecord]:
        self.calls.append(("list_prices", material_id))
        return [r for r in self.records if r.material_id == material_id]

    async def get_price(self, price_id: UUID) -> PriceRecord | None:
        self.calls.append(("get_price", price_id))
        for record in self.records:
            if record.id == price_id:
                return record
        return None

    async def create_price(self, material_id: UUID, draft: PriceRecordDraft) -> PriceRecord:
        self.calls.append(("create_price", material_id))
        if self.fail_on is not None:
            failing = self.fail_on(draft) if callable(self.fail_on) else self.fail_on == material_id
            if failing:
                raise RuntimeError("database unavailable")
        record = PriceRecord(**draft.model_dump(), id=uuid4(), created_at=self._tick())
        self.records.append(record)
        return record

    async def update_price(self, price_id: UUID, changes: PriceRecordUpdate) -> PriceRecord:
        self.calls.append(("update_price", price_id))
        for idx, record in enumerate(self.records):
            if record.id == price_id:
                updated = record.model_copy(update=changes.changes())
                self.records[idx] = updated
                return updated
        raise LookupError(price_id)

    async def delete_price(self, price_id: UUID) -> None:
        self.calls.append(("delete_price", price_id))
        self.records = [r for r in self.records if r.id != price_id]

    def calls_named(self, name: str) -> list[object]:
        return [arg for call, arg in self.calls if call == name]


@pytest.fixture
def pet() -> Material:
    return Material(abbreviation="PET", description="Polyethylene terephthalate", unit="kg")


@pytest.fixture
def carton() -> Material:
    return Material(abbreviation="CART", description="Carton ondulé", unit="kg")


@pytest.fixture
def alu() -> Material:
    return Material(abbreviation="ALU", description="Aluminium recyclé", unit="kg")


@pytest.fixture
def catalog(pet: Material, carton: Material, alu: Material) -> list[Material]:
    """Small material catalog, in catalog order."""
    return [pet, carton, alu]


@pytest.fixture
def copacel() -> PriceSource:
    return PriceSource(name="Copacel", type="supplier")


@pytest.fixture
def market_index() -> PriceSource:
    return PriceSource(name="Market index", type="index")


@pytest.fixture
def store(catalog: list[Material], market_index: PriceSource, copacel: PriceSource) -> FakePriceStore:
    """Fake store; the default source is deliberately not listed first."""
    return FakePriceStore(materials=catalog, sources=[market_index, copacel])


@pytest.fixture
def store_factory():
    """Build FakePriceStore instances with custom catalogs/sources."""
    return FakePriceStore


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
