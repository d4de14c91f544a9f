"""Persistence surface consumed by the ledger and the import orchestrator.

The store is an external collaborator: matprice only ever talks to it
through these calls. ``matprice.db.store.SqlPriceStore`` is the bundled
SQLAlchemy implementation.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable
from uuid import UUID

from matprice.models import Material, PriceRecord, PriceRecordDraft, PriceRecordUpdate, PriceSource


@runtime_checkable
class PriceStore(Protocol):
    """CRUD calls on price records plus the read-only price-source registry."""

    async def list_price_sources(self) -> list[PriceSource]: ...

    async def list_prices(self, material_id: UUID) -> list[PriceRecord]: ...

    async def get_price(self, price_id: UUID) -> PriceRecord | None: ...

    async def create_price(self, material_id: UUID, draft: PriceRecordDraft) -> PriceRecord: ...

    async def update_price(self, price_id: UUID, changes: PriceRecordUpdate) -> PriceRecord: ...

    async def delete_price(self, price_id: UUID) -> None: ...


@runtime_checkable
class MaterialCatalog(Protocol):
    """Read-only material catalog."""

    async def list_materials(self) -> list[Material]: ...
