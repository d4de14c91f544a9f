"""SQLAlchemy implementation of the price store and material catalog.

Each write commits on its own so that an import interrupted midway keeps
the rows it already persisted; a failed write is rolled back alone.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from matprice.db.models import MaterialModel, MaterialPriceModel, PriceSourceModel
from matprice.models import Material, PriceRecord, PriceRecordDraft, PriceRecordUpdate, PriceSource

logger = logging.getLogger(__name__)


class SqlPriceStore:
    """PriceStore and MaterialCatalog backed by an AsyncSession."""

    def __init__(self, session: AsyncSession):
        """Initialize store with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def list_materials(self) -> list[Material]:
        """All catalog materials, in insertion order."""
        stmt = select(MaterialModel).order_by(MaterialModel.created_at.asc())
        result = await self.session.execute(stmt)
        return [
            Material(id=row.id, abbreviation=row.abbreviation, description=row.description, unit=row.unit)
            for row in result.scalars().all()
        ]

    async def list_price_sources(self) -> list[PriceSource]:
        """All registered price sources, in insertion order."""
        stmt = select(PriceSourceModel).order_by(PriceSourceModel.created_at.asc())
        result = await self.session.execute(stmt)
        return [PriceSource(id=row.id, name=row.name, type=row.type) for row in result.scalars().all()]

    async def add_material(
        self,
        abbreviation: str | None,
        description: str | None = None,
        unit: str | None = None,
    ) -> Material:
        """Register a catalog material (seeding / CLI)."""
        row = MaterialModel(
            id=uuid4(),
            abbreviation=abbreviation,
            description=description,
            unit=unit,
            created_at=datetime.utcnow(),
        )
        self.session.add(row)
        await self._commit()
        logger.info(f"Added material {abbreviation or description} ({row.id})")
        return Material(id=row.id, abbreviation=row.abbreviation, description=row.description, unit=row.unit)

    async def add_price_source(self, name: str, type: str | None = None) -> PriceSource:
        """Register a price source. Names are unique.

        Raises:
            IntegrityError: If a source with this name already exists
        """
        row = PriceSourceModel(id=uuid4(), name=name, type=type, created_at=datetime.utcnow())
        self.session.add(row)
        await self._commit()
        logger.info(f"Added price source {name} ({row.id})")
        return PriceSource(id=row.id, name=row.name, type=row.type)

    async def list_prices(self, material_id: UUID) -> list[PriceRecord]:
        """All price records of a material, oldest first."""
        stmt = (
            select(MaterialPriceModel)
            .where(MaterialPriceModel.material_id == material_id)
            .order_by(MaterialPriceModel.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return [_row_to_price_record(row) for row in result.scalars().all()]

    async def get_price(self, price_id: UUID) -> PriceRecord | None:
        """Get a specific price record by its UUID."""
        row = await self.session.get(MaterialPriceModel, price_id)
        if row is None:
            return None
        return _row_to_price_record(row)

    async def create_price(self, material_id: UUID, draft: PriceRecordDraft) -> PriceRecord:
        """Insert a price record and commit it.

        Raises:
            SQLAlchemyError: If the insert violates a constraint or fails
        """
        row = MaterialPriceModel(
            id=uuid4(),
            material_id=material_id,
            price_source_id=draft.price_source_id,
            price=draft.price,
            price_min=draft.price_min,
            price_max=draft.price_max,
            currency=draft.currency,
            valid_from=draft.valid_from,
            valid_to=draft.valid_to,
            comment=draft.comment,
            origin_file=draft.origin_file,
            created_by=draft.created_by,
            created_at=datetime.utcnow(),
        )
        self.session.add(row)
        await self._commit()
        return _row_to_price_record(row)

    async def update_price(self, price_id: UUID, changes: PriceRecordUpdate) -> PriceRecord:
        """Apply editable fields to a price record and commit.

        Raises:
            LookupError: If the record does not exist
        """
        row = await self.session.get(MaterialPriceModel, price_id)
        if row is None:
            raise LookupError(f"Price record not found: {price_id}")

        for name, value in changes.changes().items():
            if name == "currency" and value is not None:
                value = value.strip().upper()
            setattr(row, name, value)

        await self._commit()
        return _row_to_price_record(row)

    async def delete_price(self, price_id: UUID) -> None:
        """Hard-delete a price record and commit."""
        row = await self.session.get(MaterialPriceModel, price_id)
        if row is None:
            return
        await self.session.delete(row)
        await self._commit()

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise


def _row_to_price_record(row: MaterialPriceModel) -> PriceRecord:
    """Convert database row to Pydantic model."""
    return PriceRecord(
        id=row.id,
        material_id=row.material_id,
        price_source_id=row.price_source_id,
        price=row.price,
        price_min=row.price_min,
        price_max=row.price_max,
        currency=row.currency,
        valid_from=row.valid_from,
        valid_to=row.valid_to,
        comment=row.comment,
        origin_file=row.origin_file,
        created_by=row.created_by,
        created_at=row.created_at,
    )
