"""SQLAlchemy async database models for matprice.

Materials and price sources belong to the surrounding application and are
only read here. Material prices are time-versioned: each record carries its
own validity window, and several windows may overlap for the same
(material, price source) pair.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class MaterialModel(Base):
    """Catalog material (PET, Carton, ...)."""

    __tablename__ = "materials"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    abbreviation: Mapped[str | None] = mapped_column(Text, index=True)
    description: Mapped[str | None] = mapped_column(Text)
    unit: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, nullable=False
    )


class PriceSourceModel(Base):
    """Origin of prices (supplier list, market index, manual quote)."""

    __tablename__ = "price_sources"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    type: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, nullable=False
    )


class MaterialPriceModel(Base):
    """Price of a material from one source over a validity window.

    valid_to NULL = open-ended. Both bounds are inclusive days.
    """

    __tablename__ = "material_prices"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    # Immutable once created
    material_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("materials.id"), nullable=False
    )
    price_source_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("price_sources.id"), nullable=False, index=True
    )

    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    price_min: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    price_max: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="CHF")

    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_to: Mapped[date | None] = mapped_column(Date)

    # Audit & provenance
    comment: Mapped[str | None] = mapped_column(Text)
    origin_file: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str] = mapped_column(Text, nullable=False, default="system")
    # Python-side default: microsecond resolution for the created-last tie-break
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, nullable=False
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="check_price_non_negative"),
        CheckConstraint("price_min IS NULL OR price_min >= 0", name="check_price_min_non_negative"),
        CheckConstraint("price_max IS NULL OR price_max >= 0", name="check_price_max_non_negative"),
        CheckConstraint("valid_to IS NULL OR valid_to >= valid_from", name="check_valid_period"),

        # Temporal queries (as-of lookups)
        Index("idx_material_price_temporal", "material_id", "valid_from", "valid_to"),
    )
