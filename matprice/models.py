"""matprice Pydantic models for type-safe data validation.

Material and PriceSource are read-only views of external registries.
PriceRecord is the time-versioned price owned by the ledger; business
rules on price sign and validity window are enforced by the ledger.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Material(BaseModel):
    """Catalog material (read-only)."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    abbreviation: str | None = None
    description: str | None = None
    unit: str | None = None


class PriceSource(BaseModel):
    """Registered origin of prices, e.g. a supplier list or market index."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    name: str
    type: str | None = None


class PriceRecordDraft(BaseModel):
    """Caller-supplied fields of a price record, before the store assigns id/created_at."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "material_id": "550e8400-e29b-41d4-a716-446655440000",
                "price_source_id": "660e8400-e29b-41d4-a716-446655440111",
                "price": "150.50",
                "price_min": "145.00",
                "price_max": "155.00",
                "currency": "CHF",
                "valid_from": "2024-07-01",
                "valid_to": None,
                "comment": "Imported from copacel_2024_07.xlsx",
            }
        }
    )

    material_id: UUID
    price_source_id: UUID
    price: Decimal
    price_min: Decimal | None = None
    price_max: Decimal | None = None
    currency: str = "CHF"
    valid_from: date = Field(default_factory=date.today)
    valid_to: date | None = None  # None = open-ended
    comment: str | None = None
    origin_file: str | None = None
    created_by: str = "system"

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.strip().upper()


class PriceRecord(PriceRecordDraft):
    """Persisted price record with its validity interval.

    material_id and price_source_id never change after creation.
    """

    id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def is_valid_on(self, day: date) -> bool:
        """Check whether the validity interval covers ``day`` (both ends inclusive)."""
        return self.valid_from <= day and (self.valid_to is None or self.valid_to >= day)


class PriceRecordUpdate(BaseModel):
    """Editable subset of a price record.

    Unknown fields are rejected, which keeps material_id and price_source_id
    out of reach of an update.
    """

    model_config = ConfigDict(extra="forbid")

    price: Decimal | None = None
    price_min: Decimal | None = None
    price_max: Decimal | None = None
    currency: str | None = None
    valid_from: date | None = None
    valid_to: date | None = None
    comment: str | None = None

    def changes(self) -> dict:
        """Fields explicitly set by the caller (an explicit None clears the field)."""
        return self.model_dump(exclude_unset=True)
