"""Pydantic schemas for consumption records (sales)."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ConsumptionCreate(BaseModel):
    """Schema for a single-lot sale."""

    lot_id: str
    quantity: Decimal = Field(gt=0, max_digits=18, decimal_places=8)
    consumption_rate: Decimal = Field(ge=0, max_digits=18, decimal_places=6)
    consumed_at: datetime
    remarks: str = ""


class ConsumptionUpdate(BaseModel):
    """Schema for editing a sale. The referenced lot cannot change."""

    model_config = ConfigDict(extra="forbid")

    quantity: Decimal | None = Field(default=None, gt=0, max_digits=18, decimal_places=8)
    consumption_rate: Decimal | None = Field(default=None, ge=0, max_digits=18, decimal_places=6)
    consumed_at: datetime | None = None
    remarks: str | None = None


class LotSnapshot(BaseModel):
    """Read-only view of the lot a consumption record draws from."""

    id: str
    ref_code: str
    item_type: str
    quantity_remaining: Decimal
    balance_status: str
    deleted_at: datetime | None = None


class BatchReference(BaseModel):
    """The batch action a consumption record belongs to."""

    id: str
    batch_code: str
    executed_at: datetime


class ConsumptionRecordResponse(BaseModel):
    """Schema for ConsumptionRecord API response."""

    id: str
    owner_id: str
    lot_id: str
    quantity_consumed: Decimal
    consumption_rate: Decimal
    consumed_at: datetime
    remarks: str
    batch_id: str | None = None
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    lot: LotSnapshot | None = None
    batch: BatchReference | None = None

    model_config = ConfigDict(from_attributes=True)
