"""Pydantic schemas for acquisition lots."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class AcquisitionLotCreate(BaseModel):
    """Schema for recording a new acquisition lot."""

    item_type: str = Field(min_length=1)
    quantity: Decimal = Field(gt=0, max_digits=18, decimal_places=8)
    acquisition_rate: Decimal = Field(ge=0, max_digits=18, decimal_places=6)
    acquired_at: datetime
    remarks: str = ""


class AcquisitionLotUpdate(BaseModel):
    """Schema for editing a lot's descriptive fields.

    The acquired quantity is fixed at creation and the remaining balance
    belongs to the reconciler, so neither can be set here.
    """

    model_config = ConfigDict(extra="forbid")

    item_type: str | None = Field(default=None, min_length=1)
    acquisition_rate: Decimal | None = Field(default=None, ge=0, max_digits=18, decimal_places=6)
    acquired_at: datetime | None = None
    remarks: str | None = None


class AcquisitionLotResponse(BaseModel):
    """Schema for AcquisitionLot API response."""

    id: str
    owner_id: str
    item_type: str
    quantity_acquired: Decimal
    quantity_remaining: Decimal
    acquisition_rate: Decimal
    acquired_at: datetime
    remarks: str
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    # Computed fields, populated by the API layer, not stored on the model
    ref_code: str
    quantity_consumed: Decimal
    balance_status: str  # "available" / "sold_out" / "over_sold"

    model_config = ConfigDict(from_attributes=True)
