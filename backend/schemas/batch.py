"""Pydantic schemas for batch consumption allocation."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas.consumption import ConsumptionRecordResponse


class BatchAllocationRequest(BaseModel):
    """Schema for selling one quantity across several lots.

    ``candidate_lot_ids`` order is the draw order.
    """

    requested_quantity: Decimal = Field(gt=0, max_digits=18, decimal_places=8)
    rate: Decimal = Field(ge=0, max_digits=18, decimal_places=6)
    consumed_at: datetime
    remarks: str = ""
    candidate_lot_ids: list[str] = Field(min_length=1)

    @field_validator("candidate_lot_ids")
    @classmethod
    def reject_duplicate_candidates(cls, v: list[str]) -> list[str]:
        if len(set(v)) != len(v):
            raise ValueError("candidate_lot_ids must not contain duplicates")
        return v


class BatchConsumptionActionResponse(BaseModel):
    """Schema for BatchConsumptionAction API response."""

    id: str
    owner_id: str
    batch_code: str
    requested_quantity: Decimal
    rate: Decimal
    executed_at: datetime
    deleted_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BatchAllocationResponse(BaseModel):
    """Result of a successful allocation: the batch and its records."""

    batch_code: str
    batch: BatchConsumptionActionResponse
    records: list[ConsumptionRecordResponse]
