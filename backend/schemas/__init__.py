"""Pydantic schemas for API request/response validation."""

from schemas.acquisition import (
    AcquisitionLotCreate,
    AcquisitionLotResponse,
    AcquisitionLotUpdate,
)
from schemas.batch import (
    BatchAllocationRequest,
    BatchAllocationResponse,
    BatchConsumptionActionResponse,
)
from schemas.common import PageResponse
from schemas.consumption import (
    BatchReference,
    ConsumptionCreate,
    ConsumptionRecordResponse,
    ConsumptionUpdate,
    LotSnapshot,
)

__all__ = [
    "AcquisitionLotCreate",
    "AcquisitionLotResponse",
    "AcquisitionLotUpdate",
    "BatchAllocationRequest",
    "BatchAllocationResponse",
    "BatchConsumptionActionResponse",
    "BatchReference",
    "ConsumptionCreate",
    "ConsumptionRecordResponse",
    "ConsumptionUpdate",
    "LotSnapshot",
    "PageResponse",
]
