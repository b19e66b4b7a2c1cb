"""Consumption record (sale) API endpoints."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.helpers import consumption_response_dict, get_owner_id, ledger_http_exception
from database import get_db
from schemas import (
    ConsumptionCreate,
    ConsumptionRecordResponse,
    ConsumptionUpdate,
    PageResponse,
)
from services.consumption_service import ConsumptionService
from services.exceptions import LedgerError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/consumptions", tags=["consumptions"])


@router.get("", response_model=PageResponse[ConsumptionRecordResponse])
def list_consumptions(
    page: int = Query(default=1),
    batch_code: str | None = Query(default=None),
    lot_id: str | None = Query(default=None),
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """Get one page of active sales with their lot and batch, newest first."""
    result = ConsumptionService.page(
        db, owner_id, page=page, batch_code=batch_code, lot_id=lot_id
    )
    return {
        "items": [consumption_response_dict(r) for r in result.items],
        "total_pages": result.total_pages,
        "page": result.page,
    }


@router.get("/{record_id}", response_model=ConsumptionRecordResponse)
def get_consumption(
    record_id: str,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """Get a single active sale."""
    try:
        record = ConsumptionService.find_one(db, owner_id, record_id)
        return consumption_response_dict(record)
    except LedgerError as e:
        raise ledger_http_exception(e)


@router.post("", response_model=ConsumptionRecordResponse, status_code=201)
def create_consumption(
    data: ConsumptionCreate,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """Sell from a single lot."""
    try:
        record = ConsumptionService.create_consumption(db, owner_id, data)
        return consumption_response_dict(record)
    except LedgerError as e:
        raise ledger_http_exception(e)


@router.put("/{record_id}", response_model=ConsumptionRecordResponse)
def update_consumption(
    record_id: str,
    data: ConsumptionUpdate,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """Edit a sale; its lot is reconciled."""
    try:
        record = ConsumptionService.update_consumption(db, owner_id, record_id, data)
        return consumption_response_dict(record)
    except LedgerError as e:
        raise ledger_http_exception(e)


@router.delete("/{record_id}", status_code=204)
def delete_consumption(
    record_id: str,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """Soft-delete a sale; its lot is reconciled."""
    try:
        ConsumptionService.soft_delete_consumption(db, owner_id, record_id)
    except LedgerError as e:
        raise ledger_http_exception(e)
