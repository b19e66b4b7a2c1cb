"""Acquisition lot API endpoints."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.helpers import get_owner_id, ledger_http_exception, lot_response_dict
from config import settings
from database import get_db
from schemas import (
    AcquisitionLotCreate,
    AcquisitionLotResponse,
    AcquisitionLotUpdate,
    PageResponse,
)
from services.acquisition_service import AcquisitionService
from services.balance_reconciler import BalanceReconciler
from services.exceptions import LedgerError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/acquisitions", tags=["acquisitions"])


@router.get("", response_model=PageResponse[AcquisitionLotResponse])
def list_acquisitions(
    page: int = Query(default=1),
    lot_id: str | None = Query(default=None),
    item_type: str | None = Query(default=None),
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """Get one page of active lots, newest first."""
    result = AcquisitionService.page(
        db, owner_id, page=page, lot_id=lot_id, item_type=item_type
    )
    return {
        "items": [lot_response_dict(lot) for lot in result.items],
        "total_pages": result.total_pages,
        "page": result.page,
    }


@router.get("/item-types", response_model=list[str])
def list_item_types():
    """Get the item types a lot may hold."""
    return settings.ITEM_TYPES


@router.get("/search", response_model=list[AcquisitionLotResponse])
def search_acquisitions(
    q: str | None = Query(default=None),
    include_depleted: bool = Query(default=False),
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """Search lots by remarks text, or by minimum rate when ``q`` is numeric."""
    lots = AcquisitionService.search(db, owner_id, q, include_depleted=include_depleted)
    return [lot_response_dict(lot) for lot in lots]


@router.get("/{lot_id}", response_model=AcquisitionLotResponse)
def get_acquisition(
    lot_id: str,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """Get a single active lot."""
    try:
        return lot_response_dict(AcquisitionService.find_one(db, owner_id, lot_id))
    except LedgerError as e:
        raise ledger_http_exception(e)


@router.post("", response_model=AcquisitionLotResponse, status_code=201)
def create_acquisition(
    lot_data: AcquisitionLotCreate,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """Record a new acquisition lot."""
    try:
        lot = AcquisitionService.create_lot(db, owner_id, lot_data)
        db.commit()
        db.refresh(lot)
        return lot_response_dict(lot)
    except LedgerError as e:
        raise ledger_http_exception(e)


@router.put("/{lot_id}", response_model=AcquisitionLotResponse)
def update_acquisition(
    lot_id: str,
    lot_data: AcquisitionLotUpdate,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """Update a lot's descriptive fields."""
    try:
        lot = AcquisitionService.update_lot(db, owner_id, lot_id, lot_data)
        db.commit()
        db.refresh(lot)
        return lot_response_dict(lot)
    except LedgerError as e:
        raise ledger_http_exception(e)


@router.delete("/{lot_id}", status_code=204)
def delete_acquisition(
    lot_id: str,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """Soft-delete a lot."""
    try:
        AcquisitionService.soft_delete_lot(db, owner_id, lot_id)
        db.commit()
    except LedgerError as e:
        raise ledger_http_exception(e)


@router.post("/{lot_id}/reconcile", response_model=AcquisitionLotResponse)
def reconcile_acquisition(
    lot_id: str,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """Recompute a lot's remaining balance from its active sales."""
    try:
        lot = BalanceReconciler.reconcile_lot(db, lot_id, owner_id)
        return lot_response_dict(lot)
    except LedgerError as e:
        raise ledger_http_exception(e)
