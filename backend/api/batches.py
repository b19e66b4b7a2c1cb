"""Batch consumption API endpoints."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.helpers import (
    batch_response_dict,
    consumption_response_dict,
    get_owner_id,
    ledger_http_exception,
)
from database import get_db
from schemas import (
    BatchAllocationRequest,
    BatchAllocationResponse,
    BatchConsumptionActionResponse,
    PageResponse,
)
from services.batch_allocator import BatchAllocator
from services.exceptions import LedgerError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/batches", tags=["batches"])


@router.get("", response_model=PageResponse[BatchConsumptionActionResponse])
def list_batches(
    page: int = Query(default=1),
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """Get one page of batch actions, newest first."""
    result = BatchAllocator.page_batches(db, owner_id, page=page)
    return {
        "items": [batch_response_dict(b) for b in result.items],
        "total_pages": result.total_pages,
        "page": result.page,
    }


@router.get("/{batch_code}", response_model=BatchAllocationResponse)
def get_batch(
    batch_code: str,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """Get a batch action with its active sales."""
    try:
        batch, records = BatchAllocator.get_batch(db, owner_id, batch_code)
    except LedgerError as e:
        raise ledger_http_exception(e)
    return {
        "batch_code": batch.batch_code,
        "batch": batch_response_dict(batch),
        "records": [consumption_response_dict(r) for r in records],
    }


@router.post("", response_model=BatchAllocationResponse, status_code=201)
def allocate_batch(
    request: BatchAllocationRequest,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
):
    """Sell one quantity across the candidate lots, in the order given."""
    try:
        result = BatchAllocator.allocate(db, owner_id, request)
    except LedgerError as e:
        raise ledger_http_exception(e)
    return {
        "batch_code": result.batch_code,
        "batch": batch_response_dict(result.batch),
        "records": [consumption_response_dict(r) for r in result.records],
    }
