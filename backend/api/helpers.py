"""Shared API helpers for route handlers.

Owner resolution, ledger error mapping, and response builders used
across the route files.
"""

from fastapi import Header, HTTPException

from models import AcquisitionLot, BatchConsumptionAction, ConsumptionRecord
from services.exceptions import (
    ConcurrencyConflictError,
    InsufficientBalanceError,
    LedgerError,
    NotFoundError,
    OwnershipViolationError,
)


def get_owner_id(x_owner_id: str | None = Header(default=None)) -> str:
    """Resolve the authenticated owner for the request.

    Authentication happens upstream; it forwards the owner in the
    ``X-Owner-Id`` header. The ledger never reads session state itself.

    Raises:
        HTTPException: 401 if no owner was supplied.
    """
    if x_owner_id is None or not x_owner_id.strip():
        raise HTTPException(status_code=401, detail="Missing owner")
    return x_owner_id.strip()


def ledger_http_exception(exc: LedgerError) -> HTTPException:
    """Translate a ledger error into the matching HTTP error.

    Args:
        exc: The error raised by a ledger service.

    Returns:
        An HTTPException ready to raise.
    """
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, OwnershipViolationError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, InsufficientBalanceError):
        return HTTPException(
            status_code=409,
            detail={
                "message": "Insufficient balance",
                "available": str(exc.available),
                "requested": str(exc.requested),
            },
        )
    if isinstance(exc, ConcurrencyConflictError):
        return HTTPException(status_code=503, detail=str(exc))
    # LedgerValidationError and any other input problem
    return HTTPException(status_code=400, detail=str(exc))


def lot_response_dict(lot: AcquisitionLot) -> dict:
    """Build an AcquisitionLotResponse-compatible dict with computed fields."""
    return {
        "id": lot.id,
        "owner_id": lot.owner_id,
        "item_type": lot.item_type,
        "quantity_acquired": lot.quantity_acquired,
        "quantity_remaining": lot.quantity_remaining,
        "acquisition_rate": lot.acquisition_rate,
        "acquired_at": lot.acquired_at,
        "remarks": lot.remarks,
        "deleted_at": lot.deleted_at,
        "created_at": lot.created_at,
        "updated_at": lot.updated_at,
        "ref_code": lot.ref_code,
        "quantity_consumed": lot.quantity_acquired - lot.quantity_remaining,
        "balance_status": lot.balance_status,
    }


def consumption_response_dict(record: ConsumptionRecord) -> dict:
    """Build a ConsumptionRecordResponse-compatible dict.

    Includes a read-only snapshot of the referenced lot and, for batch
    sales, the batch reference.
    """
    lot = record.lot
    batch = record.batch
    return {
        "id": record.id,
        "owner_id": record.owner_id,
        "lot_id": record.lot_id,
        "quantity_consumed": record.quantity_consumed,
        "consumption_rate": record.consumption_rate,
        "consumed_at": record.consumed_at,
        "remarks": record.remarks,
        "batch_id": record.batch_id,
        "deleted_at": record.deleted_at,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
        "lot": {
            "id": lot.id,
            "ref_code": lot.ref_code,
            "item_type": lot.item_type,
            "quantity_remaining": lot.quantity_remaining,
            "balance_status": lot.balance_status,
            "deleted_at": lot.deleted_at,
        } if lot else None,
        "batch": {
            "id": batch.id,
            "batch_code": batch.batch_code,
            "executed_at": batch.executed_at,
        } if batch else None,
    }


def batch_response_dict(batch: BatchConsumptionAction) -> dict:
    """Build a BatchConsumptionActionResponse-compatible dict."""
    return {
        "id": batch.id,
        "owner_id": batch.owner_id,
        "batch_code": batch.batch_code,
        "requested_quantity": batch.requested_quantity,
        "rate": batch.rate,
        "executed_at": batch.executed_at,
        "deleted_at": batch.deleted_at,
        "created_at": batch.created_at,
    }
