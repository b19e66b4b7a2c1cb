"""Service for consumption records (sales against a single lot).

Create, update and soft-delete are separate typed operations. Each
runs as one locked transaction that ends by reconciling the referenced
lot. If reconciliation fails, the mutation is rolled back with it.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Query, Session, joinedload

from config import settings
from models import AcquisitionLot, BatchConsumptionAction, ConsumptionRecord
from schemas.consumption import ConsumptionCreate, ConsumptionUpdate
from services.balance_reconciler import BalanceReconciler
from services.exceptions import LedgerValidationError, NotFoundError, OwnershipViolationError
from services.ledger_transaction import run_in_transaction
from utils.pagination import Page, paginate

logger = logging.getLogger(__name__)


class ConsumptionService:
    """Manages consumption record CRUD and listing, scoped to one owner."""

    # --- Mutations ---

    @staticmethod
    def create_consumption(
        db: Session, owner_id: str, data: ConsumptionCreate
    ) -> ConsumptionRecord:
        """Record a sale against one lot and reconcile that lot.

        Raises:
            NotFoundError: The lot does not exist or is soft-deleted.
            OwnershipViolationError: The lot belongs to another owner.
            LedgerValidationError: The quantity is not positive.
        """
        if data.quantity <= 0:
            raise LedgerValidationError("Consumed quantity must be greater than zero")

        def work() -> ConsumptionRecord:
            lot = ConsumptionService._lock_lot_for_owner(db, owner_id, data.lot_id)
            record = ConsumptionRecord(
                owner_id=owner_id,
                lot_id=lot.id,
                quantity_consumed=data.quantity,
                consumption_rate=data.consumption_rate,
                consumed_at=data.consumed_at,
                remarks=data.remarks,
            )
            db.add(record)
            db.flush()
            BalanceReconciler.reconcile_locked(db, lot.id, owner_id)
            return record

        record = run_in_transaction(db, work, label="create consumption")
        logger.info(
            "Created consumption %s: %s from lot %s for owner %s",
            record.id,
            data.quantity,
            data.lot_id,
            owner_id,
        )
        return record

    @staticmethod
    def update_consumption(
        db: Session, owner_id: str, record_id: str, data: ConsumptionUpdate
    ) -> ConsumptionRecord:
        """Edit a sale and reconcile its lot."""
        if data.quantity is not None and data.quantity <= 0:
            raise LedgerValidationError("Consumed quantity must be greater than zero")

        def work() -> ConsumptionRecord:
            record = ConsumptionService._find_active(db, owner_id, record_id)
            BalanceReconciler.lock_lots(db, [record.lot_id], owner_id)

            if data.quantity is not None:
                record.quantity_consumed = data.quantity
            if data.consumption_rate is not None:
                record.consumption_rate = data.consumption_rate
            if data.consumed_at is not None:
                record.consumed_at = data.consumed_at
            if data.remarks is not None:
                record.remarks = data.remarks

            db.flush()
            BalanceReconciler.reconcile_locked(db, record.lot_id, owner_id)
            return record

        record = run_in_transaction(db, work, label="update consumption")
        logger.info("Updated consumption %s (lot %s)", record_id, record.lot_id)
        return record

    @staticmethod
    def soft_delete_consumption(
        db: Session, owner_id: str, record_id: str
    ) -> ConsumptionRecord:
        """Mark a sale deleted and give its quantity back to the lot.

        Removing the last active sale against a lot restores the lot's
        remaining quantity to its acquired quantity.
        """

        def work() -> ConsumptionRecord:
            record = ConsumptionService._find_active(db, owner_id, record_id)
            BalanceReconciler.lock_lots(db, [record.lot_id], owner_id)
            record.deleted_at = datetime.now(timezone.utc)
            db.flush()
            BalanceReconciler.reconcile_locked(db, record.lot_id, owner_id)
            return record

        record = run_in_transaction(db, work, label="delete consumption")
        logger.info(
            "Soft-deleted consumption %s (%s from lot %s)",
            record_id,
            record.quantity_consumed,
            record.lot_id,
        )
        return record

    # --- Queries ---

    @staticmethod
    def _active_query(db: Session, owner_id: str) -> Query:
        return (
            db.query(ConsumptionRecord)
            .options(joinedload(ConsumptionRecord.lot), joinedload(ConsumptionRecord.batch))
            .filter(
                ConsumptionRecord.owner_id == owner_id,
                ConsumptionRecord.deleted_at.is_(None),
            )
        )

    @staticmethod
    def _find_active(db: Session, owner_id: str, record_id: str) -> ConsumptionRecord:
        record = (
            db.query(ConsumptionRecord)
            .filter(
                ConsumptionRecord.id == record_id,
                ConsumptionRecord.owner_id == owner_id,
                ConsumptionRecord.deleted_at.is_(None),
            )
            .first()
        )
        if record is None:
            raise NotFoundError(f"Consumption record not found: {record_id}", entity_id=record_id)
        return record

    @staticmethod
    def _lock_lot_for_owner(db: Session, owner_id: str, lot_id: str) -> AcquisitionLot:
        """Row-lock the lot a new sale will draw from.

        A lot that exists but belongs to someone else is an ownership
        violation rather than a plain miss.
        """
        lot = BalanceReconciler.lock_lots(db, [lot_id]).get(lot_id)
        if lot is None or not lot.is_active:
            raise NotFoundError(f"Lot not found: {lot_id}", entity_id=lot_id)
        if lot.owner_id != owner_id:
            raise OwnershipViolationError(
                f"Lot {lot_id} does not belong to owner {owner_id}"
            )
        return lot

    @staticmethod
    def find_one(db: Session, owner_id: str, record_id: str) -> ConsumptionRecord:
        """Get an active record with its lot and batch, or raise NotFoundError."""
        record = (
            ConsumptionService._active_query(db, owner_id)
            .filter(ConsumptionRecord.id == record_id)
            .first()
        )
        if record is None:
            raise NotFoundError(f"Consumption record not found: {record_id}", entity_id=record_id)
        return record

    @staticmethod
    def page(
        db: Session,
        owner_id: str,
        page: int = 1,
        page_size: int | None = None,
        batch_code: str | None = None,
        lot_id: str | None = None,
    ) -> Page[ConsumptionRecord]:
        """List active records newest first, joined to their lot and batch."""
        q = ConsumptionService._active_query(db, owner_id)
        if batch_code:
            q = q.join(
                BatchConsumptionAction,
                ConsumptionRecord.batch_id == BatchConsumptionAction.id,
            ).filter(BatchConsumptionAction.batch_code == batch_code)
        if lot_id:
            q = q.filter(ConsumptionRecord.lot_id == lot_id)
        q = q.order_by(ConsumptionRecord.created_at.desc(), ConsumptionRecord.id.desc())
        return paginate(q, page, page_size or settings.PAGE_SIZE)
