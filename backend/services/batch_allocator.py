"""Batch allocator: sells one quantity across several lots at once.

The caller picks the candidate lots and their order. The allocator locks
them, checks the combined balance, draws greedily in the given order,
and writes one batch action plus one consumption record per lot drawn
from. Either everything is written or nothing is.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session, joinedload

from config import settings
from models import AcquisitionLot, BatchConsumptionAction, ConsumptionRecord, generate_batch_code
from schemas.batch import BatchAllocationRequest
from services.balance_reconciler import BalanceReconciler
from services.exceptions import InsufficientBalanceError, LedgerValidationError, NotFoundError
from services.ledger_transaction import run_in_transaction
from utils.pagination import Page, paginate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Draw:
    """Quantity to take from one lot."""

    lot_id: str
    quantity: Decimal


@dataclass
class AllocationResult:
    """The batch action and the consumption records it created."""

    batch: BatchConsumptionAction
    records: list[ConsumptionRecord]

    @property
    def batch_code(self) -> str:
        return self.batch.batch_code


def drawable_quantity(lot: AcquisitionLot) -> Decimal:
    """What can be drawn from a lot; nothing from an over-sold one."""
    return max(lot.quantity_remaining, Decimal("0"))


def plan_draws(lots: list[AcquisitionLot], requested: Decimal) -> list[Draw]:
    """Draw ``requested`` from ``lots`` in the order given.

    Each lot gives ``min(its remaining, still needed)``; lots that would
    give nothing are skipped. The caller must have checked that the lots
    hold at least ``requested`` in total.
    """
    draws: list[Draw] = []
    outstanding = requested
    for lot in lots:
        if outstanding <= 0:
            break
        take = min(drawable_quantity(lot), outstanding)
        if take <= 0:
            continue
        draws.append(Draw(lot_id=lot.id, quantity=take))
        outstanding -= take
    return draws


class BatchAllocator:
    """Allocates batch sales and lists batch actions."""

    @staticmethod
    def allocate(
        db: Session, owner_id: str, request: BatchAllocationRequest
    ) -> AllocationResult:
        """Allocate ``request.requested_quantity`` across the candidate lots.

        Raises:
            LedgerValidationError: Non-positive quantity, or no/duplicate candidates.
            NotFoundError: A candidate is missing, soft-deleted, or not owned
                by ``owner_id``.
            InsufficientBalanceError: The candidates hold less than requested.
                Nothing is written.
        """
        requested = request.requested_quantity
        candidate_ids = list(request.candidate_lot_ids)
        if requested <= 0:
            raise LedgerValidationError("Requested quantity must be greater than zero")
        if not candidate_ids:
            raise LedgerValidationError("At least one candidate lot is required")
        if len(set(candidate_ids)) != len(candidate_ids):
            raise LedgerValidationError("Candidate lots must not repeat")

        def work() -> AllocationResult:
            locked = BalanceReconciler.lock_lots(db, candidate_ids, owner_id)
            missing = [
                lot_id
                for lot_id in candidate_ids
                if lot_id not in locked or not locked[lot_id].is_active
            ]
            if missing:
                raise NotFoundError(
                    f"Lot not found: {', '.join(missing)}", entity_id=missing[0]
                )

            candidates = [locked[lot_id] for lot_id in candidate_ids]
            # An over-sold candidate's negative balance counts against the total
            available = sum((lot.quantity_remaining for lot in candidates), Decimal("0"))
            if available < requested:
                raise InsufficientBalanceError(available=available, requested=requested)

            draws = plan_draws(candidates, requested)

            batch = BatchConsumptionAction(
                owner_id=owner_id,
                batch_code=generate_batch_code(),
                requested_quantity=requested,
                rate=request.rate,
                executed_at=request.consumed_at,
            )
            db.add(batch)
            db.flush()

            records = [
                ConsumptionRecord(
                    owner_id=owner_id,
                    lot_id=draw.lot_id,
                    quantity_consumed=draw.quantity,
                    consumption_rate=request.rate,
                    consumed_at=request.consumed_at,
                    remarks=request.remarks,
                    batch_id=batch.id,
                )
                for draw in draws
            ]
            db.add_all(records)
            db.flush()

            for lot_id in sorted({draw.lot_id for draw in draws}):
                BalanceReconciler.reconcile_locked(db, lot_id, owner_id)

            return AllocationResult(batch=batch, records=records)

        result = run_in_transaction(db, work, label="batch allocation")
        logger.info(
            "Allocated batch %s: %s across %d lots for owner %s",
            result.batch_code,
            requested,
            len(result.records),
            owner_id,
        )
        return result

    # --- Queries ---

    @staticmethod
    def page_batches(
        db: Session, owner_id: str, page: int = 1, page_size: int | None = None
    ) -> Page[BatchConsumptionAction]:
        """List active batch actions newest first."""
        q = (
            db.query(BatchConsumptionAction)
            .filter(
                BatchConsumptionAction.owner_id == owner_id,
                BatchConsumptionAction.deleted_at.is_(None),
            )
            .order_by(BatchConsumptionAction.created_at.desc(), BatchConsumptionAction.id.desc())
        )
        return paginate(q, page, page_size or settings.PAGE_SIZE)

    @staticmethod
    def get_batch(
        db: Session, owner_id: str, batch_code: str
    ) -> tuple[BatchConsumptionAction, list[ConsumptionRecord]]:
        """Get a batch action and its active consumption records."""
        batch = (
            db.query(BatchConsumptionAction)
            .filter(
                BatchConsumptionAction.owner_id == owner_id,
                BatchConsumptionAction.batch_code == batch_code,
                BatchConsumptionAction.deleted_at.is_(None),
            )
            .first()
        )
        if batch is None:
            raise NotFoundError(f"Batch not found: {batch_code}", entity_id=batch_code)

        records = (
            db.query(ConsumptionRecord)
            .options(joinedload(ConsumptionRecord.lot))
            .filter(
                ConsumptionRecord.batch_id == batch.id,
                ConsumptionRecord.deleted_at.is_(None),
            )
            .order_by(ConsumptionRecord.created_at.asc(), ConsumptionRecord.id.asc())
            .all()
        )
        return batch, records
