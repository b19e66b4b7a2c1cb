"""Balance reconciler: keeps each lot's remaining quantity honest.

A lot's ``quantity_remaining`` is always

    quantity_acquired - sum(quantity_consumed of its active consumption records)

and this module is the only writer of that column after creation. The
result is never clamped: a negative balance means the consumption set
over-draws the lot, and is left visible rather than hidden at zero.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.orm import Session

from models import AcquisitionLot, ConsumptionRecord
from services.exceptions import NotFoundError
from services.ledger_transaction import run_in_transaction

logger = logging.getLogger(__name__)


@dataclass
class LotDrift:
    """A lot whose stored balance disagreed with its consumption records."""

    lot_id: str
    stored: Decimal
    reconciled: Decimal


@dataclass
class ReconciliationReport:
    """Summary of a reconcile-all run."""

    lots_checked: int = 0
    drifted: list[LotDrift] = field(default_factory=list)
    over_sold: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


class BalanceReconciler:
    """Recomputes lot balances from their active consumption records."""

    @staticmethod
    def lock_lots(
        db: Session, lot_ids: Iterable[str], owner_id: str | None = None
    ) -> dict[str, AcquisitionLot]:
        """Load lots with a row lock, in ascending id order.

        Locking in one global order keeps two transactions that touch
        overlapping lots from deadlocking. Soft-deleted lots are returned
        too; callers decide whether a removed lot is acceptable. Lots owned
        by someone other than ``owner_id`` are left out.
        """
        ids = sorted(set(lot_ids))
        if not ids:
            return {}
        query = db.query(AcquisitionLot).filter(AcquisitionLot.id.in_(ids))
        if owner_id is not None:
            query = query.filter(AcquisitionLot.owner_id == owner_id)
        lots = (
            query.order_by(AcquisitionLot.id.asc())
            .with_for_update()
            .populate_existing()
            .all()
        )
        return {lot.id: lot for lot in lots}

    @staticmethod
    def active_consumed_quantity(db: Session, lot_id: str) -> Decimal:
        """Sum the quantities of a lot's active consumption records."""
        rows = (
            db.query(ConsumptionRecord.quantity_consumed)
            .filter(
                ConsumptionRecord.lot_id == lot_id,
                ConsumptionRecord.deleted_at.is_(None),
            )
            .all()
        )
        return sum((quantity for (quantity,) in rows), Decimal("0"))

    @staticmethod
    def reconcile_locked(
        db: Session, lot_id: str, owner_id: str | None = None
    ) -> AcquisitionLot:
        """Recompute one lot's balance inside the caller's transaction.

        The caller is responsible for committing (normally via
        ``run_in_transaction``). Raises NotFoundError for a missing or
        soft-deleted lot; a removed lot is never reconciled.
        """
        # Pending consumption changes must be visible to the aggregate
        db.flush()

        lot = BalanceReconciler.lock_lots(db, [lot_id], owner_id).get(lot_id)
        if lot is None or not lot.is_active:
            raise NotFoundError(f"Lot not found: {lot_id}", entity_id=lot_id)

        consumed = BalanceReconciler.active_consumed_quantity(db, lot_id)
        remaining = lot.quantity_acquired - consumed
        if remaining != lot.quantity_remaining:
            logger.debug(
                "Lot %s balance %s -> %s", lot_id, lot.quantity_remaining, remaining
            )
        lot.quantity_remaining = remaining
        db.flush()

        if remaining < 0:
            logger.warning(
                "Lot %s is over-consumed: acquired %s, consumed %s, remaining %s",
                lot_id,
                lot.quantity_acquired,
                consumed,
                remaining,
            )
        return lot

    @staticmethod
    def reconcile_lot(
        db: Session, lot_id: str, owner_id: str | None = None
    ) -> AcquisitionLot:
        """Reconcile one lot as its own committed transaction.

        Idempotent: running it again with no consumption change in between
        leaves the balance as it was. Used for repair and backfill.
        """
        lot = run_in_transaction(
            db,
            lambda: BalanceReconciler.reconcile_locked(db, lot_id, owner_id),
            label="reconcile lot",
        )
        logger.info("Reconciled lot %s: remaining %s", lot_id, lot.quantity_remaining)
        return lot

    @staticmethod
    def _compare(db: Session, lot_id: str) -> tuple[Decimal, Decimal]:
        """Return the (stored, reconciled) balance of a lot without writing."""
        lot = (
            db.query(AcquisitionLot)
            .filter(AcquisitionLot.id == lot_id, AcquisitionLot.deleted_at.is_(None))
            .first()
        )
        if lot is None:
            raise NotFoundError(f"Lot not found: {lot_id}", entity_id=lot_id)
        consumed = BalanceReconciler.active_consumed_quantity(db, lot_id)
        return lot.quantity_remaining, lot.quantity_acquired - consumed

    @staticmethod
    def _reconcile_and_compare(db: Session, lot_id: str) -> tuple[Decimal, Decimal]:
        """Return the (stored, reconciled) balance of a lot, writing the latter."""
        lot = BalanceReconciler.lock_lots(db, [lot_id]).get(lot_id)
        stored = lot.quantity_remaining if lot is not None else Decimal("0")
        reconciled = BalanceReconciler.reconcile_locked(db, lot_id).quantity_remaining
        return stored, reconciled

    @staticmethod
    def reconcile_all(
        db: Session, owner_id: str | None = None, dry_run: bool = False
    ) -> ReconciliationReport:
        """Reconcile every active lot, one transaction per lot.

        With ``dry_run`` nothing is written; the report still lists the lots
        whose stored balance differs from their consumption records.
        """
        query = db.query(AcquisitionLot.id).filter(AcquisitionLot.deleted_at.is_(None))
        if owner_id is not None:
            query = query.filter(AcquisitionLot.owner_id == owner_id)
        lot_ids = [lot_id for (lot_id,) in query.order_by(AcquisitionLot.id.asc()).all()]
        # Release the read transaction so each lot can take its own write lock
        db.commit()

        report = ReconciliationReport()
        for lot_id in lot_ids:
            try:
                if dry_run:
                    stored, reconciled = BalanceReconciler._compare(db, lot_id)
                else:
                    stored, reconciled = run_in_transaction(
                        db,
                        lambda lot_id=lot_id: BalanceReconciler._reconcile_and_compare(db, lot_id),
                        label="reconcile lot",
                    )
            except NotFoundError:
                logger.info("Lot %s was removed before it was reconciled, skipping", lot_id)
                report.skipped.append(lot_id)
                continue

            report.lots_checked += 1
            if reconciled != stored:
                report.drifted.append(
                    LotDrift(lot_id=lot_id, stored=stored, reconciled=reconciled)
                )
            if reconciled < 0:
                report.over_sold.append(lot_id)

        if dry_run:
            db.rollback()
        logger.info(
            "Reconciled %d lots (%d drifted, %d over-sold)%s",
            report.lots_checked,
            len(report.drifted),
            len(report.over_sold),
            " [dry run]" if dry_run else "",
        )
        return report
