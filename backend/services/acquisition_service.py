"""Service for acquisition lot records.

Pure data layer for CRUD, search and pagination of AcquisitionLot records.
It never writes ``quantity_remaining`` after creation; the remaining
balance is owned by the balance reconciler.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Query, Session

from config import settings
from models import AcquisitionLot
from schemas.acquisition import AcquisitionLotCreate, AcquisitionLotUpdate
from services.exceptions import LedgerValidationError, NotFoundError
from utils.pagination import Page, paginate
from utils.query_params import parse_search_query

logger = logging.getLogger(__name__)


class AcquisitionService:
    """Manages lot CRUD, search and listing, always scoped to one owner."""

    @staticmethod
    def validate_item_type(item_type: str) -> str:
        """Return the item type if it is configured, else raise."""
        if item_type not in settings.ITEM_TYPES:
            raise LedgerValidationError(
                f"Unknown item type: {item_type!r} "
                f"(expected one of {', '.join(settings.ITEM_TYPES)})"
            )
        return item_type

    # --- CRUD ---

    @staticmethod
    def create_lot(
        db: Session, owner_id: str, lot_data: AcquisitionLotCreate
    ) -> AcquisitionLot:
        """Create a lot with its full quantity remaining."""
        AcquisitionService.validate_item_type(lot_data.item_type)
        if lot_data.quantity <= 0:
            raise LedgerValidationError("Acquired quantity must be greater than zero")

        lot = AcquisitionLot(
            owner_id=owner_id,
            item_type=lot_data.item_type,
            quantity_acquired=lot_data.quantity,
            quantity_remaining=lot_data.quantity,
            acquisition_rate=lot_data.acquisition_rate,
            acquired_at=lot_data.acquired_at,
            remarks=lot_data.remarks,
        )
        db.add(lot)
        db.flush()
        logger.info(
            "Created lot %s: %s %s at %s for owner %s",
            lot.id,
            lot_data.quantity,
            lot_data.item_type,
            lot_data.acquisition_rate,
            owner_id,
        )
        return lot

    @staticmethod
    def update_lot(
        db: Session, owner_id: str, lot_id: str, lot_data: AcquisitionLotUpdate
    ) -> AcquisitionLot:
        """Update a lot's descriptive fields.

        Field edits never rebalance the lot; ``quantity_acquired`` and
        ``quantity_remaining`` are left untouched.
        """
        lot = AcquisitionService.find_one(db, owner_id, lot_id)

        if lot_data.item_type is not None:
            lot.item_type = AcquisitionService.validate_item_type(lot_data.item_type)

        if lot_data.acquisition_rate is not None:
            lot.acquisition_rate = lot_data.acquisition_rate

        if lot_data.acquired_at is not None:
            lot.acquired_at = lot_data.acquired_at

        if lot_data.remarks is not None:
            lot.remarks = lot_data.remarks

        db.flush()
        logger.info("Updated lot: %s", lot_id)
        return lot

    @staticmethod
    def soft_delete_lot(db: Session, owner_id: str, lot_id: str) -> AcquisitionLot:
        """Mark a lot deleted.

        The balance freezes at its last reconciled value and the lot drops
        out of listings, search and allocation. Its consumption records are
        kept as they are.
        """
        lot = AcquisitionService.find_one(db, owner_id, lot_id)
        lot.deleted_at = datetime.now(timezone.utc)
        db.flush()
        logger.info(
            "Soft-deleted lot %s (%s of %s %s remaining)",
            lot_id,
            lot.quantity_remaining,
            lot.quantity_acquired,
            lot.item_type,
        )
        return lot

    # --- Queries ---

    @staticmethod
    def _active_query(db: Session, owner_id: str) -> Query:
        return db.query(AcquisitionLot).filter(
            AcquisitionLot.owner_id == owner_id,
            AcquisitionLot.deleted_at.is_(None),
        )

    @staticmethod
    def find_one(db: Session, owner_id: str, lot_id: str) -> AcquisitionLot:
        """Get an active lot owned by ``owner_id`` or raise NotFoundError."""
        lot = (
            AcquisitionService._active_query(db, owner_id)
            .filter(AcquisitionLot.id == lot_id)
            .first()
        )
        if lot is None:
            raise NotFoundError(f"Lot not found: {lot_id}", entity_id=lot_id)
        return lot

    @staticmethod
    def search(
        db: Session,
        owner_id: str,
        query: str | None,
        include_depleted: bool = False,
    ) -> list[AcquisitionLot]:
        """Search active lots for allocation candidates.

        A numeric query is a lower bound on ``acquisition_rate``; any other
        text is a case-insensitive substring match on remarks. Unless
        ``include_depleted`` is set, lots with nothing remaining (or an
        over-sold negative balance) are excluded.
        """
        parsed = parse_search_query(query)
        q = AcquisitionService._active_query(db, owner_id)

        if parsed.min_rate is not None:
            q = q.filter(AcquisitionLot.acquisition_rate >= parsed.min_rate)
        elif parsed.text is not None:
            q = q.filter(AcquisitionLot.remarks.icontains(parsed.text, autoescape=True))

        if not include_depleted:
            q = q.filter(AcquisitionLot.quantity_remaining > 0)

        return q.order_by(AcquisitionLot.created_at.desc(), AcquisitionLot.id.desc()).all()

    @staticmethod
    def page(
        db: Session,
        owner_id: str,
        page: int = 1,
        page_size: int | None = None,
        lot_id: str | None = None,
        item_type: str | None = None,
    ) -> Page[AcquisitionLot]:
        """List active lots newest first, one page at a time."""
        q = AcquisitionService._active_query(db, owner_id)
        if lot_id:
            q = q.filter(AcquisitionLot.id == lot_id)
        if item_type:
            q = q.filter(AcquisitionLot.item_type == item_type)
        q = q.order_by(AcquisitionLot.created_at.desc(), AcquisitionLot.id.desc())
        return paginate(q, page, page_size or settings.PAGE_SIZE)
