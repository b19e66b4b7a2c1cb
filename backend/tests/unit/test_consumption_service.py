"""Tests for the ConsumptionService."""

import pytest
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from models import AcquisitionLot, ConsumptionRecord
from schemas.consumption import ConsumptionCreate, ConsumptionUpdate
from services.acquisition_service import AcquisitionService
from services.balance_reconciler import BalanceReconciler
from services.consumption_service import ConsumptionService
from services.exceptions import NotFoundError, OwnershipViolationError
from tests.fixtures import OTHER_OWNER_ID, OWNER_ID


def _sell(db: Session, lot: AcquisitionLot, quantity: str, owner_id: str = OWNER_ID, **extra):
    data = ConsumptionCreate(
        lot_id=lot.id,
        quantity=Decimal(quantity),
        consumption_rate=Decimal("91.20"),
        consumed_at=datetime(2024, 6, 1, 12, 0),
        **extra,
    )
    return ConsumptionService.create_consumption(db, owner_id, data)


def _expected_remaining(db: Session, lot: AcquisitionLot) -> Decimal:
    return lot.quantity_acquired - BalanceReconciler.active_consumed_quantity(db, lot.id)


# --- TestCreateConsumption ---


class TestCreateConsumption:
    def test_create_reduces_remaining(self, db: Session, lot_a: AcquisitionLot):
        record = _sell(db, lot_a, "30", remarks="first sale")

        assert record.id is not None
        assert record.owner_id == OWNER_ID
        assert record.lot_id == lot_a.id
        assert record.quantity_consumed == Decimal("30")
        assert record.batch_id is None
        assert record.remarks == "first sale"
        db.refresh(lot_a)
        assert lot_a.quantity_remaining == Decimal("70")

    def test_successive_sales(self, db: Session, lot_a: AcquisitionLot):
        """100 acquired, sell 30 then 20, leaves 50."""
        _sell(db, lot_a, "30")
        db.refresh(lot_a)
        assert lot_a.quantity_remaining == Decimal("70")

        _sell(db, lot_a, "20")
        db.refresh(lot_a)
        assert lot_a.quantity_remaining == Decimal("50")

    def test_create_is_committed(self, db: Session, lot_a: AcquisitionLot):
        record = _sell(db, lot_a, "10")
        db.rollback()

        assert db.query(ConsumptionRecord).filter_by(id=record.id).count() == 1

    def test_remaining_matches_active_records(self, db: Session, lot_a: AcquisitionLot):
        for quantity in ("12.5", "0.25", "7"):
            _sell(db, lot_a, quantity)

        db.refresh(lot_a)
        assert lot_a.quantity_remaining == _expected_remaining(db, lot_a)
        assert lot_a.quantity_remaining == Decimal("80.25")

    def test_single_sale_may_over_draw(self, db: Session, lot_a: AcquisitionLot):
        """A single-lot sale is recorded as entered; the balance goes negative."""
        _sell(db, lot_a, "130")

        db.refresh(lot_a)
        assert lot_a.quantity_remaining == Decimal("-30")
        assert lot_a.balance_status == "over_sold"

    def test_other_owners_lot_is_ownership_violation(
        self, db: Session, other_owner_lot: AcquisitionLot
    ):
        with pytest.raises(OwnershipViolationError):
            _sell(db, other_owner_lot, "5")

        assert db.query(ConsumptionRecord).count() == 0
        db.refresh(other_owner_lot)
        assert other_owner_lot.quantity_remaining == Decimal("50")

    def test_missing_lot_not_found(self, db: Session):
        data = ConsumptionCreate(
            lot_id="missing-lot",
            quantity=Decimal("1"),
            consumption_rate=Decimal("90"),
            consumed_at=datetime(2024, 6, 1),
        )
        with pytest.raises(NotFoundError):
            ConsumptionService.create_consumption(db, OWNER_ID, data)

    def test_deleted_lot_not_found(self, db: Session, lot_a: AcquisitionLot):
        AcquisitionService.soft_delete_lot(db, OWNER_ID, lot_a.id)
        db.commit()

        with pytest.raises(NotFoundError):
            _sell(db, lot_a, "5")

        assert db.query(ConsumptionRecord).count() == 0


# --- TestUpdateConsumption ---


class TestUpdateConsumption:
    def test_update_quantity_rebalances(self, db: Session, lot_a: AcquisitionLot):
        record = _sell(db, lot_a, "30")

        ConsumptionService.update_consumption(
            db, OWNER_ID, record.id, ConsumptionUpdate(quantity=Decimal("45"))
        )

        db.refresh(lot_a)
        assert lot_a.quantity_remaining == Decimal("55")

    def test_update_descriptive_fields(self, db: Session, lot_a: AcquisitionLot):
        record = _sell(db, lot_a, "30")

        updated = ConsumptionService.update_consumption(
            db,
            OWNER_ID,
            record.id,
            ConsumptionUpdate(consumption_rate=Decimal("93"), remarks="repriced"),
        )

        assert updated.consumption_rate == Decimal("93")
        assert updated.remarks == "repriced"
        assert updated.quantity_consumed == Decimal("30")
        db.refresh(lot_a)
        assert lot_a.quantity_remaining == Decimal("70")

    def test_update_other_owners_record_not_found(self, db: Session, lot_a: AcquisitionLot):
        record = _sell(db, lot_a, "30")

        with pytest.raises(NotFoundError):
            ConsumptionService.update_consumption(
                db, OTHER_OWNER_ID, record.id, ConsumptionUpdate(quantity=Decimal("1"))
            )

    def test_update_record_on_deleted_lot_rolls_back(
        self, db: Session, lot_a: AcquisitionLot
    ):
        """Reconciling a removed lot fails, and the edit goes with it."""
        record = _sell(db, lot_a, "30")
        AcquisitionService.soft_delete_lot(db, OWNER_ID, lot_a.id)
        db.commit()

        with pytest.raises(NotFoundError):
            ConsumptionService.update_consumption(
                db, OWNER_ID, record.id, ConsumptionUpdate(quantity=Decimal("10"))
            )

        db.refresh(record)
        assert record.quantity_consumed == Decimal("30")


# --- TestSoftDeleteConsumption ---


class TestSoftDeleteConsumption:
    def test_delete_restores_quantity(self, db: Session, lot_a: AcquisitionLot):
        """Removing the 20-unit sale after 30 + 20 brings the lot back to 70."""
        _sell(db, lot_a, "30")
        second = _sell(db, lot_a, "20")

        ConsumptionService.soft_delete_consumption(db, OWNER_ID, second.id)

        db.refresh(lot_a)
        assert lot_a.quantity_remaining == Decimal("70")
        db.refresh(second)
        assert second.deleted_at is not None

    def test_deleting_every_sale_restores_full_lot(self, db: Session, lot_a: AcquisitionLot):
        records = [_sell(db, lot_a, q) for q in ("30", "20", "50")]
        db.refresh(lot_a)
        assert lot_a.quantity_remaining == Decimal("0")
        assert lot_a.balance_status == "sold_out"

        for record in records:
            ConsumptionService.soft_delete_consumption(db, OWNER_ID, record.id)

        db.refresh(lot_a)
        assert lot_a.quantity_remaining == lot_a.quantity_acquired

    def test_deleted_record_hidden(self, db: Session, lot_a: AcquisitionLot):
        record = _sell(db, lot_a, "30")
        ConsumptionService.soft_delete_consumption(db, OWNER_ID, record.id)

        with pytest.raises(NotFoundError):
            ConsumptionService.find_one(db, OWNER_ID, record.id)

    def test_delete_twice_not_found(self, db: Session, lot_a: AcquisitionLot):
        record = _sell(db, lot_a, "30")
        ConsumptionService.soft_delete_consumption(db, OWNER_ID, record.id)

        with pytest.raises(NotFoundError):
            ConsumptionService.soft_delete_consumption(db, OWNER_ID, record.id)


# --- TestQueries ---


class TestQueries:
    def test_find_one_loads_lot(self, db: Session, lot_a: AcquisitionLot):
        record = _sell(db, lot_a, "30")

        found = ConsumptionService.find_one(db, OWNER_ID, record.id)

        assert found.lot.id == lot_a.id
        assert found.batch is None

    def test_page_newest_first(self, db: Session, lot_a: AcquisitionLot):
        first = _sell(db, lot_a, "1")
        first.created_at = datetime(2024, 6, 1, 8, 0)
        db.commit()
        second = _sell(db, lot_a, "2")

        result = ConsumptionService.page(db, OWNER_ID)

        assert [r.id for r in result.items] == [second.id, first.id]
        assert result.total_pages == 1

    def test_page_excludes_deleted(self, db: Session, lot_a: AcquisitionLot):
        kept = _sell(db, lot_a, "1")
        removed = _sell(db, lot_a, "2")
        ConsumptionService.soft_delete_consumption(db, OWNER_ID, removed.id)

        result = ConsumptionService.page(db, OWNER_ID)

        assert [r.id for r in result.items] == [kept.id]

    def test_page_filter_by_lot(
        self, db: Session, lot_a: AcquisitionLot, lot_b: AcquisitionLot
    ):
        _sell(db, lot_a, "1")
        on_b = _sell(db, lot_b, "2")

        result = ConsumptionService.page(db, OWNER_ID, lot_id=lot_b.id)

        assert [r.id for r in result.items] == [on_b.id]

    def test_page_unknown_batch_code_is_empty(self, db: Session, lot_a: AcquisitionLot):
        _sell(db, lot_a, "1")

        result = ConsumptionService.page(db, OWNER_ID, batch_code="B000000-DEADBEEF")

        assert result.items == []
        assert result.total_pages == 0

    def test_page_scoped_to_owner(self, db: Session, lot_a: AcquisitionLot):
        _sell(db, lot_a, "1")

        assert ConsumptionService.page(db, OTHER_OWNER_ID).items == []
