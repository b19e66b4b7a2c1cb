"""Test fixtures and sample data."""
import pytest
from datetime import datetime, timezone
from decimal import Decimal

from models import AcquisitionLot, ConsumptionRecord
from sqlalchemy.orm import Session

OWNER_ID = "owner-0001"
OTHER_OWNER_ID = "owner-0002"
ACQUIRED_AT = datetime(2024, 5, 1, 9, 30)


def create_lot(
    db: Session,
    quantity: Decimal | str,
    owner_id: str = OWNER_ID,
    acquisition_rate: Decimal | str = "90.50",
    remarks: str = "",
    item_type: str = "USDT",
    remaining: Decimal | str | None = None,
    created_at: datetime | None = None,
) -> AcquisitionLot:
    """Create and commit a lot directly, bypassing the service layer.

    Args:
        db: Database session
        quantity: Acquired quantity
        owner_id: Owning user
        acquisition_rate: Rate paid per unit
        remarks: Free-text remarks (searchable)
        item_type: Item type
        remaining: Stored remaining balance (defaults to ``quantity``)
        created_at: Optional creation timestamp, for ordering tests

    Returns:
        The committed AcquisitionLot
    """
    quantity = Decimal(quantity)
    lot = AcquisitionLot(
        owner_id=owner_id,
        item_type=item_type,
        quantity_acquired=quantity,
        quantity_remaining=Decimal(remaining) if remaining is not None else quantity,
        acquisition_rate=Decimal(acquisition_rate),
        acquired_at=ACQUIRED_AT,
        remarks=remarks,
    )
    if created_at is not None:
        lot.created_at = created_at
    db.add(lot)
    db.commit()
    db.refresh(lot)
    return lot


def create_raw_consumption(
    db: Session,
    lot: AcquisitionLot,
    quantity: Decimal | str,
    deleted: bool = False,
    owner_id: str | None = None,
) -> ConsumptionRecord:
    """Insert a consumption record without reconciling its lot.

    Simulates a manual database edit that bypassed the ledger services.
    """
    record = ConsumptionRecord(
        owner_id=owner_id or lot.owner_id,
        lot_id=lot.id,
        quantity_consumed=Decimal(quantity),
        consumption_rate=Decimal("91.00"),
        consumed_at=datetime(2024, 6, 1, 12, 0),
        remarks="manual",
        deleted_at=datetime.now(timezone.utc) if deleted else None,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def owner_id() -> str:
    """The default test owner."""
    return OWNER_ID


@pytest.fixture
def lot_a(db: Session) -> AcquisitionLot:
    """A 100-unit lot."""
    return create_lot(
        db, "100", remarks="Lot A from exchange", created_at=datetime(2024, 5, 1, 10, 0)
    )


@pytest.fixture
def lot_b(db: Session) -> AcquisitionLot:
    """A 60-unit lot with a higher rate."""
    return create_lot(
        db,
        "60",
        acquisition_rate="92.25",
        remarks="Lot B from broker",
        created_at=datetime(2024, 5, 2, 10, 0),
    )


@pytest.fixture
def other_owner_lot(db: Session) -> AcquisitionLot:
    """A lot belonging to a different owner."""
    return create_lot(db, "50", owner_id=OTHER_OWNER_ID, remarks="Not yours")
