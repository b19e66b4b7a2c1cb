"""AcquisitionLot model - one purchase of a fungible item."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Numeric, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class AcquisitionLot(Base):
    """A lot representing one acquisition of an item by an owner.

    ``quantity_acquired`` is fixed at creation. ``quantity_remaining`` is a
    cached value owned by the balance reconciler: acquired minus the sum of
    active consumption records against the lot. It is deliberately not
    constrained to be non-negative, so over-consumption stays visible.
    """

    __tablename__ = "acquisition_lots"
    __table_args__ = (
        CheckConstraint("quantity_acquired > 0", name="ck_acquisition_lot_quantity_acquired_positive"),
        CheckConstraint("acquisition_rate >= 0", name="ck_acquisition_lot_rate_non_negative"),
        Index("ix_acquisition_lots_owner_active", "owner_id", "deleted_at"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    owner_id = Column(String(36), nullable=False, index=True)
    item_type = Column(String, nullable=False)
    quantity_acquired = Column(Numeric(18, 8), nullable=False)
    quantity_remaining = Column(Numeric(18, 8), nullable=False)
    acquisition_rate = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    acquired_at = Column(DateTime, nullable=False)
    remarks = Column(String, nullable=False, default="")
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships (no cascade: consumption records are never erased with a lot)
    consumptions = relationship("ConsumptionRecord", back_populates="lot")

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None

    @property
    def ref_code(self) -> str:
        """Short human-facing reference for the lot."""
        return f"LOT-{self.id[:8].upper()}"

    @property
    def balance_status(self) -> str:
        """``available``, ``sold_out``, or ``over_sold`` (negative balance)."""
        if self.quantity_remaining < 0:
            return "over_sold"
        if self.quantity_remaining == 0:
            return "sold_out"
        return "available"
