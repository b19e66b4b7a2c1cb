"""ConsumptionRecord model - one sale drawing a quantity from a single lot."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class ConsumptionRecord(Base):
    """Records a quantity drawn from an acquisition lot (sale event).

    A batch allocation creates one record per contributing lot; records
    from the same allocation share a ``batch_id``. Single-lot sales have
    no batch.
    """

    __tablename__ = "consumption_records"
    __table_args__ = (
        CheckConstraint("quantity_consumed > 0", name="ck_consumption_record_quantity_positive"),
        CheckConstraint("consumption_rate >= 0", name="ck_consumption_record_rate_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    owner_id = Column(String(36), nullable=False, index=True)
    lot_id = Column(String(36), ForeignKey("acquisition_lots.id"), nullable=False, index=True)
    quantity_consumed = Column(Numeric(18, 8), nullable=False)
    consumption_rate = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    consumed_at = Column(DateTime, nullable=False)
    remarks = Column(String, nullable=False, default="")
    batch_id = Column(
        String(36), ForeignKey("batch_consumption_actions.id"), nullable=True, index=True
    )
    deleted_at = Column(DateTime, nullable=True, index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    lot = relationship("AcquisitionLot", back_populates="consumptions")
    batch = relationship("BatchConsumptionAction", back_populates="records")
