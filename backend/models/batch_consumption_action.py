"""BatchConsumptionAction model - groups the records of one batch allocation."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, DateTime, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid


class BatchConsumptionAction(Base):
    """A single sale request satisfied by drawing from one or more lots."""

    __tablename__ = "batch_consumption_actions"
    __table_args__ = (
        UniqueConstraint("batch_code", name="uix_batch_consumption_action_code"),
        CheckConstraint("requested_quantity > 0", name="ck_batch_action_requested_positive"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    owner_id = Column(String(36), nullable=False, index=True)
    batch_code = Column(String(32), nullable=False)
    requested_quantity = Column(Numeric(18, 8), nullable=False)
    rate = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    executed_at = Column(DateTime, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    records = relationship("ConsumptionRecord", back_populates="batch")
