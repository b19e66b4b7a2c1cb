"""SQLAlchemy ORM models."""

from .acquisition_lot import AcquisitionLot
from .batch_consumption_action import BatchConsumptionAction
from .consumption_record import ConsumptionRecord
from .utils import generate_batch_code, generate_uuid

__all__ = ["AcquisitionLot", "BatchConsumptionAction", "ConsumptionRecord", "generate_batch_code", "generate_uuid"]
