"""API route handlers."""
from . import acquisitions, batches, consumptions

__all__ = ["acquisitions", "batches", "consumptions"]
