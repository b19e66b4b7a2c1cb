"""Shared utilities for ORM models."""

import secrets
import uuid
from datetime import datetime, timezone


def generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid.uuid4())


def generate_batch_code(now: datetime | None = None) -> str:
    """Generate a human-referenceable batch code.

    Format: ``B{YYMMDD}-{8 hex chars}``, e.g. ``B261019-3F9A01C2``.
    """
    now = now or datetime.now(timezone.utc)
    return f"B{now:%y%m%d}-{secrets.token_hex(4).upper()}"
