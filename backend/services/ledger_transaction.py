"""Unit-of-work wrapper for ledger mutations.

Runs a read-modify-write cycle under the database write lock, commits it
as one transaction, and retries lock contention with exponential backoff.
"""

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from config import settings
from database import acquire_write_lock
from services.exceptions import ConcurrencyConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL SQLSTATEs: lock_not_available, deadlock_detected, serialization_failure
_CONTENTION_SQLSTATES = {"55P03", "40P01", "40001"}
_SQLITE_CONTENTION_MESSAGES = (
    "database is locked",
    "database table is locked",
    "database is busy",
)


def is_lock_contention(exc: DBAPIError) -> bool:
    """Return True if a database error was caused by lock contention."""
    orig = exc.orig
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in _CONTENTION_SQLSTATES:
        return True
    message = str(orig).lower()
    return any(m in message for m in _SQLITE_CONTENTION_MESSAGES)


def run_in_transaction(
    db: Session,
    work: Callable[[], T],
    *,
    attempts: int | None = None,
    base_delay: float | None = None,
    label: str = "ledger transaction",
) -> T:
    """Run ``work`` as one locked, committed transaction.

    Any exception rolls the whole transaction back before propagating, so
    no partial writes survive. Lock contention is retried up to
    ``attempts`` times, then raised as ``ConcurrencyConflictError``.

    Args:
        db: Database session
        work: Callable performing the reads and writes; its return value is
            returned after a successful commit
        attempts: Maximum attempts (defaults to settings.LEDGER_LOCK_ATTEMPTS)
        base_delay: First backoff delay in seconds, doubled per attempt
        label: Operation name used in log messages

    Returns:
        Whatever ``work`` returned.
    """
    attempts = attempts or settings.LEDGER_LOCK_ATTEMPTS
    if base_delay is None:
        base_delay = settings.LEDGER_LOCK_BASE_DELAY_SECONDS

    for attempt in range(attempts):
        try:
            acquire_write_lock(db)
            result = work()
            db.commit()
            return result
        except DBAPIError as exc:
            db.rollback()
            if not is_lock_contention(exc):
                raise
            if attempt == attempts - 1:
                raise ConcurrencyConflictError(
                    f"{label} could not acquire its locks after {attempts} attempts",
                    attempts=attempts,
                ) from exc
            delay = base_delay * (2 ** attempt)
            logger.warning(
                "%s hit lock contention (attempt %d/%d), retrying in %.2fs: %s",
                label, attempt + 1, attempts, delay, exc.orig,
            )
            time.sleep(delay)
        except Exception:
            db.rollback()
            raise

    # Unreachable for attempts >= 1
    raise ConcurrencyConflictError(f"{label} made no attempts", attempts=attempts)
