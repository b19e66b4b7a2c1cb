"""Typed exception hierarchy for ledger errors.

Lets the API layer tell a missing record from bad input, a cross-owner
reference, an unsatisfiable allocation, and exhausted lock retries.
"""

from decimal import Decimal


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    pass


class NotFoundError(LedgerError):
    """Referenced entity is missing, soft-deleted, or owned by someone else."""

    def __init__(self, message: str, entity_id: str | None = None):
        self.entity_id = entity_id
        super().__init__(message)


class LedgerValidationError(LedgerError, ValueError):
    """Malformed quantity, non-positive amount, or unknown item type."""

    pass


class OwnershipViolationError(LedgerError):
    """A record references an entity that belongs to a different owner."""

    pass


class InsufficientBalanceError(LedgerError):
    """Candidate lots cannot cover the requested quantity.

    Carries both figures so callers can show how much is actually available.
    """

    def __init__(self, available: Decimal, requested: Decimal):
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient balance: requested {requested}, available {available}"
        )


class ConcurrencyConflictError(LedgerError):
    """Lock contention persisted after all retry attempts."""

    def __init__(self, message: str, attempts: int):
        self.attempts = attempts
        super().__init__(message)
