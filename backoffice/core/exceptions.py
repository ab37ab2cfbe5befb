"""Ledger exceptions.

Every rejection carries a machine-readable ``kind`` and, when it is known,
the entry's current remaining balance so the caller can show the bound that
was violated.
"""

from decimal import Decimal
from typing import Optional


class LedgerError(Exception):
    """Base class for rejected ledger operations."""

    kind = "ledger_error"

    def __init__(self, message: str, remaining: Optional[Decimal] = None):
        super().__init__(message)
        self.message = message
        self.remaining = remaining

    def to_detail(self) -> dict:
        return {
            "error": self.kind,
            "message": self.message,
            "remaining": float(self.remaining) if self.remaining is not None else None,
        }


class InvalidAmountError(LedgerError):
    """Amount is zero, negative, or otherwise unusable."""

    kind = "invalid_amount"


class OverpaymentError(LedgerError):
    """Payment amount exceeds the entry's remaining balance."""

    kind = "overpayment"


class TerminalEntryError(LedgerError):
    """Entry is paid or canceled and accepts no further changes."""

    kind = "terminal_entry"


class ConsistencyError(LedgerError):
    """Stored data violates a ledger invariant. Never expected in normal operation."""

    kind = "consistency"


class ReferenceInUseError(LedgerError):
    """Record cannot be deleted while other records depend on it."""

    kind = "reference_in_use"


class UnknownReferenceError(LedgerError):
    """Entry points at a contact or category that does not exist."""

    kind = "unknown_reference"


class ConcurrentUpdateError(LedgerError):
    """Entry kept changing underneath the write; caller should reload and resubmit."""

    kind = "concurrent_update"
