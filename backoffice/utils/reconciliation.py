"""
Entry reconciliation.

Derives an entry's paid total, remaining balance and status from its amount
and its payments. Everything here is pure: the write path in
PaymentService calls accept_payment() against freshly read state and then
commits with a compare-and-swap, so nothing in this module touches storage.

Rules:
- paid_total = sum of payment amounts
- remaining = amount - paid_total; negative means a past overpayment and is
  reported as ConsistencyError, never clamped
- canceled overrides everything else; then paid (remaining == 0),
  partial (paid_total > 0), open
"""

from decimal import Decimal
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict

from backoffice.core.exceptions import (
    ConsistencyError,
    InvalidAmountError,
    OverpaymentError,
    TerminalEntryError,
)
from backoffice.models.entry import EntryStatus
from backoffice.models.payment import Payment
from backoffice.utils.money import ZERO

TERMINAL_STATUSES = (EntryStatus.PAID, EntryStatus.CANCELED)


class Reconciliation(BaseModel):
    """Result of reconciling an entry amount against its payments."""

    model_config = ConfigDict(frozen=True)

    paid_total: Decimal
    remaining: Decimal
    status: EntryStatus


def order_payments(payments: Iterable[Payment]) -> List[Payment]:
    """Chronological by paid_at. The sort is stable, so ties keep insertion order."""
    return sorted(payments, key=lambda p: p.paid_at)


def reconcile_total(
    entry_amount: Decimal,
    paid_total: Decimal,
    current_status: Optional[EntryStatus] = None,
) -> Reconciliation:
    """Reconcile using an already summed paid total."""
    if entry_amount <= 0:
        raise ConsistencyError(f"Entry amount must be positive, found {entry_amount}")
    if paid_total < 0:
        raise ConsistencyError(f"Paid total cannot be negative, found {paid_total}")

    remaining = entry_amount - paid_total
    if remaining < 0:
        raise ConsistencyError(
            f"Paid total {paid_total} exceeds entry amount {entry_amount}",
            remaining=ZERO,
        )

    if current_status == EntryStatus.CANCELED:
        status = EntryStatus.CANCELED
    elif remaining == 0:
        status = EntryStatus.PAID
    elif paid_total > 0:
        status = EntryStatus.PARTIAL
    else:
        status = EntryStatus.OPEN

    return Reconciliation(paid_total=paid_total, remaining=remaining, status=status)


def reconcile(
    entry_amount: Decimal,
    payments: Iterable[Payment],
    current_status: Optional[EntryStatus] = None,
) -> Reconciliation:
    """
    Reconcile an entry amount against its recorded payments.

    current_status only matters when it is CANCELED; any other stored status
    is recomputed from the payments.
    """
    total = ZERO
    for payment in payments:
        if payment.amount <= 0:
            raise ConsistencyError(
                f"Stored payment {payment.id} has non-positive amount {payment.amount}"
            )
        total += payment.amount
    return reconcile_total(entry_amount, total, current_status)


def accept_payment(
    entry_amount: Decimal,
    paid_total: Decimal,
    candidate_amount: Decimal,
    current_status: Optional[EntryStatus] = None,
) -> Reconciliation:
    """
    Validate a payment against the committed state and return the state after it.

    paid_total must come from authoritative storage, not from a client-side
    snapshot. Raises TerminalEntryError, InvalidAmountError or
    OverpaymentError; nothing is written here.
    """
    current = reconcile_total(entry_amount, paid_total, current_status)

    if current.status in TERMINAL_STATUSES:
        raise TerminalEntryError(
            f"Entry is {current.status.value} and accepts no further payments",
            remaining=current.remaining,
        )

    if candidate_amount <= 0:
        raise InvalidAmountError(
            f"Payment amount must be positive, got {candidate_amount}",
            remaining=current.remaining,
        )

    if candidate_amount > current.remaining:
        raise OverpaymentError(
            f"Payment of {candidate_amount} exceeds remaining balance of {current.remaining}",
            remaining=current.remaining,
        )

    return reconcile_total(entry_amount, paid_total + candidate_amount, current_status)
