from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from backoffice.models.payment import Payment, PaymentMethod
from backoffice.schemas.common import CamelModel, Money
from backoffice.schemas.entry import EntryResponse


class PaymentCreate(CamelModel):
    """
    Request body to register a payment.

    Positivity is checked by the reconciler, not here, so the rejection can
    report the entry's remaining balance.
    """
    amount: Decimal = Field(..., decimal_places=2)
    paid_at: date
    method: PaymentMethod
    note: Optional[str] = Field(None, max_length=500)


class PaymentResponse(CamelModel):
    id: str
    entry_id: str
    amount: Money
    paid_at: date
    method: PaymentMethod
    note: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentResponse":
        return cls(
            id=str(payment.id),
            entry_id=str(payment.entry_id),
            amount=payment.amount,
            paid_at=payment.paid_at,
            method=payment.method,
            note=payment.note,
            created_at=payment.created_at,
        )


class PaymentRegisteredResponse(CamelModel):
    """The stored payment together with the entry as it stands after it."""
    payment: PaymentResponse
    entry: EntryResponse
