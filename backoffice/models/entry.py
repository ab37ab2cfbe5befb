"""
Entry model - a payable or receivable obligation.

Design principles:
- Amounts are decimals in memory and integer cents in MongoDB
- Dates are calendar dates, stored as ISO strings so range queries sort correctly
- status is a cached projection of reconcile(amount, payments),
  except for the canceled override
- paid_total_cents doubles as the compare-and-swap token for payment writes
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field

from backoffice.models.base import MongoModel, PyObjectId
from backoffice.utils.money import ZERO, from_cents, to_cents


class EntryType(str, Enum):
    PAYABLE = "payable"
    RECEIVABLE = "receivable"


class EntryStatus(str, Enum):
    OPEN = "open"
    PARTIAL = "partial"
    PAID = "paid"
    CANCELED = "canceled"


# Statuses that still accept payments and count towards outstanding totals
OUTSTANDING_STATUSES = (EntryStatus.OPEN, EntryStatus.PARTIAL)


class Entry(MongoModel):
    """
    Invariants:
    - amount > 0
    - 0 <= paid_total <= amount
    - status == reconcile(amount, paid_total).status unless canceled
    """

    type: EntryType
    contact_id: PyObjectId
    category_id: PyObjectId
    description: str
    issue_date: date
    due_date: date

    amount: Decimal
    paid_total: Decimal = ZERO
    currency: str = "BRL"
    status: EntryStatus = EntryStatus.OPEN

    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    canceled_at: Optional[datetime] = None

    def to_document(self) -> dict:
        doc = self.model_dump(
            by_alias=True,
            exclude={"amount", "paid_total", "issue_date", "due_date"},
        )
        doc["type"] = self.type.value
        doc["status"] = self.status.value
        doc["amount_cents"] = to_cents(self.amount)
        doc["paid_total_cents"] = to_cents(self.paid_total)
        doc["issue_date"] = self.issue_date.isoformat()
        doc["due_date"] = self.due_date.isoformat()
        return doc

    @classmethod
    def from_document(cls, doc: dict) -> "Entry":
        data = dict(doc)
        data["amount"] = from_cents(data.pop("amount_cents"))
        data["paid_total"] = from_cents(data.pop("paid_total_cents", 0))
        return cls(**data)
