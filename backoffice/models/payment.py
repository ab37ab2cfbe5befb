from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from backoffice.models.base import MongoModel, PyObjectId
from backoffice.models.entry import EntryType
from backoffice.utils.money import from_cents, to_cents


class PaymentMethod(str, Enum):
    PIX = "pix"
    BOLETO = "boleto"
    CARTAO = "cartao"
    TRANSF = "transf"


class Payment(MongoModel):
    """A settlement recorded against an entry. Immutable once written."""

    entry_id: PyObjectId
    # Copied from the entry so cash flow can be built from payments alone
    entry_type: EntryType
    amount: Decimal
    paid_at: date
    method: PaymentMethod
    note: Optional[str] = None

    def to_document(self) -> dict:
        doc = self.model_dump(by_alias=True, exclude={"amount", "paid_at"})
        doc["entry_type"] = self.entry_type.value
        doc["method"] = self.method.value
        doc["amount_cents"] = to_cents(self.amount)
        doc["paid_at"] = self.paid_at.isoformat()
        return doc

    @classmethod
    def from_document(cls, doc: dict) -> "Payment":
        data = dict(doc)
        data["amount"] = from_cents(data.pop("amount_cents"))
        return cls(**data)
