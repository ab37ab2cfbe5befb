from enum import Enum
from typing import Optional

from backoffice.models.base import MongoModel


class ContactType(str, Enum):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"


class Contact(MongoModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    document: Optional[str] = None  # CPF / CNPJ
    type: ContactType

    def to_document(self) -> dict:
        doc = self.model_dump(by_alias=True)
        doc["type"] = self.type.value
        return doc
