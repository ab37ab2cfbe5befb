from enum import Enum
from typing import Optional

from backoffice.models.base import MongoModel


class CategoryType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class Category(MongoModel):
    name: str
    description: Optional[str] = None
    type: CategoryType

    def to_document(self) -> dict:
        doc = self.model_dump(by_alias=True)
        doc["type"] = self.type.value
        return doc
