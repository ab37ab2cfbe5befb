from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from backoffice.models.category import Category, CategoryType
from backoffice.schemas.common import CamelModel


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    type: CategoryType


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    type: Optional[CategoryType] = None

    @field_validator("name", "type", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class CategoryResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    type: CategoryType
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_category(cls, category: Category) -> "CategoryResponse":
        return cls(
            id=str(category.id),
            name=category.name,
            description=category.description,
            type=category.type,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )
