from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from backoffice.models.contact import Contact, ContactType
from backoffice.schemas.common import CamelModel


class ContactBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    document: Optional[str] = Field(None, max_length=50)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, value):
        # Forms submit "" for an untouched email field
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ContactCreate(ContactBase):
    type: ContactType


class ContactUpdate(ContactBase):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[ContactType] = None

    @field_validator("name", "type", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class ContactResponse(CamelModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    document: Optional[str] = None
    type: ContactType
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_contact(cls, contact: Contact) -> "ContactResponse":
        return cls(
            id=str(contact.id),
            name=contact.name,
            email=contact.email,
            phone=contact.phone,
            document=contact.document,
            type=contact.type,
            created_at=contact.created_at,
            updated_at=contact.updated_at,
        )
