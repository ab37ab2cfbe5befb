from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from backoffice.core.config import settings
from backoffice.models.entry import Entry, EntryStatus, EntryType
from backoffice.schemas.common import CamelModel, Money
from backoffice.utils.money import ZERO
from backoffice.utils.urgency import DisplayUrgency, classify


class EntryBase(CamelModel):
    contact_id: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1, max_length=500)
    issue_date: date
    due_date: date
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class EntryCreate(EntryBase):
    """Request body to create an entry. Status always starts as open."""
    type: EntryType
    currency: str = settings.CURRENCY

    @field_validator("currency")
    @classmethod
    def check_currency(cls, value: str) -> str:
        if value != settings.CURRENCY:
            raise ValueError(f"Only {settings.CURRENCY} is supported")
        return value


class EntryUpdate(CamelModel):
    """Partial update. type, currency and status are not editable."""
    contact_id: Optional[str] = Field(None, min_length=1)
    category_id: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    amount: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    tags: Optional[List[str]] = None
    notes: Optional[str] = None

    @field_validator(
        "contact_id", "category_id", "description", "issue_date", "due_date", "amount", "tags",
        mode="before",
    )
    @classmethod
    def reject_null(cls, value):
        # Omit a field to leave it unchanged; only notes can be cleared
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class EntryResponse(CamelModel):
    id: str
    type: EntryType
    contact_id: str
    category_id: str
    description: str
    issue_date: date
    due_date: date
    amount: Money
    currency: str
    status: EntryStatus
    tags: List[str]
    notes: Optional[str] = None
    paid_total: Money
    remaining: Money
    urgency: DisplayUrgency
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entry(cls, entry: Entry, today: date) -> "EntryResponse":
        return cls(
            id=str(entry.id),
            type=entry.type,
            contact_id=str(entry.contact_id),
            category_id=str(entry.category_id),
            description=entry.description,
            issue_date=entry.issue_date,
            due_date=entry.due_date,
            amount=entry.amount,
            currency=entry.currency,
            status=entry.status,
            tags=entry.tags,
            notes=entry.notes,
            paid_total=entry.paid_total,
            # Floored for display; EntryService.balance reports real breaches
            remaining=max(entry.amount - entry.paid_total, ZERO),
            urgency=classify(entry.status, entry.due_date, today),
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )


class EntryFilters(BaseModel):
    """List filters. "all" (or empty) disables the type and status filters."""
    type: Optional[str] = None
    status: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: Optional[str] = None
    page: int = Field(1, ge=1)
    limit: int = Field(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE)

    @field_validator("type")
    @classmethod
    def check_type(cls, value: Optional[str]) -> Optional[str]:
        if value in (None, "", "all"):
            return None
        return EntryType(value).value

    @field_validator("status")
    @classmethod
    def check_status(cls, value: Optional[str]) -> Optional[str]:
        if value in (None, "", "all"):
            return None
        return EntryStatus(value).value


class EntryListResponse(CamelModel):
    entries: List[EntryResponse]
    total: int
    page: int
    total_pages: int


class EntryBalanceResponse(CamelModel):
    """Reconciliation recomputed from payment history."""
    entry_id: str
    amount: Money
    paid_total: Money
    remaining: Money
    status: EntryStatus
    urgency: DisplayUrgency
    payment_count: int
