"""
EntryService - entry lifecycle.

The persisted status is only ever written together with the paid total /
amount it was reconciled from (see EntryRepository.apply_reconciliation),
so readers can trust it without replaying payment history.

Lifecycle policy:
- created as open with nothing paid
- canceled is one-way and keeps payment history; canceling twice is a no-op
- paid entries cannot be canceled, and their amount cannot change
- deleting is a soft delete, only allowed while nothing has been paid
"""

from typing import Any, Dict, List, Optional, Tuple

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from backoffice.core.exceptions import (
    ConcurrentUpdateError,
    ConsistencyError,
    InvalidAmountError,
    ReferenceInUseError,
    TerminalEntryError,
    UnknownReferenceError,
)
from backoffice.models.base import parse_object_id
from backoffice.models.entry import Entry, EntryStatus
from backoffice.models.payment import Payment
from backoffice.repositories.category_repo import CategoryRepository
from backoffice.repositories.contact_repo import ContactRepository
from backoffice.repositories.entry_repo import EntryRepository
from backoffice.repositories.payment_repo import PaymentRepository
from backoffice.schemas.entry import EntryCreate, EntryFilters, EntryUpdate
from backoffice.utils.reconciliation import (
    TERMINAL_STATUSES,
    Reconciliation,
    reconcile,
    reconcile_total,
)

logger = structlog.get_logger(__name__)


class EntryService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.entries = EntryRepository(db)
        self.payments = PaymentRepository(db)
        self.contacts = ContactRepository(db)
        self.categories = CategoryRepository(db)

    async def _check_references(self, contact_id: Optional[str], category_id: Optional[str]) -> None:
        if contact_id is not None and await self.contacts.get_contact(contact_id) is None:
            raise UnknownReferenceError(f"Contact {contact_id} not found")
        if category_id is not None and await self.categories.get_category(category_id) is None:
            raise UnknownReferenceError(f"Category {category_id} not found")

    async def create(self, entry_in: EntryCreate) -> Entry:
        await self._check_references(entry_in.contact_id, entry_in.category_id)

        data = entry_in.model_dump()
        data["contact_id"] = ObjectId(entry_in.contact_id)
        data["category_id"] = ObjectId(entry_in.category_id)
        entry = Entry(**data, status=EntryStatus.OPEN)

        await self.entries.insert_entry(entry)

        # Contact/category deletes recheck for entries after writing, and so
        # does this; whichever lands second sees the other
        try:
            await self._check_references(entry_in.contact_id, entry_in.category_id)
        except UnknownReferenceError:
            await self.entries.soft_delete_entry(entry)
            raise

        logger.info("entry_created", entry_id=str(entry.id), type=entry.type.value,
                    amount=str(entry.amount))
        return entry

    async def get(self, entry_id: str) -> Optional[Entry]:
        return await self.entries.get_entry(entry_id)

    async def list_entries(self, filters: EntryFilters) -> Tuple[List[Entry], int, int]:
        return await self.entries.list_entries(filters)

    async def update(self, entry_id: str, entry_in: EntryUpdate) -> Optional[Entry]:
        """
        Partial update. A changed amount re-reconciles the entry against
        what has already been paid.
        """
        entry = await self.entries.get_entry(entry_id)
        if entry is None:
            return None

        updates: Dict[str, Any] = entry_in.model_dump(exclude_unset=True)
        await self._check_references(updates.get("contact_id"), updates.get("category_id"))

        for key in ("contact_id", "category_id"):
            if key in updates:
                oid = parse_object_id(updates[key])
                if oid is None:
                    raise UnknownReferenceError(f"Invalid {key}: {updates[key]!r}")
                updates[key] = oid
        for key in ("issue_date", "due_date"):
            if updates.get(key) is not None:
                updates[key] = updates[key].isoformat()

        amount = updates.pop("amount", None)
        if amount is None or amount == entry.amount:
            if not updates:
                return entry
            return await self.entries.update_fields(entry, updates)

        if entry.status in TERMINAL_STATUSES:
            raise TerminalEntryError(
                f"Cannot change the amount of a {entry.status.value} entry",
                remaining=max(entry.amount - entry.paid_total, 0),
            )
        if amount < entry.paid_total:
            raise InvalidAmountError(
                f"Amount {amount} is below the {entry.paid_total} already paid",
                remaining=entry.amount - entry.paid_total,
            )

        outcome = reconcile_total(amount, entry.paid_total, entry.status)
        updated = await self.entries.apply_reconciliation(
            entry, outcome, amount=amount, extra_updates=updates
        )
        if updated is None:
            raise ConcurrentUpdateError(
                "Entry was modified concurrently; reload it and try again"
            )
        logger.info("entry_amount_changed", entry_id=entry_id, amount=str(amount),
                    status=outcome.status.value)
        return updated

    async def cancel(self, entry_id: str) -> Optional[Entry]:
        entry = await self.entries.get_entry(entry_id)
        if entry is None:
            return None
        if entry.status == EntryStatus.CANCELED:
            return entry
        if entry.status == EntryStatus.PAID:
            raise TerminalEntryError("Paid entries cannot be canceled")

        updated = await self.entries.cancel_entry(entry)
        if updated is None:
            raise ConcurrentUpdateError(
                "Entry was modified concurrently; reload it and try again"
            )
        logger.info("entry_canceled", entry_id=entry_id, paid_total=str(entry.paid_total))
        return updated

    async def delete(self, entry_id: str) -> bool:
        entry = await self.entries.get_entry(entry_id)
        if entry is None:
            return False
        if entry.paid_total > 0:
            raise ReferenceInUseError(
                "Entry has recorded payments; cancel it instead of deleting"
            )
        deleted = await self.entries.soft_delete_entry(entry)
        if not deleted:
            raise ConcurrentUpdateError(
                "Entry was modified concurrently; reload it and try again"
            )
        logger.info("entry_deleted", entry_id=entry_id)
        return True

    async def balance(self, entry_id: str) -> Optional[Tuple[Entry, Reconciliation, List[Payment]]]:
        """
        Recompute the reconciliation from payment history and check it
        against the cached paid total and status.
        """
        entry = await self.entries.get_entry(entry_id)
        if entry is None:
            return None

        payments = await self.payments.list_for_entry(entry.id)
        try:
            result = reconcile(entry.amount, payments, entry.status)
        except ConsistencyError:
            logger.error("entry_inconsistent", entry_id=entry_id, reason="overpaid")
            raise

        if result.paid_total != entry.paid_total or result.status != entry.status:
            logger.error(
                "entry_inconsistent",
                entry_id=entry_id,
                stored_paid_total=str(entry.paid_total),
                computed_paid_total=str(result.paid_total),
                stored_status=entry.status.value,
                computed_status=result.status.value,
            )
            raise ConsistencyError(
                "Stored paid total or status disagrees with payment history",
                remaining=result.remaining,
            )
        return entry, result, payments
