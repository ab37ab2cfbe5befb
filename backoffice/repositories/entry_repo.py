"""
EntryRepository - persistence for payable/receivable entries.

Every write that changes paid_total_cents, amount_cents or status is a
compare-and-swap: the filter pins the paid total and the status the caller
reconciled against, so a concurrent payment makes the write match nothing
instead of overwriting newer state. Callers treat a None result as
"state moved, re-read and re-evaluate".
"""

import math
import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from backoffice.models.base import parse_object_id
from backoffice.models.entry import OUTSTANDING_STATUSES, Entry, EntryStatus
from backoffice.schemas.entry import EntryFilters
from backoffice.utils.money import to_cents
from backoffice.utils.reconciliation import Reconciliation


def build_entry_query(filters: EntryFilters) -> Dict[str, Any]:
    """Translate list filters into a MongoDB query."""
    query: Dict[str, Any] = {"is_deleted": False}

    if filters.type:
        query["type"] = filters.type
    if filters.status:
        query["status"] = filters.status

    # Dates are stored as ISO strings, so string comparison is date order
    due_range = {}
    if filters.date_from:
        due_range["$gte"] = filters.date_from.isoformat()
    if filters.date_to:
        due_range["$lte"] = filters.date_to.isoformat()
    if due_range:
        query["due_date"] = due_range

    if filters.search and filters.search.strip():
        query["description"] = {
            "$regex": re.escape(filters.search.strip()),
            "$options": "i"
        }

    return query


class EntryRepository:
    """Repository for entries."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["entries"]

    async def insert_entry(self, entry: Entry) -> Entry:
        await self.collection.insert_one(entry.to_document())
        return entry

    async def get_entry(self, entry_id: str, session=None) -> Optional[Entry]:
        """Get a live entry by id, or None."""
        oid = parse_object_id(entry_id)
        if oid is None:
            return None
        doc = await self.collection.find_one(
            {"_id": oid, "is_deleted": False}, session=session
        )
        if doc:
            return Entry.from_document(doc)
        return None

    async def list_entries(self, filters: EntryFilters) -> Tuple[List[Entry], int, int]:
        """
        Paginated listing sorted by due date.

        Returns (entries, total, total_pages).
        """
        query = build_entry_query(filters)
        total = await self.collection.count_documents(query)

        cursor = (
            self.collection.find(query)
            .sort([("due_date", 1), ("created_at", 1)])
            .skip((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        )
        docs = await cursor.to_list(None)
        total_pages = math.ceil(total / filters.limit) if total else 0
        return [Entry.from_document(doc) for doc in docs], total, total_pages

    async def list_outstanding(self) -> List[Entry]:
        """All live entries that are open or partially paid."""
        cursor = self.collection.find({
            "is_deleted": False,
            "status": {"$in": [s.value for s in OUTSTANDING_STATUSES]}
        })
        docs = await cursor.to_list(None)
        return [Entry.from_document(doc) for doc in docs]

    async def update_fields(self, entry: Entry, updates: Dict[str, Any]) -> Optional[Entry]:
        """Set plain descriptive fields. Does not touch money or status."""
        updates = dict(updates)
        updates["updated_at"] = datetime.now(timezone.utc)
        result = await self.collection.find_one_and_update(
            {"_id": entry.id, "is_deleted": False},
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )
        if result:
            return Entry.from_document(result)
        return None

    async def apply_reconciliation(
        self,
        entry: Entry,
        outcome: Reconciliation,
        amount: Optional[Decimal] = None,
        extra_updates: Optional[Dict[str, Any]] = None,
        session=None,
    ) -> Optional[Entry]:
        """
        Write a new paid total / status (and optionally amount) if the entry
        still holds the paid total and status it was reconciled from.
        """
        updates: Dict[str, Any] = dict(extra_updates or {})
        updates.update({
            "paid_total_cents": to_cents(outcome.paid_total),
            "status": outcome.status.value,
            "updated_at": datetime.now(timezone.utc),
        })
        if amount is not None:
            updates["amount_cents"] = to_cents(amount)

        result = await self.collection.find_one_and_update(
            {
                "_id": entry.id,
                "is_deleted": False,
                "paid_total_cents": to_cents(entry.paid_total),
                "amount_cents": to_cents(entry.amount),
                "status": entry.status.value,
            },
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
            session=session
        )
        if result:
            return Entry.from_document(result)
        return None

    async def cancel_entry(self, entry: Entry) -> Optional[Entry]:
        """Move an outstanding entry to canceled. Payment history is kept."""
        now = datetime.now(timezone.utc)
        result = await self.collection.find_one_and_update(
            {
                "_id": entry.id,
                "is_deleted": False,
                "paid_total_cents": to_cents(entry.paid_total),
                "status": {"$in": [s.value for s in OUTSTANDING_STATUSES]},
            },
            {"$set": {
                "status": EntryStatus.CANCELED.value,
                "canceled_at": now,
                "updated_at": now
            }},
            return_document=ReturnDocument.AFTER
        )
        if result:
            return Entry.from_document(result)
        return None

    async def soft_delete_entry(self, entry: Entry) -> bool:
        """Soft delete an entry that has no payments."""
        result = await self.collection.update_one(
            {"_id": entry.id, "is_deleted": False, "paid_total_cents": 0},
            {"$set": {
                "is_deleted": True,
                "updated_at": datetime.now(timezone.utc)
            }}
        )
        return result.modified_count > 0
