from datetime import date
from typing import List

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from backoffice.models.payment import Payment


class PaymentRepository:
    """Repository for payments. Payments are append-only."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["payments"]

    async def insert_payment(self, payment: Payment, session=None) -> Payment:
        await self.collection.insert_one(payment.to_document(), session=session)
        return payment

    async def list_for_entry(self, entry_id: ObjectId) -> List[Payment]:
        """Payment history, oldest first; same-day payments in creation order."""
        cursor = self.collection.find(
            {"entry_id": entry_id, "is_deleted": False}
        ).sort([("paid_at", 1), ("created_at", 1), ("_id", 1)])
        docs = await cursor.to_list(None)
        return [Payment.from_document(doc) for doc in docs]

    async def list_paid_between(self, start: date, end: date) -> List[Payment]:
        """Payments with start <= paid_at <= end."""
        cursor = self.collection.find({
            "is_deleted": False,
            "paid_at": {"$gte": start.isoformat(), "$lte": end.isoformat()}
        }).sort("paid_at", 1)
        docs = await cursor.to_list(None)
        return [Payment.from_document(doc) for doc in docs]
