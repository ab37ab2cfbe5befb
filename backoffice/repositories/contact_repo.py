from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from datetime import datetime, timezone

from backoffice.core.exceptions import ReferenceInUseError
from backoffice.models.base import parse_object_id
from backoffice.models.contact import Contact
from backoffice.schemas.contact import ContactCreate, ContactUpdate


class ContactRepository:
    """Contact database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["contacts"]

    async def create_contact(self, contact_data: ContactCreate) -> Contact:
        """Create a new contact."""
        contact = Contact(**contact_data.model_dump(mode="json"))
        await self.collection.insert_one(contact.to_document())
        return contact

    async def list_contacts(self) -> list[Contact]:
        """List live contacts by name."""
        cursor = self.collection.find({"is_deleted": False}).sort("name", 1)
        docs = await cursor.to_list(None)
        return [Contact.from_document(doc) for doc in docs]

    async def get_contact(self, contact_id: str) -> Contact | None:
        """Get a contact by id."""
        oid = parse_object_id(contact_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid, "is_deleted": False})
        if doc:
            return Contact.from_document(doc)
        return None

    async def update_contact(self, contact_id: str, update_data: ContactUpdate) -> Contact | None:
        """Update a contact."""
        oid = parse_object_id(contact_id)
        if oid is None:
            return None

        updates = update_data.model_dump(mode="json", exclude_unset=True)
        if not updates:
            return await self.get_contact(contact_id)

        updates["updated_at"] = datetime.now(timezone.utc)
        result = await self.collection.find_one_and_update(
            {"_id": oid, "is_deleted": False},
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )
        if result:
            return Contact.from_document(result)
        return None

    async def soft_delete_contact(self, contact_id: str) -> bool:
        """
        Soft delete a contact.

        Raises ReferenceInUseError while any live entry still points at it.
        """
        oid = parse_object_id(contact_id)
        if oid is None:
            return False

        in_use = await self.db["entries"].count_documents(
            {"contact_id": oid, "is_deleted": False}
        )
        if in_use:
            raise ReferenceInUseError(
                f"Contact is referenced by {in_use} entr{'y' if in_use == 1 else 'ies'}"
            )

        result = await self.collection.update_one(
            {"_id": oid, "is_deleted": False},
            {"$set": {
                "is_deleted": True,
                "updated_at": datetime.now(timezone.utc)
            }}
        )
        if result.modified_count == 0:
            return False

        # An entry created between the count and the delete keeps the contact alive
        in_use = await self.db["entries"].count_documents(
            {"contact_id": oid, "is_deleted": False}
        )
        if in_use:
            await self.collection.update_one(
                {"_id": oid},
                {"$set": {
                    "is_deleted": False,
                    "updated_at": datetime.now(timezone.utc)
                }}
            )
            raise ReferenceInUseError(
                f"Contact is referenced by {in_use} entr{'y' if in_use == 1 else 'ies'}"
            )
        return True
