from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from datetime import datetime, timezone

from backoffice.core.exceptions import ReferenceInUseError
from backoffice.models.base import parse_object_id
from backoffice.models.category import Category
from backoffice.schemas.category import CategoryCreate, CategoryUpdate


class CategoryRepository:
    """Category database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["categories"]

    async def create_category(self, category_data: CategoryCreate) -> Category:
        """Create a new category."""
        category = Category(**category_data.model_dump(mode="json"))
        await self.collection.insert_one(category.to_document())
        return category

    async def list_categories(self) -> list[Category]:
        """List live categories by name."""
        cursor = self.collection.find({"is_deleted": False}).sort("name", 1)
        docs = await cursor.to_list(None)
        return [Category.from_document(doc) for doc in docs]

    async def get_category(self, category_id: str) -> Category | None:
        """Get a category by id."""
        oid = parse_object_id(category_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid, "is_deleted": False})
        if doc:
            return Category.from_document(doc)
        return None

    async def update_category(self, category_id: str, update_data: CategoryUpdate) -> Category | None:
        """Update a category."""
        oid = parse_object_id(category_id)
        if oid is None:
            return None

        updates = update_data.model_dump(mode="json", exclude_unset=True)
        if not updates:
            return await self.get_category(category_id)

        updates["updated_at"] = datetime.now(timezone.utc)
        result = await self.collection.find_one_and_update(
            {"_id": oid, "is_deleted": False},
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )
        if result:
            return Category.from_document(result)
        return None

    async def soft_delete_category(self, category_id: str) -> bool:
        """Soft delete a category that no live entry uses."""
        oid = parse_object_id(category_id)
        if oid is None:
            return False

        in_use = await self.db["entries"].count_documents(
            {"category_id": oid, "is_deleted": False}
        )
        if in_use:
            raise ReferenceInUseError(
                f"Category is referenced by {in_use} entr{'y' if in_use == 1 else 'ies'}"
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

        # An entry created between the count and the delete keeps the category alive
        in_use = await self.db["entries"].count_documents(
            {"category_id": oid, "is_deleted": False}
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
                f"Category is referenced by {in_use} entr{'y' if in_use == 1 else 'ies'}"
            )
        return True
