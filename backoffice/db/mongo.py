import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from backoffice.core.config import settings

logger = structlog.get_logger(__name__)


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    # Create indexes
    await create_indexes()
    logger.info("mongo_connected", database=settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
        logger.info("mongo_disconnected")

async def create_indexes():
    """Create database indexes."""
    # Entry listing and filters
    await mongodb.db["entries"].create_index([("is_deleted", 1), ("due_date", 1)])
    await mongodb.db["entries"].create_index([("type", 1), ("status", 1)])
    await mongodb.db["entries"].create_index("contact_id")
    await mongodb.db["entries"].create_index("category_id")

    # Payment history and cash flow
    await mongodb.db["payments"].create_index([("entry_id", 1), ("paid_at", 1), ("created_at", 1)])
    await mongodb.db["payments"].create_index("paid_at")

    await mongodb.db["contacts"].create_index("name")
    await mongodb.db["categories"].create_index("name")

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
