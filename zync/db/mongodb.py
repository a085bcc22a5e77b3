from typing import Any, Dict, Optional
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING
from bson import ObjectId
from bson.errors import InvalidId
from zync.core.config import settings
import logging

logger = logging.getLogger(__name__)

class Database:
    client: AsyncIOMotorClient = None
    db = None

db = Database()

async def connect_to_mongo():
    """Connect to MongoDB."""
    try:
        logger.info("Connecting to MongoDB...")
        db.client = AsyncIOMotorClient(settings.MONGO_URI)
        db.db = db.client[settings.DB_NAME]
        logger.info("Connected to MongoDB.")

        # Create indexes for collections
        await create_indexes()

    except Exception as e:
        logger.error(f"Could not connect to MongoDB: {e}")
        raise e

async def close_mongo_connection():
    """Close MongoDB connection."""
    if db.client:
        logger.info("Closing MongoDB connection...")
        db.client.close()
        logger.info("MongoDB connection closed.")

async def create_indexes():
    """Create indexes for collections."""
    # Users collection indexes
    await db.db.users.create_index("email", unique=True)

    # One public booking page per user, slugs unique across all users
    await db.db.freelancer_profiles.create_index("user_id", unique=True)
    await db.db.freelancer_profiles.create_index("booking_url_slug", unique=True)

    # Time slots: generation relies on (user_id, date, start_time) being unique
    await db.db.time_slots.create_index(
        [("user_id", ASCENDING), ("date", ASCENDING), ("start_time", ASCENDING)],
        unique=True
    )
    await db.db.recurring_availability.create_index([("user_id", ASCENDING), ("day_of_week", ASCENDING)])

    # Appointments collection indexes
    await db.db.appointments.create_index("booking_reference", unique=True)
    await db.db.appointments.create_index("time_slot_id")
    await db.db.appointments.create_index([("freelancer_id", ASCENDING), ("appointment_date", ASCENDING)])

    # Schedules and their responses
    await db.db.schedules.create_index([("owner.userId", ASCENDING), ("createdAt", DESCENDING)])
    await db.db.availability_responses.create_index(
        [("scheduleId", ASCENDING), ("name", ASCENDING)],
        unique=True
    )

    logger.info("MongoDB indexes created successfully.")

def to_object_id(value: Any) -> Optional[ObjectId]:
    """
    Parse a path/body id into an ObjectId. Returns None for malformed ids so
    callers can treat them the same as a missing record.
    """
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None

def serialize_document(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Replace Mongo's `_id` with a string `id`."""
    if document is None:
        return None
    document = dict(document)
    document["id"] = str(document.pop("_id"))
    return document
