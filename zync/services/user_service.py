from typing import Dict, Any, Optional
from pymongo.errors import DuplicateKeyError
from zync.db.mongodb import db, to_object_id, serialize_document
from zync.schemas.user import UserCreate, UserUpdate
from zync.core.auth import get_password_hash, verify_password, create_access_token
from zync.core.exceptions import ConflictError, NotFoundError, UnauthorizedError, store_errors
from zync.utils.dates import utcnow
import logging

logger = logging.getLogger(__name__)

def to_user_response(user: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shape a stored user for the API: string id, no password hash, and a
    display name that falls back to the email's local part.
    """
    user = serialize_document(user)
    user.pop("password", None)
    user["name"] = user.get("name") or user["email"].split("@")[0]
    return user

async def create_user(user_in: UserCreate) -> Dict[str, Any]:
    """
    Create a new user in the database
    """
    email = user_in.email.lower()
    if await get_user_by_email(email):
        raise ConflictError("User already registered")

    now = utcnow()
    user_data = {
        "email": email,
        "password": get_password_hash(user_in.password),
        "name": user_in.name or email.split("@")[0],
        "bio": None,
        "avatar_url": None,
        "created_at": now,
        "updated_at": now,
    }

    with store_errors("Failed to register user"):
        try:
            result = await db.db.users.insert_one(user_data)
        except DuplicateKeyError:
            raise ConflictError("User already registered")

    created_user = await db.db.users.find_one({"_id": result.inserted_id})
    logger.info(f"Registered user {result.inserted_id}")
    return created_user

async def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    """
    Get a user by email
    """
    return await db.db.users.find_one({"email": email.lower()})

async def get_user_by_id(user_id: str) -> Optional[Dict[str, Any]]:
    """
    Get a user by ID
    """
    user_oid = to_object_id(user_id)
    if user_oid is None:
        return None
    return await db.db.users.find_one({"_id": user_oid})

async def authenticate(email: str, password: str) -> Dict[str, Any]:
    user = await get_user_by_email(email)
    if not user or not verify_password(password, user.get("password", "")):
        raise UnauthorizedError("Invalid credentials")
    return user

def issue_token(user: Dict[str, Any]) -> str:
    return create_access_token(data={"sub": str(user["_id"]), "email": user["email"]})

async def update_user(user_id: str, user_update: UserUpdate) -> Dict[str, Any]:
    """
    Update a user's display metadata; only supplied fields change.
    """
    user = await get_user_by_id(user_id)
    if not user:
        raise NotFoundError("User not found")

    update_data = user_update.model_dump(exclude_unset=True)

    if update_data:
        update_data["updated_at"] = utcnow()
        with store_errors("Failed to update profile"):
            await db.db.users.update_one({"_id": user["_id"]}, {"$set": update_data})

    return await get_user_by_id(user_id)

async def set_avatar_url(user_id: str, avatar_url: str) -> Dict[str, Any]:
    user_oid = to_object_id(user_id)
    with store_errors("Failed to update user avatar"):
        result = await db.db.users.update_one(
            {"_id": user_oid},
            {"$set": {"avatar_url": avatar_url, "updated_at": utcnow()}}
        )
    if result.matched_count == 0:
        raise NotFoundError("User not found")
    return await get_user_by_id(user_id)
