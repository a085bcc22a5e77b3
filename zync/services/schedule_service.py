from typing import Dict, Any, List, Optional
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from zync.core.exceptions import BadRequestError, ForbiddenError, NotFoundError, store_errors
from zync.db.mongodb import db, to_object_id, serialize_document
from zync.schemas.schedule import ScheduleCreate, ScheduleUpdate, AvailabilitySubmit
from zync.services.user_service import get_user_by_id
from zync.utils.dates import utcnow
import logging

logger = logging.getLogger(__name__)

def owner_user_id(schedule: Dict[str, Any]) -> Optional[str]:
    owner = schedule.get("owner") or {}
    return owner.get("userId") if owner.get("kind") == "user" else None

def to_schedule_response(schedule: Dict[str, Any]) -> Dict[str, Any]:
    """
    Serialize a stored schedule, flattening the owner variant into the
    `userId` / `creatorName` / `creatorEmail` wire fields.
    """
    schedule = serialize_document(schedule)
    owner = schedule["owner"]
    if owner["kind"] == "user":
        schedule["userId"] = owner["userId"]
    else:
        schedule["creatorName"] = owner["name"]
        schedule["creatorEmail"] = owner.get("email")
    return schedule

async def create_schedule(schedule_in: ScheduleCreate, user_id: Optional[str] = None) -> Dict[str, Any]:
    if user_id:
        owner = {"kind": "user", "userId": user_id}
    elif schedule_in.creatorName:
        owner = {"kind": "guest", "name": schedule_in.creatorName, "email": schedule_in.creatorEmail}
    else:
        raise BadRequestError("Either an authenticated user or a guest creator name is required")

    now = utcnow()
    schedule_data = schedule_in.model_dump(exclude={"creatorName", "creatorEmail"})
    schedule_data.update({"owner": owner, "createdAt": now, "updatedAt": now})

    with store_errors("Failed to create schedule"):
        result = await db.db.schedules.insert_one(schedule_data)

    created = await db.db.schedules.find_one({"_id": result.inserted_id})
    logger.info(f"Created schedule {result.inserted_id} ({owner['kind']} owner)")
    return to_schedule_response(created)

async def get_user_schedules(user_id: str) -> List[Dict[str, Any]]:
    with store_errors("Failed to fetch schedules"):
        schedules = await db.db.schedules.find({"owner.kind": "user", "owner.userId": user_id}) \
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)]) \
            .to_list(length=None)
    return [to_schedule_response(schedule) for schedule in schedules]

async def _find_schedule(schedule_id: str) -> Dict[str, Any]:
    schedule_oid = to_object_id(schedule_id)
    schedule = None
    if schedule_oid is not None:
        schedule = await db.db.schedules.find_one({"_id": schedule_oid})
    if not schedule:
        raise NotFoundError("Schedule not found")
    return schedule

async def get_schedule(schedule_id: str) -> Dict[str, Any]:
    return to_schedule_response(await _find_schedule(schedule_id))

async def update_schedule(schedule_id: str, user_id: str, schedule_update: ScheduleUpdate) -> Dict[str, Any]:
    schedule = await _find_schedule(schedule_id)
    if owner_user_id(schedule) != user_id:
        raise ForbiddenError("You can only update your own schedules")

    update_data = schedule_update.model_dump(exclude_unset=True)
    update_data["updatedAt"] = utcnow()

    with store_errors("Failed to update schedule"):
        updated = await db.db.schedules.find_one_and_update(
            {"_id": schedule["_id"]},
            {"$set": update_data},
            return_document=ReturnDocument.AFTER
        )
    if not updated:
        raise NotFoundError("Schedule not found")
    return to_schedule_response(updated)

async def delete_schedule(schedule_id: str, user_id: str) -> None:
    schedule = await _find_schedule(schedule_id)
    if owner_user_id(schedule) != user_id:
        raise ForbiddenError("You can only delete your own schedules")

    with store_errors("Failed to delete schedule"):
        await db.db.schedules.delete_one({"_id": schedule["_id"]})
        await db.db.availability_responses.delete_many({"scheduleId": str(schedule["_id"])})

async def get_schedule_responses(schedule_id: str) -> List[Dict[str, Any]]:
    with store_errors("Failed to fetch responses"):
        responses = await db.db.availability_responses.find({"scheduleId": schedule_id}) \
            .sort([("submittedAt", ASCENDING), ("_id", ASCENDING)]) \
            .to_list(length=None)
    return [serialize_document(response) for response in responses]

async def get_public_schedule(schedule_id: str) -> Dict[str, Any]:
    """
    Schedule as shown to respondents: creator display name plus every
    response submitted so far, oldest first.
    """
    schedule = await _find_schedule(schedule_id)
    owner = schedule["owner"]

    created_by = None
    if owner["kind"] == "user":
        user = await get_user_by_id(owner["userId"])
        if user:
            created_by = user.get("name") or user.get("email")
    else:
        created_by = owner.get("name")

    schedule_id = str(schedule["_id"])
    return {
        "id": schedule_id,
        "title": schedule["title"],
        "description": schedule.get("description"),
        "availableSlots": schedule.get("availableSlots", []),
        "duration": schedule["duration"],
        "timeZone": schedule.get("timeZone", "UTC"),
        "createdBy": created_by or "Unknown",
        "createdAt": schedule["createdAt"],
        "responses": await get_schedule_responses(schedule_id),
    }

async def submit_availability(schedule_id: str, submission: AvailabilitySubmit) -> Dict[str, Any]:
    """
    Record a respondent's availability. A second submission under the same
    name replaces the first.
    """
    schedule = await _find_schedule(schedule_id)
    key = {"scheduleId": str(schedule["_id"]), "name": submission.name}
    availability = submission.model_dump()["availability"]

    with store_errors("Failed to submit availability"):
        response = await db.db.availability_responses.find_one_and_update(
            key,
            {"$set": {"availability": availability, "submittedAt": utcnow()}},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
    return serialize_document(response)
