from typing import Dict, Any, List, Optional, Set
from datetime import date
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError
from zync.core.config import settings
from zync.core.exceptions import BadRequestError, ConflictError, NotFoundError, store_errors
from zync.db.mongodb import db, to_object_id, serialize_document
from zync.schemas.availability import (
    FreelancerProfileCreate, FreelancerProfileUpdate,
    TimeSlotCreate, TimeSlotUpdate,
    RecurringAvailabilityCreate, RecurringAvailabilityUpdate,
)
from zync.schemas.booking import ACTIVE_STATUSES
from zync.services.slot_generator import generate_slots
from zync.utils.dates import format_date, parse_date, utcnow, week_bounds, month_bounds
import logging

logger = logging.getLogger(__name__)

SLOT_ORDER = [("date", ASCENDING), ("start_time", ASCENDING)]
APPOINTMENT_ORDER = [("appointment_date", ASCENDING), ("start_time", ASCENDING)]

# --- Freelancer profile ---

async def create_freelancer_profile(user_id: str, profile_in: FreelancerProfileCreate) -> Dict[str, Any]:
    """
    Create the user's public booking page. One per user; slug unique across users.
    """
    if await db.db.freelancer_profiles.find_one({"user_id": user_id}):
        raise ConflictError("Freelancer profile already exists")

    if await db.db.freelancer_profiles.find_one({"booking_url_slug": profile_in.booking_url_slug}):
        raise ConflictError("Booking URL slug already taken")

    now = utcnow()
    profile_data = profile_in.model_dump()
    profile_data.update({
        "user_id": user_id,
        "is_public": True,
        "created_at": now,
        "updated_at": now,
    })

    with store_errors("Failed to create freelancer profile"):
        try:
            result = await db.db.freelancer_profiles.insert_one(profile_data)
        except DuplicateKeyError:
            raise ConflictError("Booking URL slug already taken")

    created = await db.db.freelancer_profiles.find_one({"_id": result.inserted_id})
    return serialize_document(created)

async def get_freelancer_profile(user_id: str) -> Dict[str, Any]:
    profile = await db.db.freelancer_profiles.find_one({"user_id": user_id})
    if not profile:
        raise NotFoundError("Freelancer profile not found")
    return serialize_document(profile)

async def update_freelancer_profile(user_id: str, profile_update: FreelancerProfileUpdate) -> Dict[str, Any]:
    update_data = profile_update.model_dump(exclude_unset=True)

    # Only a changed slug needs the collision check; the owner's own row is fine
    new_slug = update_data.get("booking_url_slug")
    if new_slug:
        existing = await db.db.freelancer_profiles.find_one({"booking_url_slug": new_slug})
        if existing and existing["user_id"] != user_id:
            raise ConflictError("Booking URL slug already taken")

    update_data["updated_at"] = utcnow()

    with store_errors("Failed to update freelancer profile"):
        try:
            updated = await db.db.freelancer_profiles.find_one_and_update(
                {"user_id": user_id},
                {"$set": update_data},
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise ConflictError("Booking URL slug already taken")

    if not updated:
        raise NotFoundError("Freelancer profile not found")
    return serialize_document(updated)

# --- Time slots ---

async def create_time_slot(user_id: str, slot_in: TimeSlotCreate) -> Dict[str, Any]:
    """
    Create a single bookable slot. Rejected if it overlaps any of the owner's
    slots on the same date.
    """
    overlapping = await db.db.time_slots.find_one({
        "user_id": user_id,
        "date": slot_in.date,
        "start_time": {"$lt": slot_in.end_time},
        "end_time": {"$gt": slot_in.start_time},
    })
    if overlapping:
        raise ConflictError("Time slot overlaps with existing availability")

    now = utcnow()
    slot_data = slot_in.model_dump()
    slot_data.update({
        "user_id": user_id,
        "is_available": True,
        "created_at": now,
        "updated_at": now,
    })

    with store_errors("Failed to create time slot"):
        try:
            result = await db.db.time_slots.insert_one(slot_data)
        except DuplicateKeyError:
            raise ConflictError("Time slot overlaps with existing availability")

    created = await db.db.time_slots.find_one({"_id": result.inserted_id})
    return serialize_document(created)

async def get_user_availability(
    user_id: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None
) -> Dict[str, Any]:
    query: Dict[str, Any] = {"user_id": user_id}
    date_range = _date_range(start_date, end_date)
    if date_range:
        query["date"] = date_range

    with store_errors("Failed to fetch time slots"):
        time_slots = await db.db.time_slots.find(query).sort(SLOT_ORDER).to_list(length=None)

    recurring = await get_recurring_availability(user_id)

    return {
        "time_slots": [serialize_document(slot) for slot in time_slots],
        "recurring_availability": recurring,
        "total_slots": len(time_slots),
    }

async def update_time_slot(user_id: str, slot_id: str, slot_update: TimeSlotUpdate) -> Dict[str, Any]:
    slot_oid = to_object_id(slot_id)
    existing = None
    if slot_oid is not None:
        existing = await db.db.time_slots.find_one({"_id": slot_oid, "user_id": user_id})
    if not existing:
        raise NotFoundError("Time slot not found or not authorized")

    update_data = slot_update.model_dump(exclude_unset=True)
    _check_merged_range(existing, update_data)
    update_data["updated_at"] = utcnow()

    with store_errors("Failed to update time slot"):
        try:
            updated = await db.db.time_slots.find_one_and_update(
                {"_id": slot_oid, "user_id": user_id},
                {"$set": update_data},
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise ConflictError("Another time slot already starts at that time")

    if not updated:
        raise NotFoundError("Time slot not found or not authorized")
    return serialize_document(updated)

async def delete_time_slot(user_id: str, slot_id: str) -> None:
    """Idempotent: deleting a missing or foreign slot is not an error."""
    slot_oid = to_object_id(slot_id)
    if slot_oid is None:
        return
    with store_errors("Failed to delete time slot"):
        await db.db.time_slots.delete_one({"_id": slot_oid, "user_id": user_id})

# --- Recurring availability ---

async def create_recurring_availability(user_id: str, recurring_in: RecurringAvailabilityCreate) -> Dict[str, Any]:
    now = utcnow()
    recurring_data = recurring_in.model_dump()
    recurring_data.update({
        "user_id": user_id,
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    })

    with store_errors("Failed to create recurring availability"):
        result = await db.db.recurring_availability.insert_one(recurring_data)

    created = await db.db.recurring_availability.find_one({"_id": result.inserted_id})
    return serialize_document(created)

async def get_recurring_availability(user_id: str) -> List[Dict[str, Any]]:
    with store_errors("Failed to fetch recurring availability"):
        rules = await db.db.recurring_availability.find({"user_id": user_id}) \
            .sort([("day_of_week", ASCENDING), ("start_time", ASCENDING)]) \
            .to_list(length=None)
    return [serialize_document(rule) for rule in rules]

async def update_recurring_availability(
    user_id: str,
    recurring_id: str,
    recurring_update: RecurringAvailabilityUpdate
) -> Dict[str, Any]:
    recurring_oid = to_object_id(recurring_id)
    existing = None
    if recurring_oid is not None:
        existing = await db.db.recurring_availability.find_one({"_id": recurring_oid, "user_id": user_id})
    if not existing:
        raise NotFoundError("Recurring availability not found or not authorized")

    update_data = recurring_update.model_dump(exclude_unset=True)
    _check_merged_range(existing, update_data)
    update_data["updated_at"] = utcnow()

    with store_errors("Failed to update recurring availability"):
        updated = await db.db.recurring_availability.find_one_and_update(
            {"_id": recurring_oid, "user_id": user_id},
            {"$set": update_data},
            return_document=ReturnDocument.AFTER
        )

    if not updated:
        raise NotFoundError("Recurring availability not found or not authorized")
    return serialize_document(updated)

async def delete_recurring_availability(user_id: str, recurring_id: str) -> None:
    recurring_oid = to_object_id(recurring_id)
    if recurring_oid is None:
        return
    with store_errors("Failed to delete recurring availability"):
        await db.db.recurring_availability.delete_one({"_id": recurring_oid, "user_id": user_id})

async def generate_slots_from_recurring(user_id: str, start_date: str, end_date: str) -> int:
    """
    Materialize the user's active recurring rules into time slots for every
    day in [start_date, end_date]. Slots whose (user, date, start) already
    exist are skipped. Returns the number of slots actually inserted.
    """
    start, end = parse_date(start_date), parse_date(end_date)
    if start > end:
        raise BadRequestError("start_date must not be after end_date")
    if (end - start).days + 1 > settings.MAX_GENERATION_DAYS:
        raise BadRequestError(f"Cannot generate slots for more than {settings.MAX_GENERATION_DAYS} days at once")

    with store_errors("Failed to generate slots"):
        rules = await db.db.recurring_availability.find(
            {"user_id": user_id, "is_active": True}
        ).to_list(length=None)

    if not rules:
        return 0

    created = 0
    now = utcnow()
    with store_errors("Failed to generate slots"):
        for slot in generate_slots(rules, start, end):
            key = {"user_id": user_id, "date": slot["date"], "start_time": slot["start_time"]}
            insert_only = {
                "end_time": slot["end_time"],
                "duration_minutes": slot["duration_minutes"],
                "buffer_time_minutes": slot["buffer_time_minutes"],
                "is_available": True,
                "created_at": now,
                "updated_at": now,
            }
            try:
                result = await db.db.time_slots.update_one(key, {"$setOnInsert": insert_only}, upsert=True)
            except DuplicateKeyError:
                # lost an upsert race for the same key: already exists
                continue
            if result.upserted_id is not None:
                created += 1

    logger.info(f"Generated {created} slots for user {user_id} between {start_date} and {end_date}")
    return created

# --- Public booking page ---

async def get_public_profile(slug: str) -> Dict[str, Any]:
    profile = await db.db.freelancer_profiles.find_one({"booking_url_slug": slug, "is_public": True})
    if not profile:
        raise NotFoundError("Freelancer not found or booking page is private")
    return profile

async def get_public_availability(
    slug: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    today: Optional[date] = None
) -> Dict[str, Any]:
    profile = await get_public_profile(slug)

    query = {
        "user_id": profile["user_id"],
        "is_available": True,
        "date": _date_range(start_date or format_date(today or date.today()), end_date),
    }

    with store_errors("Failed to fetch available slots"):
        slots = await db.db.time_slots.find(query).sort(SLOT_ORDER).to_list(length=None)

    return {
        "freelancer": serialize_document(profile),
        "available_slots": [serialize_document(slot) for slot in slots],
        "next_available_date": slots[0]["date"] if slots else None,
    }

# --- Stats ---

async def booked_slot_ids(slot_ids: List[str]) -> Set[str]:
    """Ids among `slot_ids` that have at least one appointment attached."""
    if not slot_ids:
        return set()
    appointments = await db.db.appointments.find(
        {"time_slot_id": {"$in": slot_ids}},
        {"time_slot_id": 1}
    ).to_list(length=None)
    return {appointment["time_slot_id"] for appointment in appointments}

async def get_availability_stats(user_id: str, today: Optional[date] = None) -> Dict[str, Any]:
    today = today or date.today()
    week_start, week_end = week_bounds(today)
    month_start, month_end = month_bounds(today)

    with store_errors("Failed to compute availability stats"):
        week_slots = await db.db.time_slots.find({
            "user_id": user_id,
            "date": _date_range(format_date(week_start), format_date(week_end)),
        }, {"_id": 1}).to_list(length=None)
        booked = await booked_slot_ids([str(slot["_id"]) for slot in week_slots])

        total_appointments_this_month = await db.db.appointments.count_documents({
            "freelancer_id": user_id,
            "appointment_date": _date_range(format_date(month_start), format_date(month_end)),
        })

        upcoming = await db.db.appointments.find({
            "freelancer_id": user_id,
            "appointment_date": {"$gte": format_date(today)},
            "status": {"$in": ACTIVE_STATUSES},
        }).sort(APPOINTMENT_ORDER).limit(10).to_list(length=10)

    total_slots = len(week_slots)
    return {
        "total_slots_this_week": total_slots,
        "booked_slots_this_week": len(booked),
        "available_slots_this_week": total_slots - len(booked),
        "total_appointments_this_month": total_appointments_this_month,
        "upcoming_appointments": [serialize_document(appointment) for appointment in upcoming],
    }

# --- helpers ---

def _date_range(start_date: Optional[str], end_date: Optional[str]) -> Dict[str, str]:
    date_range = {}
    if start_date:
        date_range["$gte"] = start_date
    if end_date:
        date_range["$lte"] = end_date
    return date_range

def _check_merged_range(existing: Dict[str, Any], update_data: Dict[str, Any]) -> None:
    start_time = update_data.get("start_time", existing["start_time"])
    end_time = update_data.get("end_time", existing["end_time"])
    if start_time >= end_time:
        raise BadRequestError("start_time must be before end_time")
