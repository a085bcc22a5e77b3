from typing import Dict, Any, List, Optional
from datetime import date, datetime
import random
import string
from bson import ObjectId
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError
from zync.core.config import settings
from zync.core.exceptions import BadRequestError, ConflictError, NotFoundError, store_errors
from zync.db.mongodb import db, to_object_id, serialize_document
from zync.schemas.booking import (
    AppointmentCreate, AppointmentStatus, ACTIVE_STATUSES, ALLOWED_TRANSITIONS,
)
from zync.services.availability_service import get_public_profile
from zync.utils.dates import parse_date, hours_until, utcnow
import logging

logger = logging.getLogger(__name__)

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
REFERENCE_LENGTH = 8
CONFIRMATION_MESSAGE = "Appointment booked successfully. You will receive a confirmation email shortly."

def generate_booking_reference() -> str:
    return "".join(random.choices(REFERENCE_ALPHABET, k=REFERENCE_LENGTH))

def check_booking_window(slot_date: str, today: date, advance_days: int) -> None:
    """
    Raise if `slot_date` is in the past or further out than `advance_days`
    whole days from `today`.
    """
    days_until = (parse_date(slot_date) - today).days
    if days_until < 0:
        raise BadRequestError("Cannot book appointments in the past")
    if days_until > advance_days:
        raise BadRequestError(f"Booking can only be made up to {advance_days} days in advance")

def check_cancellation_window(appointment_date: str, start_time: str, now: datetime) -> None:
    cutoff = settings.CANCELLATION_CUTOFF_HOURS
    if hours_until(appointment_date, start_time, now) < cutoff:
        raise BadRequestError(f"Appointments can only be cancelled at least {cutoff} hours in advance")

async def create_appointment(slug: str, appointment_in: AppointmentCreate) -> Dict[str, Any]:
    """
    Book a public time slot for a customer.

    The slot is claimed with a single conditional update on its availability
    flag, so of several concurrent bookings for one slot exactly one wins and
    the rest get a ConflictError. If the appointment cannot be stored after
    the claim, the slot is released again.
    """
    profile = await get_public_profile(slug)
    freelancer_id = profile["user_id"]

    slot_oid = to_object_id(appointment_in.time_slot_id)
    slot = None
    if slot_oid is not None:
        slot = await db.db.time_slots.find_one({"_id": slot_oid, "user_id": freelancer_id})
    if not slot:
        raise NotFoundError("Time slot not found or not available")

    active = await db.db.appointments.find_one({
        "time_slot_id": str(slot_oid),
        "status": {"$in": ACTIVE_STATUSES},
    })
    if active:
        raise ConflictError("This time slot is already booked")
    if not slot.get("is_available", False):
        raise NotFoundError("Time slot not found or not available")

    check_booking_window(slot["date"], date.today(), profile.get("booking_advance_days", 30))

    with store_errors("Failed to book time slot"):
        claimed = await db.db.time_slots.find_one_and_update(
            {"_id": slot_oid, "user_id": freelancer_id, "is_available": True},
            {"$set": {"is_available": False, "updated_at": utcnow()}}
        )
    if not claimed:
        raise ConflictError("This time slot is already booked")

    now = utcnow()
    appointment_data = {
        "time_slot_id": str(slot_oid),
        "freelancer_id": freelancer_id,
        "customer_name": appointment_in.customer_name,
        "customer_email": appointment_in.customer_email,
        "customer_phone": appointment_in.customer_phone,
        "customer_message": appointment_in.customer_message,
        "appointment_date": slot["date"],
        "start_time": slot["start_time"],
        "end_time": slot["end_time"],
        "status": AppointmentStatus.PENDING.value,
        "created_at": now,
        "updated_at": now,
    }

    try:
        with store_errors("Failed to create appointment"):
            inserted_id = await _insert_with_unique_reference(appointment_data)
    except BadRequestError:
        await set_slot_availability(str(slot_oid), True)
        raise

    appointment = await db.db.appointments.find_one({"_id": inserted_id})
    logger.info(f"Booked slot {slot_oid} for freelancer {freelancer_id} as {appointment['booking_reference']}")

    return {
        "appointment": serialize_document(appointment),
        "booking_reference": appointment["booking_reference"],
        "message": CONFIRMATION_MESSAGE,
    }

async def _insert_with_unique_reference(appointment_data: Dict[str, Any]) -> ObjectId:
    for _ in range(settings.BOOKING_REFERENCE_ATTEMPTS):
        document = dict(appointment_data, booking_reference=generate_booking_reference())
        try:
            result = await db.db.appointments.insert_one(document)
        except DuplicateKeyError:
            logger.warning("Booking reference collision, retrying")
            continue
        return result.inserted_id
    raise BadRequestError("Failed to create appointment: could not allocate a booking reference")

async def set_slot_availability(time_slot_id: str, is_available: bool) -> None:
    slot_oid = to_object_id(time_slot_id)
    if slot_oid is None:
        return
    with store_errors("Failed to update time slot availability"):
        await db.db.time_slots.update_one(
            {"_id": slot_oid},
            {"$set": {"is_available": is_available, "updated_at": utcnow()}}
        )

async def get_freelancer_appointments(
    freelancer_id: str,
    status: Optional[AppointmentStatus] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None
) -> List[Dict[str, Any]]:
    query: Dict[str, Any] = {"freelancer_id": freelancer_id}
    if status:
        query["status"] = AppointmentStatus(status).value
    date_range = {}
    if start_date:
        date_range["$gte"] = start_date
    if end_date:
        date_range["$lte"] = end_date
    if date_range:
        query["appointment_date"] = date_range

    with store_errors("Failed to fetch appointments"):
        appointments = await db.db.appointments.find(query) \
            .sort([("appointment_date", ASCENDING), ("start_time", ASCENDING)]) \
            .to_list(length=None)
    return [serialize_document(appointment) for appointment in appointments]

async def get_appointment(freelancer_id: str, appointment_id: str) -> Dict[str, Any]:
    appointment_oid = to_object_id(appointment_id)
    appointment = None
    if appointment_oid is not None:
        appointment = await db.db.appointments.find_one({"_id": appointment_oid, "freelancer_id": freelancer_id})
    if not appointment:
        raise NotFoundError("Appointment not found")
    return serialize_document(appointment)

async def update_appointment_status(
    freelancer_id: str,
    appointment_id: str,
    new_status: AppointmentStatus
) -> Dict[str, Any]:
    """
    Move an owned appointment to `new_status`. Only transitions listed in
    ALLOWED_TRANSITIONS are accepted; cancelling frees the slot again.
    """
    target = AppointmentStatus(new_status)
    appointment_oid = to_object_id(appointment_id)
    if appointment_oid is None:
        raise NotFoundError("Appointment not found")

    with store_errors("Failed to update appointment"):
        updated = await db.db.appointments.find_one_and_update(
            {
                "_id": appointment_oid,
                "freelancer_id": freelancer_id,
                "status": {"$in": ALLOWED_TRANSITIONS[target]},
            },
            {"$set": {"status": target.value, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER
        )

    if not updated:
        existing = await db.db.appointments.find_one({"_id": appointment_oid, "freelancer_id": freelancer_id})
        if not existing:
            raise NotFoundError("Appointment not found")
        raise BadRequestError(f"Cannot change appointment from {existing['status']} to {target.value}")

    if target == AppointmentStatus.CANCELLED:
        await set_slot_availability(updated["time_slot_id"], True)

    logger.info(f"Appointment {appointment_id} is now {target.value}")
    return serialize_document(updated)

async def complete_appointment(freelancer_id: str, appointment_id: str) -> Dict[str, Any]:
    return await update_appointment_status(freelancer_id, appointment_id, AppointmentStatus.COMPLETED)

async def get_appointment_by_reference(reference: str) -> Dict[str, Any]:
    appointment = await db.db.appointments.find_one({"booking_reference": reference.upper()})
    if not appointment:
        raise NotFoundError("Appointment not found")
    return serialize_document(appointment)

async def cancel_appointment_by_reference(reference: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Customer self-service cancellation. Allowed only for active appointments
    starting at least CANCELLATION_CUTOFF_HOURS from `now` (server local time).
    """
    appointment = await db.db.appointments.find_one({"booking_reference": reference.upper()})
    if not appointment:
        raise NotFoundError("Appointment not found")

    if appointment["status"] == AppointmentStatus.CANCELLED.value:
        raise BadRequestError("Appointment is already cancelled")
    if appointment["status"] == AppointmentStatus.COMPLETED.value:
        raise BadRequestError("Cannot cancel a completed appointment")

    check_cancellation_window(
        appointment["appointment_date"],
        appointment["start_time"],
        now or datetime.now()
    )

    with store_errors("Failed to cancel appointment"):
        updated = await db.db.appointments.find_one_and_update(
            {"_id": appointment["_id"], "status": {"$in": ACTIVE_STATUSES}},
            {"$set": {"status": AppointmentStatus.CANCELLED.value, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER
        )
    if not updated:
        raise BadRequestError("Appointment is already cancelled")

    await set_slot_availability(updated["time_slot_id"], True)
    logger.info(f"Appointment {updated['booking_reference']} cancelled by customer")
    return serialize_document(updated)
