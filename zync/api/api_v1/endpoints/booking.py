from fastapi import APIRouter, Depends, Query
from typing import Any, List, Optional
from zync.core.auth import get_current_user
from zync.schemas.common import DateStr
from zync.schemas.booking import (
    AppointmentCreate, AppointmentStatus, AppointmentStatusUpdate,
    AppointmentResponse, BookingConfirmationResponse,
)
from zync.services import booking_service

router = APIRouter()

@router.post("/{slug}/book", response_model=BookingConfirmationResponse, status_code=201)
async def create_appointment(slug: str, appointment_in: AppointmentCreate) -> Any:
    """
    Public booking: a customer books one of the freelancer's available slots
    """
    return await booking_service.create_appointment(slug, appointment_in)

@router.get("/appointments", response_model=List[AppointmentResponse])
async def get_freelancer_appointments(
    status: Optional[AppointmentStatus] = Query(None),
    start_date: Optional[DateStr] = Query(None),
    end_date: Optional[DateStr] = Query(None),
    current_user: dict = Depends(get_current_user)
) -> Any:
    return await booking_service.get_freelancer_appointments(
        str(current_user["_id"]), status, start_date, end_date
    )

@router.get("/appointments/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(appointment_id: str, current_user: dict = Depends(get_current_user)) -> Any:
    return await booking_service.get_appointment(str(current_user["_id"]), appointment_id)

@router.put("/appointments/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: str,
    status_update: AppointmentStatusUpdate,
    current_user: dict = Depends(get_current_user)
) -> Any:
    """
    Confirm or cancel one of the caller's appointments
    """
    return await booking_service.update_appointment_status(
        str(current_user["_id"]), appointment_id, AppointmentStatus(status_update.status)
    )

@router.put("/appointments/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_appointment(appointment_id: str, current_user: dict = Depends(get_current_user)) -> Any:
    return await booking_service.complete_appointment(str(current_user["_id"]), appointment_id)

# Customer self-service, looked up by booking reference

@router.get("/appointment/{reference}", response_model=AppointmentResponse)
async def get_appointment_by_reference(reference: str) -> Any:
    return await booking_service.get_appointment_by_reference(reference)

@router.put("/appointment/{reference}/cancel", response_model=AppointmentResponse)
async def cancel_appointment_by_reference(reference: str) -> Any:
    return await booking_service.cancel_appointment_by_reference(reference)
