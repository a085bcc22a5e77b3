from fastapi import APIRouter, Depends, Query, status
from typing import Any, List, Optional
from zync.core.auth import get_current_user, get_optional_user
from zync.schemas.common import DateStr, Message
from zync.schemas.availability import (
    FreelancerProfileCreate, FreelancerProfileUpdate, FreelancerProfileResponse,
    TimeSlotCreate, TimeSlotUpdate, TimeSlotResponse,
    RecurringAvailabilityCreate, RecurringAvailabilityUpdate, RecurringAvailabilityResponse,
    GenerateSlotsRequest, GenerateSlotsResponse,
    FreelancerAvailabilityResponse, PublicAvailabilityResponse,
)
from zync.schemas.analytics import AvailabilityStats
from zync.services import availability_service

router = APIRouter()

# Freelancer profile

@router.post("/profile", response_model=FreelancerProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_freelancer_profile(
    profile_in: FreelancerProfileCreate,
    current_user: dict = Depends(get_current_user)
) -> Any:
    """
    Create the caller's public booking page
    """
    return await availability_service.create_freelancer_profile(str(current_user["_id"]), profile_in)

@router.get("/profile", response_model=FreelancerProfileResponse)
async def get_freelancer_profile(current_user: dict = Depends(get_current_user)) -> Any:
    return await availability_service.get_freelancer_profile(str(current_user["_id"]))

@router.put("/profile", response_model=FreelancerProfileResponse)
async def update_freelancer_profile(
    profile_update: FreelancerProfileUpdate,
    current_user: dict = Depends(get_current_user)
) -> Any:
    return await availability_service.update_freelancer_profile(str(current_user["_id"]), profile_update)

# Time slots

@router.post("/slots", response_model=TimeSlotResponse, status_code=status.HTTP_201_CREATED)
async def create_time_slot(
    slot_in: TimeSlotCreate,
    current_user: dict = Depends(get_current_user)
) -> Any:
    return await availability_service.create_time_slot(str(current_user["_id"]), slot_in)

@router.get("/slots", response_model=FreelancerAvailabilityResponse)
async def get_availability(
    start_date: Optional[DateStr] = Query(None),
    end_date: Optional[DateStr] = Query(None),
    current_user: dict = Depends(get_current_user)
) -> Any:
    """
    Get the caller's time slots (optionally within a date range) and recurring rules
    """
    return await availability_service.get_user_availability(str(current_user["_id"]), start_date, end_date)

@router.put("/slots/{slot_id}", response_model=TimeSlotResponse)
async def update_time_slot(
    slot_id: str,
    slot_update: TimeSlotUpdate,
    current_user: dict = Depends(get_current_user)
) -> Any:
    return await availability_service.update_time_slot(str(current_user["_id"]), slot_id, slot_update)

@router.delete("/slots/{slot_id}", response_model=Message)
async def delete_time_slot(slot_id: str, current_user: dict = Depends(get_current_user)) -> Any:
    await availability_service.delete_time_slot(str(current_user["_id"]), slot_id)
    return {"message": "Time slot deleted successfully"}

# Recurring availability

@router.post("/recurring", response_model=RecurringAvailabilityResponse, status_code=status.HTTP_201_CREATED)
async def create_recurring_availability(
    recurring_in: RecurringAvailabilityCreate,
    current_user: dict = Depends(get_current_user)
) -> Any:
    return await availability_service.create_recurring_availability(str(current_user["_id"]), recurring_in)

@router.get("/recurring", response_model=List[RecurringAvailabilityResponse])
async def get_recurring_availability(current_user: dict = Depends(get_current_user)) -> Any:
    return await availability_service.get_recurring_availability(str(current_user["_id"]))

@router.put("/recurring/{recurring_id}", response_model=RecurringAvailabilityResponse)
async def update_recurring_availability(
    recurring_id: str,
    recurring_update: RecurringAvailabilityUpdate,
    current_user: dict = Depends(get_current_user)
) -> Any:
    return await availability_service.update_recurring_availability(
        str(current_user["_id"]), recurring_id, recurring_update
    )

@router.delete("/recurring/{recurring_id}", response_model=Message)
async def delete_recurring_availability(recurring_id: str, current_user: dict = Depends(get_current_user)) -> Any:
    await availability_service.delete_recurring_availability(str(current_user["_id"]), recurring_id)
    return {"message": "Recurring availability deleted successfully"}

@router.post("/generate-slots", response_model=GenerateSlotsResponse)
async def generate_slots(
    request: GenerateSlotsRequest,
    current_user: dict = Depends(get_current_user)
) -> Any:
    """
    Turn the caller's active recurring rules into concrete slots for a date range
    """
    created = await availability_service.generate_slots_from_recurring(
        str(current_user["_id"]), request.start_date, request.end_date
    )
    return {"created_slots": created}

# Public booking page

@router.get("/public/{slug}", response_model=PublicAvailabilityResponse)
async def get_public_availability(
    slug: str,
    start_date: Optional[DateStr] = Query(None),
    end_date: Optional[DateStr] = Query(None),
    _current_user: Optional[dict] = Depends(get_optional_user)
) -> Any:
    return await availability_service.get_public_availability(slug, start_date, end_date)

@router.get("/stats", response_model=AvailabilityStats)
async def get_availability_stats(current_user: dict = Depends(get_current_user)) -> Any:
    return await availability_service.get_availability_stats(str(current_user["_id"]))
