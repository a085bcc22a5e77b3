from fastapi import APIRouter, Depends, status
from typing import Any, List, Optional
from zync.core.auth import get_current_user, get_optional_user
from zync.schemas.common import Message
from zync.schemas.schedule import (
    ScheduleCreate, ScheduleUpdate, ScheduleResponse,
    AvailabilitySubmit, AvailabilityResponseOut, PublicScheduleResponse,
)
from zync.services import schedule_service

router = APIRouter()

@router.post("", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
async def create_schedule(
    schedule_in: ScheduleCreate,
    current_user: Optional[dict] = Depends(get_optional_user)
) -> Any:
    """
    Create a schedule. Anonymous callers must supply creatorName.
    """
    user_id = str(current_user["_id"]) if current_user else None
    return await schedule_service.create_schedule(schedule_in, user_id)

@router.get("", response_model=List[ScheduleResponse])
async def get_my_schedules(current_user: dict = Depends(get_current_user)) -> Any:
    return await schedule_service.get_user_schedules(str(current_user["_id"]))

@router.get("/{schedule_id}", response_model=ScheduleResponse)
async def get_schedule(schedule_id: str, current_user: dict = Depends(get_current_user)) -> Any:
    return await schedule_service.get_schedule(schedule_id)

@router.put("/{schedule_id}", response_model=ScheduleResponse)
async def update_schedule(
    schedule_id: str,
    schedule_update: ScheduleUpdate,
    current_user: dict = Depends(get_current_user)
) -> Any:
    return await schedule_service.update_schedule(schedule_id, str(current_user["_id"]), schedule_update)

@router.delete("/{schedule_id}", response_model=Message)
async def delete_schedule(schedule_id: str, current_user: dict = Depends(get_current_user)) -> Any:
    await schedule_service.delete_schedule(schedule_id, str(current_user["_id"]))
    return {"message": "Schedule deleted successfully"}

@router.get("/{schedule_id}/public", response_model=PublicScheduleResponse)
async def get_public_schedule(schedule_id: str) -> Any:
    """
    Schedule and all responses so far, for respondents following a shared link
    """
    return await schedule_service.get_public_schedule(schedule_id)

@router.post("/{schedule_id}/availability", response_model=AvailabilityResponseOut)
async def submit_availability(schedule_id: str, submission: AvailabilitySubmit) -> Any:
    return await schedule_service.submit_availability(schedule_id, submission)
