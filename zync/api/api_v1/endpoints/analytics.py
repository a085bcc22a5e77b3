from fastapi import APIRouter, Depends
from typing import Any
from zync.core.auth import get_current_user
from zync.schemas.analytics import DashboardAnalytics, ScheduleAnalytics
from zync.services import analytics_service

router = APIRouter()

@router.get("/dashboard", response_model=DashboardAnalytics)
async def get_dashboard_analytics(current_user: dict = Depends(get_current_user)) -> Any:
    """
    Revenue, booking rate and weekly figures for the caller's bookings
    """
    return await analytics_service.get_dashboard_analytics(str(current_user["_id"]))

@router.get("/schedules", response_model=ScheduleAnalytics)
async def get_schedule_analytics(current_user: dict = Depends(get_current_user)) -> Any:
    return await analytics_service.get_schedule_analytics(str(current_user["_id"]))
