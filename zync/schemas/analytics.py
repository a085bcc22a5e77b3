from pydantic import BaseModel
from typing import Optional, List, Literal
from datetime import datetime
from zync.schemas.booking import AppointmentResponse

class AvailabilityStats(BaseModel):
    total_slots_this_week: int
    booked_slots_this_week: int
    available_slots_this_week: int
    total_appointments_this_month: int
    upcoming_appointments: List[AppointmentResponse]

class RevenueSummary(BaseModel):
    thisMonth: float
    lastMonth: float
    growth: float

class BookingRate(BaseModel):
    current: int
    target: int

class ServiceAnalytics(BaseModel):
    name: str
    bookings: int
    revenue: float

class WeeklyStats(BaseModel):
    day: str
    bookings: int
    revenue: float

class DashboardAnalytics(BaseModel):
    revenue: RevenueSummary
    bookingRate: BookingRate
    avgSessionDuration: str
    customerSatisfaction: float
    topServices: List[ServiceAnalytics]
    weeklyStats: List[WeeklyStats]
    responseRate: float

class ScheduleSummary(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    participants: int
    responses: int
    status: Literal["active", "completed", "expired"]
    created: datetime

class ScheduleAnalytics(BaseModel):
    totalSchedules: int
    activeSchedules: int
    totalParticipants: int
    totalResponses: int
    averageResponseRate: int
    recentSchedules: List[ScheduleSummary]
