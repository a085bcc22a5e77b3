"""
Read-only reports derived from appointments, time slots, schedules and
availability responses.

Metrics the system does not track yet (per-service bookings, session length,
satisfaction, response rate) are supplied by a ReportingSource so a real
tracker can replace the placeholder without touching the aggregation code.
"""
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta
from typing import Dict, Any, List, Optional
import math
import random
from pymongo import DESCENDING
from zync.core.exceptions import store_errors
from zync.db.mongodb import db
from zync.schemas.booking import BILLABLE_STATUSES
from zync.services.availability_service import booked_slot_ids
from zync.utils.dates import (
    DAY_LABELS, duration_hours, format_date, month_bounds, previous_month_bounds, utcnow, week_bounds,
)
import logging

logger = logging.getLogger(__name__)

BOOKING_RATE_TARGET = 85
ACTIVE_SCHEDULE_DAYS = 30
RECENT_SCHEDULE_LIMIT = 10


class ReportingSource(ABC):
    @abstractmethod
    def top_services(self, month_revenue: float) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def avg_session_duration(self) -> str:
        ...

    @abstractmethod
    def customer_satisfaction(self) -> float:
        ...

    @abstractmethod
    def response_rate(self) -> float:
        ...


class PlaceholderReportingSource(ReportingSource):
    """Synthetic figures shown until per-service tracking exists."""

    # (name, share of monthly revenue, bookings range inclusive)
    SERVICES = [
        ("Consultation", 0.40, (10, 39)),
        ("Strategy Session", 0.35, (5, 24)),
        ("Follow-up", 0.25, (3, 17)),
    ]

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def top_services(self, month_revenue: float) -> List[Dict[str, Any]]:
        return [
            {
                "name": name,
                "bookings": self.rng.randint(low, high),
                "revenue": math.floor(month_revenue * share),
            }
            for name, share, (low, high) in self.SERVICES
        ]

    def avg_session_duration(self) -> str:
        return "45m"

    def customer_satisfaction(self) -> float:
        return 4.8

    def response_rate(self) -> float:
        return 98


reporting_source: ReportingSource = PlaceholderReportingSource()


def calculate_revenue(appointments: List[Dict[str, Any]], hourly_rate: float) -> float:
    return sum(
        hourly_rate * duration_hours(appointment["start_time"], appointment["end_time"])
        for appointment in appointments
    )


def revenue_growth(this_month: float, last_month: float) -> float:
    if last_month <= 0:
        return 0
    return (this_month - last_month) / last_month * 100


def is_schedule_active(schedule: Dict[str, Any], now: datetime) -> bool:
    age = now - schedule["createdAt"]
    return age < timedelta(days=ACTIVE_SCHEDULE_DAYS) and len(schedule.get("availableSlots") or []) > 0


def schedule_status(schedule: Dict[str, Any], responses: int, now: datetime) -> str:
    if is_schedule_active(schedule, now):
        return "active"
    if responses >= len(schedule.get("availableSlots") or []):
        return "completed"
    return "expired"


async def _billable_appointments(user_id: str, start: date, end: date) -> List[Dict[str, Any]]:
    return await db.db.appointments.find({
        "freelancer_id": user_id,
        "appointment_date": {"$gte": format_date(start), "$lte": format_date(end)},
        "status": {"$in": BILLABLE_STATUSES},
    }).to_list(length=None)


async def get_dashboard_analytics(
    user_id: str,
    today: Optional[date] = None,
    source: Optional[ReportingSource] = None
) -> Dict[str, Any]:
    today = today or date.today()
    source = source or reporting_source
    month_start, month_end = month_bounds(today)
    last_month_start, last_month_end = previous_month_bounds(today)
    week_start, week_end = week_bounds(today)

    with store_errors("Failed to compute dashboard analytics"):
        profile = await db.db.freelancer_profiles.find_one({"user_id": user_id})
        hourly_rate = (profile or {}).get("hourly_rate") or 0

        this_month_appointments = await _billable_appointments(user_id, month_start, month_end)
        last_month_appointments = await _billable_appointments(user_id, last_month_start, last_month_end)
        week_appointments = await _billable_appointments(user_id, week_start, week_end)

        month_slots = await db.db.time_slots.find({
            "user_id": user_id,
            "date": {"$gte": format_date(month_start), "$lte": format_date(month_end)},
        }, {"_id": 1}).to_list(length=None)
        booked = await booked_slot_ids([str(slot["_id"]) for slot in month_slots])

    this_month_revenue = calculate_revenue(this_month_appointments, hourly_rate)
    last_month_revenue = calculate_revenue(last_month_appointments, hourly_rate)
    booking_rate = len(booked) / len(month_slots) * 100 if month_slots else 0

    weekly_stats = []
    for offset, label in enumerate(DAY_LABELS):
        day = format_date(week_start + timedelta(days=offset))
        day_appointments = [a for a in week_appointments if a["appointment_date"] == day]
        weekly_stats.append({
            "day": label,
            "bookings": len(day_appointments),
            "revenue": calculate_revenue(day_appointments, hourly_rate),
        })

    return {
        "revenue": {
            "thisMonth": this_month_revenue,
            "lastMonth": last_month_revenue,
            "growth": revenue_growth(this_month_revenue, last_month_revenue),
        },
        "bookingRate": {"current": round(booking_rate), "target": BOOKING_RATE_TARGET},
        "avgSessionDuration": source.avg_session_duration(),
        "customerSatisfaction": source.customer_satisfaction(),
        "topServices": source.top_services(this_month_revenue),
        "weeklyStats": weekly_stats,
        "responseRate": source.response_rate(),
    }


async def get_schedule_analytics(user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or utcnow()

    with store_errors("Failed to compute schedule analytics"):
        schedules = await db.db.schedules.find({"owner.kind": "user", "owner.userId": user_id}) \
            .sort([("createdAt", DESCENDING), ("_id", DESCENDING)]) \
            .to_list(length=None)

        recent = schedules[:RECENT_SCHEDULE_LIMIT]
        response_counts = {}
        for schedule in recent:
            schedule_id = str(schedule["_id"])
            response_counts[schedule_id] = await db.db.availability_responses.count_documents(
                {"scheduleId": schedule_id}
            )

    total_participants = 0
    total_responses = 0
    recent_schedules = []
    for schedule in recent:
        schedule_id = str(schedule["_id"])
        participants = len(schedule.get("availableSlots") or [])
        responses = response_counts[schedule_id]
        total_participants += participants
        total_responses += responses
        recent_schedules.append({
            "id": schedule_id,
            "title": schedule["title"],
            "description": schedule.get("description"),
            "participants": participants,
            "responses": responses,
            "status": schedule_status(schedule, responses, now),
            "created": schedule["createdAt"],
        })

    average_response_rate = total_responses / total_participants * 100 if total_participants else 0

    return {
        "totalSchedules": len(schedules),
        "activeSchedules": sum(1 for schedule in schedules if is_schedule_active(schedule, now)),
        "totalParticipants": total_participants,
        "totalResponses": total_responses,
        "averageResponseRate": round(average_response_rate),
        "recentSchedules": recent_schedules,
    }
