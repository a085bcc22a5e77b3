import random
from datetime import datetime, timedelta

import pytest

from conftest import days_from_today
from zync.services.analytics_service import (
    PlaceholderReportingSource, revenue_growth, schedule_status, is_schedule_active,
)
from zync.utils.dates import DAY_LABELS, parse_date, sunday_based_weekday

NOW = datetime(2024, 6, 15, 12, 0)


def schedule(age_days, slots):
    return {"createdAt": NOW - timedelta(days=age_days), "availableSlots": [{}] * slots}


def test_schedule_status_derivation():
    assert schedule_status(schedule(29, 1), responses=0, now=NOW) == "active"
    assert schedule_status(schedule(30, 2), responses=2, now=NOW) == "completed"
    assert schedule_status(schedule(45, 3), responses=1, now=NOW) == "expired"
    # young but without candidate slots is never active
    assert not is_schedule_active(schedule(1, 0), NOW)
    assert schedule_status(schedule(1, 0), responses=0, now=NOW) == "completed"


def test_revenue_growth():
    assert revenue_growth(150, 0) == 0
    assert revenue_growth(150, 100) == 50
    assert revenue_growth(50, 100) == -50


def test_placeholder_reporting_source():
    source = PlaceholderReportingSource(rng=random.Random(7))
    services = source.top_services(150)

    assert [s["name"] for s in services] == ["Consultation", "Strategy Session", "Follow-up"]
    assert [s["revenue"] for s in services] == [60, 52, 37]
    assert 10 <= services[0]["bookings"] <= 39
    assert 5 <= services[1]["bookings"] <= 24
    assert 3 <= services[2]["bookings"] <= 17
    assert (source.avg_session_duration(), source.customer_satisfaction(), source.response_rate()) == ("45m", 4.8, 98)


@pytest.mark.asyncio
async def test_dashboard_analytics(client, freelancer, make_slot, book):
    owner = await freelancer(hourly_rate=100)
    today = days_from_today(0)
    slot = await make_slot(owner["headers"], slot_date=today, start_time="22:00", end_time="23:30", duration=90)
    await make_slot(owner["headers"], slot_date=today, start_time="20:00", end_time="21:00")
    appointment = (await book("jane-doe", slot["id"])).json()["appointment"]

    # pending appointments earn nothing yet
    r = await client.get("/api/analytics/dashboard", headers=owner["headers"])
    assert r.json()["revenue"]["thisMonth"] == 0

    await client.put(
        f"/api/booking/appointments/{appointment['id']}/status",
        json={"status": "confirmed"},
        headers=owner["headers"],
    )

    r = await client.get("/api/analytics/dashboard", headers=owner["headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["revenue"] == {"thisMonth": 150, "lastMonth": 0, "growth": 0}
    assert body["bookingRate"] == {"current": 50, "target": 85}
    assert [s["revenue"] for s in body["topServices"]] == [60, 52, 37]
    assert body["avgSessionDuration"] == "45m"
    assert body["customerSatisfaction"] == 4.8
    assert body["responseRate"] == 98

    assert [day["day"] for day in body["weeklyStats"]] == DAY_LABELS
    today_stats = body["weeklyStats"][sunday_based_weekday(parse_date(today))]
    assert today_stats == {"day": DAY_LABELS[sunday_based_weekday(parse_date(today))], "bookings": 1, "revenue": 150}
    assert sum(day["bookings"] for day in body["weeklyStats"]) == 1


@pytest.mark.asyncio
async def test_dashboard_without_profile_or_data(client, register_user):
    owner = await register_user()
    r = await client.get("/api/analytics/dashboard", headers=owner["headers"])
    body = r.json()
    assert body["revenue"] == {"thisMonth": 0, "lastMonth": 0, "growth": 0}
    assert body["bookingRate"]["current"] == 0
    assert len(body["weeklyStats"]) == 7


@pytest.mark.asyncio
async def test_schedule_analytics(client, register_user):
    owner = await register_user()
    slots = [
        {"date": days_from_today(3), "startTime": "09:00", "endTime": "10:00"},
        {"date": days_from_today(4), "startTime": "09:00", "endTime": "10:00"},
    ]
    polled = (await client.post("/api/schedules", json={
        "title": "Polled", "availableSlots": slots, "duration": 30,
    }, headers=owner["headers"])).json()
    await client.post("/api/schedules", json={
        "title": "Empty", "availableSlots": [], "duration": 30,
    }, headers=owner["headers"])
    await client.post(f"/api/schedules/{polled['id']}/availability", json={"name": "Ann", "availability": []})

    r = await client.get("/api/analytics/schedules", headers=owner["headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["totalSchedules"] == 2
    assert body["activeSchedules"] == 1
    assert body["totalParticipants"] == 2
    assert body["totalResponses"] == 1
    assert body["averageResponseRate"] == 50
    assert [(s["title"], s["status"]) for s in body["recentSchedules"]] == [("Empty", "completed"), ("Polled", "active")]
