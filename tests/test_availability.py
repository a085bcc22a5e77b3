import pytest
from bson import ObjectId

from conftest import days_from_today
from zync.utils.dates import parse_date, sunday_based_weekday


@pytest.mark.asyncio
async def test_overlapping_slot_is_rejected(client, register_user, make_slot):
    owner = await register_user()
    day = days_from_today(3)
    await make_slot(owner["headers"], slot_date=day, start_time="09:00", end_time="10:00")

    r = await client.post("/api/availability/slots", json={
        "date": day, "start_time": "09:30", "end_time": "10:30", "duration_minutes": 60,
    }, headers=owner["headers"])
    assert r.status_code == 409
    assert r.json()["message"] == "Time slot overlaps with existing availability"

    # touching ranges do not overlap
    await make_slot(owner["headers"], slot_date=day, start_time="10:00", end_time="11:00")


@pytest.mark.asyncio
async def test_other_users_slots_do_not_conflict(client, register_user, make_slot):
    first = await register_user(email="first@example.com")
    second = await register_user(email="second@example.com")
    day = days_from_today(3)
    await make_slot(first["headers"], slot_date=day)
    await make_slot(second["headers"], slot_date=day)


@pytest.mark.asyncio
async def test_slot_validation(client, register_user):
    owner = await register_user()
    bad_range = {"date": days_from_today(1), "start_time": "10:00", "end_time": "09:00", "duration_minutes": 60}
    bad_date = {"date": "2024-13-01", "start_time": "09:00", "end_time": "10:00", "duration_minutes": 60}

    for payload in (bad_range, bad_date):
        r = await client.post("/api/availability/slots", json=payload, headers=owner["headers"])
        assert r.status_code == 422
        assert r.json()["message"] == "Invalid request parameters"


@pytest.mark.asyncio
async def test_slots_require_authentication(client, mongo):
    r = await client.get("/api/availability/slots")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_list_is_ordered_and_filterable(client, register_user, make_slot):
    owner = await register_user()
    await make_slot(owner["headers"], slot_date=days_from_today(5), start_time="08:00", end_time="09:00")
    await make_slot(owner["headers"], slot_date=days_from_today(2), start_time="14:00", end_time="15:00")
    await make_slot(owner["headers"], slot_date=days_from_today(2), start_time="09:00", end_time="10:00")
    await client.post("/api/availability/recurring", json={
        "day_of_week": 5, "start_time": "09:00", "end_time": "12:00", "duration_minutes": 60,
    }, headers=owner["headers"])
    await client.post("/api/availability/recurring", json={
        "day_of_week": 1, "start_time": "09:00", "end_time": "12:00", "duration_minutes": 60,
    }, headers=owner["headers"])

    r = await client.get("/api/availability/slots", headers=owner["headers"])
    body = r.json()
    assert [(s["date"], s["start_time"]) for s in body["time_slots"]] == [
        (days_from_today(2), "09:00"),
        (days_from_today(2), "14:00"),
        (days_from_today(5), "08:00"),
    ]
    assert body["total_slots"] == 3
    assert [rule["day_of_week"] for rule in body["recurring_availability"]] == [1, 5]

    r = await client.get(
        "/api/availability/slots",
        params={"start_date": days_from_today(3), "end_date": days_from_today(6)},
        headers=owner["headers"],
    )
    assert [s["date"] for s in r.json()["time_slots"]] == [days_from_today(5)]


@pytest.mark.asyncio
async def test_update_is_scoped_to_owner(client, register_user, make_slot):
    owner = await register_user(email="owner@example.com")
    intruder = await register_user(email="intruder@example.com")
    slot = await make_slot(owner["headers"])

    r = await client.put(f"/api/availability/slots/{slot['id']}", json={"is_available": False}, headers=intruder["headers"])
    assert r.status_code == 404
    assert r.json()["message"] == "Time slot not found or not authorized"

    r = await client.put("/api/availability/slots/not-an-id", json={"is_available": False}, headers=owner["headers"])
    assert r.status_code == 404

    r = await client.put(f"/api/availability/slots/{slot['id']}", json={"end_time": "11:00"}, headers=owner["headers"])
    assert r.status_code == 200
    assert r.json()["end_time"] == "11:00"

    # merged with the stored start time
    r = await client.put(f"/api/availability/slots/{slot['id']}", json={"end_time": "08:00"}, headers=owner["headers"])
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_delete_is_idempotent(client, register_user, make_slot):
    owner = await register_user()
    slot = await make_slot(owner["headers"])

    for _ in range(2):
        r = await client.delete(f"/api/availability/slots/{slot['id']}", headers=owner["headers"])
        assert r.status_code == 200
        assert r.json() == {"message": "Time slot deleted successfully"}

    r = await client.get("/api/availability/slots", headers=owner["headers"])
    assert r.json()["total_slots"] == 0


@pytest.mark.asyncio
async def test_recurring_rule_crud(client, register_user):
    owner = await register_user()
    r = await client.post("/api/availability/recurring", json={
        "day_of_week": 2, "start_time": "09:00", "end_time": "12:00", "duration_minutes": 60, "buffer_time_minutes": 15,
    }, headers=owner["headers"])
    assert r.status_code == 201
    rule = r.json()
    assert rule["is_active"] is True

    r = await client.put(f"/api/availability/recurring/{rule['id']}", json={"is_active": False}, headers=owner["headers"])
    assert r.json()["is_active"] is False

    r = await client.delete(f"/api/availability/recurring/{rule['id']}", headers=owner["headers"])
    assert r.status_code == 200
    r = await client.get("/api/availability/recurring", headers=owner["headers"])
    assert r.json() == []

    r = await client.post("/api/availability/recurring", json={
        "day_of_week": 7, "start_time": "09:00", "end_time": "12:00", "duration_minutes": 60,
    }, headers=owner["headers"])
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_generate_slots_is_idempotent(client, register_user):
    owner = await register_user()
    target_day = days_from_today(3)
    await client.post("/api/availability/recurring", json={
        "day_of_week": sunday_based_weekday(parse_date(target_day)),
        "start_time": "09:00", "end_time": "11:00", "duration_minutes": 60,
    }, headers=owner["headers"])
    window = {"start_date": days_from_today(1), "end_date": days_from_today(7)}

    r = await client.post("/api/availability/generate-slots", json=window, headers=owner["headers"])
    assert r.status_code == 200
    assert r.json() == {"created_slots": 2}

    r = await client.post("/api/availability/generate-slots", json=window, headers=owner["headers"])
    assert r.json() == {"created_slots": 0}

    r = await client.get("/api/availability/slots", headers=owner["headers"])
    slots = r.json()["time_slots"]
    assert [(s["date"], s["start_time"], s["end_time"]) for s in slots] == [
        (target_day, "09:00", "10:00"),
        (target_day, "10:00", "11:00"),
    ]
    assert all(s["is_available"] for s in slots)


@pytest.mark.asyncio
async def test_generate_slots_skips_existing_start(client, register_user, make_slot):
    owner = await register_user()
    target_day = days_from_today(3)
    await make_slot(owner["headers"], slot_date=target_day, start_time="09:00", end_time="09:45", duration=45)
    await client.post("/api/availability/recurring", json={
        "day_of_week": sunday_based_weekday(parse_date(target_day)),
        "start_time": "09:00", "end_time": "11:00", "duration_minutes": 60,
    }, headers=owner["headers"])

    r = await client.post("/api/availability/generate-slots", json={
        "start_date": target_day, "end_date": target_day,
    }, headers=owner["headers"])
    assert r.json() == {"created_slots": 1}


@pytest.mark.asyncio
async def test_generate_slots_edge_cases(client, register_user):
    owner = await register_user()

    r = await client.post("/api/availability/generate-slots", json={
        "start_date": days_from_today(1), "end_date": days_from_today(7),
    }, headers=owner["headers"])
    assert r.json() == {"created_slots": 0}

    r = await client.post("/api/availability/generate-slots", json={
        "start_date": days_from_today(7), "end_date": days_from_today(1),
    }, headers=owner["headers"])
    assert r.status_code == 400

    r = await client.post("/api/availability/generate-slots", json={
        "start_date": days_from_today(0), "end_date": days_from_today(400),
    }, headers=owner["headers"])
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_freelancer_profile_rules(client, register_user, make_profile):
    first = await register_user(email="first@example.com")
    second = await register_user(email="second@example.com")

    profile = await make_profile(first["headers"], slug="Jane-Doe")
    assert profile["booking_url_slug"] == "jane-doe"
    assert profile["is_public"] is True
    assert profile["currency"] == "USD"

    r = await client.post("/api/availability/profile", json={
        "business_name": "Again", "booking_url_slug": "another-slug",
    }, headers=first["headers"])
    assert r.status_code == 409
    assert r.json()["message"] == "Freelancer profile already exists"

    r = await client.post("/api/availability/profile", json={
        "business_name": "Copycat", "booking_url_slug": "jane-doe",
    }, headers=second["headers"])
    assert r.status_code == 409
    assert r.json()["message"] == "Booking URL slug already taken"

    await make_profile(second["headers"], slug="john-roe")

    # keeping your own slug is not a collision
    r = await client.put("/api/availability/profile", json={
        "booking_url_slug": "jane-doe", "hourly_rate": 120,
    }, headers=first["headers"])
    assert r.status_code == 200
    assert r.json()["hourly_rate"] == 120

    r = await client.put("/api/availability/profile", json={"booking_url_slug": "john-roe"}, headers=first["headers"])
    assert r.status_code == 409

    r = await client.get("/api/availability/profile", headers=second["headers"])
    assert r.json()["booking_url_slug"] == "john-roe"


@pytest.mark.asyncio
async def test_missing_profile_is_not_found(client, register_user):
    owner = await register_user()
    r = await client.get("/api/availability/profile", headers=owner["headers"])
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_public_availability(client, freelancer, make_slot):
    owner = await freelancer()
    await make_slot(owner["headers"], slot_date=days_from_today(-2))
    taken = await make_slot(owner["headers"], slot_date=days_from_today(2))
    await make_slot(owner["headers"], slot_date=days_from_today(5))
    await make_slot(owner["headers"], slot_date=days_from_today(4))
    await client.put(f"/api/availability/slots/{taken['id']}", json={"is_available": False}, headers=owner["headers"])

    r = await client.get("/api/availability/public/jane-doe")
    assert r.status_code == 200
    body = r.json()
    assert body["freelancer"]["business_name"] == "Jane Doe Consulting"
    assert [s["date"] for s in body["available_slots"]] == [days_from_today(4), days_from_today(5)]
    assert body["next_available_date"] == days_from_today(4)

    r = await client.get("/api/availability/public/jane-doe", params={"start_date": days_from_today(5)})
    assert [s["date"] for s in r.json()["available_slots"]] == [days_from_today(5)]


@pytest.mark.asyncio
async def test_private_or_unknown_booking_page(client, freelancer):
    owner = await freelancer()
    await client.put("/api/availability/profile", json={"is_public": False}, headers=owner["headers"])

    for slug in ("jane-doe", "nobody"):
        r = await client.get(f"/api/availability/public/{slug}")
        assert r.status_code == 404
        assert r.json()["message"] == "Freelancer not found or booking page is private"


@pytest.mark.asyncio
async def test_empty_public_page_has_no_next_date(client, freelancer):
    await freelancer()
    r = await client.get("/api/availability/public/jane-doe")
    assert r.json()["available_slots"] == []
    assert r.json()["next_available_date"] is None


@pytest.mark.asyncio
async def test_availability_stats(client, freelancer, make_slot, book):
    owner = await freelancer()
    today = days_from_today(0)
    booked = await make_slot(owner["headers"], slot_date=today, start_time="23:00", end_time="23:30", duration=30)
    await make_slot(owner["headers"], slot_date=today, start_time="22:00", end_time="22:30", duration=30)
    r = await book("jane-doe", booked["id"])
    assert r.status_code == 201

    r = await client.get("/api/availability/stats", headers=owner["headers"])
    stats = r.json()
    assert stats["total_slots_this_week"] == 2
    assert stats["booked_slots_this_week"] == 1
    assert stats["available_slots_this_week"] == 1
    assert stats["total_appointments_this_month"] == 1
    assert [a["time_slot_id"] for a in stats["upcoming_appointments"]] == [booked["id"]]


@pytest.mark.asyncio
async def test_profile_update_rejects_null_for_required_fields(client, mongo, freelancer):
    owner = await freelancer()
    before = await mongo.freelancer_profiles.find_one({"user_id": owner["id"]})

    for field in ("business_name", "booking_url_slug", "booking_advance_days", "is_public", "currency", "time_zone"):
        r = await client.put("/api/availability/profile", json={field: None}, headers=owner["headers"])
        assert r.status_code == 422, field
        assert r.json()["message"] == "Invalid request parameters"

    after = await mongo.freelancer_profiles.find_one({"user_id": owner["id"]})
    assert after == before


@pytest.mark.asyncio
async def test_profile_update_can_clear_optional_fields(client, freelancer):
    owner = await freelancer(description="Hourly consulting", cancellation_policy="24h notice")

    r = await client.put("/api/availability/profile", json={
        "description": None, "hourly_rate": None, "services_offered": None, "cancellation_policy": None,
    }, headers=owner["headers"])
    assert r.status_code == 200
    profile = r.json()
    assert profile["description"] is None
    assert profile["hourly_rate"] is None
    assert profile["cancellation_policy"] is None
    assert profile["booking_advance_days"] == 30


@pytest.mark.asyncio
async def test_slot_update_rejects_null(client, mongo, register_user, make_slot):
    owner = await register_user()
    slot = await make_slot(owner["headers"])
    before = await mongo.time_slots.find_one({"_id": ObjectId(slot["id"])})

    for field in ("start_time", "end_time", "duration_minutes", "buffer_time_minutes", "is_available"):
        r = await client.put(f"/api/availability/slots/{slot['id']}", json={field: None}, headers=owner["headers"])
        assert r.status_code == 422, field

    after = await mongo.time_slots.find_one({"_id": ObjectId(slot["id"])})
    assert after == before


@pytest.mark.asyncio
async def test_recurring_update_rejects_null(client, mongo, register_user):
    owner = await register_user()
    rule = (await client.post("/api/availability/recurring", json={
        "day_of_week": 1, "start_time": "09:00", "end_time": "12:00", "duration_minutes": 60,
    }, headers=owner["headers"])).json()
    before = await mongo.recurring_availability.find_one({"_id": ObjectId(rule["id"])})

    for field in ("start_time", "end_time", "duration_minutes", "buffer_time_minutes", "is_active"):
        r = await client.put(f"/api/availability/recurring/{rule['id']}", json={field: None}, headers=owner["headers"])
        assert r.status_code == 422, field

    after = await mongo.recurring_availability.find_one({"_id": ObjectId(rule["id"])})
    assert after == before
