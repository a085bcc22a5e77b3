import pytest
from datetime import date, timedelta
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

from zync.main import app
from zync.db.mongodb import db, create_indexes
from zync.utils import file_upload


def days_from_today(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def mongo(monkeypatch):
    mock_client = AsyncMongoMockClient()
    monkeypatch.setattr(db, "client", mock_client)
    monkeypatch.setattr(db, "db", mock_client["zync_test"])
    await create_indexes()
    yield db.db


@pytest.fixture
async def client(mongo, tmp_path, monkeypatch):
    monkeypatch.setattr(file_upload, "UPLOADS_DIR", tmp_path)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Factories
@pytest.fixture
def register_user(client):
    async def _register_user(email="owner@example.com", password="secret123", name=None):
        payload = {"email": email, "password": password}
        if name:
            payload["name"] = name
        r = await client.post("/api/auth/register", json=payload)
        assert r.status_code == 201, r.text
        body = r.json()
        return {
            "id": body["user"]["id"],
            "token": body["access_token"],
            "headers": auth_headers(body["access_token"]),
            "user": body["user"],
        }
    return _register_user


@pytest.fixture
def make_profile(client):
    async def _make_profile(headers, slug="jane-doe", **overrides):
        payload = {
            "business_name": "Jane Doe Consulting",
            "booking_url_slug": slug,
            "hourly_rate": 100,
            "booking_advance_days": 30,
        }
        payload.update(overrides)
        r = await client.post("/api/availability/profile", json=payload, headers=headers)
        assert r.status_code == 201, r.text
        return r.json()
    return _make_profile


@pytest.fixture
def make_slot(client):
    async def _make_slot(headers, slot_date=None, start_time="09:00", end_time="10:00", duration=60):
        payload = {
            "date": slot_date or days_from_today(3),
            "start_time": start_time,
            "end_time": end_time,
            "duration_minutes": duration,
        }
        r = await client.post("/api/availability/slots", json=payload, headers=headers)
        assert r.status_code == 201, r.text
        return r.json()
    return _make_slot


@pytest.fixture
def freelancer(register_user, make_profile):
    """A registered user with a public booking page at /jane-doe."""
    async def _freelancer(email="owner@example.com", slug="jane-doe", **profile_fields):
        owner = await register_user(email=email, name="Jane Doe")
        owner["profile"] = await make_profile(owner["headers"], slug=slug, **profile_fields)
        return owner
    return _freelancer


@pytest.fixture
def book(client):
    async def _book(slug, slot_id, name="Carl Customer", email="carl@example.com"):
        return await client.post(
            f"/api/booking/{slug}/book",
            json={"time_slot_id": slot_id, "customer_name": name, "customer_email": email},
        )
    return _book
