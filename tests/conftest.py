"""
Shared pytest fixtures.

Every test gets fresh in‑memory stores; the HTTP fixtures build a new
application per test so sessions and events never leak between tests.
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from eventease_api.app.main import create_app
from eventease_api.app.schemas.event import EventCreate
from eventease_api.app.schemas.user import UserRead, UserRole
from eventease_api.app.services.event_service import EventDraftStore
from eventease_api.app.services.rsvp_service import RsvpService


FIXED_NOW = datetime(2025, 5, 1, 12, 0, 0)


def event_payload(**overrides) -> dict:
    data = {
        "title": "Annual Tech Conference",
        "description": "Three days of talks, workshops and networking.",
        "location": "San Francisco Convention Center",
        "start_date": "2025-07-15T09:00:00",
        "end_date": "2025-07-17T17:00:00",
        "capacity": 500,
    }
    data.update(overrides)
    return data


@pytest.fixture
def owner() -> UserRead:
    return UserRead(id="user_owner", email="owner@example.com", name="owner", role=UserRole.EVENT_OWNER)


@pytest.fixture
def store() -> EventDraftStore:
    return EventDraftStore(field_id_strategy="counter", clock=lambda: FIXED_NOW)


@pytest.fixture
def rsvps(store) -> RsvpService:
    return RsvpService(store, clock=lambda: FIXED_NOW)


@pytest.fixture
def make_event(store, owner):
    """Coroutine factory creating an event in ``store``."""

    async def _make(**overrides):
        return await store.create_event(EventCreate(**event_payload(**overrides)), owner)

    return _make


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(client):
    """Log in through the API and return bearer headers."""

    def _login(email: str = "owner@example.com", password: str = "secret") -> dict:
        response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login
