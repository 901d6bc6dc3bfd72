import pytest

from .conftest import event_payload


pytestmark = pytest.mark.integration

EVENTS = "/api/v1/events"


def create_event(client, headers, **overrides):
    response = client.post(f"{EVENTS}/", json=event_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def owner_headers(login):
    return login("owner@example.com")


@pytest.fixture
def published_event(client, owner_headers):
    event = create_event(
        client,
        owner_headers,
        capacity=2,
        custom_fields=[
            {"name": "Dietary Restrictions", "type": "text"},
            {"name": "T-Shirt Size", "type": "select", "required": True, "options": "Small, Medium, Large"},
            {"name": "Updates", "type": "checkbox", "required": True},
        ],
    )
    response = client.post(f"{EVENTS}/{event['id']}/publish", headers=owner_headers)
    assert response.status_code == 200, response.text
    return response.json()


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


class TestAuth:
    def test_login_me_logout(self, client, login):
        headers = login("admin@example.com")
        me = client.get("/api/v1/auth/me", headers=headers)
        assert me.status_code == 200
        assert me.json()["role"] == "admin"

        assert client.post("/api/v1/auth/logout", headers=headers).status_code == 204
        assert client.get("/api/v1/auth/me", headers=headers).status_code == 401

    def test_register(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "new.owner@example.com", "password": "pw", "name": "New Owner"},
        )
        assert response.status_code == 201
        assert response.json()["user"]["role"] == "event_owner"

    def test_register_blank_name(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"email": "new.owner@example.com", "password": "pw", "name": "   "},
        )
        assert response.status_code == 422

    def test_invalid_email(self, client):
        response = client.post("/api/v1/auth/login", json={"email": "nope", "password": "pw"})
        assert response.status_code == 422

    def test_missing_and_forged_tokens(self, client):
        assert client.get("/api/v1/auth/me").status_code == 401
        forged = {"Authorization": "Bearer a.b.c"}
        assert client.get("/api/v1/auth/me", headers=forged).status_code == 401


class TestEvents:
    def test_create_requires_login(self, client):
        assert client.post(f"{EVENTS}/", json=event_payload()).status_code == 401

    def test_create_validation(self, client, owner_headers):
        response = client.post(f"{EVENTS}/", json=event_payload(title="A"), headers=owner_headers)
        assert response.status_code == 422

    def test_draft_visibility(self, client, owner_headers, login):
        event = create_event(client, owner_headers)
        assert client.get(f"{EVENTS}/{event['id']}").status_code == 404
        assert client.get(f"{EVENTS}/{event['id']}", headers=owner_headers).status_code == 200
        assert client.get(f"{EVENTS}/{event['id']}", headers=login("staff@example.com")).status_code == 200
        assert client.get(f"{EVENTS}/{event['id']}", headers=login("other@example.com")).status_code == 404
        assert client.get(f"{EVENTS}/").json() == []
        assert len(client.get(f"{EVENTS}/?mine=true", headers=owner_headers).json()) == 1

    def test_only_owner_or_admin_may_edit(self, client, owner_headers, login):
        event = create_event(client, owner_headers)
        url = f"{EVENTS}/{event['id']}"
        other = login("other@example.com")
        assert client.put(url, json={"title": "Hijacked"}, headers=other).status_code == 403
        response = client.put(url, json={"title": "Renamed"}, headers=login("admin@example.com"))
        assert response.status_code == 200
        assert response.json()["title"] == "Renamed"

    def test_update_rejects_inverted_dates(self, client, owner_headers):
        event = create_event(client, owner_headers)
        response = client.put(
            f"{EVENTS}/{event['id']}", json={"end_date": "2025-01-01T00:00:00"}, headers=owner_headers
        )
        assert response.status_code == 422

    def test_dates_with_and_without_timezone(self, client, owner_headers):
        event = create_event(client, owner_headers, end_date="2025-07-17T17:00:00Z")
        url = f"{EVENTS}/{event['id']}"
        moved = client.put(url, json={"end_date": "2025-07-18T17:00:00Z"}, headers=owner_headers)
        assert moved.status_code == 200
        inverted = client.put(url, json={"start_date": "2025-07-19T09:00:00"}, headers=owner_headers)
        assert inverted.status_code == 422

    def test_unknown_event(self, client):
        assert client.get(f"{EVENTS}/999").status_code == 404

    def test_cancel_and_delete(self, client, owner_headers, published_event):
        url = f"{EVENTS}/{published_event['id']}"
        assert client.post(f"{url}/cancel", headers=owner_headers).json()["status"] == "cancelled"
        assert client.post(f"{url}/cancel", headers=owner_headers).status_code == 409
        assert client.delete(url, headers=owner_headers).status_code == 204
        assert client.get(url).status_code == 404


class TestFields:
    def test_field_lifecycle(self, client, owner_headers):
        event = create_event(client, owner_headers)
        url = f"{EVENTS}/{event['id']}/fields"

        added = client.post(url, json={"name": "T-Shirt Size", "type": "select"}, headers=owner_headers)
        assert added.status_code == 201
        assert added.json() == {
            "id": "field_1", "name": "T-Shirt Size", "required": False, "type": "select", "options": [],
        }

        form = client.get(f"{EVENTS}/{event['id']}/form", headers=owner_headers)
        assert form.status_code == 422
        assert "no options" in form.json()["detail"][0]

        publish = client.post(f"{EVENTS}/{event['id']}/publish", headers=owner_headers)
        assert publish.status_code == 422

        patched = client.patch(
            f"{url}/field_1", json={"options": "S, M, L", "required": True}, headers=owner_headers
        )
        assert patched.status_code == 200
        assert patched.json()["options"] == ["S", "M", "L"]

        form = client.get(f"{EVENTS}/{event['id']}/form", headers=owner_headers).json()
        assert form == [{
            "id": "field_1", "name": "T-Shirt Size", "type": "select",
            "required": True, "options": ["S", "M", "L"], "default": "",
        }]

        assert client.delete(f"{url}/field_1", headers=owner_headers).status_code == 204
        assert client.get(url, headers=owner_headers).json() == []
        assert client.delete(f"{url}/field_1", headers=owner_headers).status_code == 404

    def test_options_rejected_for_text(self, client, owner_headers):
        event = create_event(client, owner_headers)
        response = client.post(
            f"{EVENTS}/{event['id']}/fields",
            json={"name": "Notes", "type": "text", "options": ["a"]},
            headers=owner_headers,
        )
        assert response.status_code == 422

    def test_published_fields_locked(self, client, owner_headers, published_event):
        response = client.post(
            f"{EVENTS}/{published_event['id']}/fields", json={"name": "Late"}, headers=owner_headers
        )
        assert response.status_code == 409

    def test_public_form_of_published_event(self, client, published_event):
        form = client.get(f"{EVENTS}/{published_event['id']}/form").json()
        assert [f["type"] for f in form] == ["text", "select", "checkbox"]
        assert form[2]["required"] is False


class TestRsvp:
    def test_rsvp_errors_in_field_order(self, client, published_event):
        response = client.post(
            f"{EVENTS}/{published_event['id']}/rsvp",
            json={"name": "Jane Smith", "email": "jane@example.com", "responses": {"field_3": "yes", "field_2": "XXL"}},
        )
        assert response.status_code == 422
        assert [e["field_id"] for e in response.json()["detail"]] == ["field_2", "field_3"]

    def test_rsvp_flow(self, client, owner_headers, published_event):
        url = f"{EVENTS}/{published_event['id']}"
        first = client.post(
            f"{url}/rsvp",
            json={"name": "Jane Smith", "email": "jane@example.com", "responses": {"field_2": "Medium"}},
        )
        assert first.status_code == 201
        assert {r["field_id"]: r["value"] for r in first.json()["responses"]} == {
            "field_1": "", "field_2": "Medium", "field_3": False,
        }

        duplicate = client.post(
            f"{url}/rsvp", json={"name": "Jane Smith", "email": "jane@example.com", "responses": {"field_2": "Small"}}
        )
        assert duplicate.status_code == 409

        second = client.post(
            f"{url}/rsvp",
            json={"name": "John Doe", "email": "john@example.com", "responses": {"field_2": "Large", "field_3": True}},
        )
        assert second.status_code == 201
        full = client.post(
            f"{url}/rsvp", json={"name": "Emily Davis", "email": "emily@example.com", "responses": {"field_2": "Small"}}
        )
        assert full.status_code == 409

        assert client.get(f"{url}/attendees").status_code == 401
        table = client.get(f"{url}/attendees", params={"search": "john"}, headers=owner_headers).json()
        assert [a["name"] for a in table] == ["John Doe"]

        patched = client.patch(
            f"{url}/attendees/{first.json()['id']}", json={"status": "cancelled"}, headers=owner_headers
        )
        assert patched.json()["status"] == "cancelled"

        stats = client.get(f"{url}/attendees/stats", headers=owner_headers).json()
        assert stats["total"] == 2
        assert stats["remaining"] == 1
        assert stats["by_status"]["cancelled"] == 1

    def test_rsvp_to_draft_is_closed(self, client, owner_headers):
        event = create_event(client, owner_headers)
        response = client.post(
            f"{EVENTS}/{event['id']}/rsvp", json={"name": "Jane Smith", "email": "jane@example.com"}
        )
        assert response.status_code == 409

    def test_attendee_table_forbidden_for_other_owner(self, client, login, published_event):
        other = login("other@example.com")
        response = client.get(f"{EVENTS}/{published_event['id']}/attendees", headers=other)
        assert response.status_code == 403
