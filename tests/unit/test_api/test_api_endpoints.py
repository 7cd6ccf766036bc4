"""
Unit tests for API endpoints.

Tests endpoint behavior using FastAPI TestClient over the in-memory database.
"""

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from pulpit_scheduler.api.dependencies import get_db_session
from pulpit_scheduler.api.main import app


@pytest.fixture
def client(db_session):
    """Test client sharing the test database session."""
    app.dependency_overrides[get_db_session] = lambda: db_session
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


class TestHealthEndpoint:
    """Test /health endpoint."""

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert data["database_connected"] is True

    def test_health_check_has_request_id(self, client):
        response = client.get("/health")

        assert "X-Request-ID" in response.headers


class TestGenerateEndpoints:
    """Test POST /services/generate and /services/generate-year."""

    def test_generate_month(self, client, weekly_rules, march_holidays):
        response = client.post("/services/generate", json={"year": 2026, "month": 3})

        assert response.status_code == 201
        assert response.json() == {"year": 2026, "month": 3, "created": 14}

        listing = client.get("/services", params={"year": 2026, "month": 3}).json()
        assert listing["total"] == 14
        monday = next(s for s in listing["services"] if s["service_date"] == "2026-03-02")
        assert monday["start_time"] == "18:00:00"
        assert monday["holiday_adjusted"] is True
        assert monday["service_type_name"] == "Bible study"

    def test_generate_twice_conflicts(self, client, weekly_rules):
        client.post("/services/generate", json={"year": 2026, "month": 3})

        response = client.post("/services/generate", json={"year": 2026, "month": 3})

        assert response.status_code == 409
        data = response.json()
        assert data["error_type"] == "duplicate_month"
        assert data["retryable"] is False

    def test_invalid_month(self, client):
        response = client.post("/services/generate", json={"year": 2026, "month": 13})

        assert response.status_code == 422

    def test_generate_year_reports_each_month(self, client, weekly_rules):
        client.post("/services/generate", json={"year": 2026, "month": 3})

        response = client.post("/services/generate-year", json={"year": 2026})

        assert response.status_code == 200
        months = response.json()["months"]
        assert months["3"]["ok"] is False
        assert months["3"]["error_code"] == "duplicate_month"
        assert months["4"]["ok"] is True
        assert len(months) == 12


class TestServiceEndpoints:
    """Test manual services, details and metadata."""

    def test_create_manual_service(self, client, worship_type):
        response = client.post(
            "/services",
            json={
                "service_date": "2026-03-04",
                "start_time": "20:00",
                "end_time": "21:30",
                "service_type_id": str(worship_type.id),
            },
            headers={"X-User-ID": "admin-1"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["start_time"] == "20:00:00"
        assert data["assignment_status"] == "pending"

    def test_create_with_unknown_type(self, client):
        response = client.post(
            "/services",
            json={"service_date": "2026-03-04", "start_time": "20:00", "service_type_id": str(uuid4())},
        )

        assert response.status_code == 404
        assert response.json()["error_type"] == "not_found"

    def test_get_missing_service(self, client):
        assert client.get(f"/services/{uuid4()}").status_code == 404

    def test_update_metadata(self, client, sample_service):
        response = client.patch(
            f"/services/{sample_service.id}/metadata",
            json={"observations": "Baptisms", "early_start_time": "10:30"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["observations"] == "Baptisms"
        assert data["effective_start_time"] == "10:30:00"

        cleared = client.patch(f"/services/{sample_service.id}/metadata", json={}).json()
        assert cleared["observations"] is None
        assert cleared["effective_start_time"] == "11:00:00"


class TestAssignmentEndpoints:
    def test_set_and_list(self, client, sample_service, people):
        ana = str(people["ana"].id)

        response = client.put(f"/services/{sample_service.id}/roles/teaching", json={"person_id": ana})

        assert response.status_code == 200
        assert response.json()["teaching_user_id"] == ana

        listing = client.get(
            f"/people/{ana}/assignments",
            params={"start_date": "2026-03-01", "end_date": "2026-03-31"},
        ).json()
        assert listing["total"] == 1

    def test_unknown_role(self, client, sample_service, people):
        response = client.put(
            f"/services/{sample_service.id}/roles/usher",
            json={"person_id": str(people["ana"].id)},
        )

        assert response.status_code == 422

    def test_people_search(self, client, people):
        data = client.get("/people", params={"q": "ana"}).json()

        assert [p["full_name"] for p in data] == ["Ana García"]
        assert data[0]["available"] is None

    def test_availability_orders_search(self, client, people):
        ana = str(people["ana"].id)

        response = client.put(
            f"/people/{ana}/availability",
            json={"template": {"0": {"intro": False}}, "exceptions": {"2026-03-25": {"intro": True}}},
        )

        assert response.status_code == 200
        assert response.json()["availability"] == {
            "template": {"0": {"intro": False}},
            "exceptions": {"2026-03-25": {"intro": True}},
        }

        data = client.get(
            "/people", params={"service_date": "2026-03-22", "role": "intro"}
        ).json()

        assert [(p["first_name"], p["available"]) for p in data] == [
            ("Luis", True),
            ("Marta", True),
            ("Ana", False),
        ]

    def test_invalid_availability_day(self, client, people):
        response = client.put(
            f"/people/{people['ana'].id}/availability",
            json={"template": {"8": {"intro": True}}},
        )

        assert response.status_code == 422

    def test_availability_unknown_person(self, client):
        response = client.put(f"/people/{uuid4()}/availability", json={})

        assert response.status_code == 404


class TestReadingEndpoints:
    """Test the reading save / confirm round trip."""

    def _payload(self, reader_id, **overrides):
        payload = {
            "role": "intro",
            "book": "John",
            "chapter_start": 3,
            "verse_start": 16,
            "reader_id": str(reader_id),
        }
        payload.update(overrides)
        return payload

    def test_repeat_needs_confirmation(self, client, sample_service, second_service, people):
        first = client.post(
            f"/services/{sample_service.id}/readings", json=self._payload(people["ana"].id)
        )
        assert first.status_code == 200
        assert first.json()["status"] == "saved"
        assert first.json()["reading"]["citation"] == "John 3:16"

        second = client.post(
            f"/services/{second_service.id}/readings", json=self._payload(people["luis"].id)
        )

        assert second.status_code == 200
        body = second.json()
        assert body["status"] == "requires_confirmation"
        assert body["confirmation"]["service_date"] == "2026-03-01"

        confirmed = client.post(
            f"/services/{second_service.id}/readings/confirm",
            json=self._payload(
                people["luis"].id,
                original_reading_id=body["confirmation"]["reading_id"],
            ),
        )
        assert confirmed.json()["reading"]["is_repeat"] is True

        readings = client.get(f"/services/{second_service.id}/readings").json()
        assert len(readings) == 1

    def test_invalid_passage(self, client, sample_service, people):
        response = client.post(
            f"/services/{sample_service.id}/readings",
            json=self._payload(people["ana"].id, chapter_end=2),
        )

        assert response.status_code == 422

    def test_delete(self, client, sample_service, second_service, people):
        saved = client.post(
            f"/services/{sample_service.id}/readings", json=self._payload(people["ana"].id)
        ).json()
        reading_id = saved["reading"]["id"]

        wrong = client.delete(f"/services/{second_service.id}/readings/{reading_id}")
        right = client.delete(f"/services/{sample_service.id}/readings/{reading_id}")

        assert wrong.status_code == 404
        assert right.status_code == 204


class TestPlaylistEndpoints:
    """Test playlist endpoints."""

    def test_add_list_and_capacity(self, client, sample_service, songbook):
        url = f"/services/{sample_service.id}/playlist"
        for hymn in songbook["hymn"][:3]:
            assert client.post(url, json={"category": "hymn", "item_id": str(hymn.id)}).status_code == 201

        full = client.post(url, json={"category": "hymn", "item_id": str(songbook["hymn"][3].id)})
        duplicate = client.post(url, json={"category": "hymn", "item_id": str(songbook["hymn"][0].id)})

        assert full.status_code == 422
        assert full.json()["error_type"] == "capacity_exceeded"
        assert duplicate.status_code == 409

        playlist = client.get(url).json()
        assert [e["order_index"] for e in playlist["entries"]] == [1, 2, 3]
        assert playlist["hymns_seconds"] == 181 + 182 + 183

    def test_reorder_and_remove(self, client, sample_service, songbook):
        url = f"/services/{sample_service.id}/playlist"
        ids = [
            client.post(url, json={"category": "hymn", "item_id": str(h.id)}).json()["entry_id"]
            for h in songbook["hymn"][:2]
        ]

        reordered = client.put(f"{url}/order", json={"entry_ids": list(reversed(ids))})
        assert reordered.status_code == 200
        assert [e["entry_id"] for e in reordered.json()["entries"]] == list(reversed(ids))

        assert client.delete(f"{url}/{ids[1]}").status_code == 204
        remaining = client.get(url).json()["entries"]
        assert [(e["entry_id"], e["order_index"]) for e in remaining] == [(ids[0], 1)]

    def test_music_search(self, client, songbook):
        data = client.get("/music-items", params={"category": "chorus", "q": "2"}).json()

        assert [i["title"] for i in data] == ["Chorus 2"]


class TestAdministrationEndpoints:
    def test_holidays(self, client, march_holidays):
        created = client.post("/holidays", json={"holiday_date": "2026-12-25", "kind": "national"})
        assert created.status_code == 201

        assert len(client.get("/holidays", params={"year": 2026}).json()) == 4
        assert client.delete(f"/holidays/{created.json()['id']}").status_code == 204
        assert client.delete(f"/holidays/{uuid4()}").status_code == 404

    def test_weekly_rules(self, client, weekly_rules, worship_type):
        response = client.put(
            "/weekly-rules/3",
            json={"service_type_id": str(worship_type.id), "default_start_time": "19:30"},
        )

        assert response.status_code == 200
        days = [r["day_of_week"] for r in client.get("/weekly-rules").json()]
        assert days == [0, 1, 3, 6]

    def test_weekly_rule_day_out_of_range(self, client, worship_type):
        response = client.put(
            "/weekly-rules/9",
            json={"service_type_id": str(worship_type.id), "default_start_time": "19:30"},
        )

        assert response.status_code == 422
