"""
Map Points API: HTTP Endpoint Tests
======================================

What:  End-to-end tests for /api/points, /api/health and unmatched routes.
How:   HTTPX AsyncClient against a fresh app backed by in-memory SQLite;
       storage faults are injected by patching the store.

What we test:
    ✅ Create → 201 with the full stored record (JSON and form bodies)
    ✅ Validation failures → 400 with the rule's message, store untouched
    ✅ List → newest first, identical on repeat
    ✅ Health → status, ISO timestamp, point count
    ✅ Unknown routes and methods → 404 "Route not found"
    ✅ Storage faults → 500 "Server error"; uncaught faults → 500 generic, service keeps running
"""

import logging
import re
from unittest.mock import AsyncMock, patch

import pytest

from mappoints.exceptions import PersistenceError
from mappoints.services.point_store import point_store

ISO_MILLIS_Z = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


async def stored_count(session_factory) -> int:
    async with session_factory() as session:
        return await point_store.count(session)


class TestCreatePoint:
    """POST /api/points"""

    @pytest.mark.asyncio
    async def test_create_returns_full_record(self, test_client):
        response = await test_client.post(
            "/api/points", json={"lat": 40.7, "lng": -74.0, "title": "NYC"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["lat"] == 40.7
        assert body["lng"] == -74.0
        assert body["title"] == "NYC"
        assert body["description"] == ""
        assert body["userId"] == "anonymous"
        assert body["id"]
        assert body["createdAt"]
        assert "created_at" not in body

    @pytest.mark.asyncio
    async def test_create_trims_and_persists(self, test_client, session_factory):
        response = await test_client.post(
            "/api/points",
            json={"lat": "51.5", "lng": "-0.12", "title": "  London ", "description": " Big Ben "},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "London"
        assert body["description"] == "Big Ben"
        assert body["lat"] == 51.5
        assert await stored_count(session_factory) == 1

    @pytest.mark.asyncio
    async def test_create_from_form_body(self, test_client):
        response = await test_client.post(
            "/api/points", data={"lat": "10.5", "lng": "20", "title": "Form point"}
        )

        assert response.status_code == 201
        assert response.json()["lat"] == 10.5
        assert response.json()["lng"] == 20.0

    @pytest.mark.asyncio
    async def test_empty_title_rejected(self, test_client, session_factory):
        response = await test_client.post(
            "/api/points", json={"lat": 40.7, "lng": -74.0, "title": ""}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "lat, lng and title are required"}
        assert await stored_count(session_factory) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload, message",
        [
            ({"lng": 1, "title": "x"}, "lat, lng and title are required"),
            ({"lat": 1, "title": "x"}, "lat, lng and title are required"),
            ({"lat": 1, "lng": 1, "title": "t" * 101}, "title must not exceed 100 characters"),
            (
                {"lat": 1, "lng": 1, "title": "x", "description": "d" * 501},
                "description must not exceed 500 characters",
            ),
            ({"lat": "north", "lng": 1, "title": "x"}, "lat and lng must be valid numbers"),
        ],
    )
    async def test_invalid_payload_never_reaches_store(
        self, test_client, session_factory, payload, message
    ):
        with patch.object(point_store, "create", wraps=point_store.create) as create:
            response = await test_client.post("/api/points", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": message}
        create.assert_not_called()
        assert await stored_count(session_factory) == 0

    @pytest.mark.asyncio
    async def test_integer_coordinate_too_large_for_float_rejected(self, test_client):
        huge = b"1" + b"0" * 400
        response = await test_client.post(
            "/api/points",
            content=b'{"lat": ' + huge + b', "lng": 1, "title": "x"}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "lat and lng must be valid numbers"}

    @pytest.mark.asyncio
    async def test_empty_body_rejected(self, test_client):
        response = await test_client.post("/api/points")

        assert response.status_code == 400
        assert response.json() == {"error": "lat, lng and title are required"}

    @pytest.mark.asyncio
    async def test_malformed_json_rejected(self, test_client):
        response = await test_client.post(
            "/api/points",
            content=b'{"lat": 1, "lng":',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON body"}

    @pytest.mark.asyncio
    async def test_storage_failure_returns_generic_500(self, test_client, valid_payload):
        failing = AsyncMock(
            side_effect=PersistenceError(context={"dsn": "postgresql://secret@db/points"})
        )
        with patch.object(point_store, "create", failing):
            response = await test_client.post("/api/points", json=valid_payload)

        assert response.status_code == 500
        assert response.json() == {"error": "Server error"}
        assert "secret" not in response.text


class TestListPoints:
    """GET /api/points"""

    @pytest.mark.asyncio
    async def test_empty_list(self, test_client):
        response = await test_client.get("/api/points")

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_newest_first_and_stable(self, test_client):
        for title in ("first", "second", "third"):
            created = await test_client.post(
                "/api/points", json={"lat": 1, "lng": 2, "title": title}
            )
            assert created.status_code == 201

        first = await test_client.get("/api/points")
        second = await test_client.get("/api/points")

        assert [p["title"] for p in first.json()] == ["third", "second", "first"]
        assert first.json() == second.json()

    @pytest.mark.asyncio
    async def test_created_at_same_in_create_and_list(self, test_client, valid_payload):
        created = (await test_client.post("/api/points", json=valid_payload)).json()
        listed = (await test_client.get("/api/points")).json()

        assert created["createdAt"].endswith("Z")
        assert listed[0]["createdAt"] == created["createdAt"]

    @pytest.mark.asyncio
    async def test_storage_failure_returns_generic_500(self, test_client):
        with patch.object(
            point_store, "list_points", AsyncMock(side_effect=PersistenceError())
        ):
            response = await test_client.get("/api/points")

        assert response.status_code == 500
        assert response.json() == {"error": "Server error"}


class TestHealth:
    """GET /api/health"""

    @pytest.mark.asyncio
    async def test_health_on_empty_store(self, test_client):
        response = await test_client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OK"
        assert body["pointsCount"] == 0
        assert ISO_MILLIS_Z.match(body["timestamp"])

    @pytest.mark.asyncio
    async def test_health_counts_points(self, test_client, valid_payload):
        await test_client.post("/api/points", json=valid_payload)
        await test_client.post("/api/points", json=valid_payload)

        response = await test_client.get("/api/health")

        assert response.json()["pointsCount"] == 2

    @pytest.mark.asyncio
    async def test_storage_failure_returns_generic_500(self, test_client):
        with patch.object(point_store, "count", AsyncMock(side_effect=PersistenceError())):
            response = await test_client.get("/api/health")

        assert response.status_code == 500
        assert response.json() == {"error": "Server error"}


class TestUnmatchedRoutes:
    """Anything else → 404."""

    @pytest.mark.asyncio
    async def test_unknown_api_path(self, test_client):
        response = await test_client.get("/api/unknown")

        assert response.status_code == 404
        assert response.json() == {"error": "Route not found"}

    @pytest.mark.asyncio
    async def test_unknown_root_path(self, test_client):
        response = await test_client.get("/nothing/here")

        assert response.status_code == 404
        assert response.json() == {"error": "Route not found"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["DELETE", "PUT", "PATCH"])
    async def test_unsupported_method_on_known_path(self, test_client, method):
        response = await test_client.request(method, "/api/points")

        assert response.status_code == 404
        assert response.json() == {"error": "Route not found"}


class TestUnhandledFaults:
    """Unexpected exceptions are contained at the top level."""

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_generic_500(self, test_client):
        with patch.object(
            point_store,
            "list_points",
            AsyncMock(side_effect=RuntimeError("password=hunter2 at /srv/app.py")),
        ):
            response = await test_client.get("/api/points")

        assert response.status_code == 500
        assert response.json() == {"error": "Something went wrong!"}
        assert "hunter2" not in response.text

    @pytest.mark.asyncio
    async def test_service_keeps_serving_after_fault(self, test_client):
        with patch.object(point_store, "count", AsyncMock(side_effect=KeyError("boom"))):
            failed = await test_client.get("/api/health")

        recovered = await test_client.get("/api/health")

        assert failed.status_code == 500
        assert recovered.status_code == 200
        assert recovered.json()["status"] == "OK"

    @pytest.mark.asyncio
    async def test_fault_response_is_tagged_and_logged(self, test_client, caplog):
        caplog.set_level(logging.INFO, logger="mappoints.access")
        with patch.object(
            point_store, "list_points", AsyncMock(side_effect=RuntimeError("boom"))
        ):
            response = await test_client.get(
                "/api/points", headers={"X-Request-ID": "fault-1"}
            )

        assert response.status_code == 500
        assert response.headers["X-Request-ID"] == "fault-1"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        access_lines = [
            r.getMessage() for r in caplog.records if r.name == "mappoints.access"
        ]
        assert any(line.startswith("GET /api/points 500") for line in access_lines)
