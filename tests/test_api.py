"""
Integration tests for the User API endpoints.
Tests the CRUD routes, request validation, and error-to-status mapping.
"""

import dataclasses
import logging

import pytest
from httpx import ASGITransport, AsyncClient
from unittest.mock import AsyncMock, MagicMock
from user_api.controller import UserController, parse_user_id
from user_api.errors import UserServiceError
from user_api.main import app


async def create_user(client, data):
    response = await client.post("/api/users", json=data)
    assert response.status_code == 201
    return response.json()


# ============================================================================
# GET / and unmatched routes
# ============================================================================

@pytest.mark.asyncio
async def test_root_health_payload(client):
    response = await client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "running"
    assert data["env"] == "test"


@pytest.mark.asyncio
async def test_health_check_connected(client):
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"


@pytest.mark.asyncio
async def test_unmatched_route_returns_not_found(client):
    response = await client.get("/does-not-exist")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


@pytest.mark.asyncio
async def test_unsupported_method(client):
    response = await client.patch("/api/users/1", json={"name": "X"})

    assert response.status_code == 405
    assert response.json() == {"error": "Method Not Allowed"}


# ============================================================================
# POST /api/users - Create User
# ============================================================================

@pytest.mark.asyncio
async def test_create_user_success(client, sample_user):
    """Test creating a valid user returns 201 with user data."""
    response = await client.post("/api/users", json=sample_user)

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == sample_user["name"]
    assert data["email"] == sample_user["email"]
    assert isinstance(data["id"], int)
    assert "createdAt" in data
    assert set(data) == {"id", "name", "email", "createdAt"}


@pytest.mark.asyncio
async def test_create_user_duplicate_email(client, sample_user):
    """Test creating user with duplicate email returns 409."""
    await create_user(client, sample_user)

    response = await client.post("/api/users", json={"name": "Other", "email": sample_user["email"]})

    assert response.status_code == 409
    assert response.json() == {"error": "Email already exists", "code": "CONFLICT"}

    users = (await client.get("/api/users")).json()
    assert len(users) == 1


@pytest.mark.asyncio
async def test_create_user_missing_email(client):
    response = await client.post("/api/users", json={"name": "X"})

    assert response.status_code == 400
    assert response.json() == {"error": "Name and email are required"}


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {"email": "x@example.com"},
    {"name": "", "email": "x@example.com"},
    {"name": "X", "email": ""},
    {"name": None, "email": "x@example.com"},
    [],
    "just a string",
])
async def test_create_user_required_fields(client, body):
    response = await client.post("/api/users", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Name and email are required"}


@pytest.mark.asyncio
async def test_create_user_invalid_json(client):
    response = await client.post(
        "/api/users",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON"}


@pytest.mark.asyncio
async def test_create_user_empty_body(client):
    response = await client.post("/api/users")

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON"}


@pytest.mark.asyncio
async def test_create_user_wrong_field_type(client):
    response = await client.post("/api/users", json={"name": 42, "email": "x@example.com"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body", "code": "VALIDATION_ERROR"}


@pytest.mark.asyncio
async def test_create_user_name_too_long(client):
    response = await client.post("/api/users", json={"name": "A" * 101, "email": "x@example.com"})

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_create_user_ignores_unknown_fields(client):
    data = await create_user(client, {"name": "X", "email": "x@example.com", "id": 999, "role": "admin"})

    assert data["id"] != 999
    assert "role" not in data


# ============================================================================
# GET /api/users and /api/users/{id} - Read Users
# ============================================================================

@pytest.mark.asyncio
async def test_list_users_empty(client):
    response = await client.get("/api/users")

    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_list_users(client, sample_users):
    for user in sample_users:
        await create_user(client, user)

    response = await client.get("/api/users")

    assert response.status_code == 200
    data = response.json()
    assert len(data) == len(sample_users)
    assert {u["email"] for u in data} == {u["email"] for u in sample_users}


@pytest.mark.asyncio
async def test_get_user_success(client, sample_user):
    created = await create_user(client, sample_user)

    response = await client.get(f"/api/users/{created['id']}")

    assert response.status_code == 200
    assert response.json() == created


@pytest.mark.asyncio
async def test_get_user_not_found(client):
    response = await client.get("/api/users/99999")

    assert response.status_code == 404
    assert response.json() == {"error": "User not found", "code": "NOT_FOUND"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "bad_id", ["abc", "1.5", "12abc", "99999999999999999999", "\u0661", "1_0", " 1"]
)
async def test_get_user_invalid_id(client, bad_id):
    response = await client.get(f"/api/users/{bad_id}")

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid user ID"}


# ============================================================================
# PUT /api/users/{id} - Update User
# ============================================================================

@pytest.mark.asyncio
async def test_update_user_partial(client, sample_user):
    created = await create_user(client, sample_user)

    response = await client.put(f"/api/users/{created['id']}", json={"name": "Renamed"})

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Renamed"
    assert data["email"] == sample_user["email"]
    assert data["createdAt"] == created["createdAt"]


@pytest.mark.asyncio
async def test_update_user_null_field_is_ignored(client, sample_user):
    created = await create_user(client, sample_user)

    response = await client.put(f"/api/users/{created['id']}", json={"name": None, "email": "new@example.com"})

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == sample_user["name"]
    assert data["email"] == "new@example.com"


@pytest.mark.asyncio
async def test_update_user_empty_body_object(client, sample_user):
    created = await create_user(client, sample_user)

    response = await client.put(f"/api/users/{created['id']}", json={})

    assert response.status_code == 200
    assert response.json() == created


@pytest.mark.asyncio
async def test_update_user_own_email(client, sample_user):
    created = await create_user(client, sample_user)

    response = await client.put(f"/api/users/{created['id']}", json={"email": sample_user["email"]})

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_update_user_email_conflict(client):
    await create_user(client, {"name": "U1", "email": "a@x.com"})
    u2 = await create_user(client, {"name": "U2", "email": "b@x.com"})

    response = await client.put(f"/api/users/{u2['id']}", json={"email": "a@x.com"})

    assert response.status_code == 409
    assert response.json() == {"error": "Email already exists", "code": "CONFLICT"}


@pytest.mark.asyncio
async def test_update_user_not_found(client):
    response = await client.put("/api/users/99999", json={"name": "X"})

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_update_user_invalid_id(client):
    response = await client.put("/api/users/abc", json={"name": "X"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid user ID"}


@pytest.mark.asyncio
async def test_update_user_invalid_json(client, sample_user):
    created = await create_user(client, sample_user)

    response = await client.put(
        f"/api/users/{created['id']}",
        content="{oops",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON"}


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [[1, 2], {"name": ""}, {"email": 5}])
async def test_update_user_invalid_body(client, sample_user, body):
    created = await create_user(client, sample_user)

    response = await client.put(f"/api/users/{created['id']}", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body", "code": "VALIDATION_ERROR"}


# ============================================================================
# DELETE /api/users/{id} - Delete User
# ============================================================================

@pytest.mark.asyncio
async def test_delete_user_success(client, sample_user):
    created = await create_user(client, sample_user)

    response = await client.delete(f"/api/users/{created['id']}")

    assert response.status_code == 200
    assert response.json() == {"message": "User deleted successfully"}

    get_response = await client.get(f"/api/users/{created['id']}")
    assert get_response.status_code == 404


@pytest.mark.asyncio
async def test_delete_user_not_found(client):
    response = await client.delete("/api/users/99999")

    assert response.status_code == 404
    assert response.json() == {"error": "User not found", "code": "NOT_FOUND"}


@pytest.mark.asyncio
async def test_delete_user_invalid_id(client):
    response = await client.delete("/api/users/abc")

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid user ID"}


# ============================================================================
# Error mapping for failures outside the domain taxonomy
# ============================================================================

@pytest.mark.asyncio
async def test_unlabeled_service_error_maps_to_500():
    service = MagicMock()
    service.get_user_by_id = AsyncMock(side_effect=UserServiceError("Something odd"))
    controller = UserController(service)

    response = await controller.get_by_id("1")

    assert response.status_code == 500


@pytest.mark.asyncio
async def test_unexpected_exception_is_hidden(container):
    service = MagicMock()
    service.get_all_users = AsyncMock(side_effect=RuntimeError("database exploded"))
    original_container = app.state.container
    app.state.container = dataclasses.replace(container, user_controller=UserController(service))
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app, raise_app_exceptions=False),
            base_url="http://test",
        ) as ac:
            response = await ac.get("/api/users")
    finally:
        app.state.container = original_container

    assert response.status_code == 500
    assert response.json() == {"error": "Internal Server Error"}
    assert "exploded" not in response.text


@pytest.mark.asyncio
async def test_unexpected_exception_keeps_headers_and_logs_once(container, caplog):
    service = MagicMock()
    service.get_all_users = AsyncMock(side_effect=RuntimeError("database exploded"))
    original_container = app.state.container
    app.state.container = dataclasses.replace(container, user_controller=UserController(service))
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app, raise_app_exceptions=False),
            base_url="http://test",
        ) as ac:
            with caplog.at_level(logging.ERROR, logger="user_api"):
                response = await ac.get("/api/users", headers={"X-Request-ID": "req-500"})
    finally:
        app.state.container = original_container

    assert response.status_code == 500
    assert response.headers["X-Request-ID"] == "req-500"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    errors = [r for r in caplog.records if r.levelno >= logging.ERROR and "exploded" in r.getMessage()]
    assert len(errors) == 1
    assert "req-500" in errors[0].getMessage()


@pytest.mark.asyncio
async def test_request_id_echoed(client):
    response = await client.get("/", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_request_id_generated(client):
    response = await client.get("/")

    assert response.headers.get("X-Request-ID")


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_id", ["١", "1_0", " 1", "+", ""])
async def test_malformed_id_never_reaches_service(bad_id):
    service = MagicMock()
    service.get_user_by_id = AsyncMock()
    service.delete_user = AsyncMock()
    controller = UserController(service)

    for response in (await controller.get_by_id(bad_id), await controller.delete(bad_id)):
        assert response.status_code == 400

    service.get_user_by_id.assert_not_awaited()
    service.delete_user.assert_not_awaited()


@pytest.mark.parametrize("raw_id, expected", [
    ("1", 1),
    ("+7", 7),
    ("-3", -3),
    ("007", 7),
    ("9223372036854775807", 2**63 - 1),
    ("9223372036854775808", None),
    ("١", None),
    ("1_0", None),
    (" 1", None),
    ("1\n", None),
])
def test_parse_user_id(raw_id, expected):
    assert parse_user_id(raw_id) == expected
