"""
Tests for authentication endpoints.
"""

import pytest
from httpx import AsyncClient

from secrets_manager.services.auth_service import auth_service


@pytest.mark.asyncio
async def test_register_user(client: AsyncClient):
    """Registration creates a regular user and signs them in."""
    response = await client.post(
        "/api/auth/register",
        json={
            "username": "newuser",
            "email": "newuser@example.com",
            "password": "newpassword123",
            "full_name": "New User"
        }
    )

    assert response.status_code == 201
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["role"] == "user"
    assert "hashed_password" not in data["user"]


@pytest.mark.asyncio
async def test_register_ignores_requested_role(client: AsyncClient):
    response = await client.post(
        "/api/auth/register",
        json={
            "username": "sneaky",
            "email": "sneaky@example.com",
            "password": "password123",
            "full_name": "Sneaky",
            "role": "admin"
        }
    )

    assert response.status_code == 201
    assert response.json()["user"]["role"] == "user"


@pytest.mark.asyncio
async def test_register_duplicate_username(client: AsyncClient, test_user):
    response = await client.post(
        "/api/auth/register",
        json={
            "username": "testuser",
            "email": "different@example.com",
            "password": "password123",
            "full_name": "Someone Else"
        }
    )

    assert response.status_code == 400
    assert response.json()["error"] == "ConflictError"


@pytest.mark.asyncio
async def test_register_invalid_payload(client: AsyncClient):
    """Schema violations are reported as 400 with per-field errors."""
    response = await client.post(
        "/api/auth/register",
        json={"username": "ab", "email": "not-an-email", "password": "x"}
    )

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "ValidationError"
    assert data["errors"]


@pytest.mark.asyncio
async def test_login(client: AsyncClient, test_user):
    response = await client.post(
        "/api/auth/login",
        json={"username": "testuser", "password": "testpassword123"}
    )

    assert response.status_code == 200
    data = response.json()
    assert auth_service.decode_access_token(data["access_token"]) == test_user.id


@pytest.mark.asyncio
async def test_login_invalid_credentials(client: AsyncClient, test_user):
    response = await client.post(
        "/api/auth/login",
        json={"username": "testuser", "password": "wrongpassword"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_current_user(client: AsyncClient, auth_headers):
    response = await client.get("/api/auth/me", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["username"] == "testuser"
    assert data["email"] == "test@example.com"


@pytest.mark.asyncio
async def test_get_current_user_unauthorized(client: AsyncClient):
    response = await client.get("/api/auth/me")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_token_rejected(client: AsyncClient):
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_session_reports_state(client: AsyncClient, auth_headers):
    anonymous = await client.get("/api/auth/session")
    assert anonymous.status_code == 200
    assert anonymous.json()["is_authenticated"] is False

    signed_in = await client.get("/api/auth/session", headers=auth_headers)
    assert signed_in.json()["is_authenticated"] is True
    assert signed_in.json()["user"]["username"] == "testuser"


@pytest.mark.asyncio
async def test_logout(client: AsyncClient):
    response = await client.post("/api/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"success": True}


def test_long_passwords_are_hashed_consistently():
    """Passwords beyond bcrypt's 72-byte limit are still compared in full."""
    password = "a" * 100
    hashed = auth_service.hash_password(password)

    assert auth_service.verify_password(password, hashed)
    assert not auth_service.verify_password("a" * 99 + "b", hashed)
