"""Tests for login and logout endpoints."""

from datetime import timedelta

import httpx
import pytest
from conftest import FakeWallClock

from pokedex.services.sessions import SessionStore

# 2024-01-02 12:00 UTC: the fake wall clock's start plus 24 hours
EXPECTED_EXPIRES_AT_MS = 1704196800000


class TestLogin:
    async def test_valid_credentials(
        self, api_client: httpx.AsyncClient, session_store: SessionStore
    ) -> None:
        response = await api_client.post(
            "/api/login", json={"username": "admin", "password": "admin"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Login successful"
        assert data["expiresAt"] == EXPECTED_EXPIRES_AT_MS
        assert session_store.validate(data["token"]) is not None

    async def test_wrong_password(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post(
            "/api/login", json={"username": "admin", "password": "hunter2"}
        )

        assert response.status_code == 401
        assert response.json() == {
            "error": "Invalid username or password",
            "kind": "unauthorized",
        }

    @pytest.mark.parametrize(
        "body",
        [{}, {"username": "admin"}, {"password": "admin"}, {"username": "", "password": "admin"}],
    )
    async def test_missing_fields(
        self, api_client: httpx.AsyncClient, session_store: SessionStore, body: dict
    ) -> None:
        response = await api_client.post("/api/login", json=body)

        assert response.status_code == 400
        assert response.json() == {
            "error": "Username and password are required",
            "kind": "missing_required",
        }
        assert len(session_store) == 0

    async def test_malformed_body_is_400(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post(
            "/api/login", content=b"not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["kind"] == "invalid_input"


class TestLogout:
    async def test_revokes_token(
        self,
        api_client: httpx.AsyncClient,
        auth_headers: dict[str, str],
        session_store: SessionStore,
    ) -> None:
        response = await api_client.post("/api/logout", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Logout successful"}
        assert len(session_store) == 0

        response = await api_client.get("/api/pokemons", headers=auth_headers)
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired token"

    async def test_without_token(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post("/api/logout")

        assert response.status_code == 200
        assert response.json()["success"] is True

    async def test_with_unknown_token(self, api_client: httpx.AsyncClient) -> None:
        response = await api_client.post(
            "/api/logout", headers={"Authorization": "Bearer not-a-session"}
        )

        assert response.status_code == 200


class TestTokenExpiry:
    async def test_expired_token_is_rejected(
        self,
        api_client: httpx.AsyncClient,
        auth_headers: dict[str, str],
        wall_clock: FakeWallClock,
        session_store: SessionStore,
    ) -> None:
        wall_clock.now += timedelta(hours=24, seconds=1)

        response = await api_client.get("/api/pokemons", headers=auth_headers)

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid or expired token", "kind": "unauthorized"}
        assert len(session_store) == 0
