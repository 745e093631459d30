"""Tests for the auth API endpoints."""

from __future__ import annotations

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from investor_intel.auth.security import hash_password
from investor_intel.auth.sessions import validate_token
from investor_intel.db import connect

from conftest import APP_PASSWORD


class TestLoginEndpoint:
    """Tests for POST /api/auth/login."""

    def test_correct_password_sets_session_cookie(self, client: TestClient):
        response = client.post("/api/auth/login", json={"password": APP_PASSWORD})
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True}

        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("investor_session=")
        assert "HttpOnly" in set_cookie
        assert "Path=/" in set_cookie
        assert "SameSite=Strict" in set_cookie
        assert "Max-Age=2592000" in set_cookie  # 30 days

        token = client.cookies.get("investor_session")
        assert token is not None
        assert len(token) == 64
        int(token, 16)

    def test_wrong_password_returns_401_without_cookie(self, client: TestClient):
        response = client.post("/api/auth/login", json={"password": "nope"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"error": "Invalid password"}
        assert "set-cookie" not in response.headers

    def test_missing_password_returns_400(self, client: TestClient):
        response = client.post("/api/auth/login", json={})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Password required"}

    def test_empty_password_returns_400(self, client: TestClient):
        response = client.post("/api/auth/login", json={"password": ""})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_no_body_returns_400(self, client: TestClient):
        response = client.post("/api/auth/login")
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Password required"}

    def test_invalid_json_returns_400(self, client: TestClient):
        response = client.post(
            "/api/auth/login",
            content=b"{password:",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Password required"}

    @pytest.mark.parametrize("body", [{"password": 12345}, {"password": None}, ["pw"], "pw"])
    def test_non_string_password_returns_400(self, client: TestClient, body):
        response = client.post("/api/auth/login", json=body)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Password required"}

    def test_samesite_none_forces_secure(self, make_client):
        client = make_client(SESSION_COOKIE_SAMESITE="none", SESSION_COOKIE_SECURE=False)
        response = client.post("/api/auth/login", json={"password": APP_PASSWORD})
        set_cookie = response.headers["set-cookie"]
        assert "SameSite=None" in set_cookie
        assert "Secure" in set_cookie

    def test_unconfigured_password_rejects_everything(self, make_client):
        client = make_client(APP_PASSWORD="", APP_PASSWORD_HASH="")
        response = client.post("/api/auth/login", json={"password": APP_PASSWORD})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_hashed_password_config(self, make_client):
        client = make_client(APP_PASSWORD="", APP_PASSWORD_HASH=hash_password("s3cret-pass"))
        assert client.post("/api/auth/login", json={"password": "s3cret-pass"}).status_code == 200
        assert client.post("/api/auth/login", json={"password": "wrong"}).status_code == 401

    def test_hash_wins_over_plaintext(self, make_client):
        client = make_client(APP_PASSWORD="plain", APP_PASSWORD_HASH=hash_password("hashed"))
        assert client.post("/api/auth/login", json={"password": "plain"}).status_code == 401
        assert client.post("/api/auth/login", json={"password": "hashed"}).status_code == 200

    def test_db_failure_returns_500(self, client: TestClient, monkeypatch):
        from investor_intel.api import server

        def boom(*args, **kwargs):
            raise RuntimeError("db down")

        monkeypatch.setattr(server, "login", boom)
        response = client.post("/api/auth/login", json={"password": APP_PASSWORD})
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"error": "Login failed"}


class TestSessionEndpoint:
    """Tests for GET /api/auth/session."""

    def test_without_cookie_returns_401(self, client: TestClient):
        response = client.get("/api/auth/session")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"error": "Unauthorized"}

    def test_with_unknown_token_returns_401(self, client: TestClient):
        client.cookies.set("investor_session", "f" * 64)
        response = client.get("/api/auth/session")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_after_login_returns_expiry(self, authed_client: TestClient):
        response = authed_client.get("/api/auth/session")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["authenticated"] is True
        assert data["expires_at"].endswith("Z")


class TestLogoutEndpoint:
    """Tests for POST /api/auth/logout."""

    def test_logout_invalidates_token(self, authed_client: TestClient, cfg):
        token = authed_client.cookies.get("investor_session")
        response = authed_client.post("/api/auth/logout")
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True}
        assert "Max-Age=0" in response.headers["set-cookie"]

        with connect(cfg.DB_DSN) as conn:
            assert validate_token(conn, token) is None

        authed_client.cookies.set("investor_session", token)
        assert authed_client.get("/api/auth/session").status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout_without_session_still_succeeds(self, client: TestClient):
        response = client.post("/api/auth/logout")
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True}


class TestHealthEndpoint:
    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"status": "ok"}

    def test_unknown_route_uses_error_body(self, client: TestClient):
        response = client.get("/api/nope")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert "error" in response.json()
