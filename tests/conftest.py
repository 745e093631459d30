"""Pytest configuration and fixtures."""

from __future__ import annotations

import json
from dataclasses import replace
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

from investor_intel.api import server
from investor_intel.config import Config
from investor_intel.db import connect, init_db

APP_PASSWORD = "correct horse battery staple"


class FakeResponse:
    """Just enough of requests.Response for the HTTP clients under test."""

    def __init__(self, status_code: int = 200, payload: Any = None):
        self.status_code = status_code
        self._payload = payload
        self.text = json.dumps(payload) if payload is not None else ""

    def json(self) -> Any:
        return self._payload


@pytest.fixture
def cfg(tmp_path) -> Config:
    return Config(
        DB_DSN=str(tmp_path / "test.sqlite"),
        APP_PASSWORD=APP_PASSWORD,
        APP_PASSWORD_HASH="",
        SESSION_COOKIE_SECURE=False,
        GEMINI_API_KEY=None,
        EODHD_API_KEY="test-key",
        INTEL_REQUEST_DELAY_SECONDS=0.0,
        CORS_ALLOW_ORIGINS="",
    )


@pytest.fixture
def db(cfg: Config) -> Generator[Any, None, None]:
    """An open connection to a freshly initialized database."""
    init_db(cfg.DB_DSN)
    with connect(cfg.DB_DSN) as conn:
        yield conn


def _client_for(cfg: Config, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setattr(server, "cfg", cfg)
    return TestClient(server.app)


@pytest.fixture
def client(cfg: Config, monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    with _client_for(cfg, monkeypatch) as c:
        yield c


@pytest.fixture
def authed_client(client: TestClient) -> TestClient:
    response = client.post("/api/auth/login", json={"password": APP_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def make_client(cfg: Config, monkeypatch: pytest.MonkeyPatch):
    """Build a client for a config variant, e.g. make_client(APP_PASSWORD="")."""
    opened: list[TestClient] = []

    def _make(**overrides: Any) -> TestClient:
        c = _client_for(replace(cfg, **overrides), monkeypatch)
        c.__enter__()
        opened.append(c)
        return c

    yield _make
    for c in opened:
        c.__exit__(None, None, None)
