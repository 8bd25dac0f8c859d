from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.backend.core.config import Settings
from app.backend.main import create_app

STRONG_PASSWORD = "Str0ng!Pass"


def make_settings(**overrides) -> Settings:
    values = dict(
        environment="test",
        bcrypt_rounds=4,
        rate_limit_max=10_000,
        auth_rate_limit_max=10_000,
        request_logging=False,
        jwt_secret_key="test-secret",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


def register(client, username: str = "alice", email: str | None = None, password: str = STRONG_PASSWORD):
    email = email or f"{username}@example.com"
    resp = client.post("/auth/register", json={"username": username, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client) -> dict:
    return auth_headers(register(client, "alice")["token"])


@pytest.fixture
def bob(client) -> dict:
    return auth_headers(register(client, "bob")["token"])
