"""Shared fixtures: a fresh SQLite database per test and an API client."""

from typing import Any, Dict, Tuple

import pytest
from fastapi.testclient import TestClient

from passport_posts_api.app.core.config import settings
from passport_posts_api.app.core.db import init_db
from passport_posts_api.app.main import app


API = "/api/v1"


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    """Point the app at an empty database and archive directory under ``tmp_path``."""
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "test.db"))
    monkeypatch.setattr(settings, "deleted_log_dir", str(tmp_path / "deleted"))
    init_db()
    return tmp_path


@pytest.fixture
def client(database):
    with TestClient(app) as test_client:
        yield test_client


def auth(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, email: str, full_name: str = "Test User", password: str = "secret123") -> Tuple[str, Dict[str, Any]]:
    response = client.post(
        f"{API}/auth/register",
        json={"fullName": full_name, "email": email, "password": password, "mobileNumber": "9876543210"},
    )
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return data["token"], data


def entry(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "passportNumber": "P1234567",
        "link": "https://example.com/passport/1",
        "issuedCountry": "India",
        "city": "Delhi",
        "slipNo": "S-1",
        "otherDetails": "none",
    }
    payload.update(overrides)
    return payload


def create_post(client: TestClient, token: str, *entries: Dict[str, Any]) -> Dict[str, Any]:
    response = client.post(f"{API}/passport-posts", json={"passports": list(entries) or [entry()]}, headers=auth(token))
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def admin(client) -> Tuple[str, Dict[str, Any]]:
    response = client.post(
        f"{API}/auth/create-admin",
        json={"fullName": "Admin", "email": "admin@example.com", "password": "adminpass"},
    )
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return data["token"], data


@pytest.fixture
def user(client) -> Tuple[str, Dict[str, Any]]:
    return register(client, "user@example.com", "Regular User")


@pytest.fixture
def other(client) -> Tuple[str, Dict[str, Any]]:
    return register(client, "other@example.com", "Other User")
