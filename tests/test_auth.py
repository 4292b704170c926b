"""Registration, admin bootstrap, login and logout."""

from conftest import API, auth, register


def test_register_returns_user_and_token(client):
    token, data = register(client, "New.User@Example.com", "New User")

    assert token
    assert data["email"] == "new.user@example.com"
    assert data["role"] == "user"
    assert data["isActive"] is True
    assert "password" not in data

    me = client.get(f"{API}/auth/me", headers=auth(token))
    assert me.status_code == 200
    assert me.json()["data"]["_id"] == data["_id"]


def test_register_rejects_duplicate_email(client, user):
    response = client.post(
        f"{API}/auth/register",
        json={"fullName": "Dup", "email": "user@example.com", "password": "secret123"},
    )
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_register_validates_payload(client):
    response = client.post(f"{API}/auth/register", json={"fullName": "X", "email": "not-an-email", "password": "123"})
    assert response.status_code == 400
    assert len(response.json()["errors"]) == 2


def test_only_one_admin(client, admin):
    token, data = admin
    assert data["role"] == "admin"

    second = client.post(
        f"{API}/auth/create-admin",
        json={"fullName": "Admin Two", "email": "admin2@example.com", "password": "adminpass"},
    )
    assert second.status_code == 400
    assert second.json()["message"] == "Admin already exists, only one admin is allowed"


def test_login(client, user):
    missing = client.post(f"{API}/auth/login", json={"email": "user@example.com"})
    assert missing.status_code == 400
    assert missing.json()["message"] == "Please provide an email and password"

    wrong = client.post(f"{API}/auth/login", json={"email": "user@example.com", "password": "nope-nope"})
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid credentials"

    unknown = client.post(f"{API}/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
    assert unknown.status_code == 401

    ok = client.post(f"{API}/auth/login", json={"email": "USER@example.com", "password": "secret123"})
    assert ok.status_code == 200
    data = ok.json()["data"]
    assert data["token"]
    assert data["lastLogin"] is not None


def test_logout_records_time(client, user):
    token, _ = user
    response = client.post(f"{API}/auth/logout", headers=auth(token))

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Logged out successfully"
    assert body["data"]["lastLogout"] is not None


def test_deactivated_user_is_locked_out(client, admin, user):
    token, data = user
    toggled = client.patch(f"{API}/users/{data['_id']}/toggle-status", headers=auth(admin[0]))
    assert toggled.json()["data"]["isActive"] is False

    me = client.get(f"{API}/auth/me", headers=auth(token))
    assert me.status_code == 401
    assert me.json()["message"] == "Your account has been deactivated"

    login = client.post(f"{API}/auth/login", json={"email": "user@example.com", "password": "secret123"})
    assert login.status_code == 401


def test_missing_token_message(client):
    response = client.get(f"{API}/auth/me")
    assert response.status_code == 401
    assert response.json()["message"] == "Not authorized to access this route - no token provided"
    assert response.headers["WWW-Authenticate"] == "Bearer"
