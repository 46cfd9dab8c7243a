"""
HTTP tests against the assembled application

Tests cover:
1. Registration, login, logout and refresh over HTTP
2. The error envelope and status codes
3. Role checks on privileged endpoints
4. System endpoints and response headers
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from app.main import app

API = "/api/v1"
PASSWORD = "5f4dcc3b5aa765d61d8327deb882cf99"


@pytest.fixture(scope="module")
def client():
    # entering the client runs the lifespan: tables and default configs
    with TestClient(app) as client:
        yield client


def unique_name(prefix: str = "user") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


def register(client, username=None):
    username = username or unique_name()
    response = client.post(
        f"{API}/users/register",
        json={"username": username, "password_hash": PASSWORD},
    )
    assert response.status_code == 201, response.text
    return username, response.json()


def auth(token: dict) -> dict:
    return {"Authorization": f"Bearer {token['token_value']}"}


class TestSystemEndpoints:
    def test_health(self, client):
        response = client.get(f"{API}/system/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    def test_info(self, client):
        response = client.get(f"{API}/system/info")
        assert response.status_code == 200
        body = response.json()
        assert body["app_name"] == "Club Administration API"
        assert body["version"]
        assert body["name"]

    def test_error_stats_need_admin(self, client):
        _, token = register(client)
        response = client.get(f"{API}/system/errors", headers=auth(token))
        assert response.status_code == 403
        assert response.json()["error"] == "PERMISSION_DENIED"

    def test_purge_needs_super_admin(self, client):
        _, token = register(client)
        response = client.post(f"{API}/system/purge", headers=auth(token))
        assert response.status_code == 403


class TestAuthFlow:
    def test_register_and_me(self, client):
        username, token = register(client)
        assert token["status"] == 1
        assert token["is_reference"] is True

        response = client.get(f"{API}/users/me", headers=auth(token))
        assert response.status_code == 200
        body = response.json()
        assert body["username"] == username
        assert body["role_id"] == 0
        assert body["parent_club_id"] == -1
        assert "password_hash" not in body

    def test_missing_token(self, client):
        response = client.get(f"{API}/users/me")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        body = response.json()
        assert body["error"] == "AUTHENTICATION_ERROR"
        assert body["path"] == f"{API}/users/me"

    def test_unknown_token(self, client):
        response = client.get(
            f"{API}/users/me", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401

    def test_duplicate_username(self, client):
        username, _ = register(client)
        response = client.post(
            f"{API}/users/register",
            json={"username": username, "password_hash": PASSWORD},
        )
        assert response.status_code == 409
        assert response.json()["error"] == "USERNAME_TAKEN"

    def test_invalid_registration_payload(self, client):
        response = client.post(
            f"{API}/users/register",
            json={"username": "ab", "password_hash": "short"},
        )
        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_login_replaces_token(self, client):
        username, first = register(client)
        response = client.post(
            f"{API}/users/login", json={"username": username, "password_hash": PASSWORD}
        )
        assert response.status_code == 200
        second = response.json()

        assert client.get(f"{API}/users/me", headers=auth(first)).status_code == 401
        assert client.get(f"{API}/users/me", headers=auth(second)).status_code == 200

    def test_login_with_wrong_password(self, client):
        username, _ = register(client)
        response = client.post(
            f"{API}/users/login",
            json={"username": username, "password_hash": "0" * 32},
        )
        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_CREDENTIALS"

    def test_logout(self, client):
        _, token = register(client)
        response = client.post(f"{API}/users/logout", headers=auth(token))
        assert response.status_code == 200

        response = client.get(f"{API}/users/me", headers=auth(token))
        assert response.status_code == 401
        assert response.json()["error"] == "TOKEN_EXPIRED"

    def test_refresh_once(self, client):
        _, token = register(client)
        response = client.post(
            f"{API}/users/refresh", json={"token": token["token_value"]}
        )
        assert response.status_code == 200
        new_token = response.json()
        assert new_token["token_value"] != token["token_value"]
        assert client.get(f"{API}/users/me", headers=auth(new_token)).status_code == 200

        again = client.post(f"{API}/users/refresh", json={"token": token["token_value"]})
        assert again.status_code == 401
        assert again.json()["error"] == "TOKEN_NOT_REFERENCEABLE"

    def test_my_tokens(self, client):
        _, token = register(client)
        response = client.get(f"{API}/users/me/tokens", headers=auth(token))
        assert response.status_code == 200
        tokens = response.json()
        assert len(tokens) == 1
        assert "token_value" not in tokens[0]


class TestProfile:
    def test_update_profile(self, client):
        _, token = register(client)
        email = f"{uuid.uuid4().hex[:8]}@example.com"
        response = client.put(
            f"{API}/users/me",
            headers=auth(token),
            json={"email": email, "phone": "+1 (555) 010-9999", "real_name": ""},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["email"] == email
        assert body["phone"] == "+15550109999"
        assert body["real_name"] is None

    def test_invalid_email(self, client):
        _, token = register(client)
        response = client.put(
            f"{API}/users/me", headers=auth(token), json={"email": "not-an-email"}
        )
        assert response.status_code == 422

    def test_exists(self, client):
        username, token = register(client)
        response = client.get(
            f"{API}/users/exists", params={"username": username}, headers=auth(token)
        )
        assert response.status_code == 200
        assert response.json()["username"] is True


    def test_lookup_by_username(self, client):
        username, token = register(client)
        response = client.get(
            f"{API}/users/by-username/{username}", headers=auth(token)
        )
        assert response.status_code == 200
        assert response.json()["username"] == username

        missing = client.get(
            f"{API}/users/by-username/nobody-here", headers=auth(token)
        )
        assert missing.status_code == 404


class TestPrivilegedEndpoints:
    def test_student_cannot_create_club(self, client):
        username, token = register(client)
        me = client.get(f"{API}/users/me", headers=auth(token)).json()
        response = client.post(
            f"{API}/clubs/",
            headers=auth(token),
            json={"title": unique_name("club"), "president_id": me["id"]},
        )
        assert response.status_code == 403

    def test_student_cannot_create_config(self, client):
        _, token = register(client)
        response = client.post(
            f"{API}/configs/", headers=auth(token), json={"config_key": "site.title"}
        )
        assert response.status_code == 403
        assert response.json()["error"] == "PERMISSION_DENIED"

    def test_student_cannot_create_staff(self, client):
        _, token = register(client)
        response = client.post(
            f"{API}/users/register-plus",
            headers=auth(token),
            json={"username": unique_name(), "password_hash": PASSWORD, "role_id": 3},
        )
        assert response.status_code == 403

    def test_unaffiliated_cannot_exit(self, client):
        _, token = register(client)
        response = client.post(f"{API}/clubs/exit", headers=auth(token))
        assert response.status_code == 400
        assert response.json()["error"] == "NOT_ELIGIBLE"

    def test_missing_club(self, client):
        _, token = register(client)
        response = client.get(f"{API}/clubs/999999", headers=auth(token))
        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"


class TestConfigsOverHttp:
    def test_seeded_defaults_are_readable(self, client):
        _, token = register(client)
        response = client.get(
            f"{API}/configs/key/token.expire.hours/value", headers=auth(token)
        )
        assert response.status_code == 200
        assert response.json()["config_value"] == "24"

    def test_missing_key_with_default(self, client):
        _, token = register(client)
        missing = client.get(f"{API}/configs/key/no.such.key/value", headers=auth(token))
        assert missing.status_code == 404

        response = client.get(
            f"{API}/configs/key/no.such.key/value",
            params={"default": "fallback"},
            headers=auth(token),
        )
        assert response.status_code == 200
        assert response.json()["config_value"] == "fallback"


class TestListing:
    def test_page_size_is_clamped(self, client):
        _, token = register(client)
        response = client.get(
            f"{API}/users/", params={"page": 1, "size": 1000}, headers=auth(token)
        )
        assert response.status_code == 200
        body = response.json()
        assert body["size"] == 100
        assert body["page"] == 1
        assert body["total"] >= 1


class TestHeaders:
    def test_request_id_and_security_headers(self, client):
        _, token = register(client)
        response = client.get(f"{API}/users/me", headers=auth(token))
        assert response.headers.get("x-request-id")
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "DENY"
