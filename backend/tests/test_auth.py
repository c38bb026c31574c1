"""Test Auth 동작과 회귀 시나리오를 검증하는 자동화 테스트입니다."""

from app.config import settings
from tests.conftest import auth_headers


def test_signup_creates_user(client):
    resp = client.post(
        "/api/auth/signup",
        json={"name": "New User", "email": "New@Example.com ", "password": "secret12"},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["email"] == "new@example.com"
    assert data["role"] == "USER"
    assert data["max_invitations"] == settings.DEFAULT_MAX_INVITATIONS
    assert data["used_invitations"] == 0
    assert "password_hash" not in data


def test_signup_duplicate_email(client, seed_users):
    resp = client.post(
        "/api/auth/signup",
        json={"name": "Dup", "email": "alice@example.com", "password": "secret12"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]


def test_signup_short_password(client):
    resp = client.post(
        "/api/auth/signup",
        json={"name": "Short", "email": "short@example.com", "password": "abc"},
    )
    assert resp.status_code == 400


def test_signup_field_errors_are_keyed_by_field(client):
    resp = client.post("/api/auth/signup", json={"name": "No Email", "password": "secret12"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["detail"] == "입력값이 올바르지 않습니다."
    assert "email" in body["errors"]


def test_signup_invalid_email_format(client):
    resp = client.post(
        "/api/auth/signup",
        json={"name": "Bad", "email": "not-an-email", "password": "secret12"},
    )
    assert resp.status_code == 400
    assert "email" in resp.json()["errors"]


def test_login_success_sets_cookie(client, seed_users):
    resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "password123"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["access_token"]
    assert data["user"]["email"] == "alice@example.com"
    assert settings.SESSION_COOKIE_NAME in resp.cookies


def test_login_wrong_password(client, seed_users):
    resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong-password"})
    assert resp.status_code == 401


def test_login_unknown_email(client, seed_users):
    resp = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "password123"})
    assert resp.status_code == 401


def test_me_authenticated(client, seed_users):
    headers = auth_headers(client, "alice@example.com")
    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["email"] == "alice@example.com"


def test_me_with_session_cookie(client, seed_users):
    resp = client.post("/api/auth/login", json={"email": "bob@example.com", "password": "password123"})
    assert resp.status_code == 200

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["email"] == "bob@example.com"


def test_me_unauthenticated(client):
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401


def test_me_invalid_token(client, seed_users):
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401


def test_token_for_deleted_user_is_rejected(client, db, seed_users):
    headers = auth_headers(client, "carol@example.com")
    db.delete(seed_users["carol"])
    db.commit()

    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 401


def test_logout(client, seed_users):
    headers = auth_headers(client, "alice@example.com")
    resp = client.post("/api/auth/logout", headers=headers)
    assert resp.status_code == 200


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
