"""Test Users 동작과 회귀 시나리오를 검증하는 자동화 테스트입니다."""

from tests.conftest import auth_headers


def test_profile_read_and_update(client, seed_users):
    headers = auth_headers(client, "alice@example.com")
    assert client.get("/api/user/profile", headers=headers).json()["name"] == "Alice"

    resp = client.put(
        "/api/user/profile",
        json={"name": "  Alice Kim ", "custom_logo_url": "https://cdn.example.com/logo.png"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["name"] == "Alice Kim"
    assert resp.json()["custom_logo_url"] is None


def test_profile_ignores_unknown_fields(client, seed_users):
    headers = auth_headers(client, "alice@example.com")
    resp = client.put("/api/user/profile", json={"role": "ADMIN", "used_invitations": 0}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["role"] == "USER"


def test_ticket_purchase_history(client, seed_users):
    alice_headers = auth_headers(client, "alice@example.com")
    code = client.post("/api/invitations/create", json={}, headers=alice_headers).json()["code"]
    client.post(
        "/api/invitations/use",
        json={"code": code, "name": "Friend", "email": "friend@example.com", "password": "secret12"},
    )

    rows = client.get("/api/user/ticket-purchases", headers=alice_headers).json()
    assert len(rows) == 1
    assert rows[0]["ticket_type"] == "STANDARD"
    assert rows[0]["amount"] == 0

    bob_headers = auth_headers(client, "bob@example.com")
    assert client.get("/api/user/ticket-purchases", headers=bob_headers).json() == []


def test_effective_limits_follow_best_ticket(client, seed_users):
    admin_headers = auth_headers(client, "admin@example.com")
    headers = auth_headers(client, "alice@example.com")
    assert client.get("/api/user/limits", headers=headers).json()["ticket_type"] == "FREE"

    client.post(
        f"/api/admin/users/{seed_users['alice'].user_id}/tickets",
        json={"ticket_type": "PROFESSIONAL", "quantity": 1},
        headers=admin_headers,
    )
    limits = client.get("/api/user/limits", headers=headers).json()
    assert limits["ticket_type"] == "PROFESSIONAL"
    assert "normalized" in limits["export_formats"]
    assert client.get("/api/user/data-addons", headers=headers).json() == []


def test_question_templates(client, seed_users):
    alice_headers = auth_headers(client, "alice@example.com")
    bob_headers = auth_headers(client, "bob@example.com")
    admin_headers = auth_headers(client, "admin@example.com")

    personal = client.post(
        "/api/question-templates",
        json={"name": "만족도", "category": "feedback", "type": "radio", "title": "만족하셨나요?", "options": ["예", "아니오"]},
        headers=alice_headers,
    )
    assert personal.status_code == 201
    assert personal.json()["type"] == "RADIO"
    assert personal.json()["is_global"] is False

    assert client.post(
        "/api/question-templates",
        json={"name": "공용", "type": "TEXT", "title": "이름", "is_global": True},
        headers=alice_headers,
    ).status_code == 403

    shared = client.post(
        "/api/question-templates",
        json={"name": "공용", "type": "TEXT", "title": "이름", "is_global": True},
        headers=admin_headers,
    )
    assert shared.status_code == 201

    alice_rows = client.get("/api/question-templates", headers=alice_headers).json()
    assert {row["name"] for row in alice_rows} == {"만족도", "공용"}
    bob_rows = client.get("/api/question-templates", headers=bob_headers).json()
    assert [row["name"] for row in bob_rows] == ["공용"]
    assert [row["name"] for row in client.get(
        "/api/question-templates", params={"category": "feedback"}, headers=alice_headers
    ).json()] == ["만족도"]

    used = client.post(f"/api/question-templates/{shared.json()['template_id']}/use", headers=bob_headers)
    assert used.json()["usage_count"] == 1

    personal_id = personal.json()["template_id"]
    assert client.post(f"/api/question-templates/{personal_id}/use", headers=bob_headers).status_code == 404
    assert client.delete(f"/api/question-templates/{personal_id}", headers=bob_headers).status_code == 404
    assert client.delete(
        f"/api/question-templates/{shared.json()['template_id']}", headers=bob_headers
    ).status_code == 403
    assert client.delete(f"/api/question-templates/{personal_id}", headers=alice_headers).status_code == 200
