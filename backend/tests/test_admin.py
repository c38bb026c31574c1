"""Test Admin 동작과 회귀 시나리오를 검증하는 자동화 테스트입니다."""

from datetime import datetime, timedelta

from app.models.user import User
from tests.conftest import auth_headers, create_survey


def test_admin_routes_require_admin_role(client, seed_users):
    assert client.get("/api/admin/users").status_code == 401
    headers = auth_headers(client, "alice@example.com")
    assert client.get("/api/admin/users", headers=headers).status_code == 403
    assert client.get("/api/admin/stats", headers=headers).status_code == 403


def test_role_is_read_from_database(client, db, seed_users):
    headers = auth_headers(client, "alice@example.com")
    alice = db.query(User).filter_by(user_id=seed_users["alice"].user_id).one()
    alice.role = "ADMIN"
    db.commit()

    assert client.get("/api/admin/users", headers=headers).status_code == 200


def test_list_users_with_search(client, seed_users):
    headers = auth_headers(client, "admin@example.com")
    create_survey(client, auth_headers(client, "alice@example.com"))

    rows = client.get("/api/admin/users", headers=headers).json()
    assert len(rows) == len(seed_users)

    rows = client.get("/api/admin/users", params={"search": "alice"}, headers=headers).json()
    assert [row["email"] for row in rows] == ["alice@example.com"]
    assert rows[0]["survey_count"] == 1


def test_change_role(client, seed_users):
    headers = auth_headers(client, "admin@example.com")
    bob_id = seed_users["bob"].user_id

    resp = client.post(
        "/api/admin/users/change-role",
        json={"user_id": bob_id, "new_role": "admin", "password": "password123"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["role"] == "ADMIN"

    bob_headers = auth_headers(client, "bob@example.com")
    assert client.get("/api/admin/stats", headers=bob_headers).status_code == 200


def test_change_role_requires_password(client, seed_users):
    headers = auth_headers(client, "admin@example.com")
    resp = client.post(
        "/api/admin/users/change-role",
        json={"user_id": seed_users["bob"].user_id, "new_role": "ADMIN", "password": "wrong-password"},
        headers=headers,
    )
    assert resp.status_code == 403


def test_change_role_rejects_self_and_unknown_role(client, seed_users):
    headers = auth_headers(client, "admin@example.com")
    own = client.post(
        "/api/admin/users/change-role",
        json={"user_id": seed_users["admin"].user_id, "new_role": "USER", "password": "password123"},
        headers=headers,
    )
    assert own.status_code == 400

    unknown = client.post(
        "/api/admin/users/change-role",
        json={"user_id": seed_users["bob"].user_id, "new_role": "ROOT", "password": "password123"},
        headers=headers,
    )
    assert unknown.status_code == 400

    missing = client.post(
        "/api/admin/users/change-role",
        json={"user_id": 99999, "new_role": "USER", "password": "password123"},
        headers=headers,
    )
    assert missing.status_code == 404


def test_update_user_invitation_quota(client, seed_users):
    headers = auth_headers(client, "admin@example.com")
    user_id = seed_users["alice"].user_id
    resp = client.put(f"/api/admin/users/{user_id}", json={"max_invitations": 10}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["max_invitations"] == 10

    stats = client.get("/api/invitations/stats", headers=auth_headers(client, "alice@example.com")).json()
    assert stats["remaining_invitations"] == 10


def test_grant_tickets(client, seed_users):
    headers = auth_headers(client, "admin@example.com")
    user_id = seed_users["alice"].user_id

    resp = client.post(f"/api/admin/users/{user_id}/tickets", json={"ticket_type": "ENTERPRISE", "quantity": 3}, headers=headers)
    assert resp.status_code == 200
    enterprise = next(t for t in resp.json() if t["ticket_type"] == "ENTERPRISE")
    assert (enterprise["total_tickets"], enterprise["remaining_tickets"]) == (3, 3)

    detail = client.get(f"/api/admin/users/{user_id}", headers=headers).json()
    assert detail["tickets"][0]["ticket_type"] == "ENTERPRISE"

    assert client.post(
        f"/api/admin/users/{user_id}/tickets", json={"ticket_type": "FREE", "quantity": 1}, headers=headers
    ).status_code == 400
    assert client.post(
        "/api/admin/users/99999/tickets", json={"ticket_type": "STANDARD", "quantity": 1}, headers=headers
    ).status_code == 404


def test_discount_link_crud(client, seed_users):
    headers = auth_headers(client, "admin@example.com")
    now = datetime.utcnow()
    payload = {
        "code": "WELCOME",
        "name": "가입 환영",
        "discount_type": "percentage",
        "discount_value": 20,
        "target_ticket_type": "PROFESSIONAL",
        "valid_from": (now - timedelta(days=1)).isoformat(),
        "valid_until": (now + timedelta(days=10)).isoformat(),
    }
    created = client.post("/api/admin/discount-links", json=payload, headers=headers)
    assert created.status_code == 201
    link = created.json()
    assert link["original_price"] == 10000
    assert link["discounted_price"] == 8000
    assert link["is_active"] is True

    assert client.post("/api/admin/discount-links", json=payload, headers=headers).status_code == 400

    toggled = client.post(f"/api/admin/discount-links/{link['discount_link_id']}/toggle", headers=headers)
    assert toggled.json()["is_active"] is False

    updated = client.put(
        f"/api/admin/discount-links/{link['discount_link_id']}", json={"name": "새 이름"}, headers=headers
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "새 이름"

    assert client.delete(f"/api/admin/discount-links/{link['discount_link_id']}", headers=headers).status_code == 200
    assert client.get("/api/admin/discount-links", headers=headers).json() == []


def test_discount_link_validation(client, seed_users):
    headers = auth_headers(client, "admin@example.com")
    now = datetime.utcnow()
    base = {
        "code": "BAD",
        "name": "잘못된 코드",
        "discount_type": "PERCENTAGE",
        "discount_value": 20,
        "target_ticket_type": "STANDARD",
        "valid_from": (now + timedelta(days=5)).isoformat(),
        "valid_until": now.isoformat(),
    }
    assert client.post("/api/admin/discount-links", json=base, headers=headers).status_code == 400

    base.update(valid_from=(now - timedelta(days=1)).isoformat(), valid_until=(now + timedelta(days=1)).isoformat())
    assert client.post(
        "/api/admin/discount-links", json={**base, "discount_value": 150}, headers=headers
    ).status_code == 400
    assert client.post(
        "/api/admin/discount-links", json={**base, "target_ticket_type": "FREE"}, headers=headers
    ).status_code == 400


def test_fixed_discount_never_negative(client, seed_users):
    headers = auth_headers(client, "admin@example.com")
    now = datetime.utcnow()
    resp = client.post(
        "/api/admin/discount-links",
        json={
            "code": "BIGCUT",
            "name": "대폭 할인",
            "discount_type": "FIXED",
            "discount_value": 5000,
            "target_ticket_type": "STANDARD",
            "valid_from": now.isoformat(),
            "valid_until": (now + timedelta(days=1)).isoformat(),
        },
        headers=headers,
    )
    assert resp.status_code == 201
    assert resp.json()["discounted_price"] == 0


def test_data_addon_catalog(client, seed_users):
    headers = auth_headers(client, "admin@example.com")
    created = client.post(
        "/api/admin/data-addons",
        json={"name": "저장 공간 1GB", "type": "storage", "amount": 1024, "price": 500},
        headers=headers,
    )
    assert created.status_code == 201
    addon_id = created.json()["addon_id"]
    assert [a["addon_id"] for a in client.get("/api/data-addons").json()] == [addon_id]

    assert client.delete(f"/api/admin/data-addons/{addon_id}", headers=headers).status_code == 200
    assert client.get("/api/data-addons").json() == []
    assert client.get("/api/admin/data-addons", headers=headers).json()[0]["is_active"] is False

    assert client.post(
        "/api/admin/data-addons", json={"name": "x", "type": "bandwidth", "amount": 1}, headers=headers
    ).status_code == 400


def test_admin_stats(client, seed_users):
    headers = auth_headers(client, "admin@example.com")
    alice_headers = auth_headers(client, "alice@example.com")
    survey = create_survey(client, alice_headers)
    client.post(f"/api/surveys/{survey['survey_id']}/share", headers=alice_headers)

    stats = client.get("/api/admin/stats", headers=headers).json()
    assert stats["user_count"] == len(seed_users)
    assert stats["survey_count"] == 1
    assert stats["active_survey_count"] == 1
    assert stats["revenue"] == 0


def test_admin_lists_invitations_and_purchases(client, seed_users):
    alice_headers = auth_headers(client, "alice@example.com")
    code = client.post("/api/invitations/create", json={}, headers=alice_headers).json()["code"]
    client.post(
        "/api/invitations/use",
        json={"code": code, "name": "Invited", "email": "invited@example.com", "password": "secret12"},
    )

    headers = auth_headers(client, "admin@example.com")
    invitations = client.get("/api/admin/invitations", headers=headers).json()
    assert invitations[0]["is_used"] is True
    purchases = client.get("/api/admin/ticket-purchases", headers=headers).json()
    assert purchases[0]["checkout_session_id"].startswith("invitation_reward_")


def test_discount_link_accepts_offset_timestamps(client, seed_users):
    headers = auth_headers(client, "admin@example.com")
    now = datetime.utcnow().replace(microsecond=0)
    created = client.post(
        "/api/admin/discount-links",
        json={
            "code": "TZCODE",
            "name": "시간대 코드",
            "discount_type": "PERCENTAGE",
            "discount_value": 10,
            "target_ticket_type": "STANDARD",
            "valid_from": (now - timedelta(days=1)).isoformat() + "Z",
            "valid_until": (now + timedelta(days=1) + timedelta(hours=9)).isoformat() + "+09:00",
        },
        headers=headers,
    )
    assert created.status_code == 201
    link = created.json()
    assert datetime.fromisoformat(link["valid_until"]) == now + timedelta(days=1)

    user_headers = auth_headers(client, "alice@example.com")
    ok = client.post(
        "/api/discount/validate", json={"discount_code": "TZCODE", "ticket_type": "STANDARD"}, headers=user_headers
    )
    assert ok.status_code == 200

    updated = client.put(
        f"/api/admin/discount-links/{link['discount_link_id']}",
        json={"valid_until": (now + timedelta(days=3)).isoformat() + "Z"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert datetime.fromisoformat(updated.json()["valid_until"]) == now + timedelta(days=3)


def test_admin_lists_all_surveys(client, seed_users):
    alice_headers = auth_headers(client, "alice@example.com")
    bob_headers = auth_headers(client, "bob@example.com")
    first = create_survey(client, alice_headers, title="가 설문")
    second = create_survey(client, bob_headers, title="나 설문")
    third = create_survey(client, alice_headers, title="다 설문")
    code = client.post(f"/api/surveys/{second['survey_id']}/share", headers=bob_headers).json()["share_url"]
    client.post(f"/api/survey/{code}/responses", json={"answers": {}})

    assert client.get("/api/admin/surveys", headers=alice_headers).status_code == 403

    headers = auth_headers(client, "admin@example.com")
    body = client.get("/api/admin/surveys", headers=headers).json()
    assert [s["survey_id"] for s in body["surveys"]] == [third["survey_id"], second["survey_id"], first["survey_id"]]
    assert body["pagination"] == {"page": 1, "limit": 50, "total": 3, "total_pages": 1}
    by_id = {s["survey_id"]: s for s in body["surveys"]}
    assert by_id[second["survey_id"]]["owner"]["email"] == "bob@example.com"
    assert by_id[second["survey_id"]]["response_count"] == 1
    assert by_id[first["survey_id"]]["response_count"] == 0

    searched = client.get("/api/admin/surveys", params={"search": "BOB@"}, headers=headers).json()
    assert [s["survey_id"] for s in searched["surveys"]] == [second["survey_id"]]

    active = client.get("/api/admin/surveys", params={"status": "active"}, headers=headers).json()
    assert [s["survey_id"] for s in active["surveys"]] == [second["survey_id"]]

    by_title = client.get(
        "/api/admin/surveys", params={"sort_by": "title", "sort_order": "asc", "limit": 2, "page": 2}, headers=headers
    ).json()
    assert [s["title"] for s in by_title["surveys"]] == ["다 설문"]
    assert by_title["pagination"] == {"page": 2, "limit": 2, "total": 3, "total_pages": 2}


def test_admin_survey_listing_rejects_bad_parameters(client, seed_users):
    headers = auth_headers(client, "admin@example.com")
    assert client.get("/api/admin/surveys", params={"sort_by": "password"}, headers=headers).status_code == 400
    assert client.get("/api/admin/surveys", params={"page": 0}, headers=headers).status_code == 400
    assert client.get("/api/admin/surveys", params={"limit": 500}, headers=headers).status_code == 400

    empty = client.get("/api/admin/surveys", headers=headers).json()
    assert empty == {"surveys": [], "pagination": {"page": 1, "limit": 50, "total": 0, "total_pages": 0}}
