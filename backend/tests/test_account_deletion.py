"""Test Account Deletion 동작과 회귀 시나리오를 검증하는 자동화 테스트입니다."""

from sqlalchemy.exc import OperationalError

from app.database import transaction
from app.models.announcement import AnnouncementDelivery
from app.models.invitation import Invitation
from app.models.survey import Question, Response, Survey, SurveyUser
from app.models.ticket import DataUsage, TicketPurchase, UserTicket
from app.models.user import User
from app.services import ticket_service, user_service
from tests.conftest import auth_headers, create_survey


def _seed_account(client, db, seed_users) -> dict:
    alice = seed_users["alice"]
    with transaction(db):
        ticket_service.grant_tickets(db, alice.user_id, "STANDARD", 2)
    headers = auth_headers(client, "alice@example.com")

    survey = create_survey(client, headers, ticket_type="STANDARD")
    survey_id = survey["survey_id"]
    resp = client.put(
        f"/api/surveys/{survey_id}/questions",
        json={"questions": [{"type": "TEXT", "title": "이름"}, {"type": "EMAIL", "title": "이메일"}]},
        headers=headers,
    )
    assert resp.status_code == 200
    resp = client.post(
        f"/api/surveys/{survey_id}/collaborators",
        json={"email": "bob@example.com", "permission": "EDIT"},
        headers=headers,
    )
    assert resp.status_code == 201
    code = client.post(f"/api/surveys/{survey_id}/share", headers=headers).json()["share_url"]
    assert client.post(f"/api/survey/{code}/responses", json={"answers": {}}).status_code == 201
    assert client.post("/api/invitations/create", json={}, headers=headers).status_code == 200

    admin_headers = auth_headers(client, "admin@example.com")
    client.post("/api/admin/announcements", json={"title": "공지", "content": "내용"}, headers=admin_headers)

    bob = db.query(User).filter_by(user_id=seed_users["bob"].user_id).one()
    bob.invited_by = alice.user_id
    db.commit()
    return {"headers": headers, "survey_id": survey_id, "user_id": alice.user_id}


def _counts(db, user_id: int, survey_id: int) -> dict:
    db.expire_all()
    return {
        "user": db.query(User).filter_by(user_id=user_id).count(),
        "survey": db.query(Survey).filter_by(user_id=user_id).count(),
        "question": db.query(Question).filter_by(survey_id=survey_id).count(),
        "response": db.query(Response).filter_by(survey_id=survey_id).count(),
        "survey_user": db.query(SurveyUser).filter_by(survey_id=survey_id).count(),
        "user_ticket": db.query(UserTicket).filter_by(user_id=user_id).count(),
        "invitation": db.query(Invitation).filter_by(inviter_id=user_id).count(),
        "delivery": db.query(AnnouncementDelivery).filter_by(user_id=user_id).count(),
        "data_usage": db.query(DataUsage).filter_by(user_id=user_id).count(),
    }


def test_delete_account_removes_all_owned_rows(client, db, seed_users):
    seeded = _seed_account(client, db, seed_users)
    before = _counts(db, seeded["user_id"], seeded["survey_id"])
    assert before == {
        "user": 1, "survey": 1, "question": 2, "response": 1,
        "survey_user": 1, "user_ticket": 1, "invitation": 1, "delivery": 1, "data_usage": 2,
    }

    resp = client.delete("/api/user/delete-account", headers=seeded["headers"])
    assert resp.status_code == 200
    assert resp.json()["deleted_surveys"] == 1

    after = _counts(db, seeded["user_id"], seeded["survey_id"])
    assert all(count == 0 for count in after.values()), after
    assert db.query(TicketPurchase).filter_by(user_id=seeded["user_id"]).count() == 0

    bob = db.query(User).filter_by(user_id=seed_users["bob"].user_id).one()
    assert bob.invited_by is None

    assert client.get("/api/auth/me", headers=seeded["headers"]).status_code == 401


def test_delete_account_is_all_or_nothing(client, db, seed_users, monkeypatch):
    seeded = _seed_account(client, db, seed_users)
    before = _counts(db, seeded["user_id"], seeded["survey_id"])

    def failing_step(*args, **kwargs):
        raise OperationalError("DELETE FROM discount_link", {}, Exception("disk I/O error"))

    monkeypatch.setattr(user_service, "delete_discount_links", failing_step)

    resp = client.delete("/api/user/delete-account", headers=seeded["headers"])
    assert resp.status_code == 500
    assert resp.json() == {"detail": "서버 오류가 발생했습니다."}

    assert _counts(db, seeded["user_id"], seeded["survey_id"]) == before
    bob = db.query(User).filter_by(user_id=seed_users["bob"].user_id).one()
    assert bob.invited_by == seeded["user_id"]


def test_delete_account_keeps_other_users_data(client, db, seed_users):
    seeded = _seed_account(client, db, seed_users)
    bob_headers = auth_headers(client, "bob@example.com")
    bob_survey = create_survey(client, bob_headers, title="Bob 설문")

    assert client.delete("/api/user/delete-account", headers=seeded["headers"]).status_code == 200

    rows = client.get("/api/surveys", headers=bob_headers).json()
    assert [row["survey_id"] for row in rows] == [bob_survey["survey_id"]]
    assert db.query(AnnouncementDelivery).filter_by(user_id=seed_users["bob"].user_id).count() == 1


def test_delete_account_requires_login(client):
    assert client.delete("/api/user/delete-account").status_code == 401
