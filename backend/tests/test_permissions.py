"""Test Permissions 동작과 회귀 시나리오를 검증하는 자동화 테스트입니다."""

from sqlalchemy.exc import OperationalError

from app.models.survey import Survey, SurveyUser
from app.utils.permissions import NO_ACCESS, OWNER_ACCESS, evaluate_survey_access
from tests.conftest import auth_headers, create_survey


def _survey(db, owner_id: int, title: str = "권한 테스트") -> Survey:
    survey = Survey(user_id=owner_id, title=title, status="DRAFT", ticket_type="FREE")
    db.add(survey)
    db.commit()
    db.refresh(survey)
    return survey


def _grant(db, survey_id: int, user_id: int, permission: str, invited_by: int):
    db.add(SurveyUser(survey_id=survey_id, user_id=user_id, permission=permission, invited_by=invited_by))
    db.commit()


def test_missing_survey_denies_everything(db, seed_users):
    access = evaluate_survey_access(db, seed_users["alice"].user_id, 99999)
    assert access == NO_ACCESS
    assert access.as_dict() == {"can_view": False, "can_edit": False, "can_admin": False, "is_owner": False}


def test_stranger_without_grant_denied(db, seed_users):
    survey = _survey(db, seed_users["alice"].user_id)
    assert evaluate_survey_access(db, seed_users["bob"].user_id, survey.survey_id) == NO_ACCESS


def test_global_admin_role_grants_nothing_on_foreign_survey(db, seed_users):
    survey = _survey(db, seed_users["alice"].user_id)
    assert evaluate_survey_access(db, seed_users["admin"].user_id, survey.survey_id) == NO_ACCESS


def test_owner_has_full_access(db, seed_users):
    survey = _survey(db, seed_users["alice"].user_id)
    assert evaluate_survey_access(db, seed_users["alice"].user_id, survey.survey_id) == OWNER_ACCESS


def test_grant_levels(db, seed_users):
    alice = seed_users["alice"]
    survey = _survey(db, alice.user_id)
    _grant(db, survey.survey_id, seed_users["bob"].user_id, "VIEW", alice.user_id)
    _grant(db, survey.survey_id, seed_users["carol"].user_id, "EDIT", alice.user_id)
    _grant(db, survey.survey_id, seed_users["admin"].user_id, "ADMIN", alice.user_id)

    view = evaluate_survey_access(db, seed_users["bob"].user_id, survey.survey_id)
    assert (view.can_view, view.can_edit, view.can_admin, view.is_owner) == (True, False, False, False)

    edit = evaluate_survey_access(db, seed_users["carol"].user_id, survey.survey_id)
    assert (edit.can_view, edit.can_edit, edit.can_admin, edit.is_owner) == (True, True, False, False)

    admin = evaluate_survey_access(db, seed_users["admin"].user_id, survey.survey_id)
    assert (admin.can_view, admin.can_edit, admin.can_admin, admin.is_owner) == (True, True, True, False)


def test_lookup_failure_denies_everything(db, seed_users, monkeypatch):
    survey = _survey(db, seed_users["alice"].user_id)

    def broken_query(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "query", broken_query)
    assert evaluate_survey_access(db, seed_users["alice"].user_id, survey.survey_id) == NO_ACCESS


def test_survey_endpoints_hide_foreign_surveys(client, seed_users):
    alice_headers = auth_headers(client, "alice@example.com")
    bob_headers = auth_headers(client, "bob@example.com")
    survey = create_survey(client, alice_headers)

    assert client.get(f"/api/surveys/{survey['survey_id']}", headers=bob_headers).status_code == 404
    assert client.put(
        f"/api/surveys/{survey['survey_id']}", json={"title": "hijack"}, headers=bob_headers
    ).status_code == 404
    assert client.delete(f"/api/surveys/{survey['survey_id']}", headers=bob_headers).status_code == 404


def test_view_collaborator_cannot_edit(client, db, seed_users):
    alice_headers = auth_headers(client, "alice@example.com")
    bob_headers = auth_headers(client, "bob@example.com")
    survey = create_survey(client, alice_headers)
    _grant(db, survey["survey_id"], seed_users["bob"].user_id, "VIEW", seed_users["alice"].user_id)

    detail = client.get(f"/api/surveys/{survey['survey_id']}", headers=bob_headers)
    assert detail.status_code == 200
    assert detail.json()["access"]["can_edit"] is False

    resp = client.put(
        f"/api/surveys/{survey['survey_id']}/questions",
        json={"questions": [{"type": "TEXT", "title": "Q1"}]},
        headers=bob_headers,
    )
    assert resp.status_code == 403


def test_edit_collaborator_cannot_delete_survey(client, db, seed_users):
    alice_headers = auth_headers(client, "alice@example.com")
    bob_headers = auth_headers(client, "bob@example.com")
    survey = create_survey(client, alice_headers)
    _grant(db, survey["survey_id"], seed_users["bob"].user_id, "EDIT", seed_users["alice"].user_id)

    resp = client.delete(f"/api/surveys/{survey['survey_id']}", headers=bob_headers)
    assert resp.status_code == 403
