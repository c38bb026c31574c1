"""Test Tickets 동작과 회귀 시나리오를 검증하는 자동화 테스트입니다."""

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from app.database import transaction
from app.models.survey import Survey
from app.models.ticket import UserTicket
from app.services import ticket_service
from app.utils.errors import InsufficientTickets, ValidationFailed
from tests.conftest import TestingSession, auth_headers, create_survey


def _row(db, user_id: int, ticket_type: str) -> UserTicket:
    db.expire_all()
    return db.query(UserTicket).filter_by(user_id=user_id, ticket_type=ticket_type).one()


def _assert_conserved(ticket: UserTicket):
    assert ticket.total_tickets == ticket.used_tickets + ticket.remaining_tickets
    assert ticket.remaining_tickets >= 0


def test_grant_and_consume_keep_counts_conserved(db, seed_users):
    user_id = seed_users["alice"].user_id
    steps = [("grant", 3), ("consume", 1), ("grant", 2), ("consume", 2), ("consume", 1), ("grant", 1)]
    for op, qty in steps:
        with transaction(db):
            if op == "grant":
                ticket_service.grant_tickets(db, user_id, "STANDARD", qty)
            else:
                ticket_service.consume_tickets(db, user_id, "STANDARD", qty)
        _assert_conserved(_row(db, user_id, "STANDARD"))

    ticket = _row(db, user_id, "STANDARD")
    assert (ticket.total_tickets, ticket.used_tickets, ticket.remaining_tickets) == (6, 4, 2)


def test_grant_creates_single_row_per_type(db, seed_users):
    user_id = seed_users["alice"].user_id
    with transaction(db):
        ticket_service.grant_tickets(db, user_id, "PROFESSIONAL", 1)
    with transaction(db):
        ticket_service.grant_tickets(db, user_id, "PROFESSIONAL", 4)

    rows = db.query(UserTicket).filter_by(user_id=user_id, ticket_type="PROFESSIONAL").all()
    assert len(rows) == 1
    assert rows[0].total_tickets == 5
    assert rows[0].remaining_tickets == 5


def test_first_grant_merges_into_row_created_concurrently(db, seed_users, monkeypatch):
    user_id = seed_users["alice"].user_id

    # 다른 요청이 같은 (user, ticket_type) 행을 먼저 만들어 커밋한 상황
    other = TestingSession()
    try:
        other.add(
            UserTicket(
                user_id=user_id,
                ticket_type="STANDARD",
                total_tickets=2,
                used_tickets=1,
                remaining_tickets=1,
            )
        )
        other.commit()
    finally:
        other.close()

    # 첫 UPDATE 는 그 행이 생기기 전에 실행돼 아무 행도 못 바꾼 것으로 만든다.
    real_execute = db.execute
    calls = []

    def execute(statement, *args, **kwargs):
        calls.append(statement)
        if len(calls) == 1:
            return SimpleNamespace(rowcount=0)
        return real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", execute)
    with transaction(db):
        ticket = ticket_service.grant_tickets(db, user_id, "STANDARD", 3)
    # 삽입이 충돌한 뒤 같은 가산 UPDATE 가 다시 실행된다.
    assert calls[1] is calls[0]
    assert (ticket.total_tickets, ticket.used_tickets, ticket.remaining_tickets) == (5, 1, 4)
    rows = db.query(UserTicket).filter_by(user_id=user_id, ticket_type="STANDARD").all()
    assert len(rows) == 1
    _assert_conserved(_row(db, user_id, "STANDARD"))


def test_consume_beyond_remaining_leaves_counters_unchanged(db, seed_users):
    user_id = seed_users["alice"].user_id
    with transaction(db):
        ticket_service.grant_tickets(db, user_id, "STANDARD", 2)

    with pytest.raises(InsufficientTickets):
        with transaction(db):
            ticket_service.consume_tickets(db, user_id, "STANDARD", 3)

    ticket = _row(db, user_id, "STANDARD")
    assert (ticket.total_tickets, ticket.used_tickets, ticket.remaining_tickets) == (2, 0, 2)


def test_consume_without_row_is_insufficient(db, seed_users):
    with pytest.raises(InsufficientTickets):
        ticket_service.consume_tickets(db, seed_users["bob"].user_id, "ENTERPRISE", 1)


@pytest.mark.parametrize("ticket_type,quantity", [("FREE", 1), ("GOLD", 1), ("STANDARD", 0), ("STANDARD", -2)])
def test_grant_rejects_invalid_input(db, seed_users, ticket_type, quantity):
    with pytest.raises(ValidationFailed):
        ticket_service.grant_tickets(db, seed_users["alice"].user_id, ticket_type, quantity)


def test_free_ticket_is_synthesized(client, seed_users):
    headers = auth_headers(client, "alice@example.com")
    resp = client.get("/api/user/tickets", headers=headers)
    assert resp.status_code == 200
    tickets = resp.json()
    assert tickets[0]["ticket_type"] == "FREE"
    assert tickets[0]["total_tickets"] == 3
    assert tickets[0]["remaining_tickets"] == 3


def test_free_survey_quota(client, seed_users):
    headers = auth_headers(client, "alice@example.com")
    for idx in range(3):
        create_survey(client, headers, title=f"무료 설문 {idx}")

    resp = client.post("/api/surveys", json={"title": "한도 초과"}, headers=headers)
    assert resp.status_code == 400

    tickets = client.get("/api/user/tickets", headers=headers).json()
    free = next(t for t in tickets if t["ticket_type"] == "FREE")
    assert free["used_tickets"] == 3
    assert free["remaining_tickets"] == 0


def test_paid_survey_consumes_ticket(client, db, seed_users):
    user_id = seed_users["alice"].user_id
    with transaction(db):
        ticket_service.grant_tickets(db, user_id, "PROFESSIONAL", 1)
    headers = auth_headers(client, "alice@example.com")

    survey = create_survey(client, headers, ticket_type="PROFESSIONAL", max_responses=5000)
    assert survey["ticket_type"] == "PROFESSIONAL"
    assert survey["max_responses"] == 1000

    ticket = _row(db, user_id, "PROFESSIONAL")
    assert (ticket.used_tickets, ticket.remaining_tickets) == (1, 0)

    resp = client.post("/api/surveys", json={"title": "두 번째", "ticket_type": "PROFESSIONAL"}, headers=headers)
    assert resp.status_code == 400
    assert db.query(Survey).filter_by(user_id=user_id).count() == 1


def test_survey_end_date_clamped_to_ticket_duration(client, seed_users):
    headers = auth_headers(client, "alice@example.com")
    far = (datetime.utcnow() + timedelta(days=400)).isoformat()
    survey = create_survey(client, headers, end_date=far)
    end_date = datetime.fromisoformat(survey["end_date"])
    assert end_date <= datetime.utcnow() + timedelta(days=31)


def test_custom_logo_requires_enterprise(client, seed_users):
    headers = auth_headers(client, "alice@example.com")
    resp = client.post("/api/surveys", json={"title": "로고", "use_custom_logo": True}, headers=headers)
    assert resp.status_code == 403


def test_highest_ticket_type():
    tickets = [
        {"ticket_type": "FREE", "remaining_tickets": 3},
        {"ticket_type": "STANDARD", "remaining_tickets": 2},
        {"ticket_type": "ENTERPRISE", "remaining_tickets": 0},
    ]
    assert ticket_service.highest_ticket_type(tickets) == "STANDARD"
    assert ticket_service.highest_ticket_type([]) == "FREE"


def test_ticket_catalog(client):
    resp = client.get("/api/tickets/catalog")
    assert resp.status_code == 200
    catalog = resp.json()
    assert catalog["ENTERPRISE"]["max_responses_per_survey"] == -1
    assert catalog["FREE"]["export_formats"] == ["raw"]
