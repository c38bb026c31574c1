"""Notification Service 도메인 서비스 레이어입니다. 설문 알림과 최근 응답 알림을 계산합니다.

알림은 저장하지 않고 요청 시점의 설문/응답 상태로 매번 계산합니다.
"""

import math
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.models.survey import SURVEY_ACTIVE, Answer, Response, Survey, SurveyUser
from app.models.user import User
from app.services import survey_service

SEVERITY_ORDER = {"error": 0, "warning": 1, "info": 2}
RESPONSE_LIMIT_ALERT_RATIO = 0.9
LOW_ACHIEVEMENT_RATIO = 0.5
LOW_RESPONSE_COUNT = 5
END_DATE_ALERT_DAYS = 3
RECENT_RESPONSE_LIMIT = 10


def accessible_survey_ids(db: Session, user_id: int) -> list[int]:
    owned = db.query(Survey.survey_id).filter(Survey.user_id == int(user_id))
    shared = db.query(SurveyUser.survey_id).filter(SurveyUser.user_id == int(user_id))
    return sorted({int(row[0]) for row in owned.union(shared).all()})


def _alert(kind: str, survey: Survey, *, title: str, message: str, severity: str) -> dict:
    return {
        "id": f"{kind}-{survey.survey_id}",
        "title": title,
        "message": message,
        "survey_id": survey.survey_id,
        "survey_title": survey.title,
        "severity": severity,
    }


def _alerts_for_survey(survey: Survey, responses: int, now: datetime) -> list[dict]:
    alerts = []

    limit = survey_service.response_limit(survey)
    if limit and responses >= limit * RESPONSE_LIMIT_ALERT_RATIO:
        alerts.append(
            _alert(
                "max-responses",
                survey,
                title="응답 수 상한에 가까워졌습니다",
                message=f"{survey.title} 의 응답 수가 상한의 90%에 도달했습니다 ({responses}/{limit}건)",
                severity="error" if responses >= limit else "warning",
            )
        )

    if survey.end_date:
        days_left = math.ceil((survey.end_date - now).total_seconds() / 86400)
        if 0 < days_left <= END_DATE_ALERT_DAYS:
            alerts.append(
                _alert(
                    "end-date",
                    survey,
                    title="응답 마감일이 다가옵니다",
                    message=f"{survey.title} 의 응답 접수가 {days_left}일 후 종료됩니다",
                    severity="error" if days_left <= 1 else "warning",
                )
            )
        elif days_left <= 0:
            alerts.append(
                _alert(
                    "end-date-passed",
                    survey,
                    title="응답 마감일이 지났습니다",
                    message=f"{survey.title} 의 응답 마감일이 지났지만 아직 게시 중입니다",
                    severity="error",
                )
            )

    if survey.target_responses:
        if responses < survey.target_responses * LOW_ACHIEVEMENT_RATIO:
            rate = round(responses / survey.target_responses * 100)
            alerts.append(
                _alert(
                    "low-achievement",
                    survey,
                    title="목표 달성률이 낮습니다",
                    message=f"{survey.title} 의 목표 달성률이 {rate}% 입니다 ({responses}/{survey.target_responses}건)",
                    severity="info",
                )
            )
    elif responses < LOW_RESPONSE_COUNT:
        alerts.append(
            _alert(
                "low-responses",
                survey,
                title="응답 수가 적습니다",
                message=f"{survey.title} 의 응답 수가 {responses}건으로 적습니다",
                severity="info",
            )
        )
    return alerts


def survey_alerts(db: Session, current_user: User, now: datetime | None = None) -> list[dict]:
    """접근 가능한 게시 중(ACTIVE) 설문의 상한/마감/목표 알림을 심각도 순으로 돌려줍니다."""
    survey_ids = accessible_survey_ids(db, current_user.user_id)
    if not survey_ids:
        return []
    now = now or datetime.utcnow()
    surveys = (
        db.query(Survey)
        .filter(Survey.survey_id.in_(survey_ids), Survey.status == SURVEY_ACTIVE)
        .order_by(Survey.survey_id.asc())
        .all()
    )
    counts = dict(
        db.query(Response.survey_id, func.count(Response.response_id))
        .filter(Response.survey_id.in_([s.survey_id for s in surveys]))
        .group_by(Response.survey_id)
        .all()
    ) if surveys else {}

    alerts = []
    for survey in surveys:
        alerts.extend(_alerts_for_survey(survey, int(counts.get(survey.survey_id, 0)), now))
    alerts.sort(key=lambda a: SEVERITY_ORDER[a["severity"]])
    return alerts


def _respondent_label(response: Response) -> str:
    by_type: dict[str, str] = {}
    for answer in response.answers:
        question = answer.question
        if question is None or not answer.value:
            continue
        by_type.setdefault(question.type, answer.value)
    for question_type in ("NAME", "EMAIL", "TEXT"):
        if question_type in by_type:
            return by_type[question_type]
    return f"응답자 #{response.response_id}"


def recent_responses(db: Session, current_user: User, limit: int = RECENT_RESPONSE_LIMIT) -> list[dict]:
    survey_ids = accessible_survey_ids(db, current_user.user_id)
    if not survey_ids:
        return []
    rows = (
        db.query(Response)
        .options(selectinload(Response.answers).selectinload(Answer.question), selectinload(Response.survey))
        .filter(Response.survey_id.in_(survey_ids))
        .order_by(Response.created_at.desc(), Response.response_id.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "response_id": row.response_id,
            "survey_id": row.survey_id,
            "survey_title": row.survey.title if row.survey else None,
            "respondent": _respondent_label(row),
            "answer_count": len(row.answers),
            "created_at": row.created_at,
        }
        for row in rows
    ]
