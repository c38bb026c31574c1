"""설문 서비스 레이어입니다. 설문/질문/공유/응답/협업자/헤더 이미지를 다룹니다."""

import csv
import io
import json
import logging
import math
import secrets
import statistics
from datetime import datetime, timedelta

from fastapi import UploadFile
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.config import settings
from app.database import transaction
from app.models.survey import (
    PERMISSION_ADMIN,
    QUESTION_SETTINGS_VERSION,
    SURVEY_ACTIVE,
    SURVEY_DRAFT,
    Answer,
    Question,
    Response,
    Survey,
    SurveyUser,
)
from app.models.user import User
from app.schemas.survey import (
    LAYOUT_QUESTION_TYPES,
    CHOICE_QUESTION_TYPES,
    CollaboratorCreate,
    CollaboratorUpdate,
    QuestionIn,
    ResponseSubmit,
    SurveyCreate,
    SurveyUpdate,
)
from app.services import data_usage_service, ticket_service
from app.utils.errors import Conflict, Forbidden, NotFound, ValidationFailed
from app.utils.helpers import delete_stored_file, save_image
from app.utils.permissions import SurveyAccess, evaluate_survey_access

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("raw", "normalized", "standardized")


def generate_share_url() -> str:
    return secrets.token_hex(16)


def public_survey_url(share_url: str) -> str:
    return settings.public_url(f"/survey/{share_url}")


def _get_survey(db: Session, survey_id: int) -> Survey:
    row = db.query(Survey).filter(Survey.survey_id == int(survey_id)).first()
    if not row:
        raise NotFound("설문을 찾을 수 없습니다.")
    return row


def _require_access(db: Session, survey_id: int, current_user: User, capability: str) -> tuple[Survey, SurveyAccess]:
    access = evaluate_survey_access(db, current_user.user_id, survey_id)
    if not access.can_view:
        # 존재하지 않는 설문과 볼 권한이 없는 설문을 구분하지 않는다.
        raise NotFound("설문을 찾을 수 없습니다.")
    if not getattr(access, capability):
        raise Forbidden("이 설문에 대한 권한이 없습니다.")
    return _get_survey(db, survey_id), access


def _require_owner(db: Session, survey_id: int, current_user: User) -> Survey:
    survey = db.query(Survey).filter(
        Survey.survey_id == int(survey_id),
        Survey.user_id == current_user.user_id,
    ).first()
    if not survey:
        raise NotFound("설문을 찾을 수 없습니다.")
    return survey


# ---------------------------------------------------------------------------
# 질문 payload
# ---------------------------------------------------------------------------

def _normalize_options(values: list[str] | None) -> list[str]:
    rows = []
    seen = set()
    for raw in values or []:
        text = str(raw or "").strip()
        if not text or text in seen:
            continue
        seen.add(text)
        rows.append(text)
    return rows


def parse_options(raw: str | None) -> list[str]:
    try:
        parsed = json.loads(raw or "[]")
    except json.JSONDecodeError:
        return []
    if not isinstance(parsed, list):
        return []
    return [str(v) for v in parsed if str(v).strip()]


def parse_settings(raw: str | None) -> dict:
    try:
        parsed = json.loads(raw or "{}")
    except json.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def serialize_question(question: Question) -> dict:
    return {
        "question_id": question.question_id,
        "survey_id": question.survey_id,
        "type": question.type,
        "title": question.title,
        "description": question.description,
        "required": bool(question.required),
        "order": question.order,
        "options": parse_options(question.options_json),
        "settings": parse_settings(question.settings_json),
        "settings_version": question.settings_version,
    }


def _build_question(survey_id: int, order: int, data: QuestionIn) -> Question:
    options = _normalize_options(data.options)
    if data.type in CHOICE_QUESTION_TYPES and not options:
        raise ValidationFailed(f"{order}번째 질문에는 선택지가 1개 이상 필요합니다.")
    return Question(
        survey_id=survey_id,
        type=data.type,
        title=data.title.strip(),
        description=data.description,
        required=bool(data.required) and data.type not in LAYOUT_QUESTION_TYPES,
        order=order,
        options_json=json.dumps(options, ensure_ascii=False) if options else None,
        settings_json=json.dumps(data.settings, ensure_ascii=False) if data.settings else None,
        settings_version=QUESTION_SETTINGS_VERSION,
    )


# ---------------------------------------------------------------------------
# 설문 CRUD
# ---------------------------------------------------------------------------

def _response_counts(db: Session, survey_ids: list[int]) -> dict[int, int]:
    if not survey_ids:
        return {}
    rows = (
        db.query(Response.survey_id, func.count(Response.response_id))
        .filter(Response.survey_id.in_(survey_ids))
        .group_by(Response.survey_id)
        .all()
    )
    return {int(sid): int(cnt) for sid, cnt in rows}


def _question_counts(db: Session, survey_ids: list[int]) -> dict[int, int]:
    if not survey_ids:
        return {}
    rows = (
        db.query(Question.survey_id, func.count(Question.question_id))
        .filter(Question.survey_id.in_(survey_ids))
        .group_by(Question.survey_id)
        .all()
    )
    return {int(sid): int(cnt) for sid, cnt in rows}


def serialize_survey(survey: Survey) -> dict:
    return {
        "survey_id": survey.survey_id,
        "user_id": survey.user_id,
        "title": survey.title,
        "description": survey.description,
        "status": survey.status,
        "share_url": survey.share_url,
        "ticket_type": survey.ticket_type,
        "max_responses": survey.max_responses,
        "target_responses": survey.target_responses,
        "end_date": survey.end_date,
        "header_image_url": survey.header_image_url,
        "use_custom_logo": bool(survey.use_custom_logo),
        "created_at": survey.created_at,
        "updated_at": survey.updated_at,
    }


def list_surveys(db: Session, current_user: User) -> list[dict]:
    """소유한 설문과 공유받은 설문을 함께 돌려줍니다. 최신 생성순."""
    owned = (
        db.query(Survey)
        .filter(Survey.user_id == current_user.user_id)
        .order_by(Survey.created_at.desc(), Survey.survey_id.desc())
        .all()
    )
    shared = (
        db.query(Survey, SurveyUser.permission)
        .join(SurveyUser, SurveyUser.survey_id == Survey.survey_id)
        .filter(SurveyUser.user_id == current_user.user_id, Survey.user_id != current_user.user_id)
        .order_by(Survey.created_at.desc(), Survey.survey_id.desc())
        .all()
    )
    entries = [(survey, PERMISSION_ADMIN, True) for survey in owned]
    entries += [(survey, permission, False) for survey, permission in shared]

    survey_ids = [int(survey.survey_id) for survey, _, _ in entries]
    responses = _response_counts(db, survey_ids)
    questions = _question_counts(db, survey_ids)
    rows = []
    for survey, permission, is_owner in entries:
        row = serialize_survey(survey)
        row.update(
            permission=permission,
            is_owner=is_owner,
            response_count=responses.get(int(survey.survey_id), 0),
            question_count=questions.get(int(survey.survey_id), 0),
        )
        rows.append(row)
    return rows


def _clamp_to_ticket(ticket_type: str, max_responses: int | None, end_date: datetime | None, *, base: datetime):
    limits = ticket_service.get_ticket_limits(ticket_type)
    cap = limits["max_responses_per_survey"]
    if cap != -1:
        max_responses = min(max_responses or cap, cap)
    latest_end = base + timedelta(days=limits["survey_duration_days"])
    if end_date is None or end_date > latest_end:
        end_date = latest_end
    return max_responses, end_date


def create_survey(db: Session, data: SurveyCreate, current_user: User) -> Survey:
    """설문을 만들고 티켓을 차감합니다.

    FREE 설문은 무료 허용 개수까지만 만들 수 있고, 유료 티켓 설문은 같은 트랜잭션 안에서
    해당 티켓 1장을 차감합니다. 응답 수 상한과 마감일은 티켓 한도에 맞춰 잘라냅니다.
    """
    ticket_type = ticket_service.normalize_ticket_type(data.ticket_type)
    if data.use_custom_logo and not ticket_service.has_ticket_feature(ticket_type, "custom_logo"):
        raise Forbidden("커스텀 로고는 ENTERPRISE 티켓에서만 사용할 수 있습니다.")
    max_responses, end_date = _clamp_to_ticket(
        ticket_type, data.max_responses, data.end_date, base=datetime.utcnow()
    )

    with transaction(db):
        ticket_id = None
        if ticket_type == ticket_service.FREE:
            ticket_service.ensure_free_quota(db, current_user)
        else:
            ticket_id = ticket_service.consume_tickets(db, current_user.user_id, ticket_type, 1).ticket_id
        survey = Survey(
            user_id=current_user.user_id,
            title=data.title.strip(),
            description=data.description,
            status=SURVEY_DRAFT,
            ticket_type=ticket_type,
            ticket_id=ticket_id,
            max_responses=max_responses,
            target_responses=data.target_responses,
            end_date=end_date,
            use_custom_logo=bool(data.use_custom_logo),
        )
        db.add(survey)
        db.flush()
        data_usage_service.record_usage(
            db,
            user_id=current_user.user_id,
            data_type=data_usage_service.SURVEY_DATA,
            source="survey",
            size_bytes=data_usage_service.payload_size(
                data.model_dump(include={"title", "description", "max_responses", "end_date", "target_responses"})
            ),
            survey_id=survey.survey_id,
            description=f"설문 「{survey.title}」 생성",
        )

    db.refresh(survey)
    logger.info(
        "[surveys] created survey_id=%s user_id=%s ticket_type=%s",
        survey.survey_id, current_user.user_id, ticket_type,
    )
    return survey


def get_detail(db: Session, *, survey_id: int, current_user: User) -> dict:
    survey, access = _require_access(db, survey_id, current_user, "can_view")
    row = serialize_survey(survey)
    row["questions"] = [serialize_question(q) for q in survey.questions]
    row["access"] = access.as_dict()
    return row


def update_survey(db: Session, *, survey_id: int, data: SurveyUpdate, current_user: User) -> Survey:
    survey, _ = _require_access(db, survey_id, current_user, "can_edit")
    payload = data.model_dump(exclude_unset=True)
    if "title" in payload and payload["title"] is not None:
        survey.title = payload["title"].strip()
    if "description" in payload:
        survey.description = payload["description"]
    if "target_responses" in payload:
        survey.target_responses = payload["target_responses"]
    if payload.get("use_custom_logo") is not None:
        if payload["use_custom_logo"] and not ticket_service.has_ticket_feature(survey.ticket_type, "custom_logo"):
            raise Forbidden("커스텀 로고는 ENTERPRISE 티켓에서만 사용할 수 있습니다.")
        survey.use_custom_logo = payload["use_custom_logo"]
    if "max_responses" in payload or "end_date" in payload:
        survey.max_responses, survey.end_date = _clamp_to_ticket(
            survey.ticket_type,
            payload.get("max_responses", survey.max_responses),
            payload.get("end_date", survey.end_date),
            base=survey.created_at or datetime.utcnow(),
        )
    db.commit()
    db.refresh(survey)
    return survey


def delete_survey(db: Session, *, survey_id: int, current_user: User):
    survey, _ = _require_access(db, survey_id, current_user, "is_owner")
    header_image_url = survey.header_image_url
    with transaction(db):
        _delete_survey_rows(db, [int(survey.survey_id)])
    delete_stored_file(header_image_url)
    logger.info("[surveys] deleted survey_id=%s user_id=%s", survey_id, current_user.user_id)


def _delete_survey_rows(db: Session, survey_ids: list[int]):
    data_usage_service.release_survey_usage(db, survey_ids)
    response_ids = select(Response.response_id).where(Response.survey_id.in_(survey_ids))
    db.query(Answer).filter(Answer.response_id.in_(response_ids)).delete(synchronize_session=False)
    db.query(Response).filter(Response.survey_id.in_(survey_ids)).delete(synchronize_session=False)
    db.query(Question).filter(Question.survey_id.in_(survey_ids)).delete(synchronize_session=False)
    db.query(SurveyUser).filter(SurveyUser.survey_id.in_(survey_ids)).delete(synchronize_session=False)
    db.query(Survey).filter(Survey.survey_id.in_(survey_ids)).delete(synchronize_session=False)


ADMIN_SORT_COLUMNS = {
    "created_at": Survey.created_at,
    "updated_at": Survey.updated_at,
    "title": Survey.title,
    "status": Survey.status,
    "owner_name": User.name,
}


def admin_list_surveys(
    db: Session,
    *,
    search: str | None = None,
    status: str | None = None,
    page: int = 1,
    limit: int = 50,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> dict:
    """관리자용 전체 설문 목록입니다. 제목/소유자 이름/이메일 검색과 페이지 나누기를 지원합니다."""
    if sort_by not in ADMIN_SORT_COLUMNS:
        raise ValidationFailed("지원하지 않는 정렬 기준입니다.")
    query = db.query(Survey, User).join(User, User.user_id == Survey.user_id)
    if search and search.strip():
        keyword = f"%{search.strip()}%"
        query = query.filter(or_(Survey.title.ilike(keyword), User.name.ilike(keyword), User.email.ilike(keyword)))
    if status:
        query = query.filter(Survey.status == status.strip().upper())

    total = query.count()
    column = ADMIN_SORT_COLUMNS[sort_by]
    ordering = column.asc() if str(sort_order).lower() == "asc" else column.desc()
    rows = query.order_by(ordering, Survey.survey_id.desc()).offset((page - 1) * limit).limit(limit).all()

    responses = _response_counts(db, [int(survey.survey_id) for survey, _ in rows])
    surveys = []
    for survey, owner in rows:
        row = serialize_survey(survey)
        row["owner"] = {"user_id": owner.user_id, "name": owner.name, "email": owner.email}
        row["response_count"] = responses.get(int(survey.survey_id), 0)
        surveys.append(row)
    return {
        "surveys": surveys,
        "pagination": {"page": page, "limit": limit, "total": total, "total_pages": math.ceil(total / limit)},
    }


# ---------------------------------------------------------------------------
# 질문
# ---------------------------------------------------------------------------

def list_questions(db: Session, *, survey_id: int, current_user: User) -> list[dict]:
    survey, _ = _require_access(db, survey_id, current_user, "can_view")
    return [serialize_question(q) for q in survey.questions]


def _clear_questions(db: Session, survey_id: int):
    question_ids = select(Question.question_id).where(Question.survey_id == survey_id)
    db.query(Answer).filter(Answer.question_id.in_(question_ids)).delete(synchronize_session=False)
    db.query(Question).filter(Question.survey_id == survey_id).delete(synchronize_session=False)


def replace_questions(db: Session, *, survey_id: int, questions: list[QuestionIn], current_user: User) -> list[dict]:
    """질문 목록 전체를 주어진 순서로 교체합니다. 기존 질문에 달린 응답값도 함께 지워집니다."""
    survey, _ = _require_access(db, survey_id, current_user, "can_edit")
    rows = [_build_question(survey.survey_id, idx, q) for idx, q in enumerate(questions, start=1)]
    with transaction(db):
        _clear_questions(db, survey.survey_id)
        db.add_all(rows)
    return [serialize_question(q) for q in survey.questions]


def delete_questions(db: Session, *, survey_id: int, current_user: User):
    survey, _ = _require_access(db, survey_id, current_user, "can_edit")
    with transaction(db):
        _clear_questions(db, survey.survey_id)


# ---------------------------------------------------------------------------
# 공유 / 공개 설문
# ---------------------------------------------------------------------------

def share_survey(db: Session, *, survey_id: int, current_user: User) -> dict:
    survey = _require_owner(db, survey_id, current_user)
    if not survey.share_url:
        survey.share_url = generate_share_url()
    survey.status = SURVEY_ACTIVE
    db.commit()
    db.refresh(survey)
    logger.info("[surveys] shared survey_id=%s", survey.survey_id)
    return {
        "share_url": survey.share_url,
        "public_url": public_survey_url(survey.share_url),
        "status": survey.status,
    }


def unshare_survey(db: Session, *, survey_id: int, current_user: User) -> Survey:
    survey = _require_owner(db, survey_id, current_user)
    survey.share_url = None
    survey.status = SURVEY_DRAFT
    db.commit()
    db.refresh(survey)
    logger.info("[surveys] unshared survey_id=%s", survey.survey_id)
    return survey


def _get_public_survey(db: Session, share_url: str) -> Survey:
    survey = (
        db.query(Survey)
        .filter(Survey.share_url == str(share_url), Survey.status == SURVEY_ACTIVE)
        .first()
    )
    if not survey:
        raise NotFound("설문을 찾을 수 없거나 공개되지 않았습니다.")
    if survey.end_date and survey.end_date < datetime.utcnow():
        raise Forbidden("응답 기간이 종료된 설문입니다.")
    return survey


def get_public_survey(db: Session, share_url: str) -> dict:
    survey = _get_public_survey(db, share_url)
    custom_logo_url = None
    if survey.use_custom_logo and survey.owner is not None:
        custom_logo_url = survey.owner.custom_logo_url
    return {
        "survey_id": survey.survey_id,
        "title": survey.title,
        "description": survey.description,
        "status": survey.status,
        "end_date": survey.end_date,
        "header_image_url": survey.header_image_url,
        "custom_logo_url": custom_logo_url,
        "questions": [serialize_question(q) for q in survey.questions],
    }


def response_limit(survey: Survey) -> int | None:
    cap = ticket_service.get_ticket_limits(survey.ticket_type)["max_responses_per_survey"]
    limits = [v for v in (survey.max_responses, None if cap == -1 else cap) if v]
    return min(limits) if limits else None


def _answer_text(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, list):
        items = [str(v).strip() for v in value if str(v).strip()]
        return ",".join(items) if items else None
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value).strip()
    return text or None


def submit_response(db: Session, share_url: str, data: ResponseSubmit) -> Response:
    survey = _get_public_survey(db, share_url)

    limit = response_limit(survey)
    if limit is not None:
        current = db.query(func.count(Response.response_id)).filter(Response.survey_id == survey.survey_id).scalar() or 0
        if current >= limit:
            raise Forbidden("이 설문은 응답 수 상한에 도달했습니다.")

    questions = {int(q.question_id): q for q in survey.questions}
    values: dict[int, str] = {}
    for key, raw in (data.answers or {}).items():
        try:
            question_id = int(key)
        except (TypeError, ValueError):
            raise ValidationFailed(f"알 수 없는 질문 ID 입니다: {key}")
        if question_id not in questions:
            raise ValidationFailed(f"알 수 없는 질문 ID 입니다: {key}")
        text = _answer_text(raw)
        if text is not None and questions[question_id].type not in LAYOUT_QUESTION_TYPES:
            values[question_id] = text

    missing = [q.title for q in questions.values() if q.required and q.question_id not in values]
    if missing:
        raise ValidationFailed(f"필수 질문에 응답해 주세요: {', '.join(missing)}")

    with transaction(db):
        response = Response(survey_id=survey.survey_id)
        db.add(response)
        db.flush()
        db.add_all(
            Answer(response_id=response.response_id, question_id=question_id, value=value)
            for question_id, value in values.items()
        )
        data_usage_service.record_usage(
            db,
            user_id=survey.user_id,
            data_type=data_usage_service.SURVEY_DATA,
            source="response",
            size_bytes=data_usage_service.payload_size(data.answers),
            survey_id=survey.survey_id,
            description=f"설문 「{survey.title}」 응답",
        )
    db.refresh(response)
    logger.info("[surveys] response submitted survey_id=%s response_id=%s", survey.survey_id, response.response_id)
    return response


# ---------------------------------------------------------------------------
# 응답 조회 / 내보내기
# ---------------------------------------------------------------------------

def list_responses(db: Session, *, survey_id: int, current_user: User) -> list[Response]:
    survey, _ = _require_access(db, survey_id, current_user, "can_view")
    return (
        db.query(Response)
        .filter(Response.survey_id == survey.survey_id)
        .order_by(Response.created_at.desc(), Response.response_id.desc())
        .all()
    )


def _numeric(value: str | None) -> float | None:
    try:
        return float(value) if value not in (None, "") else None
    except ValueError:
        return None


def _scale_columns(matrix: list[list], question_ids: list[int], export_format: str) -> list[list]:
    """숫자 응답 열만 정규화(min-max) 또는 표준화(z-score)합니다. 숫자가 아닌 값은 그대로 둡니다."""
    for col in range(len(question_ids)):
        filled = [row[col] for row in matrix if row[col] not in (None, "")]
        numbers = [_numeric(row[col]) for row in matrix]
        present = [n for n in numbers if n is not None]
        if not present or len(present) != len(filled):
            continue
        if export_format == "normalized":
            low, high = min(present), max(present)
            span = high - low
            scaled = [None if n is None else (0.0 if span == 0 else round((n - low) / span, 4)) for n in numbers]
        else:
            mean = statistics.fmean(present)
            stdev = statistics.pstdev(present)
            scaled = [None if n is None else (0.0 if stdev == 0 else round((n - mean) / stdev, 4)) for n in numbers]
        for row, value in zip(matrix, scaled):
            row[col] = value
    return matrix


def export_csv(db: Session, *, survey_id: int, current_user: User, export_format: str = "raw") -> str:
    survey, _ = _require_access(db, survey_id, current_user, "can_view")
    export_format = str(export_format or "raw").lower()
    if export_format not in EXPORT_FORMATS:
        raise ValidationFailed("지원하지 않는 내보내기 형식입니다.")
    if not ticket_service.can_export(survey.ticket_type, export_format):
        raise Forbidden(f"{survey.ticket_type} 티켓에서는 {export_format} 형식으로 내보낼 수 없습니다.")

    questions = [q for q in survey.questions if q.type not in LAYOUT_QUESTION_TYPES]
    question_ids = [int(q.question_id) for q in questions]
    responses = (
        db.query(Response)
        .filter(Response.survey_id == survey.survey_id)
        .order_by(Response.created_at.asc(), Response.response_id.asc())
        .all()
    )
    matrix = []
    for response in responses:
        by_question = {int(a.question_id): a.value for a in response.answers}
        matrix.append([by_question.get(qid) for qid in question_ids])
    if export_format != "raw":
        matrix = _scale_columns(matrix, question_ids, export_format)

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["response_id", "created_at"] + [q.title for q in questions])
    for response, values in zip(responses, matrix):
        created = response.created_at.isoformat() if response.created_at else ""
        writer.writerow([response.response_id, created] + ["" if v is None else v for v in values])
    content = output.getvalue()

    data_usage_service.record_usage(
        db,
        user_id=survey.user_id,
        data_type=data_usage_service.EXPORT_DATA,
        source="export",
        size_bytes=len(content.encode("utf-8")),
        survey_id=survey.survey_id,
        description=f"설문 「{survey.title}」 {export_format} 내보내기",
    )
    db.commit()
    return content


# ---------------------------------------------------------------------------
# 협업자
# ---------------------------------------------------------------------------

def _serialize_collaborator(row: SurveyUser) -> dict:
    return {
        "id": row.id,
        "survey_id": row.survey_id,
        "user_id": row.user_id,
        "email": row.user.email if row.user else None,
        "name": row.user.name if row.user else None,
        "permission": row.permission,
        "invited_by": row.invited_by,
        "invited_at": row.invited_at,
        "accepted_at": row.accepted_at,
    }


def list_collaborators(db: Session, *, survey_id: int, current_user: User) -> list[dict]:
    survey, _ = _require_access(db, survey_id, current_user, "can_view")
    return [_serialize_collaborator(row) for row in survey.collaborators]


def add_collaborator(db: Session, *, survey_id: int, data: CollaboratorCreate, current_user: User) -> dict:
    survey, _ = _require_access(db, survey_id, current_user, "can_admin")
    email = str(data.email or "").strip().lower()
    target = db.query(User).filter(User.email == email).first()
    if not target:
        raise NotFound("해당 이메일의 사용자를 찾을 수 없습니다.")
    if int(target.user_id) == int(survey.user_id):
        raise ValidationFailed("설문 소유자는 협업자로 추가할 수 없습니다.")
    exists = db.query(SurveyUser.id).filter(
        SurveyUser.survey_id == survey.survey_id,
        SurveyUser.user_id == target.user_id,
    ).first()
    if exists:
        raise Conflict("이미 이 설문에 권한이 있는 사용자입니다.")

    row = SurveyUser(
        survey_id=survey.survey_id,
        user_id=target.user_id,
        permission=data.permission,
        invited_by=current_user.user_id,
        accepted_at=datetime.utcnow(),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return _serialize_collaborator(row)


def _get_collaborator(db: Session, survey_id: int, collaborator_id: int) -> SurveyUser:
    row = db.query(SurveyUser).filter(
        SurveyUser.id == int(collaborator_id),
        SurveyUser.survey_id == int(survey_id),
    ).first()
    if not row:
        raise NotFound("협업자를 찾을 수 없습니다.")
    return row


def update_collaborator(
    db: Session, *, survey_id: int, collaborator_id: int, data: CollaboratorUpdate, current_user: User
) -> dict:
    _require_access(db, survey_id, current_user, "can_admin")
    row = _get_collaborator(db, survey_id, collaborator_id)
    row.permission = data.permission
    db.commit()
    db.refresh(row)
    return _serialize_collaborator(row)


def remove_collaborator(db: Session, *, survey_id: int, collaborator_id: int, current_user: User):
    _require_access(db, survey_id, current_user, "can_admin")
    row = _get_collaborator(db, survey_id, collaborator_id)
    db.delete(row)
    db.commit()


# ---------------------------------------------------------------------------
# 헤더 이미지
# ---------------------------------------------------------------------------

async def upload_header_image(db: Session, *, survey_id: int, file: UploadFile, current_user: User) -> dict:
    survey, _ = _require_access(db, survey_id, current_user, "can_edit")
    if not ticket_service.has_ticket_feature(survey.ticket_type, "header_image"):
        raise Forbidden("헤더 이미지는 ENTERPRISE 티켓에서만 사용할 수 있습니다.")
    stored = await save_image(file, subfolder="survey_headers")
    previous = survey.header_image_url
    survey.header_image_url = stored["url"]
    data_usage_service.release_usage(db, user_id=survey.user_id, source="survey_header", survey_id=survey.survey_id)
    data_usage_service.record_usage(
        db,
        user_id=survey.user_id,
        data_type=data_usage_service.FILE_UPLOAD,
        source="survey_header",
        size_bytes=stored["size"],
        survey_id=survey.survey_id,
        description=stored["filename"],
    )
    db.commit()
    if previous and previous != stored["url"]:
        delete_stored_file(previous)
    return {"header_image_url": stored["url"], "size": stored["size"]}


def remove_header_image(db: Session, *, survey_id: int, current_user: User) -> Survey:
    survey, _ = _require_access(db, survey_id, current_user, "can_edit")
    previous = survey.header_image_url
    if not previous:
        raise NotFound("등록된 헤더 이미지가 없습니다.")
    survey.header_image_url = None
    data_usage_service.release_usage(db, user_id=survey.user_id, source="survey_header", survey_id=survey.survey_id)
    db.commit()
    delete_stored_file(previous)
    db.refresh(survey)
    return survey
