"""Ticket Service 도메인 서비스 레이어입니다. 사용자별 티켓 수량과 티켓 종류별 제한을 관리합니다.

티켓 행은 항상 ``total_tickets == used_tickets + remaining_tickets`` 를 만족해야 합니다.
지급/차감은 읽고-수정하고-쓰는 대신 조건부 UPDATE 한 문장으로 처리하므로
같은 (user, ticket_type) 에 대한 동시 요청이 섞여도 합계가 깨지지 않습니다.
지급/차감 함수는 커밋하지 않습니다. 호출자가 ``transaction(db)`` 로 묶어 커밋합니다.
"""

import logging
from datetime import datetime

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.survey import Survey
from app.models.ticket import UserTicket
from app.models.user import User
from app.utils.errors import InsufficientTickets, ValidationFailed

logger = logging.getLogger(__name__)

FREE = "FREE"
STANDARD = "STANDARD"
PROFESSIONAL = "PROFESSIONAL"
ENTERPRISE = "ENTERPRISE"
TICKET_TYPES = (FREE, STANDARD, PROFESSIONAL, ENTERPRISE)
PURCHASABLE_TICKET_TYPES = (STANDARD, PROFESSIONAL, ENTERPRISE)

# -1 은 무제한
TICKET_LIMITS = {
    FREE: {
        "price": 0,
        "max_responses_per_survey": 100,
        "survey_duration_days": 30,
        "data_retention_days": 90,
        "max_data_size_mb": 10,
        "export_formats": ["raw"],
        "features": ["basic_questions", "sections", "page_breaks", "basic_analysis", "conditional_logic"],
    },
    STANDARD: {
        "price": 2980,
        "max_responses_per_survey": 300,
        "survey_duration_days": 90,
        "data_retention_days": 90,
        "max_data_size_mb": 100,
        "export_formats": ["raw"],
        "features": ["all_question_types", "conditional_logic", "file_upload"],
    },
    PROFESSIONAL: {
        "price": 10000,
        "max_responses_per_survey": 1000,
        "survey_duration_days": 180,
        "data_retention_days": 180,
        "max_data_size_mb": 500,
        "export_formats": ["raw", "normalized", "standardized"],
        "features": [
            "all_question_types", "conditional_logic", "file_upload", "video_embedding",
            "normalized_export", "standardized_export", "api_integration",
        ],
    },
    ENTERPRISE: {
        "price": 50000,
        "max_responses_per_survey": -1,
        "survey_duration_days": 180,
        "data_retention_days": 360,
        "max_data_size_mb": 2000,
        "export_formats": ["raw", "normalized", "standardized"],
        "features": [
            "all_question_types", "conditional_logic", "file_upload", "video_embedding",
            "normalized_export", "standardized_export", "api_integration",
            "priority_support", "custom_logo", "header_image", "custom_domain",
        ],
    },
}


def get_ticket_limits(ticket_type: str | None) -> dict:
    return TICKET_LIMITS.get(str(ticket_type or FREE).upper(), TICKET_LIMITS[FREE])


def has_ticket_feature(ticket_type: str | None, feature: str) -> bool:
    return feature in get_ticket_limits(ticket_type)["features"]


def can_export(ticket_type: str | None, export_format: str) -> bool:
    return export_format in get_ticket_limits(ticket_type)["export_formats"]


def normalize_ticket_type(ticket_type: str | None) -> str:
    value = str(ticket_type or "").strip().upper()
    if value not in TICKET_TYPES:
        raise ValidationFailed("유효하지 않은 티켓 종류입니다.")
    return value


def _persisted_ticket_type(ticket_type: str) -> str:
    value = normalize_ticket_type(ticket_type)
    if value == FREE:
        raise ValidationFailed("무료 티켓은 지급/차감 대상이 아닙니다.")
    return value


def _validate_quantity(quantity: int) -> int:
    try:
        value = int(quantity)
    except (TypeError, ValueError):
        raise ValidationFailed("수량이 올바르지 않습니다.")
    if value <= 0:
        raise ValidationFailed("수량은 1 이상이어야 합니다.")
    return value


def _load_ticket(db: Session, user_id: int, ticket_type: str) -> UserTicket:
    return (
        db.query(UserTicket)
        .filter(UserTicket.user_id == int(user_id), UserTicket.ticket_type == ticket_type)
        .populate_existing()
        .one()
    )


def grant_tickets(db: Session, user_id: int, ticket_type: str, quantity: int) -> UserTicket:
    """티켓을 지급합니다. 행이 없으면 새로 만들고, 있으면 total/remaining 을 함께 늘립니다."""
    ticket_type = _persisted_ticket_type(ticket_type)
    quantity = _validate_quantity(quantity)

    additive = (
        update(UserTicket)
        .where(UserTicket.user_id == int(user_id), UserTicket.ticket_type == ticket_type)
        .values(
            total_tickets=UserTicket.total_tickets + quantity,
            remaining_tickets=UserTicket.remaining_tickets + quantity,
            updated_at=func.now(),
        )
        .execution_options(synchronize_session=False)
    )
    if db.execute(additive).rowcount == 0:
        try:
            with db.begin_nested():
                db.add(
                    UserTicket(
                        user_id=int(user_id),
                        ticket_type=ticket_type,
                        total_tickets=quantity,
                        used_tickets=0,
                        remaining_tickets=quantity,
                        purchased_at=datetime.utcnow(),
                    )
                )
        except IntegrityError:
            # 다른 요청이 먼저 행을 만든 경우
            db.execute(additive)

    ticket = _load_ticket(db, user_id, ticket_type)
    logger.info(
        "[tickets] granted user_id=%s type=%s qty=%s remaining=%s",
        user_id, ticket_type, quantity, ticket.remaining_tickets,
    )
    return ticket


def consume_tickets(db: Session, user_id: int, ticket_type: str, quantity: int = 1) -> UserTicket:
    """티켓을 차감합니다. 잔여 수량이 부족하면 아무것도 바꾸지 않고 InsufficientTickets 를 올립니다."""
    ticket_type = _persisted_ticket_type(ticket_type)
    quantity = _validate_quantity(quantity)

    result = db.execute(
        update(UserTicket)
        .where(
            UserTicket.user_id == int(user_id),
            UserTicket.ticket_type == ticket_type,
            UserTicket.remaining_tickets >= quantity,
        )
        .values(
            used_tickets=UserTicket.used_tickets + quantity,
            remaining_tickets=UserTicket.remaining_tickets - quantity,
            updated_at=func.now(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.info("[tickets] insufficient user_id=%s type=%s qty=%s", user_id, ticket_type, quantity)
        raise InsufficientTickets()

    return _load_ticket(db, user_id, ticket_type)


def count_free_surveys(db: Session, user_id: int) -> int:
    return (
        db.query(func.count(Survey.survey_id))
        .filter(Survey.user_id == int(user_id), Survey.ticket_type == FREE)
        .scalar()
        or 0
    )


def ensure_free_quota(db: Session, user: User):
    """무료 설문 생성 가능 여부를 확인합니다. 사용자 행을 잠가 같은 사용자의 동시 생성을 직렬화합니다."""
    db.query(User.user_id).filter(User.user_id == user.user_id).with_for_update().one()
    if count_free_surveys(db, user.user_id) >= settings.FREE_TICKET_ALLOTMENT:
        raise InsufficientTickets(
            f"무료 티켓으로는 설문을 {settings.FREE_TICKET_ALLOTMENT}개까지 만들 수 있습니다. 티켓을 구매해 주세요."
        )


def _free_ticket(db: Session, user_id: int) -> dict:
    total = settings.FREE_TICKET_ALLOTMENT
    used = min(count_free_surveys(db, user_id), total)
    return {
        "ticket_id": None,
        "user_id": int(user_id),
        "ticket_type": FREE,
        "total_tickets": total,
        "used_tickets": used,
        "remaining_tickets": total - used,
        "purchased_at": None,
        "expires_at": None,
    }


def _ticket_dict(row: UserTicket) -> dict:
    return {
        "ticket_id": row.ticket_id,
        "user_id": row.user_id,
        "ticket_type": row.ticket_type,
        "total_tickets": row.total_tickets,
        "used_tickets": row.used_tickets,
        "remaining_tickets": row.remaining_tickets,
        "purchased_at": row.purchased_at,
        "expires_at": row.expires_at,
    }


def list_tickets(db: Session, user_id: int) -> list[dict]:
    rows = (
        db.query(UserTicket)
        .filter(UserTicket.user_id == int(user_id))
        .order_by(UserTicket.ticket_type.asc())
        .all()
    )
    tickets = [_ticket_dict(row) for row in rows]
    if not any(t["ticket_type"] == FREE for t in tickets):
        tickets.insert(0, _free_ticket(db, user_id))
    return tickets


def highest_ticket_type(tickets: list[dict]) -> str:
    owned = [t["ticket_type"] for t in tickets if t["ticket_type"] != FREE and t["remaining_tickets"] > 0]
    if not owned:
        return FREE
    return max(owned, key=TICKET_TYPES.index)
