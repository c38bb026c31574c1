"""User Service 도메인 서비스 레이어입니다. 프로필, 회원 탈퇴, 관리자용 사용자 관리를 담당합니다."""

import logging

from fastapi import UploadFile
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.database import transaction
from app.models.announcement import AnnouncementDelivery
from app.models.discount import DiscountLink, UserDiscountLink
from app.models.invitation import Invitation
from app.models.survey import Answer, Question, QuestionTemplate, Response, Survey, SurveyUser
from app.models.ticket import DataUsage, TicketPurchase, UserDataAddon, UserTicket
from app.models.user import User
from app.schemas.user import AdminUserUpdate, ChangeRoleRequest, ProfileUpdate
from app.services import auth_service, data_usage_service, ticket_service
from app.utils.errors import Forbidden, NotFound, ValidationFailed
from app.utils.helpers import delete_stored_file, save_image
from app.utils.permissions import ALL_ROLES

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.user_id == int(user_id)).first()
    if not user:
        raise NotFound("사용자를 찾을 수 없습니다.")
    return user


def update_profile(db: Session, current_user: User, data: ProfileUpdate) -> User:
    payload = data.model_dump(exclude_unset=True)
    if payload.get("name") is not None:
        current_user.name = payload["name"].strip()
    db.commit()
    db.refresh(current_user)
    return current_user


async def upload_logo(db: Session, current_user: User, file: UploadFile) -> dict:
    """커스텀 로고를 올립니다. 커스텀 로고 기능이 있는 티켓을 보유해야 합니다."""
    best = ticket_service.highest_ticket_type(ticket_service.list_tickets(db, current_user.user_id))
    if not ticket_service.has_ticket_feature(best, "custom_logo"):
        raise Forbidden("커스텀 로고는 ENTERPRISE 티켓에서만 사용할 수 있습니다.")
    stored = await save_image(file, subfolder="logos")
    previous = current_user.custom_logo_url
    current_user.custom_logo_url = stored["url"]
    data_usage_service.release_usage(db, user_id=current_user.user_id, source="custom_logo")
    data_usage_service.record_usage(
        db,
        user_id=current_user.user_id,
        data_type=data_usage_service.FILE_UPLOAD,
        source="custom_logo",
        size_bytes=stored["size"],
        description=stored["filename"],
    )
    db.commit()
    if previous and previous != stored["url"]:
        delete_stored_file(previous)
    logger.info("[account] logo uploaded user_id=%s size=%s", current_user.user_id, stored["size"])
    return {"custom_logo_url": stored["url"], "size": stored["size"]}


def remove_logo(db: Session, current_user: User) -> User:
    previous = current_user.custom_logo_url
    if not previous:
        raise NotFound("등록된 로고가 없습니다.")
    current_user.custom_logo_url = None
    data_usage_service.release_usage(db, user_id=current_user.user_id, source="custom_logo")
    db.commit()
    delete_stored_file(previous)
    db.refresh(current_user)
    return current_user


def list_ticket_purchases(db: Session, current_user: User) -> list[TicketPurchase]:
    return (
        db.query(TicketPurchase)
        .filter(TicketPurchase.user_id == current_user.user_id)
        .order_by(TicketPurchase.created_at.desc(), TicketPurchase.purchase_id.desc())
        .all()
    )


# ---------------------------------------------------------------------------
# 회원 탈퇴
#
# 아래 단계는 delete_account 안에서 순서대로, 하나의 트랜잭션으로 실행됩니다.
# 어느 단계든 실패하면 앞 단계의 삭제까지 모두 롤백됩니다.
# ---------------------------------------------------------------------------

def collect_survey_ids(db: Session, user_id: int) -> list[int]:
    return [int(row[0]) for row in db.query(Survey.survey_id).filter(Survey.user_id == user_id).all()]


def delete_survey_responses(db: Session, user_id: int, survey_ids: list[int]):
    if not survey_ids:
        return
    response_ids = select(Response.response_id).where(Response.survey_id.in_(survey_ids))
    db.query(Answer).filter(Answer.response_id.in_(response_ids)).delete(synchronize_session=False)
    db.query(Response).filter(Response.survey_id.in_(survey_ids)).delete(synchronize_session=False)


def delete_survey_questions(db: Session, user_id: int, survey_ids: list[int]):
    if not survey_ids:
        return
    question_ids = select(Question.question_id).where(Question.survey_id.in_(survey_ids))
    db.query(Answer).filter(Answer.question_id.in_(question_ids)).delete(synchronize_session=False)
    db.query(Question).filter(Question.survey_id.in_(survey_ids)).delete(synchronize_session=False)


def delete_collaborator_grants(db: Session, user_id: int, survey_ids: list[int]):
    conditions = [SurveyUser.user_id == user_id, SurveyUser.invited_by == user_id]
    if survey_ids:
        conditions.append(SurveyUser.survey_id.in_(survey_ids))
    db.query(SurveyUser).filter(or_(*conditions)).delete(synchronize_session=False)


def delete_data_usage(db: Session, user_id: int, survey_ids: list[int]):
    conditions = [DataUsage.user_id == user_id]
    if survey_ids:
        conditions.append(DataUsage.survey_id.in_(survey_ids))
    db.query(DataUsage).filter(or_(*conditions)).delete(synchronize_session=False)


def delete_surveys(db: Session, user_id: int, survey_ids: list[int]):
    db.query(Survey).filter(Survey.user_id == user_id).delete(synchronize_session=False)


def delete_question_templates(db: Session, user_id: int, survey_ids: list[int]):
    db.query(QuestionTemplate).filter(QuestionTemplate.user_id == user_id).delete(synchronize_session=False)


def delete_discount_links(db: Session, user_id: int, survey_ids: list[int]):
    link_ids = select(DiscountLink.discount_link_id).where(DiscountLink.created_by == user_id)
    db.query(UserDiscountLink).filter(UserDiscountLink.discount_link_id.in_(link_ids)).delete(
        synchronize_session=False
    )
    db.query(DiscountLink).filter(DiscountLink.created_by == user_id).delete(synchronize_session=False)


def delete_announcement_deliveries(db: Session, user_id: int, survey_ids: list[int]):
    db.query(AnnouncementDelivery).filter(AnnouncementDelivery.user_id == user_id).delete(synchronize_session=False)


def delete_tickets(db: Session, user_id: int, survey_ids: list[int]):
    db.query(UserTicket).filter(UserTicket.user_id == user_id).delete(synchronize_session=False)
    db.query(TicketPurchase).filter(TicketPurchase.user_id == user_id).delete(synchronize_session=False)


def delete_discount_usages_and_addons(db: Session, user_id: int, survey_ids: list[int]):
    db.query(UserDiscountLink).filter(UserDiscountLink.user_id == user_id).delete(synchronize_session=False)
    db.query(UserDataAddon).filter(UserDataAddon.user_id == user_id).delete(synchronize_session=False)


def delete_invitations(db: Session, user_id: int, survey_ids: list[int]):
    db.query(Invitation).filter(Invitation.used_by_user_id == user_id).update(
        {"used_by_user_id": None}, synchronize_session=False
    )
    db.query(Invitation).filter(Invitation.inviter_id == user_id).delete(synchronize_session=False)


def delete_user_row(db: Session, user_id: int, survey_ids: list[int]):
    db.query(User).filter(User.invited_by == user_id).update({"invited_by": None}, synchronize_session=False)
    db.query(User).filter(User.user_id == user_id).delete(synchronize_session=False)


def delete_account(db: Session, current_user: User) -> dict:
    """회원과 회원이 소유한 모든 데이터를 삭제합니다. 전부 지워지거나 아무것도 지워지지 않습니다."""
    user_id = int(current_user.user_id)
    logo_url = current_user.custom_logo_url
    header_images = [
        row[0]
        for row in db.query(Survey.header_image_url)
        .filter(Survey.user_id == user_id, Survey.header_image_url.isnot(None))
        .all()
    ]

    with transaction(db):
        survey_ids = collect_survey_ids(db, user_id)
        delete_survey_responses(db, user_id, survey_ids)
        delete_survey_questions(db, user_id, survey_ids)
        delete_collaborator_grants(db, user_id, survey_ids)
        delete_data_usage(db, user_id, survey_ids)
        delete_surveys(db, user_id, survey_ids)
        delete_question_templates(db, user_id, survey_ids)
        delete_discount_links(db, user_id, survey_ids)
        delete_announcement_deliveries(db, user_id, survey_ids)
        delete_tickets(db, user_id, survey_ids)
        delete_discount_usages_and_addons(db, user_id, survey_ids)
        delete_invitations(db, user_id, survey_ids)
        delete_user_row(db, user_id, survey_ids)

    db.expunge_all()
    if logo_url:
        delete_stored_file(logo_url)
    for url in header_images:
        delete_stored_file(url)
    logger.info("[account] deleted user_id=%s surveys=%s", user_id, len(survey_ids))
    return {"deleted_surveys": len(survey_ids)}


# ---------------------------------------------------------------------------
# 관리자
# ---------------------------------------------------------------------------

def _ticket_summaries(db: Session, user_ids: list[int]) -> dict[int, list[dict]]:
    summaries: dict[int, list[dict]] = {uid: [] for uid in user_ids}
    if not user_ids:
        return summaries
    rows = (
        db.query(UserTicket)
        .filter(UserTicket.user_id.in_(user_ids))
        .order_by(UserTicket.ticket_type.asc())
        .all()
    )
    for row in rows:
        summaries[int(row.user_id)].append(
            {
                "ticket_type": row.ticket_type,
                "total_tickets": row.total_tickets,
                "used_tickets": row.used_tickets,
                "remaining_tickets": row.remaining_tickets,
            }
        )
    return summaries


def _admin_row(user: User, survey_count: int, tickets: list[dict]) -> dict:
    return {
        "user_id": user.user_id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "max_invitations": user.max_invitations,
        "used_invitations": user.used_invitations,
        "custom_logo_url": user.custom_logo_url,
        "created_at": user.created_at,
        "survey_count": survey_count,
        "tickets": tickets,
    }


def list_users(db: Session, search: str | None = None) -> list[dict]:
    query = db.query(User)
    if search:
        keyword = f"%{search.strip()}%"
        query = query.filter(or_(User.email.ilike(keyword), User.name.ilike(keyword)))
    users = query.order_by(User.created_at.desc(), User.user_id.desc()).all()
    user_ids = [int(u.user_id) for u in users]
    counts = dict(
        db.query(Survey.user_id, func.count(Survey.survey_id))
        .filter(Survey.user_id.in_(user_ids))
        .group_by(Survey.user_id)
        .all()
    ) if user_ids else {}
    tickets = _ticket_summaries(db, user_ids)
    return [_admin_row(u, int(counts.get(u.user_id, 0)), tickets[int(u.user_id)]) for u in users]


def get_user_detail(db: Session, user_id: int) -> dict:
    user = get_user(db, user_id)
    survey_count = db.query(func.count(Survey.survey_id)).filter(Survey.user_id == user.user_id).scalar() or 0
    return _admin_row(user, int(survey_count), _ticket_summaries(db, [int(user.user_id)])[int(user.user_id)])


def admin_update_user(db: Session, user_id: int, data: AdminUserUpdate) -> dict:
    user = get_user(db, user_id)
    payload = data.model_dump(exclude_unset=True)
    if payload.get("name") is not None:
        user.name = payload["name"].strip()
    if payload.get("max_invitations") is not None:
        user.max_invitations = payload["max_invitations"]
    db.commit()
    return get_user_detail(db, user.user_id)


def change_role(db: Session, data: ChangeRoleRequest, current_user: User) -> User:
    """관리자가 다른 사용자의 역할을 바꿉니다. 관리자 본인의 비밀번호 재확인이 필요합니다."""
    new_role = str(data.new_role or "").strip().upper()
    if new_role not in ALL_ROLES:
        raise ValidationFailed("유효하지 않은 역할입니다.")
    if not auth_service.verify_password(data.password, current_user.password_hash):
        raise Forbidden("비밀번호가 올바르지 않습니다.")
    if int(data.user_id) == int(current_user.user_id):
        raise ValidationFailed("본인의 역할은 변경할 수 없습니다.")
    user = get_user(db, data.user_id)
    previous = user.role
    user.role = new_role
    db.commit()
    db.refresh(user)
    logger.info(
        "[admin] role changed user_id=%s %s->%s by=%s",
        user.user_id, previous, new_role, current_user.user_id,
    )
    return user


def grant_user_tickets(db: Session, user_id: int, ticket_type: str, quantity: int) -> list[dict]:
    user = get_user(db, user_id)
    with transaction(db):
        ticket_service.grant_tickets(db, user.user_id, ticket_type, quantity)
    return ticket_service.list_tickets(db, user.user_id)


def list_all_purchases(db: Session) -> list[TicketPurchase]:
    return db.query(TicketPurchase).order_by(TicketPurchase.created_at.desc(), TicketPurchase.purchase_id.desc()).all()


def admin_stats(db: Session) -> dict:
    tickets_sold = dict(
        db.query(TicketPurchase.ticket_type, func.coalesce(func.sum(TicketPurchase.quantity), 0))
        .filter(TicketPurchase.amount > 0)
        .group_by(TicketPurchase.ticket_type)
        .all()
    )
    revenue = db.query(func.coalesce(func.sum(TicketPurchase.amount), 0)).scalar() or 0
    return {
        "user_count": db.query(func.count(User.user_id)).scalar() or 0,
        "survey_count": db.query(func.count(Survey.survey_id)).scalar() or 0,
        "active_survey_count": db.query(func.count(Survey.survey_id)).filter(Survey.status == "ACTIVE").scalar() or 0,
        "response_count": db.query(func.count(Response.response_id)).scalar() or 0,
        "invitation_count": db.query(func.count(Invitation.invitation_id)).scalar() or 0,
        "tickets_sold": {str(k): int(v) for k, v in tickets_sold.items()},
        "revenue": int(revenue),
    }
