"""Invitation Service 도메인 서비스 레이어입니다. 추천 초대 코드의 발급/검증/사용을 담당합니다.

코드는 발급(ISSUED) 후 한 번만 사용(USED)할 수 있고, ``expires_at`` 이 지나면
검증 시점에 만료(EXPIRED)로 판정합니다. 만료는 저장되는 상태가 아닙니다.
"""

import json
import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.config import settings
from app.database import transaction
from app.models.invitation import Invitation
from app.models.ticket import TicketPurchase
from app.models.user import User
from app.schemas.invitation import InvitationCreate, InvitationUseRequest
from app.services import auth_service, ticket_service
from app.utils.errors import (
    InvitationAlreadyUsed,
    InvitationExpired,
    NotFound,
    QuotaExceeded,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

INVITER_REWARD_TICKET = ticket_service.STANDARD


def generate_code() -> str:
    # 128-bit 난수
    return secrets.token_hex(16)


def invitation_url(code: str) -> str:
    return settings.public_url(f"/invite/{code}")


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.user_id == int(user_id)).first()
    if not user:
        raise NotFound("사용자를 찾을 수 없습니다.")
    return user


def get_stats(db: Session, user_id: int) -> dict:
    user = _get_user(db, user_id)
    return {
        "max_invitations": user.max_invitations,
        "used_invitations": user.used_invitations,
        "remaining_invitations": max(0, user.max_invitations - user.used_invitations),
    }


def create_invitation(db: Session, inviter: User, data: InvitationCreate) -> Invitation:
    """초대 코드를 발급하고 초대자의 사용 횟수를 1 늘립니다. 두 변경은 함께 커밋됩니다."""
    user = _get_user(db, inviter.user_id)
    if user.used_invitations >= user.max_invitations:
        raise QuotaExceeded()

    with transaction(db):
        reserved = db.execute(
            update(User)
            .where(User.user_id == user.user_id, User.used_invitations < User.max_invitations)
            .values(used_invitations=User.used_invitations + 1)
            .execution_options(synchronize_session=False)
        )
        if reserved.rowcount == 0:
            # 동시에 들어온 다른 발급 요청이 마지막 슬롯을 가져간 경우
            raise QuotaExceeded()
        invitation = Invitation(
            code=generate_code(),
            inviter_id=user.user_id,
            inviter_email=user.email or "",
            inviter_name=user.name,
            invited_email=data.invited_email,
            invited_name=data.invited_name,
            message=data.message,
            expires_at=datetime.utcnow() + timedelta(days=settings.INVITATION_EXPIRE_DAYS),
        )
        db.add(invitation)

    db.refresh(invitation)
    db.refresh(user)
    logger.info("[invitations] issued inviter_id=%s used=%s/%s", user.user_id, user.used_invitations, user.max_invitations)
    return invitation


def _check_redeemable(invitation: Invitation | None) -> Invitation:
    if invitation is None:
        raise NotFound("유효하지 않은 초대 코드입니다.")
    if invitation.is_used:
        raise InvitationAlreadyUsed()
    if invitation.expires_at and invitation.expires_at < datetime.utcnow():
        raise InvitationExpired()
    return invitation


def validate_invitation(db: Session, code: str | None) -> dict:
    """초대 코드를 확인만 하고 사용 처리하지 않습니다."""
    code = str(code or "").strip()
    if not code:
        raise ValidationFailed("초대 코드가 필요합니다.")
    invitation = _check_redeemable(db.query(Invitation).filter(Invitation.code == code).first())
    inviter = invitation.inviter
    return {
        "valid": True,
        "invitation": {
            "invitation_id": invitation.invitation_id,
            "inviter_name": invitation.inviter_name or (inviter.name if inviter else None),
            "inviter_email": invitation.inviter_email,
            "message": invitation.message,
            "invited_email": invitation.invited_email,
            "invited_name": invitation.invited_name,
            "expires_at": invitation.expires_at,
        },
    }


def redeem_invitation(db: Session, data: InvitationUseRequest) -> User:
    """초대 코드로 가입합니다.

    가입자 생성, 코드 사용 처리, 초대자 보상 티켓 지급, 보상 이력 기록을 하나의 트랜잭션으로 처리합니다.
    """
    code = data.code.strip()
    with transaction(db):
        invitation = _check_redeemable(
            db.query(Invitation).filter(Invitation.code == code).with_for_update().first()
        )
        email = auth_service.validate_new_account(db, email=data.email, password=data.password)
        new_user = auth_service.build_user(
            name=data.name,
            email=email,
            password=data.password,
            invited_by=invitation.inviter_id,
            invitation_code=code,
        )
        db.add(new_user)
        db.flush()

        consumed = db.execute(
            update(Invitation)
            .where(Invitation.invitation_id == invitation.invitation_id, Invitation.is_used == False)  # noqa: E712
            .values(is_used=True, used_at=datetime.utcnow(), used_by_user_id=new_user.user_id)
            .execution_options(synchronize_session=False)
        )
        if consumed.rowcount == 0:
            raise InvitationAlreadyUsed()

        ticket_service.grant_tickets(db, invitation.inviter_id, INVITER_REWARD_TICKET, 1)
        db.add(
            TicketPurchase(
                user_id=invitation.inviter_id,
                ticket_type=INVITER_REWARD_TICKET,
                quantity=1,
                amount=0,
                currency=settings.CURRENCY,
                checkout_session_id=f"invitation_reward_{invitation.invitation_id}",
                metadata_json=json.dumps(
                    {
                        "type": "invitation_reward",
                        "invitation_id": invitation.invitation_id,
                        "invited_user_id": new_user.user_id,
                    }
                ),
            )
        )

    db.refresh(new_user)
    logger.info(
        "[invitations] redeemed invitation_id=%s new_user_id=%s",
        invitation.invitation_id, new_user.user_id,
    )
    return new_user


def list_invitations(db: Session, inviter: User) -> list[Invitation]:
    return (
        db.query(Invitation)
        .filter(Invitation.inviter_id == inviter.user_id)
        .order_by(Invitation.created_at.desc(), Invitation.invitation_id.desc())
        .all()
    )


def list_all_invitations(db: Session) -> list[Invitation]:
    return db.query(Invitation).order_by(Invitation.created_at.desc(), Invitation.invitation_id.desc()).all()
