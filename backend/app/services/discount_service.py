"""할인 코드 서비스 레이어입니다. 사용자 검증과 관리자용 할인 코드 관리를 담당합니다."""

import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.discount import DiscountLink, UserDiscountLink
from app.models.user import User
from app.schemas.billing import DiscountLinkCreate, DiscountLinkUpdate
from app.services import ticket_service
from app.utils.errors import Conflict, NotFound, ValidationFailed

logger = logging.getLogger(__name__)


def compute_discounted_price(original_price: int, discount_type: str, discount_value: int) -> int:
    if discount_type == "PERCENTAGE":
        return max(0, round(original_price * (100 - discount_value) / 100))
    return max(0, original_price - discount_value)


def _serialize_link(row: DiscountLink) -> dict:
    return {
        "id": row.discount_link_id,
        "code": row.code,
        "name": row.name,
        "discount_type": row.discount_type,
        "discount_value": row.discount_value,
        "original_price": row.original_price,
        "discounted_price": row.discounted_price,
        "target_ticket_type": row.target_ticket_type,
    }


def check_usable(db: Session, *, code: str, ticket_type: str, user_id: int) -> DiscountLink:
    """할인 코드가 지금 이 사용자/티켓 종류에 쓸 수 있는지 확인합니다. 읽기 전용입니다."""
    ticket_type = ticket_service.normalize_ticket_type(ticket_type)
    row = db.query(DiscountLink).filter(DiscountLink.code == str(code or "").strip()).first()
    if not row:
        raise NotFound("유효하지 않은 할인 코드입니다.")
    if not row.is_active:
        raise ValidationFailed("사용이 중지된 할인 코드입니다.")
    now = datetime.utcnow()
    if now < row.valid_from or now > row.valid_until:
        raise ValidationFailed("지금은 사용할 수 없는 할인 코드입니다.")
    if row.target_ticket_type != ticket_type:
        raise ValidationFailed("선택한 티켓 종류에는 사용할 수 없는 할인 코드입니다.")
    if row.max_uses and row.current_uses >= row.max_uses:
        raise Conflict("할인 코드 사용 한도를 초과했습니다.")
    used = db.query(UserDiscountLink.id).filter(
        UserDiscountLink.user_id == int(user_id),
        UserDiscountLink.discount_link_id == row.discount_link_id,
    ).first()
    if used:
        raise Conflict("이미 사용한 할인 코드입니다.")
    return row


def validate_code(db: Session, *, code: str, ticket_type: str, current_user: User) -> dict:
    row = check_usable(db, code=code, ticket_type=ticket_type, user_id=current_user.user_id)
    return {"valid": True, "discount_link": _serialize_link(row)}


def record_usage(db: Session, *, discount_link_id: int, user_id: int) -> bool:
    """결제 완료 시 할인 코드 사용을 기록합니다. 이미 기록돼 있으면 아무것도 하지 않습니다. 커밋하지 않습니다."""
    try:
        with db.begin_nested():
            db.add(UserDiscountLink(user_id=int(user_id), discount_link_id=int(discount_link_id)))
    except IntegrityError:
        return False
    db.execute(
        update(DiscountLink)
        .where(DiscountLink.discount_link_id == int(discount_link_id))
        .values(current_uses=DiscountLink.current_uses + 1)
        .execution_options(synchronize_session=False)
    )
    return True


# ---------------------------------------------------------------------------
# 관리자
# ---------------------------------------------------------------------------

def list_links(db: Session) -> list[DiscountLink]:
    return db.query(DiscountLink).order_by(DiscountLink.created_at.desc(), DiscountLink.discount_link_id.desc()).all()


def get_link(db: Session, discount_link_id: int) -> DiscountLink:
    row = db.query(DiscountLink).filter(DiscountLink.discount_link_id == int(discount_link_id)).first()
    if not row:
        raise NotFound("할인 코드를 찾을 수 없습니다.")
    return row


def create_link(db: Session, data: DiscountLinkCreate, current_user: User) -> DiscountLink:
    target = ticket_service.normalize_ticket_type(data.target_ticket_type)
    if target not in ticket_service.PURCHASABLE_TICKET_TYPES:
        raise ValidationFailed("구매할 수 있는 티켓 종류에만 할인 코드를 만들 수 있습니다.")
    code = data.code.strip()
    if db.query(DiscountLink.discount_link_id).filter(DiscountLink.code == code).first():
        raise Conflict("이미 존재하는 할인 코드입니다.")

    original_price = ticket_service.get_ticket_limits(target)["price"]
    row = DiscountLink(
        code=code,
        name=data.name.strip(),
        description=data.description,
        discount_type=data.discount_type,
        discount_value=data.discount_value,
        target_ticket_type=target,
        original_price=original_price,
        discounted_price=compute_discounted_price(original_price, data.discount_type, data.discount_value),
        max_uses=data.max_uses,
        valid_from=data.valid_from,
        valid_until=data.valid_until,
        created_by=current_user.user_id,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("[discounts] created code=%s target=%s", row.code, row.target_ticket_type)
    return row


def update_link(db: Session, discount_link_id: int, data: DiscountLinkUpdate) -> DiscountLink:
    row = get_link(db, discount_link_id)
    payload = data.model_dump(exclude_unset=True)
    for field in ("name", "description", "max_uses", "valid_from", "valid_until", "is_active"):
        if field in payload and (payload[field] is not None or field in ("description", "max_uses")):
            setattr(row, field, payload[field])
    if row.valid_from > row.valid_until:
        db.rollback()
        raise ValidationFailed("유효 시작일은 종료일보다 이후일 수 없습니다.")
    db.commit()
    db.refresh(row)
    return row


def toggle_link(db: Session, discount_link_id: int) -> DiscountLink:
    row = get_link(db, discount_link_id)
    row.is_active = not row.is_active
    db.commit()
    db.refresh(row)
    return row


def delete_link(db: Session, discount_link_id: int):
    row = get_link(db, discount_link_id)
    db.query(UserDiscountLink).filter(UserDiscountLink.discount_link_id == row.discount_link_id).delete(
        synchronize_session=False
    )
    db.delete(row)
    db.commit()
