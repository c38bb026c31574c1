"""공지 서비스 레이어입니다. 사용자별 배달 상태(SENT/READ/HIDDEN) 전이와 관리자 공지 관리를 담당합니다.

배달 상태 전이:
  SENT -> READ       (read_at 기록, 공지의 total_read 1 증가. 두 변경은 같은 커밋)
  SENT|READ -> HIDDEN (종료 상태. 다시 숨기면 대상 행이 없으므로 404)
"""

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.database import transaction
from app.models.announcement import (
    DELIVERY_HIDDEN,
    DELIVERY_READ,
    DELIVERY_SENT,
    Announcement,
    AnnouncementDelivery,
)
from app.models.user import User
from app.schemas.announcement import AnnouncementCreate, AnnouncementUpdate
from app.utils.errors import NotFound, ValidationFailed

logger = logging.getLogger(__name__)

STATUS_DRAFT = "DRAFT"
STATUS_SCHEDULED = "SCHEDULED"
STATUS_SENT = "SENT"


def list_for_user(db: Session, current_user: User) -> list[dict]:
    rows = (
        db.query(AnnouncementDelivery, Announcement)
        .join(Announcement, Announcement.announcement_id == AnnouncementDelivery.announcement_id)
        .filter(
            AnnouncementDelivery.user_id == current_user.user_id,
            AnnouncementDelivery.status != DELIVERY_HIDDEN,
        )
        .order_by(AnnouncementDelivery.created_at.desc(), AnnouncementDelivery.delivery_id.desc())
        .all()
    )
    return [
        {
            "delivery_id": delivery.delivery_id,
            "announcement_id": announcement.announcement_id,
            "status": delivery.status,
            "read_at": delivery.read_at,
            "created_at": delivery.created_at,
            "title": announcement.title,
            "content": announcement.content,
            "priority": announcement.priority,
        }
        for delivery, announcement in rows
    ]


def mark_read(db: Session, *, announcement_id: int, current_user: User):
    with transaction(db):
        result = db.execute(
            update(AnnouncementDelivery)
            .where(
                AnnouncementDelivery.announcement_id == int(announcement_id),
                AnnouncementDelivery.user_id == current_user.user_id,
                AnnouncementDelivery.status == DELIVERY_SENT,
            )
            .values(status=DELIVERY_READ, read_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFound("공지를 찾을 수 없거나 이미 읽었습니다.")
        db.execute(
            update(Announcement)
            .where(Announcement.announcement_id == int(announcement_id))
            .values(total_read=Announcement.total_read + 1)
            .execution_options(synchronize_session=False)
        )


def hide(db: Session, *, announcement_id: int, current_user: User):
    with transaction(db):
        result = db.execute(
            update(AnnouncementDelivery)
            .where(
                AnnouncementDelivery.announcement_id == int(announcement_id),
                AnnouncementDelivery.user_id == current_user.user_id,
                AnnouncementDelivery.status.in_((DELIVERY_SENT, DELIVERY_READ)),
            )
            .values(status=DELIVERY_HIDDEN)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFound("공지를 찾을 수 없습니다.")


# ---------------------------------------------------------------------------
# 관리자
# ---------------------------------------------------------------------------

def _read_rate(row: Announcement) -> float:
    if not row.total_sent:
        return 0.0
    return round(row.total_read * 100.0 / row.total_sent, 1)


def serialize_admin(row: Announcement) -> dict:
    return {
        "announcement_id": row.announcement_id,
        "title": row.title,
        "content": row.content,
        "type": row.type,
        "priority": row.priority,
        "status": row.status,
        "scheduled_at": row.scheduled_at,
        "total_sent": row.total_sent,
        "total_read": row.total_read,
        "created_by": row.created_by,
        "created_at": row.created_at,
        "read_rate": _read_rate(row),
    }


def list_admin(db: Session) -> list[dict]:
    rows = (
        db.query(Announcement)
        .order_by(Announcement.created_at.desc(), Announcement.announcement_id.desc())
        .all()
    )
    return [serialize_admin(row) for row in rows]


def _get(db: Session, announcement_id: int) -> Announcement:
    row = db.query(Announcement).filter(Announcement.announcement_id == int(announcement_id)).first()
    if not row:
        raise NotFound("공지를 찾을 수 없습니다.")
    return row


def _distribute(db: Session, announcement: Announcement) -> int:
    """아직 배달 행이 없는 모든 사용자에게 배달 행을 만듭니다. 커밋하지 않습니다."""
    delivered = select(AnnouncementDelivery.user_id).where(
        AnnouncementDelivery.announcement_id == announcement.announcement_id
    )
    targets = [int(row[0]) for row in db.query(User.user_id).filter(User.user_id.not_in(delivered)).all()]
    db.add_all(
        AnnouncementDelivery(announcement_id=announcement.announcement_id, user_id=user_id, status=DELIVERY_SENT)
        for user_id in targets
    )
    announcement.total_sent = (announcement.total_sent or 0) + len(targets)
    announcement.status = STATUS_SENT
    return len(targets)


def create(db: Session, data: AnnouncementCreate, current_user: User) -> dict:
    if data.type == "SCHEDULED" and data.scheduled_at is None:
        raise ValidationFailed("예약 공지는 배포 일시가 필요합니다.")
    with transaction(db):
        row = Announcement(
            title=data.title.strip(),
            content=data.content,
            type=data.type,
            priority=data.priority,
            scheduled_at=data.scheduled_at,
            status=STATUS_SCHEDULED if data.type == "SCHEDULED" else STATUS_DRAFT,
            created_by=current_user.user_id,
        )
        db.add(row)
        db.flush()
        sent = _distribute(db, row) if data.type == "MANUAL" else 0
    db.refresh(row)
    logger.info("[announcements] created announcement_id=%s type=%s sent=%s", row.announcement_id, row.type, sent)
    return serialize_admin(row)


def distribute(db: Session, announcement_id: int) -> dict:
    row = _get(db, announcement_id)
    with transaction(db):
        sent = _distribute(db, row)
    db.refresh(row)
    logger.info("[announcements] distributed announcement_id=%s sent=%s", row.announcement_id, sent)
    return serialize_admin(row)


def update_announcement(db: Session, announcement_id: int, data: AnnouncementUpdate) -> dict:
    row = _get(db, announcement_id)
    payload = data.model_dump(exclude_unset=True)
    for field in ("title", "content", "priority", "scheduled_at"):
        if field in payload and (payload[field] is not None or field == "scheduled_at"):
            setattr(row, field, payload[field])
    db.commit()
    db.refresh(row)
    return serialize_admin(row)


def delete_announcement(db: Session, announcement_id: int):
    row = _get(db, announcement_id)
    db.delete(row)
    db.commit()
