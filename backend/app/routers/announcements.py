"""공지 API 라우터입니다. 사용자 본인의 공지 목록과 읽음/숨김 처리를 제공합니다."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.schemas.announcement import DeliveryOut
from app.services import announcement_service

router = APIRouter(prefix="/api/announcements", tags=["announcements"])


@router.get("", response_model=List[DeliveryOut])
def list_announcements(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return announcement_service.list_for_user(db, current_user)


@router.post("/{announcement_id}/read")
def mark_read(
    announcement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    announcement_service.mark_read(db, announcement_id=announcement_id, current_user=current_user)
    return {"success": True, "message": "공지를 읽음 처리했습니다."}


@router.delete("/{announcement_id}/read")
def hide_announcement(
    announcement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    announcement_service.hide(db, announcement_id=announcement_id, current_user=current_user)
    return {"success": True, "message": "공지를 숨겼습니다."}
