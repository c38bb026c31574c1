"""초대 코드 API 라우터입니다."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.schemas.invitation import (
    InvitationCreate,
    InvitationCreateOut,
    InvitationOut,
    InvitationStatsOut,
    InvitationUseRequest,
    InvitationValidateRequest,
)
from app.schemas.user import UserOut
from app.services import invitation_service

router = APIRouter(prefix="/api/invitations", tags=["invitations"])


@router.post("/create", response_model=InvitationCreateOut)
def create_invitation(
    data: InvitationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invitation = invitation_service.create_invitation(db, current_user, data)
    return {
        "invitation_id": invitation.invitation_id,
        "code": invitation.code,
        "url": invitation_service.invitation_url(invitation.code),
        "expires_at": invitation.expires_at,
    }


@router.post("/validate")
def validate_invitation(data: InvitationValidateRequest, db: Session = Depends(get_db)):
    return invitation_service.validate_invitation(db, data.code)


@router.post("/use", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def use_invitation(data: InvitationUseRequest, db: Session = Depends(get_db)):
    return invitation_service.redeem_invitation(db, data)


@router.get("/list", response_model=List[InvitationOut])
def list_invitations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return invitation_service.list_invitations(db, current_user)


@router.get("/stats", response_model=InvitationStatsOut)
def invitation_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return invitation_service.get_stats(db, current_user.user_id)
