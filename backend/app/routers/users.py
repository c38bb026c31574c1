"""사용자 본인 API 라우터입니다. 프로필, 로고, 티켓, 구매 이력, 데이터 애드온과 사용량, 회원 탈퇴를 다룹니다."""

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.schemas.billing import DataUsageOut, EffectiveLimitsOut, TicketOut, TicketPurchaseOut, UserDataAddonOut
from app.schemas.user import LogoUploadOut, ProfileUpdate, UserOut
from app.services import data_addon_service, data_usage_service, ticket_service, user_service

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("/profile", response_model=UserOut)
def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserOut)
def update_profile(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return user_service.update_profile(db, current_user, data)


@router.post("/upload-logo", response_model=LogoUploadOut)
async def upload_logo(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await user_service.upload_logo(db, current_user, file)


@router.delete("/remove-logo", response_model=UserOut)
def remove_logo(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return user_service.remove_logo(db, current_user)


@router.get("/tickets", response_model=List[TicketOut])
def list_tickets(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ticket_service.list_tickets(db, current_user.user_id)


@router.get("/ticket-purchases", response_model=List[TicketPurchaseOut])
def list_ticket_purchases(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return user_service.list_ticket_purchases(db, current_user)


@router.get("/data-addons", response_model=List[UserDataAddonOut])
def list_my_data_addons(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return data_addon_service.list_user_addons(db, current_user)


@router.get("/limits", response_model=EffectiveLimitsOut)
def effective_limits(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return data_addon_service.effective_limits(db, current_user)


@router.get("/data-usage", response_model=DataUsageOut)
def data_usage(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return data_usage_service.get_user_usage(db, current_user)


@router.delete("/delete-account")
def delete_account(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = user_service.delete_account(db, current_user)
    return {"message": "계정이 삭제되었습니다.", **result}
