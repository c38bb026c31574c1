"""관리자 API 라우터입니다. 모든 엔드포인트는 ADMIN 역할이 필요합니다."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import require_roles
from app.models.user import User
from app.schemas.announcement import AdminAnnouncementOut, AnnouncementCreate, AnnouncementUpdate
from app.schemas.billing import (
    AdminDataUsageOut,
    DataAddonCreate,
    DataAddonOut,
    DiscountLinkCreate,
    DiscountLinkOut,
    DiscountLinkUpdate,
    TicketGrantRequest,
    TicketOut,
    TicketPurchaseOut,
)
from app.schemas.invitation import InvitationOut
from app.schemas.survey import AdminSurveyPageOut
from app.schemas.user import AdminUserOut, AdminUserUpdate, ChangeRoleRequest, UserOut
from app.services import (
    announcement_service,
    data_addon_service,
    data_usage_service,
    discount_service,
    invitation_service,
    survey_service,
    user_service,
)
from app.utils.permissions import ADMIN

router = APIRouter(prefix="/api/admin", tags=["admin"])

require_admin = require_roles(ADMIN)


@router.get("/stats")
def stats(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return user_service.admin_stats(db)


@router.get("/data-usage", response_model=AdminDataUsageOut)
def data_usage(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return data_usage_service.admin_usage(db)


# ---- surveys ----

@router.get("/surveys", response_model=AdminSurveyPageOut)
def list_surveys(
    search: Optional[str] = None,
    status: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    sort_by: str = "created_at",
    sort_order: str = "desc",
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return survey_service.admin_list_surveys(
        db,
        search=search,
        status=status,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


# ---- users ----

@router.get("/users", response_model=List[AdminUserOut])
def list_users(
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return user_service.list_users(db, search=search)


@router.post("/users/change-role", response_model=UserOut)
def change_role(
    data: ChangeRoleRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return user_service.change_role(db, data, current_user)


@router.get("/users/{user_id}", response_model=AdminUserOut)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return user_service.get_user_detail(db, user_id)


@router.put("/users/{user_id}", response_model=AdminUserOut)
def update_user(
    user_id: int,
    data: AdminUserUpdate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return user_service.admin_update_user(db, user_id, data)


@router.post("/users/{user_id}/tickets", response_model=List[TicketOut])
def grant_tickets(
    user_id: int,
    data: TicketGrantRequest,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return user_service.grant_user_tickets(db, user_id, data.ticket_type, data.quantity)


@router.get("/ticket-purchases", response_model=List[TicketPurchaseOut])
def list_purchases(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return user_service.list_all_purchases(db)


@router.get("/invitations", response_model=List[InvitationOut])
def list_invitations(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return invitation_service.list_all_invitations(db)


# ---- discount links ----

@router.get("/discount-links", response_model=List[DiscountLinkOut])
def list_discount_links(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return discount_service.list_links(db)


@router.post("/discount-links", response_model=DiscountLinkOut, status_code=201)
def create_discount_link(
    data: DiscountLinkCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return discount_service.create_link(db, data, current_user)


@router.put("/discount-links/{discount_link_id}", response_model=DiscountLinkOut)
def update_discount_link(
    discount_link_id: int,
    data: DiscountLinkUpdate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return discount_service.update_link(db, discount_link_id, data)


@router.post("/discount-links/{discount_link_id}/toggle", response_model=DiscountLinkOut)
def toggle_discount_link(
    discount_link_id: int,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return discount_service.toggle_link(db, discount_link_id)


@router.delete("/discount-links/{discount_link_id}")
def delete_discount_link(
    discount_link_id: int,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    discount_service.delete_link(db, discount_link_id)
    return {"message": "삭제되었습니다."}


# ---- announcements ----

@router.get("/announcements", response_model=List[AdminAnnouncementOut])
def list_announcements(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return announcement_service.list_admin(db)


@router.post("/announcements", response_model=AdminAnnouncementOut, status_code=201)
def create_announcement(
    data: AnnouncementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return announcement_service.create(db, data, current_user)


@router.put("/announcements/{announcement_id}", response_model=AdminAnnouncementOut)
def update_announcement(
    announcement_id: int,
    data: AnnouncementUpdate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return announcement_service.update_announcement(db, announcement_id, data)


@router.post("/announcements/{announcement_id}/distribute", response_model=AdminAnnouncementOut)
def distribute_announcement(
    announcement_id: int,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return announcement_service.distribute(db, announcement_id)


@router.delete("/announcements/{announcement_id}")
def delete_announcement(
    announcement_id: int,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    announcement_service.delete_announcement(db, announcement_id)
    return {"message": "삭제되었습니다."}


# ---- data add-ons ----

@router.get("/data-addons", response_model=List[DataAddonOut])
def list_data_addons(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return data_addon_service.list_catalog(db, include_inactive=True)


@router.post("/data-addons", response_model=DataAddonOut, status_code=201)
def create_data_addon(
    data: DataAddonCreate,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    return data_addon_service.create_addon(db, data)


@router.delete("/data-addons/{addon_id}")
def deactivate_data_addon(
    addon_id: int,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
):
    data_addon_service.delete_addon(db, addon_id)
    return {"message": "비활성화되었습니다."}
