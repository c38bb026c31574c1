"""데이터 애드온(저장 용량/보존 기간 확장) 서비스 레이어입니다."""

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.models.ticket import DataAddon, UserDataAddon
from app.models.user import User
from app.schemas.billing import DataAddonCreate
from app.services import ticket_service
from app.utils.errors import NotFound

ADDON_ACTIVE = "ACTIVE"


def list_catalog(db: Session, include_inactive: bool = False) -> list[DataAddon]:
    query = db.query(DataAddon)
    if not include_inactive:
        query = query.filter(DataAddon.is_active == True)  # noqa: E712
    return query.order_by(DataAddon.type.asc(), DataAddon.amount.asc()).all()


def create_addon(db: Session, data: DataAddonCreate) -> DataAddon:
    row = DataAddon(**data.model_dump())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def delete_addon(db: Session, addon_id: int):
    row = db.query(DataAddon).filter(DataAddon.addon_id == int(addon_id)).first()
    if not row:
        raise NotFound("애드온을 찾을 수 없습니다.")
    row.is_active = False
    db.commit()


def list_user_addons(db: Session, current_user: User) -> list[UserDataAddon]:
    return (
        db.query(UserDataAddon)
        .options(joinedload(UserDataAddon.addon))
        .filter(UserDataAddon.user_id == current_user.user_id)
        .order_by(UserDataAddon.purchased_at.desc(), UserDataAddon.id.desc())
        .all()
    )


def _active_addon_totals(db: Session, user_id: int) -> dict[str, int]:
    rows = (
        db.query(DataAddon.type, func.coalesce(func.sum(DataAddon.amount), 0))
        .join(UserDataAddon, UserDataAddon.addon_id == DataAddon.addon_id)
        .filter(UserDataAddon.user_id == int(user_id), UserDataAddon.status == ADDON_ACTIVE)
        .group_by(DataAddon.type)
        .all()
    )
    return {str(kind): int(total) for kind, total in rows}


def effective_limits(db: Session, current_user: User) -> dict:
    """보유 티켓 중 가장 높은 종류의 한도에 활성 애드온을 더한 값입니다."""
    ticket_type = ticket_service.highest_ticket_type(ticket_service.list_tickets(db, current_user.user_id))
    limits = ticket_service.get_ticket_limits(ticket_type)
    extras = _active_addon_totals(db, current_user.user_id)
    return {
        "ticket_type": ticket_type,
        "max_responses_per_survey": limits["max_responses_per_survey"],
        "survey_duration_days": limits["survey_duration_days"],
        "data_retention_days": limits["data_retention_days"] + extras.get("retention", 0),
        "extra_storage_mb": extras.get("storage", 0),
        "max_data_size_mb": limits["max_data_size_mb"] + extras.get("storage", 0),
        "export_formats": list(limits["export_formats"]),
        "features": list(limits["features"]),
    }
