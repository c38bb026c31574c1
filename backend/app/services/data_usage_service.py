"""데이터 사용량 서비스 레이어입니다.

설문 생성, 응답 수집, 파일 업로드, 내보내기 때마다 바이트 수를 기록하고
사용자별/전체 사용량을 집계합니다. 기록/해제 함수는 커밋하지 않습니다.
"""

import json
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.ticket import DataUsage
from app.models.user import User
from app.services import data_addon_service

logger = logging.getLogger(__name__)

SURVEY_DATA = "survey_data"
FILE_UPLOAD = "file_upload"
EXPORT_DATA = "export_data"
DATA_TYPES = (SURVEY_DATA, FILE_UPLOAD, EXPORT_DATA)

RECENT_USAGE_LIMIT = 50


def payload_size(payload) -> int:
    return len(json.dumps(payload, ensure_ascii=False, default=str).encode("utf-8"))


def to_mb(size_bytes: int) -> float:
    return round(int(size_bytes or 0) / (1024 * 1024), 2)


def record_usage(
    db: Session,
    *,
    user_id: int,
    data_type: str,
    source: str,
    size_bytes: int,
    survey_id: int | None = None,
    description: str | None = None,
) -> DataUsage:
    row = DataUsage(
        user_id=int(user_id),
        survey_id=survey_id,
        data_type=data_type,
        source=source,
        size_bytes=max(int(size_bytes or 0), 0),
        description=(description or "")[:300] or None,
    )
    db.add(row)
    return row


def release_usage(db: Session, *, user_id: int, source: str, survey_id: int | None = None) -> int:
    """교체되거나 삭제된 파일의 사용량 기록을 지웁니다."""
    query = db.query(DataUsage).filter(DataUsage.user_id == int(user_id), DataUsage.source == source)
    if survey_id is None:
        query = query.filter(DataUsage.survey_id.is_(None))
    else:
        query = query.filter(DataUsage.survey_id == int(survey_id))
    return query.delete(synchronize_session=False)


def release_survey_usage(db: Session, survey_ids: list[int]) -> int:
    if not survey_ids:
        return 0
    return db.query(DataUsage).filter(DataUsage.survey_id.in_(survey_ids)).delete(synchronize_session=False)


def _bytes_by_type(db: Session, user_id: int) -> dict[str, int]:
    rows = (
        db.query(DataUsage.data_type, func.coalesce(func.sum(DataUsage.size_bytes), 0))
        .filter(DataUsage.user_id == int(user_id))
        .group_by(DataUsage.data_type)
        .all()
    )
    totals = {data_type: 0 for data_type in DATA_TYPES}
    for data_type, total in rows:
        totals[str(data_type)] = int(total)
    return totals


def get_user_usage(db: Session, current_user: User) -> dict:
    by_type = _bytes_by_type(db, current_user.user_id)
    total_bytes = sum(by_type.values())
    max_mb = data_addon_service.effective_limits(db, current_user)["max_data_size_mb"]
    total_mb = to_mb(total_bytes)
    return {
        "total_bytes": total_bytes,
        "total_mb": total_mb,
        "usage_by_type": {data_type: to_mb(size) for data_type, size in by_type.items()},
        "max_data_size_mb": max_mb,
        "usage_percent": round(total_mb / max_mb * 100, 1) if max_mb else 0.0,
        "is_over_limit": total_bytes > max_mb * 1024 * 1024,
    }


def admin_usage(db: Session) -> dict:
    """전체 사용량, 사용자별 합계(큰 순서), 최근 기록을 돌려줍니다."""
    rows = (
        db.query(
            DataUsage.user_id,
            User.email,
            User.name,
            DataUsage.data_type,
            func.coalesce(func.sum(DataUsage.size_bytes), 0),
        )
        .join(User, User.user_id == DataUsage.user_id)
        .group_by(DataUsage.user_id, User.email, User.name, DataUsage.data_type)
        .all()
    )
    per_user: dict[int, dict] = {}
    for user_id, email, name, data_type, total in rows:
        entry = per_user.setdefault(
            int(user_id),
            {"user_id": int(user_id), "email": email, "name": name, "system_size": 0, "survey_size": 0, "total_size": 0},
        )
        if data_type == SURVEY_DATA:
            entry["survey_size"] += int(total)
        else:
            entry["system_size"] += int(total)
        entry["total_size"] += int(total)

    user_usage = sorted(per_user.values(), key=lambda e: (-e["total_size"], e["user_id"]))
    recent = (
        db.query(DataUsage)
        .order_by(DataUsage.created_at.desc(), DataUsage.usage_id.desc())
        .limit(RECENT_USAGE_LIMIT)
        .all()
    )
    return {
        "total_usage": {
            "system_size": sum(e["system_size"] for e in user_usage),
            "survey_size": sum(e["survey_size"] for e in user_usage),
            "total_size": sum(e["total_size"] for e in user_usage),
        },
        "user_usage": user_usage,
        "recent_usage": recent,
    }
