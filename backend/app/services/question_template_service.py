"""질문 템플릿 서비스 레이어입니다."""

import json

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from app.models.survey import QuestionTemplate
from app.models.user import User
from app.schemas.survey import QuestionTemplateCreate
from app.services.survey_service import parse_options, parse_settings
from app.utils.errors import Forbidden, NotFound
from app.utils.permissions import is_admin


def serialize_template(row: QuestionTemplate) -> dict:
    return {
        "template_id": row.template_id,
        "user_id": row.user_id,
        "name": row.name,
        "category": row.category,
        "type": row.type,
        "title": row.title,
        "description": row.description,
        "options": parse_options(row.options_json),
        "settings": parse_settings(row.settings_json),
        "usage_count": row.usage_count or 0,
        "is_global": row.user_id is None,
        "created_at": row.created_at,
    }


def list_templates(db: Session, current_user: User, category: str | None = None) -> list[dict]:
    query = db.query(QuestionTemplate).filter(
        or_(QuestionTemplate.user_id.is_(None), QuestionTemplate.user_id == current_user.user_id)
    )
    if category:
        query = query.filter(QuestionTemplate.category == category)
    rows = query.order_by(QuestionTemplate.category.asc(), QuestionTemplate.template_id.asc()).all()
    return [serialize_template(row) for row in rows]


def create_template(db: Session, data: QuestionTemplateCreate, current_user: User) -> dict:
    if data.is_global and not is_admin(current_user):
        raise Forbidden("공용 템플릿은 관리자만 만들 수 있습니다.")
    options = [str(v).strip() for v in data.options if str(v).strip()]
    row = QuestionTemplate(
        user_id=None if data.is_global else current_user.user_id,
        name=data.name.strip(),
        category=(data.category or "general").strip() or "general",
        type=data.type,
        title=data.title.strip(),
        description=data.description,
        options_json=json.dumps(options, ensure_ascii=False) if options else None,
        settings_json=json.dumps(data.settings, ensure_ascii=False) if data.settings else None,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return serialize_template(row)


def _get_visible_template(db: Session, template_id: int, current_user: User) -> QuestionTemplate:
    row = db.query(QuestionTemplate).filter(QuestionTemplate.template_id == int(template_id)).first()
    if not row or (row.user_id is not None and row.user_id != current_user.user_id):
        raise NotFound("템플릿을 찾을 수 없습니다.")
    return row


def use_template(db: Session, template_id: int, current_user: User) -> dict:
    row = _get_visible_template(db, template_id, current_user)
    db.execute(
        update(QuestionTemplate)
        .where(QuestionTemplate.template_id == row.template_id)
        .values(usage_count=QuestionTemplate.usage_count + 1)
    )
    db.commit()
    db.refresh(row)
    return serialize_template(row)


def delete_template(db: Session, template_id: int, current_user: User):
    row = _get_visible_template(db, template_id, current_user)
    if row.user_id is None and not is_admin(current_user):
        raise Forbidden("공용 템플릿은 관리자만 삭제할 수 있습니다.")
    db.delete(row)
    db.commit()
