"""티켓/데이터 애드온 카탈로그와 질문 템플릿 API 라우터입니다."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.schemas.billing import DataAddonOut
from app.schemas.survey import QuestionTemplateCreate, QuestionTemplateOut
from app.services import data_addon_service, question_template_service, ticket_service

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/tickets/catalog")
def ticket_catalog():
    return {ticket_type: ticket_service.get_ticket_limits(ticket_type) for ticket_type in ticket_service.TICKET_TYPES}


@router.get("/data-addons", response_model=List[DataAddonOut])
def list_data_addons(db: Session = Depends(get_db)):
    return data_addon_service.list_catalog(db)


@router.get("/question-templates", response_model=List[QuestionTemplateOut])
def list_question_templates(
    category: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return question_template_service.list_templates(db, current_user, category=category)


@router.post("/question-templates", response_model=QuestionTemplateOut, status_code=201)
def create_question_template(
    data: QuestionTemplateCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return question_template_service.create_template(db, data, current_user)


@router.post("/question-templates/{template_id}/use", response_model=QuestionTemplateOut)
def use_question_template(
    template_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return question_template_service.use_template(db, template_id, current_user)


@router.delete("/question-templates/{template_id}")
def delete_question_template(
    template_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    question_template_service.delete_template(db, template_id, current_user)
    return {"message": "삭제되었습니다."}
