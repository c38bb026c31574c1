"""Notifications 기능 API 라우터입니다. 설문 알림과 최근 응답 목록을 제공합니다."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from app.database import get_db
from app.schemas.notification import RecentResponseOut, SurveyAlertOut
from app.services import notification_service
from app.middleware.auth_middleware import get_current_user
from app.models.user import User

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/survey-alerts", response_model=List[SurveyAlertOut])
def survey_alerts(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return notification_service.survey_alerts(db, current_user)


@router.get("/recent-responses", response_model=List[RecentResponseOut])
def recent_responses(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return notification_service.recent_responses(db, current_user)
