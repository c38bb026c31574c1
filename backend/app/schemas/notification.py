"""Notification 응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel
from typing import Literal, Optional
from datetime import datetime


class SurveyAlertOut(BaseModel):
    id: str
    title: str
    message: str
    survey_id: int
    survey_title: str
    severity: Literal["error", "warning", "info"]


class RecentResponseOut(BaseModel):
    response_id: int
    survey_id: int
    survey_title: Optional[str] = None
    respondent: str
    answer_count: int
    created_at: Optional[datetime] = None
