"""설문 API 스키마입니다."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from app.models.survey import SURVEY_PERMISSIONS
from app.utils.helpers import to_naive_utc


QUESTION_TYPES = {
    "TEXT", "TEXTAREA", "RADIO", "CHECKBOX", "SELECT", "RATING", "DATE",
    "NAME", "EMAIL", "PHONE", "PREFECTURE", "AGE_GROUP", "SECTION", "PAGE_BREAK",
}
CHOICE_QUESTION_TYPES = {"RADIO", "CHECKBOX", "SELECT"}
# 응답값을 받지 않는 구조용 질문
LAYOUT_QUESTION_TYPES = {"SECTION", "PAGE_BREAK"}


def _check_question_type(value: str) -> str:
    text = str(value or "").strip().upper()
    if text not in QUESTION_TYPES:
        raise ValueError("지원하지 않는 질문 유형입니다.")
    return text


class SurveyCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    ticket_type: str = "FREE"
    max_responses: Optional[int] = Field(default=None, ge=1)
    target_responses: Optional[int] = Field(default=None, ge=1)
    end_date: Optional[datetime] = None
    use_custom_logo: bool = False

    @field_validator("end_date")
    @classmethod
    def normalize_end_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class SurveyUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    max_responses: Optional[int] = Field(default=None, ge=1)
    target_responses: Optional[int] = Field(default=None, ge=1)
    end_date: Optional[datetime] = None
    use_custom_logo: Optional[bool] = None

    @field_validator("end_date")
    @classmethod
    def normalize_end_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class SurveyOut(BaseModel):
    survey_id: int
    user_id: int
    title: str
    description: Optional[str] = None
    status: str
    share_url: Optional[str] = None
    ticket_type: str
    max_responses: Optional[int] = None
    target_responses: Optional[int] = None
    end_date: Optional[datetime] = None
    header_image_url: Optional[str] = None
    use_custom_logo: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SurveyListItemOut(SurveyOut):
    permission: str
    is_owner: bool
    response_count: int = 0
    question_count: int = 0


class SurveyOwnerOut(BaseModel):
    user_id: int
    name: Optional[str] = None
    email: str


class AdminSurveyOut(SurveyOut):
    owner: SurveyOwnerOut
    response_count: int = 0


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class AdminSurveyPageOut(BaseModel):
    surveys: List[AdminSurveyOut] = Field(default_factory=list)
    pagination: PaginationOut


class QuestionIn(BaseModel):
    type: str = "TEXT"
    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = None
    required: bool = False
    options: List[str] = Field(default_factory=list)
    settings: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("type")
    @classmethod
    def check_type(cls, value: str) -> str:
        return _check_question_type(value)


class QuestionsReplace(BaseModel):
    questions: List[QuestionIn] = Field(default_factory=list)


class QuestionOut(BaseModel):
    question_id: int
    survey_id: int
    type: str
    title: str
    description: Optional[str] = None
    required: bool
    order: int
    options: List[str] = Field(default_factory=list)
    settings: Dict[str, Any] = Field(default_factory=dict)
    settings_version: int

    model_config = {"from_attributes": True}


class SurveyDetailOut(SurveyOut):
    questions: List[QuestionOut] = Field(default_factory=list)
    access: Dict[str, bool] = Field(default_factory=dict)


class ShareOut(BaseModel):
    share_url: str
    public_url: str
    status: str


class PublicSurveyOut(BaseModel):
    survey_id: int
    title: str
    description: Optional[str] = None
    status: str
    end_date: Optional[datetime] = None
    header_image_url: Optional[str] = None
    custom_logo_url: Optional[str] = None
    questions: List[QuestionOut] = Field(default_factory=list)


AnswerValue = Union[str, int, float, bool, List[str], None]


class ResponseSubmit(BaseModel):
    answers: Dict[str, AnswerValue] = Field(default_factory=dict)


class AnswerOut(BaseModel):
    question_id: int
    value: Optional[str] = None

    model_config = {"from_attributes": True}


class ResponseOut(BaseModel):
    response_id: int
    survey_id: int
    created_at: Optional[datetime] = None
    answers: List[AnswerOut] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class CollaboratorCreate(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    permission: str = "VIEW"

    @field_validator("permission")
    @classmethod
    def check_permission(cls, value: str) -> str:
        text = str(value or "").strip().upper()
        if text not in SURVEY_PERMISSIONS:
            raise ValueError("권한은 VIEW, EDIT, ADMIN 중 하나여야 합니다.")
        return text


class CollaboratorUpdate(BaseModel):
    permission: str

    @field_validator("permission")
    @classmethod
    def check_permission(cls, value: str) -> str:
        text = str(value or "").strip().upper()
        if text not in SURVEY_PERMISSIONS:
            raise ValueError("권한은 VIEW, EDIT, ADMIN 중 하나여야 합니다.")
        return text


class CollaboratorOut(BaseModel):
    id: int
    survey_id: int
    user_id: int
    email: Optional[str] = None
    name: Optional[str] = None
    permission: str
    invited_by: Optional[int] = None
    invited_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None


class ImageUploadOut(BaseModel):
    header_image_url: str
    size: int


class QuestionTemplateCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    category: str = Field(default="general", max_length=50)
    type: str
    title: str = Field(min_length=1, max_length=500)
    description: Optional[str] = None
    options: List[str] = Field(default_factory=list)
    settings: Dict[str, Any] = Field(default_factory=dict)
    is_global: bool = False

    @field_validator("type")
    @classmethod
    def check_type(cls, value: str) -> str:
        return _check_question_type(value)


class QuestionTemplateOut(BaseModel):
    template_id: int
    user_id: Optional[int] = None
    name: str
    category: str
    type: str
    title: str
    description: Optional[str] = None
    options: List[str] = Field(default_factory=list)
    settings: Dict[str, Any] = Field(default_factory=dict)
    usage_count: int = 0
    is_global: bool = False
    created_at: Optional[datetime] = None
