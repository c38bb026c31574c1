"""User 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime


def _check_email(value: str) -> str:
    text = str(value or "").strip()
    if "@" not in text or text.startswith("@") or text.endswith("@"):
        raise ValueError("올바른 이메일 형식이 아닙니다.")
    return text


class SignupRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _check_email(value)


class LoginRequest(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    user_id: int
    email: str
    name: Optional[str] = None
    role: str
    max_invitations: int
    used_invitations: int
    custom_logo_url: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)


class LogoUploadOut(BaseModel):
    custom_logo_url: str
    size: int


class AdminUserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    max_invitations: Optional[int] = Field(default=None, ge=0)


class ChangeRoleRequest(BaseModel):
    user_id: int
    new_role: str
    password: str


class TicketSummaryOut(BaseModel):
    ticket_type: str
    total_tickets: int
    used_tickets: int
    remaining_tickets: int


class AdminUserOut(UserOut):
    survey_count: int = 0
    tickets: List[TicketSummaryOut] = Field(default_factory=list)
