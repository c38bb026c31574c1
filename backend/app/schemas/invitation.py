"""초대 코드 요청/응답 스키마입니다."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.user import _check_email


class InvitationCreate(BaseModel):
    invited_email: Optional[str] = Field(default=None, max_length=255)
    invited_name: Optional[str] = Field(default=None, max_length=100)
    message: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("invited_email")
    @classmethod
    def check_invited_email(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not str(value).strip():
            return None
        return _check_email(value)


class InvitationCreateOut(BaseModel):
    invitation_id: int
    code: str
    url: str
    expires_at: datetime


class InvitationValidateRequest(BaseModel):
    code: Optional[str] = None


class InvitationUseRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _check_email(value)


class InvitationOut(BaseModel):
    invitation_id: int
    code: str
    inviter_id: int
    inviter_email: str
    inviter_name: Optional[str] = None
    invited_email: Optional[str] = None
    invited_name: Optional[str] = None
    message: Optional[str] = None
    is_used: bool
    used_at: Optional[datetime] = None
    used_by_user_id: Optional[int] = None
    expires_at: datetime
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class InvitationStatsOut(BaseModel):
    max_invitations: int
    used_invitations: int
    remaining_invitations: int
