"""공지 요청/응답 스키마입니다."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.utils.helpers import to_naive_utc


ANNOUNCEMENT_TYPES = {"MANUAL", "SCHEDULED"}


class AnnouncementCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    type: str = "MANUAL"
    priority: int = Field(default=0, ge=0, le=10)
    scheduled_at: Optional[datetime] = None

    @field_validator("type")
    @classmethod
    def check_type(cls, value: str) -> str:
        text = str(value or "").strip().upper()
        if text not in ANNOUNCEMENT_TYPES:
            raise ValueError("공지 유형은 MANUAL 또는 SCHEDULED 여야 합니다.")
        return text

    @field_validator("scheduled_at")
    @classmethod
    def normalize_scheduled_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1)
    priority: Optional[int] = Field(default=None, ge=0, le=10)
    scheduled_at: Optional[datetime] = None

    @field_validator("scheduled_at")
    @classmethod
    def normalize_scheduled_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class AnnouncementOut(BaseModel):
    announcement_id: int
    title: str
    content: str
    type: str
    priority: int
    status: str
    scheduled_at: Optional[datetime] = None
    total_sent: int
    total_read: int
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AdminAnnouncementOut(AnnouncementOut):
    read_rate: float = 0.0


class DeliveryOut(BaseModel):
    delivery_id: int
    announcement_id: int
    status: str
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    title: str
    content: str
    priority: int
