"""티켓/결제/할인 코드/데이터 애드온 스키마입니다."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.utils.helpers import to_naive_utc


DISCOUNT_TYPES = {"PERCENTAGE", "FIXED"}
ADDON_TYPES = {"storage", "retention"}


class TicketOut(BaseModel):
    ticket_id: Optional[int] = None
    user_id: int
    ticket_type: str
    total_tickets: int
    used_tickets: int
    remaining_tickets: int
    purchased_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class TicketPurchaseOut(BaseModel):
    purchase_id: int
    user_id: int
    ticket_type: str
    quantity: int
    amount: int
    currency: str
    checkout_session_id: str
    payment_intent_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TicketGrantRequest(BaseModel):
    ticket_type: str
    quantity: int = Field(default=1, ge=1, le=1000)


class TicketCheckoutRequest(BaseModel):
    ticket_type: str
    quantity: int = Field(default=1, ge=1, le=100)
    discount_code: Optional[str] = Field(default=None, max_length=64)


class RedirectOut(BaseModel):
    url: str


class DiscountValidateRequest(BaseModel):
    discount_code: str = Field(min_length=1, max_length=64)
    ticket_type: str = Field(min_length=1)


class DiscountLinkBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    discount_type: str
    discount_value: int = Field(ge=0)
    target_ticket_type: str
    max_uses: Optional[int] = Field(default=None, ge=1)
    valid_from: datetime
    valid_until: datetime

    @field_validator("discount_type")
    @classmethod
    def check_discount_type(cls, value: str) -> str:
        text = str(value or "").strip().upper()
        if text not in DISCOUNT_TYPES:
            raise ValueError("할인 유형은 PERCENTAGE 또는 FIXED 여야 합니다.")
        return text

    @field_validator("valid_from", "valid_until")
    @classmethod
    def normalize_window(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @model_validator(mode="after")
    def check_window(self):
        if self.valid_from > self.valid_until:
            raise ValueError("유효 시작일은 종료일보다 이후일 수 없습니다.")
        if self.discount_type == "PERCENTAGE" and self.discount_value > 100:
            raise ValueError("할인율은 0~100 사이여야 합니다.")
        return self


class DiscountLinkCreate(DiscountLinkBase):
    code: str = Field(min_length=1, max_length=64)


class DiscountLinkUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    max_uses: Optional[int] = Field(default=None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: Optional[bool] = None

    @field_validator("valid_from", "valid_until")
    @classmethod
    def normalize_window(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class DiscountLinkOut(BaseModel):
    discount_link_id: int
    code: str
    name: str
    description: Optional[str] = None
    discount_type: str
    discount_value: int
    target_ticket_type: str
    original_price: int
    discounted_price: int
    max_uses: Optional[int] = None
    current_uses: int
    is_active: bool
    valid_from: datetime
    valid_until: datetime
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DataAddonCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    type: str
    amount: int = Field(ge=1)
    price: int = Field(default=0, ge=0)
    is_active: bool = True

    @field_validator("type")
    @classmethod
    def check_type(cls, value: str) -> str:
        text = str(value or "").strip().lower()
        if text not in ADDON_TYPES:
            raise ValueError("애드온 유형은 storage 또는 retention 이어야 합니다.")
        return text


class DataAddonOut(BaseModel):
    addon_id: int
    name: str
    type: str
    amount: int
    price: int
    is_active: bool

    model_config = {"from_attributes": True}


class UserDataAddonOut(BaseModel):
    id: int
    addon_id: int
    status: str
    purchased_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    addon: DataAddonOut

    model_config = {"from_attributes": True}


class EffectiveLimitsOut(BaseModel):
    ticket_type: str
    max_responses_per_survey: int
    survey_duration_days: int
    data_retention_days: int
    extra_storage_mb: int
    max_data_size_mb: int
    export_formats: List[str]
    features: List[str]


class DataUsageOut(BaseModel):
    total_bytes: int
    total_mb: float
    usage_by_type: Dict[str, float]
    max_data_size_mb: int
    usage_percent: float
    is_over_limit: bool


class DataUsageRecordOut(BaseModel):
    usage_id: int
    user_id: int
    survey_id: Optional[int] = None
    data_type: str
    source: str
    size_bytes: int
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserDataUsageOut(BaseModel):
    user_id: int
    email: str
    name: Optional[str] = None
    system_size: int
    survey_size: int
    total_size: int


class DataUsageTotalsOut(BaseModel):
    system_size: int
    survey_size: int
    total_size: int


class AdminDataUsageOut(BaseModel):
    total_usage: DataUsageTotalsOut
    user_usage: List[UserDataUsageOut] = Field(default_factory=list)
    recent_usage: List[DataUsageRecordOut] = Field(default_factory=list)
