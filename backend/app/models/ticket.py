"""티켓/구매 이력/데이터 애드온/데이터 사용량 SQLAlchemy 모델입니다."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class UserTicket(Base):
    __tablename__ = "user_ticket"

    ticket_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    ticket_type = Column(String(20), nullable=False)  # STANDARD/PROFESSIONAL/ENTERPRISE (FREE는 조회 시 합성)
    total_tickets = Column(Integer, nullable=False, default=0)
    used_tickets = Column(Integer, nullable=False, default=0)
    remaining_tickets = Column(Integer, nullable=False, default=0)
    purchased_at = Column(DateTime, server_default=func.now())
    expires_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    user = relationship("User", back_populates="tickets")

    __table_args__ = (
        UniqueConstraint("user_id", "ticket_type", name="uq_user_ticket_type"),
        CheckConstraint("remaining_tickets >= 0", name="ck_user_ticket_remaining"),
        CheckConstraint("total_tickets = used_tickets + remaining_tickets", name="ck_user_ticket_conservation"),
    )


class TicketPurchase(Base):
    __tablename__ = "ticket_purchase"

    purchase_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    ticket_type = Column(String(20), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    amount = Column(Integer, nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="jpy")
    checkout_session_id = Column(String(200), unique=True, nullable=False)
    payment_intent_id = Column(String(200))
    metadata_json = Column(Text)
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("idx_ticket_purchase_user_created", "user_id", "created_at"),
    )


class DataAddon(Base):
    """저장 용량(storage, MB) 또는 보존 기간(retention, 일) 확장 상품."""

    __tablename__ = "data_addon"

    addon_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    type = Column(String(20), nullable=False)  # storage/retention
    amount = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())


class UserDataAddon(Base):
    __tablename__ = "user_data_addon"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    addon_id = Column(Integer, ForeignKey("data_addon.addon_id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default="ACTIVE")  # ACTIVE/EXPIRED
    purchased_at = Column(DateTime, server_default=func.now())
    expires_at = Column(DateTime, nullable=True)

    addon = relationship("DataAddon")


class DataUsage(Base):
    """사용자별 데이터 사용량 기록. 합계로 저장 용량 사용량을 계산합니다."""

    __tablename__ = "data_usage"

    usage_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    survey_id = Column(Integer, ForeignKey("survey.survey_id", ondelete="SET NULL"), nullable=True)
    data_type = Column(String(20), nullable=False)  # survey_data/file_upload/export_data
    source = Column(String(30), nullable=False)  # survey/response/export/survey_header/custom_logo
    size_bytes = Column(Integer, nullable=False, default=0)
    description = Column(String(300))
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("idx_data_usage_user_type", "user_id", "data_type"),
        Index("idx_data_usage_survey", "survey_id"),
    )
