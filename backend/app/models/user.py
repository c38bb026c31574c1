"""User 도메인의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(100))
    password_hash = Column(String(255))
    role = Column(String(20), nullable=False, default="USER")  # USER/ADMIN
    max_invitations = Column(Integer, nullable=False, default=3)
    used_invitations = Column(Integer, nullable=False, default=0)
    invited_by = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    invitation_code = Column(String(64))
    stripe_customer_id = Column(String(100))
    custom_logo_url = Column(String(500))
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    # Relationships
    surveys = relationship("Survey", back_populates="owner")
    survey_grants = relationship("SurveyUser", foreign_keys="SurveyUser.user_id", back_populates="user")
    tickets = relationship("UserTicket", back_populates="user")
    announcement_deliveries = relationship("AnnouncementDelivery", back_populates="user")
