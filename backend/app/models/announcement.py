"""공지(Announcement)와 사용자별 배달 상태 SQLAlchemy 모델입니다."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base

DELIVERY_SENT = "SENT"
DELIVERY_READ = "READ"
DELIVERY_HIDDEN = "HIDDEN"


class Announcement(Base):
    __tablename__ = "announcement"

    announcement_id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default="MANUAL")  # MANUAL/SCHEDULED
    priority = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="DRAFT")  # DRAFT/SCHEDULED/SENT
    scheduled_at = Column(DateTime, nullable=True)
    total_sent = Column(Integer, nullable=False, default=0)
    total_read = Column(Integer, nullable=False, default=0)
    created_by = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    deliveries = relationship("AnnouncementDelivery", back_populates="announcement", cascade="all, delete-orphan")


class AnnouncementDelivery(Base):
    __tablename__ = "announcement_delivery"

    delivery_id = Column(Integer, primary_key=True, autoincrement=True)
    announcement_id = Column(Integer, ForeignKey("announcement.announcement_id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    status = Column(String(10), nullable=False, default=DELIVERY_SENT)  # SENT/READ/HIDDEN
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    announcement = relationship("Announcement", back_populates="deliveries")
    user = relationship("User", back_populates="announcement_deliveries")

    __table_args__ = (
        UniqueConstraint("announcement_id", "user_id", name="uq_announcement_delivery"),
        Index("idx_announcement_delivery_user", "user_id", "status", "created_at"),
    )
