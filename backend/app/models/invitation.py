"""추천 초대 코드 SQLAlchemy 모델입니다."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.database import Base


class Invitation(Base):
    __tablename__ = "invitation"

    invitation_id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(64), unique=True, nullable=False)
    inviter_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    inviter_email = Column(String(255), nullable=False, default="")
    inviter_name = Column(String(100))
    invited_email = Column(String(255))
    invited_name = Column(String(100))
    message = Column(Text)
    is_used = Column(Boolean, nullable=False, default=False)
    used_at = Column(DateTime, nullable=True)
    used_by_user_id = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    inviter = relationship("User", foreign_keys=[inviter_id])
    used_by_user = relationship("User", foreign_keys=[used_by_user_id])

    __table_args__ = (
        Index("idx_invitation_inviter_created", "inviter_id", "created_at"),
    )
