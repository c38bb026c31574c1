"""할인 코드(Discount Link) SQLAlchemy 모델입니다."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from app.database import Base


class DiscountLink(Base):
    __tablename__ = "discount_link"

    discount_link_id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(64), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    discount_type = Column(String(20), nullable=False)  # PERCENTAGE/FIXED
    discount_value = Column(Integer, nullable=False)
    target_ticket_type = Column(String(20), nullable=False)
    original_price = Column(Integer, nullable=False)
    discounted_price = Column(Integer, nullable=False)
    max_uses = Column(Integer, nullable=True)
    current_uses = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    valid_from = Column(DateTime, nullable=False)
    valid_until = Column(DateTime, nullable=False)
    created_by = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())


class UserDiscountLink(Base):
    __tablename__ = "user_discount_link"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    discount_link_id = Column(Integer, ForeignKey("discount_link.discount_link_id", ondelete="CASCADE"), nullable=False)
    used_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "discount_link_id", name="uq_user_discount_link"),
    )
