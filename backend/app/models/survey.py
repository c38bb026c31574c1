"""설문 도메인 SQLAlchemy 모델입니다."""

from sqlalchemy import (
    Boolean,
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

SURVEY_DRAFT = "DRAFT"
SURVEY_ACTIVE = "ACTIVE"

PERMISSION_VIEW = "VIEW"
PERMISSION_EDIT = "EDIT"
PERMISSION_ADMIN = "ADMIN"
SURVEY_PERMISSIONS = (PERMISSION_VIEW, PERMISSION_EDIT, PERMISSION_ADMIN)

# 질문 settings_json 스키마 버전
QUESTION_SETTINGS_VERSION = 1


class Survey(Base):
    __tablename__ = "survey"

    survey_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    status = Column(String(20), nullable=False, default=SURVEY_DRAFT)  # DRAFT/ACTIVE
    share_url = Column(String(64), unique=True, nullable=True)
    ticket_type = Column(String(20), nullable=False, default="FREE")
    ticket_id = Column(Integer, ForeignKey("user_ticket.ticket_id", ondelete="SET NULL"), nullable=True)
    max_responses = Column(Integer, nullable=True)
    target_responses = Column(Integer, nullable=True)
    end_date = Column(DateTime, nullable=True)
    header_image_url = Column(String(500))
    use_custom_logo = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    owner = relationship("User", back_populates="surveys")
    collaborators = relationship(
        "SurveyUser",
        back_populates="survey",
        cascade="all, delete-orphan",
        order_by="SurveyUser.invited_at.asc()",
    )
    questions = relationship(
        "Question",
        back_populates="survey",
        cascade="all, delete-orphan",
        order_by="Question.order.asc(), Question.question_id.asc()",
    )
    responses = relationship(
        "Response",
        back_populates="survey",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_survey_owner_created", "user_id", "created_at"),
    )


class SurveyUser(Base):
    """소유자가 아닌 사용자에게 부여한 설문 권한(협업자 권한)."""

    __tablename__ = "survey_user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    survey_id = Column(Integer, ForeignKey("survey.survey_id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    permission = Column(String(10), nullable=False, default=PERMISSION_VIEW)  # EDIT/VIEW/ADMIN
    invited_by = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    invited_at = Column(DateTime, server_default=func.now())
    accepted_at = Column(DateTime, nullable=True)

    survey = relationship("Survey", back_populates="collaborators")
    user = relationship("User", foreign_keys=[user_id], back_populates="survey_grants")

    __table_args__ = (
        UniqueConstraint("survey_id", "user_id", name="uq_survey_user"),
    )


class Question(Base):
    __tablename__ = "question"

    question_id = Column(Integer, primary_key=True, autoincrement=True)
    survey_id = Column(Integer, ForeignKey("survey.survey_id", ondelete="CASCADE"), nullable=False)
    type = Column(String(30), nullable=False, default="TEXT")
    title = Column(String(500), nullable=False)
    description = Column(Text)
    required = Column(Boolean, nullable=False, default=False)
    order = Column(Integer, nullable=False, default=0)
    options_json = Column(Text, nullable=True)
    settings_json = Column(Text, nullable=True)
    settings_version = Column(Integer, nullable=False, default=QUESTION_SETTINGS_VERSION)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    survey = relationship("Survey", back_populates="questions")

    __table_args__ = (
        Index("idx_question_survey_order", "survey_id", "order"),
    )


class Response(Base):
    __tablename__ = "response"

    response_id = Column(Integer, primary_key=True, autoincrement=True)
    survey_id = Column(Integer, ForeignKey("survey.survey_id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    survey = relationship("Survey", back_populates="responses")
    answers = relationship("Answer", back_populates="response", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_response_survey_created", "survey_id", "created_at"),
    )


class Answer(Base):
    __tablename__ = "answer"

    answer_id = Column(Integer, primary_key=True, autoincrement=True)
    response_id = Column(Integer, ForeignKey("response.response_id", ondelete="CASCADE"), nullable=False)
    question_id = Column(Integer, ForeignKey("question.question_id", ondelete="CASCADE"), nullable=False)
    value = Column(Text, nullable=True)

    response = relationship("Response", back_populates="answers")
    question = relationship("Question")

    __table_args__ = (
        UniqueConstraint("response_id", "question_id", name="uq_answer_response_question"),
    )


class QuestionTemplate(Base):
    __tablename__ = "question_template"

    template_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=True)  # NULL이면 공용
    name = Column(String(200), nullable=False)
    category = Column(String(50), nullable=False, default="general")
    type = Column(String(30), nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text)
    options_json = Column(Text, nullable=True)
    settings_json = Column(Text, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
