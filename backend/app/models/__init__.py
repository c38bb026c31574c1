"""SQLAlchemy 모델 패키지 초기화 모듈입니다."""

from app.models.user import User
from app.models.survey import Survey, SurveyUser, Question, Response, Answer, QuestionTemplate
from app.models.ticket import UserTicket, TicketPurchase, DataAddon, UserDataAddon, DataUsage
from app.models.invitation import Invitation
from app.models.discount import DiscountLink, UserDiscountLink
from app.models.announcement import Announcement, AnnouncementDelivery

__all__ = [
    "User",
    "Survey", "SurveyUser", "Question", "Response", "Answer", "QuestionTemplate",
    "UserTicket", "TicketPurchase", "DataAddon", "UserDataAddon", "DataUsage",
    "Invitation",
    "DiscountLink", "UserDiscountLink",
    "Announcement", "AnnouncementDelivery",
]
