"""서비스 레이어 패키지 초기화 모듈입니다."""

from app.services import (
    auth_service,
    ticket_service,
    survey_service,
    question_template_service,
    invitation_service,
    announcement_service,
    discount_service,
    data_addon_service,
    data_usage_service,
    notification_service,
    payment_service,
    user_service,
)
