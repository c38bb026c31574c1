"""할인 코드 검증 API 라우터입니다."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.schemas.billing import DiscountValidateRequest
from app.services import discount_service

router = APIRouter(prefix="/api/discount", tags=["discount"])


@router.post("/validate")
def validate_discount(
    data: DiscountValidateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return discount_service.validate_code(
        db,
        code=data.discount_code,
        ticket_type=data.ticket_type,
        current_user=current_user,
    )
