"""결제 API 라우터입니다. 체크아웃/포털 세션 생성과 결제 웹훅 수신을 담당합니다."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.schemas.billing import RedirectOut, TicketCheckoutRequest
from app.services import payment_service
from app.services.payment_service import PaymentClient

router = APIRouter(prefix="/api/stripe", tags=["payments"])


@router.post("/create-ticket-checkout", response_model=RedirectOut)
def create_ticket_checkout(
    data: TicketCheckoutRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    client: PaymentClient = Depends(payment_service.get_client),
):
    return payment_service.create_ticket_checkout(db, data, current_user, client)


@router.post("/create-addon-checkout/{addon_id}", response_model=RedirectOut)
def create_addon_checkout(
    addon_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    client: PaymentClient = Depends(payment_service.get_client),
):
    return payment_service.create_addon_checkout(db, addon_id, current_user, client)


@router.post("/create-portal-session", response_model=RedirectOut)
def create_portal_session(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    client: PaymentClient = Depends(payment_service.get_client),
):
    return payment_service.create_portal_session(db, current_user, client)


@router.post("/webhook")
async def webhook(request: Request, db: Session = Depends(get_db)):
    payload = await request.body()
    return payment_service.handle_webhook(db, payload, request.headers.get("stripe-signature"))
