"""결제 서비스 레이어입니다. Stripe REST API 연동(고객/체크아웃/포털)과 웹훅 처리를 담당합니다."""

import hashlib
import hmac
import json
import logging
import time
from typing import Any

import httpx
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.database import transaction
from app.models.ticket import DataAddon, TicketPurchase, UserDataAddon
from app.models.user import User
from app.schemas.billing import TicketCheckoutRequest
from app.services import discount_service, ticket_service
from app.utils.errors import NotFound, ValidationFailed

logger = logging.getLogger(__name__)

PURCHASE_TICKET = "ticket_purchase"
PURCHASE_DATA_ADDON = "data_addon_purchase"
# 구매 이력에서 애드온 결제를 티켓 결제와 구분하는 값
DATA_ADDON_PURCHASE_TYPE = "DATA_ADDON"


class PaymentProviderError(Exception):
    """결제 대행사 API 호출 실패."""


def _flatten(data: dict, prefix: str = "") -> list[tuple[str, str]]:
    """Stripe 폼 인코딩 규칙(a[b][0][c]=v)으로 중첩 dict/list 를 펼칩니다."""
    pairs = []
    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if isinstance(value, dict):
            pairs.extend(_flatten(value, name))
        elif isinstance(value, list):
            for idx, item in enumerate(value):
                item_name = f"{name}[{idx}]"
                if isinstance(item, dict):
                    pairs.extend(_flatten(item, item_name))
                else:
                    pairs.append((item_name, str(item)))
        elif value is not None:
            pairs.append((name, str(value).lower() if isinstance(value, bool) else str(value)))
    return pairs


class PaymentClient:
    def __init__(self, api_key: str | None = None, base_url: str | None = None):
        self.api_key = api_key if api_key is not None else settings.STRIPE_SECRET_KEY
        self.base_url = (base_url or settings.STRIPE_API_BASE).rstrip("/")

    def _post(self, endpoint: str, data: dict) -> dict[str, Any]:
        if not self.api_key:
            raise PaymentProviderError("결제 API 키가 설정되지 않았습니다.")
        try:
            response = httpx.post(
                f"{self.base_url}{endpoint}",
                headers={"Authorization": f"Bearer {self.api_key}"},
                data=dict(_flatten(data)),
                timeout=float(settings.STRIPE_TIMEOUT_SECONDS),
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            logger.error("[payments] provider error endpoint=%s status=%s", endpoint, exc.response.status_code)
            raise PaymentProviderError(f"payment provider returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.error("[payments] provider request failed endpoint=%s error=%s", endpoint, type(exc).__name__)
            raise PaymentProviderError("payment provider request failed") from exc

    def create_customer(self, *, email: str, name: str | None, user_id: int) -> dict:
        return self._post("/customers", {"email": email, "name": name, "metadata": {"user_id": user_id}})

    def create_checkout_session(
        self,
        *,
        customer_id: str,
        product_name: str,
        unit_amount: int,
        quantity: int,
        metadata: dict,
        success_url: str,
        cancel_url: str,
    ) -> dict:
        return self._post(
            "/checkout/sessions",
            {
                "mode": "payment",
                "customer": customer_id,
                "line_items": [
                    {
                        "price_data": {
                            "currency": settings.CURRENCY,
                            "unit_amount": unit_amount,
                            "product_data": {"name": product_name},
                        },
                        "quantity": quantity,
                    }
                ],
                "metadata": metadata,
                "success_url": success_url,
                "cancel_url": cancel_url,
            },
        )

    def create_portal_session(self, *, customer_id: str, return_url: str) -> dict:
        return self._post("/billing_portal/sessions", {"customer": customer_id, "return_url": return_url})


def get_client() -> PaymentClient:
    return PaymentClient()


def ensure_customer(db: Session, user: User, client: PaymentClient) -> str:
    if user.stripe_customer_id:
        return user.stripe_customer_id
    customer = client.create_customer(email=user.email, name=user.name, user_id=user.user_id)
    user.stripe_customer_id = customer["id"]
    db.commit()
    db.refresh(user)
    logger.info("[payments] customer created user_id=%s", user.user_id)
    return user.stripe_customer_id


def create_ticket_checkout(db: Session, data: TicketCheckoutRequest, current_user: User, client: PaymentClient) -> dict:
    ticket_type = ticket_service.normalize_ticket_type(data.ticket_type)
    if ticket_type not in ticket_service.PURCHASABLE_TICKET_TYPES:
        raise ValidationFailed("무료 티켓은 구매할 수 없습니다.")

    unit_amount = ticket_service.get_ticket_limits(ticket_type)["price"]
    metadata = {
        "type": PURCHASE_TICKET,
        "user_id": current_user.user_id,
        "ticket_type": ticket_type,
        "quantity": data.quantity,
    }
    if data.discount_code:
        link = discount_service.check_usable(
            db, code=data.discount_code, ticket_type=ticket_type, user_id=current_user.user_id
        )
        unit_amount = link.discounted_price
        metadata["discount_link_id"] = link.discount_link_id

    customer_id = ensure_customer(db, current_user, client)
    session = client.create_checkout_session(
        customer_id=customer_id,
        product_name=f"{ticket_type} ticket",
        unit_amount=unit_amount,
        quantity=data.quantity,
        metadata=metadata,
        success_url=settings.public_url("/tickets?checkout=success&session_id={CHECKOUT_SESSION_ID}"),
        cancel_url=settings.public_url("/tickets?checkout=cancel"),
    )
    logger.info(
        "[payments] ticket checkout created user_id=%s type=%s qty=%s",
        current_user.user_id, ticket_type, data.quantity,
    )
    return {"url": session["url"]}


def create_addon_checkout(db: Session, addon_id: int, current_user: User, client: PaymentClient) -> dict:
    addon = db.query(DataAddon).filter(DataAddon.addon_id == int(addon_id), DataAddon.is_active == True).first()  # noqa: E712
    if not addon:
        raise NotFound("애드온을 찾을 수 없습니다.")
    customer_id = ensure_customer(db, current_user, client)
    session = client.create_checkout_session(
        customer_id=customer_id,
        product_name=addon.name,
        unit_amount=addon.price,
        quantity=1,
        metadata={"type": PURCHASE_DATA_ADDON, "user_id": current_user.user_id, "addon_id": addon.addon_id},
        success_url=settings.public_url("/data-addons?checkout=success"),
        cancel_url=settings.public_url("/data-addons?checkout=cancel"),
    )
    return {"url": session["url"]}


def create_portal_session(db: Session, current_user: User, client: PaymentClient) -> dict:
    customer_id = ensure_customer(db, current_user, client)
    session = client.create_portal_session(customer_id=customer_id, return_url=settings.public_url("/dashboard"))
    return {"url": session["url"]}


# ---------------------------------------------------------------------------
# 웹훅
# ---------------------------------------------------------------------------

def compute_signature(payload: bytes, timestamp: str, secret: str) -> str:
    signed = f"{timestamp}.".encode("utf-8") + payload
    return hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()


def verify_signature(payload: bytes, header: str | None, secret: str | None = None, now: float | None = None) -> bool:
    secret = secret if secret is not None else settings.STRIPE_WEBHOOK_SECRET
    if not secret or not header:
        return False
    parts = {}
    signatures = []
    for item in header.split(","):
        key, _, value = item.strip().partition("=")
        if key == "v1":
            signatures.append(value)
        else:
            parts[key] = value
    timestamp = parts.get("t")
    if not timestamp or not signatures:
        return False
    try:
        age = (now if now is not None else time.time()) - int(timestamp)
    except ValueError:
        return False
    if abs(age) > settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS:
        return False
    expected = compute_signature(payload, timestamp, secret)
    return any(hmac.compare_digest(expected, sig) for sig in signatures)


def _record_ticket_purchase(db: Session, checkout: dict, metadata: dict) -> bool:
    session_id = checkout["id"]
    if db.query(TicketPurchase.purchase_id).filter(TicketPurchase.checkout_session_id == session_id).first():
        return False
    user_id = int(metadata["user_id"])
    ticket_type = ticket_service.normalize_ticket_type(metadata.get("ticket_type"))
    quantity = int(metadata.get("quantity") or 1)
    try:
        with transaction(db):
            ticket_service.grant_tickets(db, user_id, ticket_type, quantity)
            db.add(
                TicketPurchase(
                    user_id=user_id,
                    ticket_type=ticket_type,
                    quantity=quantity,
                    amount=int(checkout.get("amount_total") or 0),
                    currency=str(checkout.get("currency") or settings.CURRENCY),
                    checkout_session_id=session_id,
                    payment_intent_id=checkout.get("payment_intent"),
                    metadata_json=json.dumps(metadata, ensure_ascii=False),
                )
            )
            if metadata.get("discount_link_id"):
                discount_service.record_usage(
                    db, discount_link_id=int(metadata["discount_link_id"]), user_id=user_id
                )
    except IntegrityError:
        # 같은 세션에 대한 웹훅이 동시에 처리된 경우
        logger.info("[payments] duplicate checkout session ignored")
        return False
    logger.info("[payments] tickets purchased user_id=%s type=%s qty=%s", user_id, ticket_type, quantity)
    return True


def _record_addon_purchase(db: Session, checkout: dict, metadata: dict) -> bool:
    session_id = checkout["id"]
    if db.query(TicketPurchase.purchase_id).filter(TicketPurchase.checkout_session_id == session_id).first():
        return False
    addon = db.query(DataAddon).filter(DataAddon.addon_id == int(metadata["addon_id"])).first()
    if not addon:
        logger.warning("[payments] unknown addon in webhook addon_id=%s", metadata.get("addon_id"))
        return False
    user_id = int(metadata["user_id"])
    try:
        with transaction(db):
            db.add(UserDataAddon(user_id=user_id, addon_id=addon.addon_id))
            db.add(
                TicketPurchase(
                    user_id=user_id,
                    ticket_type=DATA_ADDON_PURCHASE_TYPE,
                    quantity=1,
                    amount=int(checkout.get("amount_total") or 0),
                    currency=str(checkout.get("currency") or settings.CURRENCY),
                    checkout_session_id=session_id,
                    payment_intent_id=checkout.get("payment_intent"),
                    metadata_json=json.dumps(metadata, ensure_ascii=False),
                )
            )
    except IntegrityError:
        logger.info("[payments] duplicate checkout session ignored")
        return False
    logger.info("[payments] data addon purchased user_id=%s addon_id=%s", user_id, addon.addon_id)
    return True


def handle_webhook(db: Session, payload: bytes, signature_header: str | None) -> dict:
    if not verify_signature(payload, signature_header):
        logger.warning("[payments] webhook signature rejected")
        raise ValidationFailed("웹훅 서명이 올바르지 않습니다.")
    try:
        event = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise ValidationFailed("웹훅 본문이 올바르지 않습니다.")

    event_type = event.get("type")
    logger.info("[payments] webhook received type=%s id=%s", event_type, event.get("id"))
    if event_type != "checkout.session.completed":
        return {"received": True, "processed": False}

    checkout = (event.get("data") or {}).get("object") or {}
    metadata = checkout.get("metadata") or {}
    if not checkout.get("id") or not metadata.get("user_id"):
        raise ValidationFailed("웹훅 본문에 결제 세션 정보가 없습니다.")
    if metadata.get("type") == PURCHASE_TICKET:
        processed = _record_ticket_purchase(db, checkout, metadata)
    elif metadata.get("type") == PURCHASE_DATA_ADDON:
        processed = _record_addon_purchase(db, checkout, metadata)
    else:
        processed = False
    return {"received": True, "processed": processed}
