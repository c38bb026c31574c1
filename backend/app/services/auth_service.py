"""Auth Service 도메인 서비스 레이어입니다. 회원가입, 로그인, 토큰 발급을 담당합니다."""

import logging
from datetime import datetime, timedelta

import bcrypt
from jose import jwt
from sqlalchemy.orm import Session

from app.config import settings
from app.models.user import User
from app.schemas.user import SignupRequest
from app.utils.errors import Conflict, Unauthorized, ValidationFailed
from app.utils.permissions import USER

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
BCRYPT_ROUNDS = 12
MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user: User) -> str:
    expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {"sub": str(user.user_id), "email": user.email, "role": user.role, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


def validate_new_account(db: Session, *, email: str, password: str) -> str:
    normalized = normalize_email(email)
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"비밀번호는 {MIN_PASSWORD_LENGTH}자 이상이어야 합니다.")
    if db.query(User.user_id).filter(User.email == normalized).first():
        raise Conflict("이미 사용 중인 이메일입니다.")
    return normalized


def build_user(*, name: str, email: str, password: str, **extra) -> User:
    return User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=USER,
        max_invitations=settings.DEFAULT_MAX_INVITATIONS,
        used_invitations=0,
        **extra,
    )


def signup(db: Session, data: SignupRequest) -> User:
    email = validate_new_account(db, email=data.email, password=data.password)
    user = build_user(name=data.name, email=email, password=data.password)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("[auth] user signed up user_id=%s", user.user_id)
    return user


def login(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    if not user or not verify_password(password, user.password_hash):
        raise Unauthorized("이메일 또는 비밀번호가 올바르지 않습니다.")
    return user
