"""환경 변수 기반 애플리케이션 설정을 중앙에서 관리합니다."""

from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./survey_app.db"
    SECRET_KEY: str = "change-me-to-a-random-secret-key"
    DEBUG: bool = True
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]
    LOG_LEVEL: str = "INFO"

    # 공개 URL(초대 링크, 공개 설문 링크) 생성 기준
    APP_BASE_URL: str = "http://localhost:3000"

    # JWT / 세션 쿠키
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480
    SESSION_COOKIE_NAME: str = "session_token"
    SESSION_COOKIE_SECURE: bool = False

    # 설문 헤더 이미지 업로드
    UPLOAD_DIR: str = "uploads"
    MAX_IMAGE_UPLOAD_SIZE: int = 5 * 1024 * 1024  # 5 MB
    ALLOWED_IMAGE_MIME_TYPES: List[str] = ["image/jpeg", "image/png"]

    # 티켓/초대 기본값
    FREE_TICKET_ALLOTMENT: int = 3
    DEFAULT_MAX_INVITATIONS: int = 3
    INVITATION_EXPIRE_DAYS: int = 7

    # 결제(Stripe REST API)
    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_API_BASE: str = "https://api.stripe.com/v1"
    STRIPE_TIMEOUT_SECONDS: float = 10.0
    STRIPE_WEBHOOK_TOLERANCE_SECONDS: int = 300
    CURRENCY: str = "jpy"

    def public_url(self, path: str) -> str:
        base = str(self.APP_BASE_URL or "").rstrip("/")
        return f"{base}/{path.lstrip('/')}"

    class Config:
        # 실행 cwd와 무관하게 backend/.env를 로드한다.
        env_file = str(Path(__file__).resolve().parents[1] / ".env")


settings = Settings()
