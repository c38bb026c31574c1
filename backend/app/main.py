"""FastAPI 애플리케이션 진입점. 미들웨어, 예외 핸들러, API 라우터, 업로드 파일 서빙을 등록합니다."""

import logging
import os
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from app.config import settings
from app.database import Base, engine
import app.models  # noqa: F401 - 모델 import로 metadata 등록
from app.routers import (
    admin, announcements, auth, catalog, discount, invitations, notifications, payments, public_survey,
    surveys, users,
)
from app.services.payment_service import PaymentProviderError

logging.basicConfig(
    level=getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "서버 오류가 발생했습니다."

app = FastAPI(
    title="설문 SaaS 백엔드",
    description="설문 작성/공유/응답 수집과 티켓 기반 과금, 초대, 공지 기능을 제공하는 API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _field_name(loc) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for error in exc.errors():
        errors.setdefault(_field_name(error.get("loc", ())), str(error.get("msg", "")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "입력값이 올바르지 않습니다.", "errors": errors},
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("[db] unhandled database error %s %s", request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": INTERNAL_ERROR_MESSAGE})


@app.exception_handler(PaymentProviderError)
async def payment_exception_handler(request: Request, exc: PaymentProviderError):
    logger.error("[payments] provider failure %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": INTERNAL_ERROR_MESSAGE})


# Register all routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(surveys.router)
app.include_router(public_survey.router)
app.include_router(invitations.router)
app.include_router(announcements.router)
app.include_router(notifications.router)
app.include_router(payments.router)
app.include_router(discount.router)
app.include_router(catalog.router)
app.include_router(admin.router)


@app.on_event("startup")
def ensure_schema():
    # 신규 기능 배포 시 누락된 테이블을 자동 생성합니다.
    Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok", "service": "설문 SaaS 백엔드"}


# Static file serving for uploads
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")
