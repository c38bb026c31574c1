"""SQLAlchemy 엔진/세션 팩토리와 트랜잭션 헬퍼를 제공합니다."""

import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.config import settings

logger = logging.getLogger(__name__)

_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def set_sqlite_pragma(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if settings.DATABASE_URL.startswith("sqlite"):
    event.listen(engine, "connect", set_sqlite_pragma)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """여러 단계의 쓰기 작업을 하나의 커밋 단위로 묶습니다.

    블록 안에서 예외가 발생하면 지금까지의 변경을 모두 롤백하고 예외를 다시 올립니다.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        logger.warning("[db] transaction rolled back", exc_info=True)
        raise
