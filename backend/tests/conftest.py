import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from app.database import Base, get_db, set_sqlite_pragma
from app.main import app
from app.models.user import User
from app.services import auth_service

TEST_DB_URL = "sqlite:///./test_survey_app.db"
DEFAULT_PASSWORD = "password123"

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
event.listen(engine, "connect", set_sqlite_pragma)
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_db(monkeypatch):
    # 테스트 속도를 위해 bcrypt 비용만 낮춘다.
    monkeypatch.setattr(auth_service, "BCRYPT_ROUNDS", 4)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def seed_users(db):
    users = {
        "admin": User(email="admin@example.com", name="Admin", role="ADMIN"),
        "alice": User(email="alice@example.com", name="Alice", role="USER"),
        "bob": User(email="bob@example.com", name="Bob", role="USER"),
        "carol": User(email="carol@example.com", name="Carol", role="USER"),
    }
    for u in users.values():
        u.password_hash = auth_service.hash_password(DEFAULT_PASSWORD)
        u.max_invitations = 3
        u.used_invitations = 0
        db.add(u)
    db.commit()
    for u in users.values():
        db.refresh(u)
    return users


def get_token(client, email: str, password: str = DEFAULT_PASSWORD) -> str:
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def auth_headers(client, email: str, password: str = DEFAULT_PASSWORD) -> dict:
    return {"Authorization": f"Bearer {get_token(client, email, password)}"}


def create_survey(client, headers, **overrides) -> dict:
    payload = {"title": "고객 만족도 조사", "description": "분기 설문"}
    payload.update(overrides)
    resp = client.post("/api/surveys", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()
