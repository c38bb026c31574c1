"""Seed the database with an admin account, the data add-on catalog and global question templates.

Usage:
  python scripts/seed_data.py
  python scripts/seed_data.py --admin-email ops@example.com --admin-password s3cret!
"""
import argparse
import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session

from app.database import SessionLocal, engine, Base
import app.models  # noqa: F401 - registers all models

from app.models.survey import QuestionTemplate
from app.models.ticket import DataAddon
from app.models.user import User
from app.services import auth_service
from app.utils.permissions import ADMIN

DEFAULT_ADDONS = [
    {"name": "저장 공간 +1GB", "type": "storage", "amount": 1024, "price": 500},
    {"name": "저장 공간 +5GB", "type": "storage", "amount": 5120, "price": 2000},
    {"name": "보존 기간 +90일", "type": "retention", "amount": 90, "price": 1000},
    {"name": "보존 기간 +180일", "type": "retention", "amount": 180, "price": 1800},
]

DEFAULT_TEMPLATES = [
    {"name": "이름", "category": "profile", "type": "NAME", "title": "이름을 입력해 주세요."},
    {"name": "이메일", "category": "profile", "type": "EMAIL", "title": "연락 가능한 이메일 주소"},
    {"name": "연령대", "category": "profile", "type": "AGE_GROUP", "title": "연령대를 선택해 주세요."},
    {
        "name": "만족도",
        "category": "feedback",
        "type": "RADIO",
        "title": "전반적으로 만족하셨나요?",
        "options": ["매우 만족", "만족", "보통", "불만족", "매우 불만족"],
    },
    {"name": "추천 의향", "category": "feedback", "type": "RATING", "title": "지인에게 추천하실 의향이 있나요?",
     "settings": {"min": 0, "max": 10}},
]


def seed(db: Session, admin_email: str, admin_password: str) -> dict:
    """비어 있는 항목만 채웁니다. 여러 번 실행해도 중복 생성하지 않습니다."""
    created = {"admin": 0, "addons": 0, "templates": 0}

    email = auth_service.normalize_email(admin_email)
    if not db.query(User.user_id).filter(User.email == email).first():
        admin = auth_service.build_user(name="관리자", email=email, password=admin_password)
        admin.role = ADMIN
        db.add(admin)
        created["admin"] = 1

    if db.query(DataAddon.addon_id).count() == 0:
        db.add_all(DataAddon(**row) for row in DEFAULT_ADDONS)
        created["addons"] = len(DEFAULT_ADDONS)

    if db.query(QuestionTemplate.template_id).filter(QuestionTemplate.user_id.is_(None)).count() == 0:
        for row in DEFAULT_TEMPLATES:
            db.add(
                QuestionTemplate(
                    user_id=None,
                    name=row["name"],
                    category=row["category"],
                    type=row["type"],
                    title=row["title"],
                    options_json=json.dumps(row["options"], ensure_ascii=False) if row.get("options") else None,
                    settings_json=json.dumps(row["settings"], ensure_ascii=False) if row.get("settings") else None,
                )
            )
        created["templates"] = len(DEFAULT_TEMPLATES)

    db.commit()
    return created


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--admin-email", default="admin@example.com")
    parser.add_argument("--admin-password", default="admin1234")
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        created = seed(db, args.admin_email, args.admin_password)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    print("Seed data inserted.")
    print(f"  admin: {created['admin']} ({args.admin_email})")
    print(f"  data add-ons: {created['addons']}")
    print(f"  global question templates: {created['templates']}")


if __name__ == "__main__":
    main()
