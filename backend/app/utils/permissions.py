"""Permissions 관련 공용 유틸리티 헬퍼입니다."""

import logging
from dataclasses import dataclass

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.survey import PERMISSION_ADMIN, PERMISSION_EDIT, Survey, SurveyUser
from app.models.user import User

logger = logging.getLogger(__name__)

ADMIN = "ADMIN"
USER = "USER"
ALL_ROLES = (ADMIN, USER)


def is_admin(user: User) -> bool:
    return user.role == ADMIN


@dataclass(frozen=True)
class SurveyAccess:
    can_view: bool = False
    can_edit: bool = False
    can_admin: bool = False
    is_owner: bool = False

    def as_dict(self) -> dict:
        return {
            "can_view": self.can_view,
            "can_edit": self.can_edit,
            "can_admin": self.can_admin,
            "is_owner": self.is_owner,
        }


NO_ACCESS = SurveyAccess()
OWNER_ACCESS = SurveyAccess(can_view=True, can_edit=True, can_admin=True, is_owner=True)


def evaluate_survey_access(db: Session, user_id: int, survey_id: int) -> SurveyAccess:
    """설문 소유 여부와 협업자 권한을 합쳐 사용자의 권한 집합을 계산합니다.

    설문이 없거나 조회가 실패하면 모든 권한을 거부합니다.
    """
    try:
        row = (
            db.query(Survey.user_id, SurveyUser.permission)
            .outerjoin(
                SurveyUser,
                and_(SurveyUser.survey_id == Survey.survey_id, SurveyUser.user_id == int(user_id)),
            )
            .filter(Survey.survey_id == int(survey_id))
            .first()
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("[permissions] lookup failed survey_id=%s user_id=%s", survey_id, user_id)
        return NO_ACCESS

    if row is None:
        return NO_ACCESS

    owner_id, permission = row
    if int(owner_id) == int(user_id):
        return OWNER_ACCESS

    return SurveyAccess(
        can_view=permission is not None,
        can_edit=permission in (PERMISSION_EDIT, PERMISSION_ADMIN),
        can_admin=permission == PERMISSION_ADMIN,
        is_owner=False,
    )
