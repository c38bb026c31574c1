"""공개 설문 API 라우터입니다. 공유 URL 로 로그인 없이 설문을 조회하고 응답합니다."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.survey import PublicSurveyOut, ResponseSubmit
from app.services import survey_service

router = APIRouter(prefix="/api/survey", tags=["public-survey"])


@router.get("/{share_url}", response_model=PublicSurveyOut)
def get_public_survey(share_url: str, db: Session = Depends(get_db)):
    return survey_service.get_public_survey(db, share_url)


@router.post("/{share_url}/responses", status_code=201)
def submit_response(share_url: str, data: ResponseSubmit, db: Session = Depends(get_db)):
    response = survey_service.submit_response(db, share_url, data)
    return {"message": "응답이 제출되었습니다.", "response_id": response.response_id}
