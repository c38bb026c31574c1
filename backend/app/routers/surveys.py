"""설문 API 라우터입니다."""

from typing import List

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.schemas.survey import (
    CollaboratorCreate,
    CollaboratorOut,
    CollaboratorUpdate,
    ImageUploadOut,
    QuestionOut,
    QuestionsReplace,
    ResponseOut,
    ShareOut,
    SurveyCreate,
    SurveyDetailOut,
    SurveyListItemOut,
    SurveyOut,
    SurveyUpdate,
)
from app.services import survey_service

router = APIRouter(prefix="/api/surveys", tags=["surveys"])


@router.get("", response_model=List[SurveyListItemOut])
def list_surveys(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return survey_service.list_surveys(db, current_user)


@router.post("", response_model=SurveyOut, status_code=201)
def create_survey(
    data: SurveyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return survey_service.create_survey(db, data, current_user)


@router.get("/{survey_id}", response_model=SurveyDetailOut)
def get_survey(
    survey_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return survey_service.get_detail(db, survey_id=survey_id, current_user=current_user)


@router.put("/{survey_id}", response_model=SurveyOut)
def update_survey(
    survey_id: int,
    data: SurveyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return survey_service.update_survey(db, survey_id=survey_id, data=data, current_user=current_user)


@router.delete("/{survey_id}")
def delete_survey(
    survey_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    survey_service.delete_survey(db, survey_id=survey_id, current_user=current_user)
    return {"message": "삭제되었습니다."}


@router.get("/{survey_id}/questions", response_model=List[QuestionOut])
def list_questions(
    survey_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return survey_service.list_questions(db, survey_id=survey_id, current_user=current_user)


@router.put("/{survey_id}/questions", response_model=List[QuestionOut])
def replace_questions(
    survey_id: int,
    data: QuestionsReplace,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return survey_service.replace_questions(
        db,
        survey_id=survey_id,
        questions=data.questions,
        current_user=current_user,
    )


@router.delete("/{survey_id}/questions")
def delete_questions(
    survey_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    survey_service.delete_questions(db, survey_id=survey_id, current_user=current_user)
    return {"message": "삭제되었습니다."}


@router.post("/{survey_id}/share", response_model=ShareOut)
def share_survey(
    survey_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return survey_service.share_survey(db, survey_id=survey_id, current_user=current_user)


@router.delete("/{survey_id}/share", response_model=SurveyOut)
def unshare_survey(
    survey_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return survey_service.unshare_survey(db, survey_id=survey_id, current_user=current_user)


@router.get("/{survey_id}/responses", response_model=List[ResponseOut])
def list_responses(
    survey_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return survey_service.list_responses(db, survey_id=survey_id, current_user=current_user)


@router.get("/{survey_id}/export")
def export_csv(
    survey_id: int,
    format: str = Query("raw"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    csv_text = survey_service.export_csv(
        db,
        survey_id=survey_id,
        current_user=current_user,
        export_format=format,
    )
    return Response(
        content=csv_text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="survey_{survey_id}_{format}.csv"'},
    )


@router.get("/{survey_id}/collaborators", response_model=List[CollaboratorOut])
def list_collaborators(
    survey_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return survey_service.list_collaborators(db, survey_id=survey_id, current_user=current_user)


@router.post("/{survey_id}/collaborators", response_model=CollaboratorOut, status_code=201)
def add_collaborator(
    survey_id: int,
    data: CollaboratorCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return survey_service.add_collaborator(db, survey_id=survey_id, data=data, current_user=current_user)


@router.put("/{survey_id}/collaborators/{collaborator_id}", response_model=CollaboratorOut)
def update_collaborator(
    survey_id: int,
    collaborator_id: int,
    data: CollaboratorUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return survey_service.update_collaborator(
        db,
        survey_id=survey_id,
        collaborator_id=collaborator_id,
        data=data,
        current_user=current_user,
    )


@router.delete("/{survey_id}/collaborators/{collaborator_id}")
def remove_collaborator(
    survey_id: int,
    collaborator_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    survey_service.remove_collaborator(
        db,
        survey_id=survey_id,
        collaborator_id=collaborator_id,
        current_user=current_user,
    )
    return {"message": "삭제되었습니다."}


@router.post("/{survey_id}/upload-image", response_model=ImageUploadOut)
async def upload_image(
    survey_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await survey_service.upload_header_image(db, survey_id=survey_id, file=file, current_user=current_user)


@router.delete("/{survey_id}/remove-image", response_model=SurveyOut)
def remove_image(
    survey_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return survey_service.remove_header_image(db, survey_id=survey_id, current_user=current_user)
