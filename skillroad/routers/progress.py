"""
Progress router: module completion and quizzes.

Endpoints:
- POST /api/progress: record progress on a module (unlocks the next one on completion)
- GET /api/progress/{roadmap_id}: the user's progress rows for a roadmap
- POST /api/assessments/{id}/submit: grade a quiz and record the score
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from skillroad import storage
from skillroad.auth import get_current_user
from skillroad.database import get_db
from skillroad.models import User
from skillroad.schemas import AssessmentResult, AssessmentSubmission, ProgressOut, ProgressUpdate
from skillroad.services.progress import record_progress, submit_assessment

router = APIRouter()


@router.post("/progress", response_model=ProgressOut)
def update_progress(data: ProgressUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return record_progress(
            db, user.id, data.module_id,
            completed_at=data.completed_at,
            time_spent=data.time_spent,
            score=data.score,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.get("/progress/{roadmap_id}", response_model=list[ProgressOut])
def roadmap_progress(roadmap_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return storage.get_user_progress(db, user.id, roadmap_id)


@router.post("/assessments/{assessment_id}/submit", response_model=AssessmentResult)
def submit(
    assessment_id: int,
    data: AssessmentSubmission,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        result = submit_assessment(db, user.id, assessment_id, data.answers)
    except LookupError as e:
        raise HTTPException(status_code=404, detail="Assessment not found") from e
    result["progress"] = ProgressOut.model_validate(result["progress"])
    return AssessmentResult(**result)
