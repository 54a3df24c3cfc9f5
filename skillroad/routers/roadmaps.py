"""
Roadmaps router: AI-generated learning paths.

Endpoints:
- POST /api/roadmaps/generate: generate and store a roadmap for a job role
- GET /api/roadmaps: the current user's roadmaps, newest first
- GET /api/roadmaps/{id}: one roadmap with modules, resources, assessments and progress
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from skillroad import storage
from skillroad.auth import get_current_user
from skillroad.database import get_db
from skillroad.models import User
from skillroad.schemas import RoadmapDetail, RoadmapGenerateRequest, RoadmapOut
from skillroad.services.content import ContentGenerationError
from skillroad.services.roadmaps import build_roadmap

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/roadmaps")


@router.post("/generate", response_model=RoadmapDetail)
def generate_roadmap(
    data: RoadmapGenerateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Generate a roadmap with the LLM and save it.
    Takes a while: one LLM call for the roadmap plus two per module.
    """
    job_role = data.job_role.strip()
    experience_level = data.experience_level.strip()
    if not job_role or not experience_level:
        raise HTTPException(status_code=400, detail="Job role and experience level are required")

    try:
        return build_roadmap(db, user.id, job_role, experience_level)
    except ContentGenerationError as e:
        logger.error("Roadmap generation failed for %r: %s", job_role, e)
        raise HTTPException(
            status_code=500,
            detail="Failed to generate roadmap. Please check your LLM provider configuration.",
        ) from e


@router.get("", response_model=list[RoadmapOut])
def list_roadmaps(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return storage.get_roadmaps_by_user(db, user.id)


@router.get("/{roadmap_id}", response_model=RoadmapDetail)
def get_roadmap(roadmap_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    roadmap = storage.get_roadmap_with_modules(db, roadmap_id, user.id)
    if roadmap is None:
        raise HTTPException(status_code=404, detail="Roadmap not found")
    return roadmap
