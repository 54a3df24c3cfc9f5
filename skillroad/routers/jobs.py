"""
Jobs router: live job search and market analysis.

Endpoints:
- GET /api/jobs/search: search all configured portals, store the results
- GET /api/jobs/market-analysis: skill demand / companies / locations for a role (cached 24h)
- GET /api/jobs/trending-skills: most requested skills across stored listings
- GET /api/jobs/user-searches: the current user's search history
- GET /api/jobs/listings: stored listings, newest first
- POST /api/jobs/save: store a single listing
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from skillroad import storage
from skillroad.auth import get_current_user
from skillroad.config import settings
from skillroad.database import get_db
from skillroad.models import User
from skillroad.schemas import (
    JobListingCreate, JobListingOut, JobMarketDataOut, JobSearchResponse,
    SearchParams, TrendingSkill, TrendingSkillsResponse, UserJobSearchOut,
)
from skillroad.services.job_portals import JobPortalAggregator
from skillroad.services.market import get_or_refresh_market_data

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs")


def get_aggregator(request: Request) -> JobPortalAggregator:
    """The aggregator is built once at startup (see main.lifespan)."""
    return request.app.state.aggregator


def _require_job_role(job_role: str) -> str:
    job_role = job_role.strip()
    if not job_role:
        raise HTTPException(status_code=400, detail="Job role is required")
    return job_role


@router.get("/search", response_model=JobSearchResponse)
async def search_jobs(
    job_role: str = Query("", alias="jobRole"),
    location: str = "",
    experience_level: str = Query("", alias="experienceLevel"),
    limit: int = Query(25, ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    aggregator: JobPortalAggregator = Depends(get_aggregator),
):
    """
    Search every configured job portal for a role.
    Each result is also upserted into job_listings, keyed on (external id, portal).
    """
    job_role = _require_job_role(job_role)

    storage.create_user_job_search(db, user.id, job_role, location, experience_level)

    jobs = await aggregator.search_all_portals(job_role, location, experience_level, limit)

    for job in jobs:
        storage.upsert_job_listing(db, JobListingCreate(
            external_id=job.id,
            title=job.title,
            company=job.company,
            location=job.location,
            description=job.description,
            requirements=job.requirements,
            salary=job.salary,
            job_type=job.job_type,
            experience_level=job.experience_level,
            date_posted=job.date_posted,
            url=job.url,
            source=job.source,
        ))

    return JobSearchResponse(
        jobs=jobs,
        total_count=len(jobs),
        search_params=SearchParams(job_role=job_role, location=location, experience_level=experience_level),
    )


@router.get("/market-analysis", response_model=JobMarketDataOut)
async def market_analysis(
    job_role: str = Query("", alias="jobRole"),
    location: str = "",
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    aggregator: JobPortalAggregator = Depends(get_aggregator),
):
    """
    Market statistics for a role, served from a snapshot less than 24h old if we have one.
    Figures come from a sample of recent postings, not the whole market.
    """
    job_role = _require_job_role(job_role)
    return await get_or_refresh_market_data(
        db, aggregator, job_role, location,
        sample_size=settings.MARKET_SAMPLE_SIZE,
        max_age=timedelta(hours=settings.MARKET_CACHE_HOURS),
    )


@router.get("/trending-skills", response_model=TrendingSkillsResponse)
def trending_skills(
    limit: int = Query(20, ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Skill counts across every stored active listing."""
    skills = storage.get_trending_skills(db, limit)
    return TrendingSkillsResponse(
        skills=[TrendingSkill(**s) for s in skills],
        last_updated=datetime.utcnow(),
    )


@router.get("/user-searches", response_model=list[UserJobSearchOut])
def user_searches(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return storage.get_user_job_searches(db, user.id)


@router.get("/listings", response_model=list[JobListingOut])
def list_job_listings(
    source: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return storage.get_job_listings(db, source=source, limit=limit)


@router.post("/save", response_model=JobListingOut)
def save_job(data: JobListingCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Store one listing (validated against the listing schema)."""
    return storage.upsert_job_listing(db, data)
