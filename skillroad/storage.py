"""
All reads and writes against the database.

Routes and services never build queries themselves; they call these functions
with the request's Session. Each write commits before returning.
"""

from collections import Counter
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from skillroad.models import (
    Assessment, JobListing, JobMarketData, Module, Resource, Roadmap, User,
    UserJobSearch, UserProgress,
)
from skillroad.schemas import (
    AssessmentOut, JobListingCreate, MarketAnalysis, ModuleDetail, ProgressOut,
    ResourceOut, RoadmapDetail,
)


def _save(db: Session, row):
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


# ─── Users ───────────────────────────────────────────────────────────

def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.get(User, user_id)


def upsert_user(db: Session, user_id: str, email: Optional[str] = None,
                first_name: Optional[str] = None, last_name: Optional[str] = None) -> User:
    user = get_user(db, user_id)
    if user is None:
        user = User(id=user_id)
    # Only overwrite what the auth layer actually told us
    if email is not None:
        user.email = email
    if first_name is not None:
        user.first_name = first_name
    if last_name is not None:
        user.last_name = last_name
    return _save(db, user)


# ─── Roadmaps & modules ──────────────────────────────────────────────

def create_roadmap(db: Session, **fields) -> Roadmap:
    return _save(db, Roadmap(**fields))


def get_roadmaps_by_user(db: Session, user_id: str) -> list[Roadmap]:
    query = (
        select(Roadmap)
        .where(Roadmap.user_id == user_id)
        .order_by(Roadmap.created_at.desc(), Roadmap.id.desc())
    )
    return list(db.execute(query).scalars().all())


def get_roadmap(db: Session, roadmap_id: int, user_id: Optional[str] = None) -> Optional[Roadmap]:
    query = select(Roadmap).where(Roadmap.id == roadmap_id)
    if user_id is not None:
        query = query.where(Roadmap.user_id == user_id)
    return db.execute(query).scalars().first()


def get_roadmap_with_modules(db: Session, roadmap_id: int, user_id: str) -> Optional[RoadmapDetail]:
    """Roadmap plus ordered modules, each with resources, assessments and this user's progress."""
    roadmap = get_roadmap(db, roadmap_id, user_id)
    if roadmap is None:
        return None

    modules = []
    for module in get_modules_by_roadmap(db, roadmap.id):
        progress = get_progress_by_user_and_module(db, user_id, module.id)
        detail = ModuleDetail.model_validate(module)
        detail.resources = [ResourceOut.model_validate(r) for r in get_resources_by_module(db, module.id)]
        detail.assessments = [AssessmentOut.model_validate(a) for a in get_assessments_by_module(db, module.id)]
        detail.progress = ProgressOut.model_validate(progress) if progress else None
        modules.append(detail)

    result = RoadmapDetail.model_validate(roadmap)
    result.modules = modules
    return result


def update_roadmap(db: Session, roadmap_id: int, **updates) -> Optional[Roadmap]:
    roadmap = db.get(Roadmap, roadmap_id)
    if roadmap is None:
        return None
    for key, value in updates.items():
        setattr(roadmap, key, value)
    return _save(db, roadmap)


def create_module(db: Session, **fields) -> Module:
    return _save(db, Module(**fields))


def get_module(db: Session, module_id: int) -> Optional[Module]:
    return db.get(Module, module_id)


def get_modules_by_roadmap(db: Session, roadmap_id: int) -> list[Module]:
    query = select(Module).where(Module.roadmap_id == roadmap_id).order_by(Module.order_index.asc())
    return list(db.execute(query).scalars().all())


def update_module(db: Session, module_id: int, **updates) -> Optional[Module]:
    module = db.get(Module, module_id)
    if module is None:
        return None
    for key, value in updates.items():
        setattr(module, key, value)
    return _save(db, module)


# ─── Resources & assessments ─────────────────────────────────────────

def create_resource(db: Session, **fields) -> Resource:
    return _save(db, Resource(**fields))


def get_resources_by_module(db: Session, module_id: int) -> list[Resource]:
    return list(db.execute(select(Resource).where(Resource.module_id == module_id)).scalars().all())


def create_assessment(db: Session, **fields) -> Assessment:
    return _save(db, Assessment(**fields))


def get_assessment(db: Session, assessment_id: int) -> Optional[Assessment]:
    return db.get(Assessment, assessment_id)


def get_assessments_by_module(db: Session, module_id: int) -> list[Assessment]:
    query = select(Assessment).where(Assessment.module_id == module_id).order_by(Assessment.id)
    return list(db.execute(query).scalars().all())


# ─── Progress ────────────────────────────────────────────────────────

def get_progress_by_user_and_module(db: Session, user_id: str, module_id: int) -> Optional[UserProgress]:
    query = select(UserProgress).where(
        UserProgress.user_id == user_id,
        UserProgress.module_id == module_id,
    )
    return db.execute(query).scalars().first()


def create_or_update_progress(db: Session, user_id: str, module_id: int, **fields) -> UserProgress:
    """
    One row per (user, module). Only fields passed as non-None are written,
    so a later update never clears an earlier completion time or score.
    """
    progress = get_progress_by_user_and_module(db, user_id, module_id)
    if progress is None:
        progress = UserProgress(user_id=user_id, module_id=module_id)
    for key, value in fields.items():
        if value is not None:
            setattr(progress, key, value)
    return _save(db, progress)


def get_user_progress(db: Session, user_id: str, roadmap_id: int) -> list[UserProgress]:
    query = (
        select(UserProgress)
        .join(Module, UserProgress.module_id == Module.id)
        .where(UserProgress.user_id == user_id, Module.roadmap_id == roadmap_id)
        .order_by(Module.order_index)
    )
    return list(db.execute(query).scalars().all())


# ─── Job listings ────────────────────────────────────────────────────

def create_job_listing(db: Session, data: JobListingCreate) -> JobListing:
    return _save(db, JobListing(**data.model_dump()))


def upsert_job_listing(db: Session, data: JobListingCreate) -> JobListing:
    """Insert, or update in place when (external_id, source) already exists."""
    query = select(JobListing).where(
        JobListing.external_id == data.external_id,
        JobListing.source == data.source,
    )
    listing = db.execute(query).scalars().first()
    if listing is None:
        return create_job_listing(db, data)

    for key, value in data.model_dump(exclude={"external_id", "source"}).items():
        setattr(listing, key, value)
    listing.updated_at = datetime.utcnow()
    return _save(db, listing)


def get_job_listings(db: Session, source: Optional[str] = None, limit: int = 100) -> list[JobListing]:
    query = select(JobListing)
    if source:
        query = query.where(JobListing.source == source)
    query = query.order_by(JobListing.date_posted.desc()).limit(limit)
    return list(db.execute(query).scalars().all())


def get_trending_skills(db: Session, limit: int = 20) -> list[dict]:
    """Most requested skills across stored active listings."""
    query = select(JobListing.requirements).where(JobListing.is_active.is_(True)).order_by(JobListing.id)
    counts: Counter = Counter()
    for requirements in db.execute(query).scalars():
        counts.update(requirements or [])
    return [{"skill": skill, "count": count} for skill, count in counts.most_common(limit)]


# ─── Market data ─────────────────────────────────────────────────────

def create_job_market_data(db: Session, analysis: MarketAnalysis) -> JobMarketData:
    return _save(db, JobMarketData(
        job_role=analysis.job_role,
        location=analysis.location,
        total_jobs=analysis.total_jobs,
        skill_demand=[s.model_dump() for s in analysis.skill_demand],
        top_companies=list(analysis.top_companies),
        average_salary=analysis.average_salary,
        locations=[loc.model_dump() for loc in analysis.locations],
        last_updated=analysis.last_updated,
    ))


def get_job_market_data(db: Session, job_role: str, location: str = "") -> Optional[JobMarketData]:
    """Newest snapshot for (role, location)."""
    query = (
        select(JobMarketData)
        .where(JobMarketData.job_role == job_role, JobMarketData.location == location)
        .order_by(JobMarketData.last_updated.desc(), JobMarketData.id.desc())
        .limit(1)
    )
    return db.execute(query).scalars().first()


# ─── Job searches ────────────────────────────────────────────────────

def create_user_job_search(db: Session, user_id: str, job_role: str,
                           location: str = "", experience_level: Optional[str] = None) -> UserJobSearch:
    return _save(db, UserJobSearch(
        user_id=user_id,
        job_role=job_role,
        location=location,
        experience_level=experience_level,
    ))


def get_user_job_searches(db: Session, user_id: str) -> list[UserJobSearch]:
    query = (
        select(UserJobSearch)
        .where(UserJobSearch.user_id == user_id)
        .order_by(UserJobSearch.created_at.desc(), UserJobSearch.id.desc())
    )
    return list(db.execute(query).scalars().all())
