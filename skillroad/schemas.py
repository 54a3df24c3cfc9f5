"""
Pydantic schemas for request/response validation.

These define the shape of data going in and out of our API endpoints.
FastAPI uses these to auto-validate requests and generate API docs.
Fields are snake_case in Python and camelCase on the wire (jobRole, datePosted, ...).
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,       # allows creating from SQLAlchemy models
    )


# ─── Job portals ─────────────────────────────────────────────────────

JobType = Literal["full-time", "part-time", "contract", "internship"]
ExperienceLevel = Literal["entry", "mid", "senior"]
JobSource = Literal["linkedin", "indeed", "glassdoor", "naukri"]


class JobPosting(CamelModel):
    """A job posting normalized from any portal. `id` is the portal's own id."""
    id: str
    title: str
    company: str
    location: str
    description: str = ""
    requirements: list[str] = Field(default_factory=list)     # lowercase skill tokens
    salary: Optional[str] = None
    job_type: JobType = "full-time"
    experience_level: ExperienceLevel = "mid"
    date_posted: datetime
    url: str
    source: JobSource


class SearchParams(CamelModel):
    job_role: str
    location: str = ""
    experience_level: str = ""


class JobSearchResponse(CamelModel):
    jobs: list[JobPosting]
    total_count: int
    search_params: SearchParams


class JobListingCreate(CamelModel):
    """Payload for POST /api/jobs/save."""
    external_id: str
    title: str
    company: str
    location: str
    description: Optional[str] = None
    requirements: list[str] = Field(default_factory=list)
    salary: Optional[str] = None
    job_type: JobType
    experience_level: ExperienceLevel
    date_posted: datetime
    url: str
    source: JobSource


class JobListingOut(JobListingCreate):
    id: int
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserJobSearchOut(CamelModel):
    id: int
    job_role: str
    location: Optional[str] = ""
    experience_level: Optional[str] = None
    last_searched: Optional[datetime] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


# ─── Market analysis ─────────────────────────────────────────────────

class SkillDemand(CamelModel):
    skill: str
    count: int
    percentage: int             # count / total listings in the batch, rounded
    companies: list[str]


class LocationCount(CamelModel):
    location: str
    count: int


class MarketAnalysis(CamelModel):
    """Statistics computed from one sample of listings (not an exhaustive market scan)."""
    job_role: str
    location: str = ""
    total_jobs: int
    skill_demand: list[SkillDemand]
    top_companies: list[str]
    average_salary: Optional[str] = None       # no salary parsing exists; always None
    locations: list[LocationCount]
    last_updated: datetime


class JobMarketDataOut(MarketAnalysis):
    id: int
    created_at: Optional[datetime] = None


class TrendingSkill(CamelModel):
    skill: str
    count: int


class TrendingSkillsResponse(CamelModel):
    skills: list[TrendingSkill]
    last_updated: datetime


# ─── Users ───────────────────────────────────────────────────────────

class UserOut(CamelModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


# ─── Roadmaps ────────────────────────────────────────────────────────

class RoadmapGenerateRequest(CamelModel):
    job_role: str = ""
    experience_level: str = ""


class ResourceOut(CamelModel):
    id: int
    module_id: int
    title: str
    type: str
    url: str
    thumbnail_url: Optional[str] = None
    duration: Optional[str] = None
    provider: Optional[str] = None
    views: Optional[str] = None
    rating: Optional[int] = None


class AssessmentOut(CamelModel):
    id: int
    module_id: int
    title: str
    description: Optional[str] = None
    questions: list[dict]
    passing_score: Optional[int] = 70


class ProgressOut(CamelModel):
    id: int
    user_id: str
    module_id: int
    completed_at: Optional[datetime] = None
    time_spent: Optional[int] = None
    score: Optional[int] = None
    created_at: Optional[datetime] = None


class ModuleOut(CamelModel):
    id: int
    roadmap_id: int
    title: str
    description: Optional[str] = None
    order_index: int
    estimated_hours: Optional[int] = None
    is_completed: bool = False
    is_locked: bool = True


class ModuleDetail(ModuleOut):
    resources: list[ResourceOut] = Field(default_factory=list)
    assessments: list[AssessmentOut] = Field(default_factory=list)
    progress: Optional[ProgressOut] = None


class RoadmapOut(CamelModel):
    id: int
    user_id: str
    title: str
    description: Optional[str] = None
    job_role: str
    experience_level: str
    estimated_hours: Optional[int] = None
    is_completed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RoadmapDetail(RoadmapOut):
    modules: list[ModuleDetail] = Field(default_factory=list)


# ─── Progress & assessments ──────────────────────────────────────────

class ProgressUpdate(CamelModel):
    module_id: int
    completed_at: Optional[datetime] = None
    time_spent: Optional[int] = None        # minutes
    score: Optional[int] = None


class AssessmentSubmission(CamelModel):
    answers: list[Optional[int]]            # selected option index per question


class AssessmentResult(CamelModel):
    score: int
    passed: bool
    correct_answers: int
    total_questions: int
    progress: ProgressOut
