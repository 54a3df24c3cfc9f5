"""
SQLAlchemy ORM models. These map directly to Postgres tables.

Learning side:
- users: people signed in through the upstream session middleware
- roadmaps -> modules -> resources / assessments: generated curricula
- user_progress: one row per (user, module), drives module unlocking

Job market side:
- job_listings: every normalized posting fetched from a job portal
- job_market_data: cached market analysis snapshots (newest row wins)
- user_job_searches: search history per user
"""

from datetime import datetime

from sqlalchemy import (
    JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship

from skillroad.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(255), primary_key=True)                  # subject id from the auth layer
    email = Column(String(255), nullable=True, unique=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    roadmaps = relationship("Roadmap", back_populates="user", cascade="all, delete-orphan")


class Roadmap(Base):
    __tablename__ = "roadmaps"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    job_role = Column(String(255), nullable=False)
    experience_level = Column(String(50), nullable=False)
    estimated_hours = Column(Integer, nullable=True)
    is_completed = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="roadmaps")
    modules = relationship(
        "Module", back_populates="roadmap", cascade="all, delete-orphan",
        order_by="Module.order_index",
    )


class Module(Base):
    __tablename__ = "modules"

    id = Column(Integer, primary_key=True, index=True)
    roadmap_id = Column(Integer, ForeignKey("roadmaps.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False)               # 0 = first module, unlocked on creation
    estimated_hours = Column(Integer, nullable=True)
    is_completed = Column(Boolean, default=False)
    is_locked = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    roadmap = relationship("Roadmap", back_populates="modules")
    resources = relationship("Resource", back_populates="module", cascade="all, delete-orphan")
    assessments = relationship("Assessment", back_populates="module", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("roadmap_id", "order_index", name="uq_module_roadmap_order"),
    )


class Resource(Base):
    __tablename__ = "resources"

    id = Column(Integer, primary_key=True, index=True)
    module_id = Column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(500), nullable=False)
    type = Column(String(50), nullable=False)                   # video, article, documentation
    url = Column(Text, nullable=False)
    thumbnail_url = Column(Text, nullable=True)
    duration = Column(String(100), nullable=True)
    provider = Column(String(100), nullable=True)               # YouTube, MDN, Medium, ...
    views = Column(String(100), nullable=True)
    rating = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    module = relationship("Module", back_populates="resources")


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(Integer, primary_key=True, index=True)
    module_id = Column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    questions = Column(JSON, nullable=False)                    # [{question, options: [{option, isCorrect}], explanation}]
    passing_score = Column(Integer, default=70)
    created_at = Column(DateTime, default=datetime.utcnow)

    module = relationship("Module", back_populates="assessments")


class UserProgress(Base):
    __tablename__ = "user_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    module_id = Column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False)
    completed_at = Column(DateTime, nullable=True)
    time_spent = Column(Integer, nullable=True)                 # minutes
    score = Column(Integer, nullable=True)                      # latest assessment score
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "module_id", name="uq_progress_user_module"),
    )


class JobListing(Base):
    __tablename__ = "job_listings"

    id = Column(Integer, primary_key=True, index=True)
    external_id = Column(String(255), nullable=False)           # id from the job portal
    title = Column(String(500), nullable=False)
    company = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    requirements = Column(JSON, default=list)                   # lowercase skill tokens
    salary = Column(String(255), nullable=True)
    job_type = Column(String(50), nullable=False)
    experience_level = Column(String(50), nullable=False)
    date_posted = Column(DateTime, nullable=False)
    url = Column(Text, nullable=False)
    source = Column(String(50), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # A re-fetched posting updates its row instead of duplicating it
    __table_args__ = (
        UniqueConstraint("external_id", "source", name="uq_listing_external_source"),
    )


class JobMarketData(Base):
    __tablename__ = "job_market_data"

    id = Column(Integer, primary_key=True, index=True)
    job_role = Column(String(255), nullable=False, index=True)
    location = Column(String(255), default="")                  # "" = anywhere
    total_jobs = Column(Integer, nullable=False)
    skill_demand = Column(JSON, nullable=False)
    top_companies = Column(JSON, default=list)
    average_salary = Column(String(255), nullable=True)         # never computed, kept for API shape
    locations = Column(JSON, nullable=False)
    last_updated = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)


class UserJobSearch(Base):
    __tablename__ = "user_job_searches"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    job_role = Column(String(255), nullable=False)
    location = Column(String(255), default="")
    experience_level = Column(String(50), nullable=True)
    last_searched = Column(DateTime, default=datetime.utcnow)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
