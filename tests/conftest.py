"""
Shared test fixtures.

The database is an in-memory SQLite shared across threads (StaticPool), so
FastAPI's threadpool and the test see the same data.
"""

import asyncio
import os

# Must be set before skillroad.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LINKEDIN_API_KEY"] = ""
os.environ["INDEED_API_KEY"] = ""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from skillroad import models  # noqa: F401  (registers tables on Base)
from skillroad.database import Base, get_db
from skillroad.schemas import JobPosting

BASE_DATE = datetime(2025, 3, 1, 12, 0, 0)


class StubPortal:
    """Portal double: returns fixed postings, or raises if `error` is set."""

    def __init__(self, name, postings=None, error=None, delay=0.0):
        self.name = name
        self.postings = postings or []
        self.error = error
        self.delay = delay
        self.calls = []

    async def search_jobs(self, query, location="", experience_level="", limit=25):
        self.calls.append({"query": query, "location": location, "experience_level": experience_level, "limit": limit})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return list(self.postings[:limit])


def make_posting(id="1", company="Acme", requirements=None, days=0, location="Remote", description="",
                 source="linkedin", title="Backend Engineer", **extra) -> JobPosting:
    return JobPosting(
        id=id,
        title=title,
        company=company,
        location=location,
        description=description,
        requirements=requirements or [],
        date_posted=BASE_DATE + timedelta(days=days),
        url=f"https://example.com/jobs/{id}",
        source=source,
        **extra,
    )


@pytest.fixture
def posting():
    return make_posting


@pytest.fixture
def stub_portal():
    return StubPortal


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def aggregator(stub_portal, posting):
    from skillroad.services.job_portals import JobPortalAggregator

    portal = stub_portal("linkedin", [
        posting("a1", company="Acme", requirements=["python", "sql"], days=2),
        posting("a2", company="Globex", requirements=["python"], days=1, location="Berlin"),
    ])
    return JobPortalAggregator([portal], timeout=5)


@pytest.fixture
def client(engine, aggregator):
    """FastAPI test client wired to the test database and a stub aggregator."""
    from skillroad.main import app
    from skillroad.routers.jobs import get_aggregator

    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_aggregator] = lambda: aggregator
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"X-User-Id": "user-1", "X-User-Email": "learner@example.com"}


@pytest.fixture
def roadmap_with_modules(db):
    """A roadmap owned by user-1 with modules at order 0, 1, 2 and a quiz on module 0."""
    from skillroad import storage

    storage.upsert_user(db, "user-1")
    roadmap = storage.create_roadmap(
        db, user_id="user-1", title="Backend path", job_role="Backend Engineer",
        experience_level="beginner", estimated_hours=30,
    )
    modules = [
        storage.create_module(db, roadmap_id=roadmap.id, title=f"Module {i}", order_index=i, is_locked=i > 0)
        for i in range(3)
    ]
    assessment = storage.create_assessment(
        db, module_id=modules[0].id, title="Quiz",
        questions=[
            {"question": "Q1", "options": [{"option": "a", "isCorrect": True}, {"option": "b", "isCorrect": False}]},
            {"question": "Q2", "options": [{"option": "a", "isCorrect": False}, {"option": "b", "isCorrect": True}]},
            {"question": "Q3", "options": [{"option": "a", "isCorrect": True}, {"option": "b", "isCorrect": False}]},
            {"question": "Q4", "options": [{"option": "a", "isCorrect": False}, {"option": "b", "isCorrect": True}]},
        ],
    )
    return roadmap, modules, assessment
