"""
Job market analysis.

analyze_listings() turns a batch of postings into:
- skill demand (top 20): how many postings ask for each skill, as a count and a percentage
- top companies (top 10): employers with the most postings
- locations (top 10): posting count per location string

Ties keep the order in which the skill/company/location first appeared in the
batch (Python's sort is stable and dicts keep insertion order).

get_or_refresh_market_data() is the cached read path: a stored snapshot
younger than the freshness window is returned as-is, otherwise a new analysis
is run and saved as a new row.
"""

import logging
import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from skillroad import storage
from skillroad.models import JobMarketData
from skillroad.schemas import JobPosting, LocationCount, MarketAnalysis, SkillDemand

logger = logging.getLogger(__name__)

TOP_SKILLS = 20
TOP_COMPANIES = 10
TOP_LOCATIONS = 10
FRESHNESS_WINDOW = timedelta(hours=24)


def round_half_up(value: float) -> int:
    """Round .5 up (2.5 -> 3), unlike Python's round() which rounds to even."""
    return math.floor(value + 0.5)


def percentage(count: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(count / total * 100)


def analyze_listings(job_role: str, location: str, listings: list[JobPosting]) -> MarketAnalysis:
    total = len(listings)

    skill_counts: Counter = Counter()
    skill_companies: dict[str, dict[str, None]] = {}
    company_counts: Counter = Counter()
    location_counts: Counter = Counter()

    for job in listings:
        for skill in job.requirements:
            skill_counts[skill] += 1
            skill_companies.setdefault(skill, {})[job.company] = None
        company_counts[job.company] += 1
        location_counts[job.location] += 1

    # Counter.most_common() is a stable sort over insertion order
    skill_demand = [
        SkillDemand(
            skill=skill,
            count=count,
            percentage=percentage(count, total),
            companies=list(skill_companies[skill]),
        )
        for skill, count in skill_counts.most_common(TOP_SKILLS)
    ]
    top_companies = [company for company, _ in company_counts.most_common(TOP_COMPANIES)]
    locations = [
        LocationCount(location=loc, count=count)
        for loc, count in location_counts.most_common(TOP_LOCATIONS)
    ]

    return MarketAnalysis(
        job_role=job_role,
        location=location,
        total_jobs=total,
        skill_demand=skill_demand,
        top_companies=top_companies,
        average_salary=None,
        locations=locations,
        last_updated=datetime.utcnow(),
    )


def is_fresh(
    record: Optional[JobMarketData],
    now: Optional[datetime] = None,
    max_age: timedelta = FRESHNESS_WINDOW,
) -> bool:
    """A snapshot is fresh when it was updated strictly after now - max_age."""
    if record is None or record.last_updated is None:
        return False
    now = now or datetime.utcnow()
    return record.last_updated > now - max_age


async def get_or_refresh_market_data(
    db: Session,
    aggregator,
    job_role: str,
    location: str = "",
    sample_size: int = 100,
    max_age: timedelta = FRESHNESS_WINDOW,
    now: Optional[datetime] = None,
) -> JobMarketData:
    existing = storage.get_job_market_data(db, job_role, location)
    if is_fresh(existing, now=now, max_age=max_age):
        logger.info("Serving cached market data for %r in %r", job_role, location)
        return existing

    analysis = await aggregator.analyze_job_market(job_role, location, sample_size)
    return storage.create_job_market_data(db, analysis)
