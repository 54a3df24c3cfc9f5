"""
Job portal adapters and the aggregator that fans out to them.

Each adapter:
- makes one HTTP call to its portal (httpx, async)
- parses each record of the portal's own response shape into a pydantic model
- maps it into our canonical JobPosting (schemas.py)
- never raises: a failed call gives an empty list, a malformed record is skipped

The aggregator runs all configured adapters concurrently, waits for every one
of them (a failing or slow portal does not cancel the others), merges the
results newest-first and cuts them to the requested limit.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import httpx
from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict, Field

from skillroad.config import ProviderKeys, Settings
from skillroad.schemas import ExperienceLevel, JobPosting, JobType, MarketAnalysis
from skillroad.services.market import analyze_listings
from skillroad.services.skills import extract_skills

logger = logging.getLogger(__name__)


# ─── Shared helpers ──────────────────────────────────────────────────

def html_to_text(html: Optional[str]) -> str:
    """Portals often send descriptions as HTML; keep only the visible text."""
    if not html:
        return ""
    if "<" not in html:
        return html
    return BeautifulSoup(html, "html.parser").get_text(" ", strip=True)


def parse_posted_date(value) -> datetime:
    """
    Parse a portal date into a naive UTC datetime.

    Accepts ISO strings, RFC 2822 strings (Indeed), epoch milliseconds
    (LinkedIn) or datetimes. Anything unparseable counts as "just posted".
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str) and value.strip():
        parsed = _parse_date_string(value.strip())
    else:
        parsed = None

    if parsed is None:
        return datetime.utcnow()
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_date_string(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in ("%a, %d %b %Y %H:%M:%S %Z", "%a, %d %b %Y %H:%M:%S %z", "%Y-%m-%d"):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


class JobPortal:
    """Base class: subclasses implement _fetch(); search_jobs() adds the safety net."""

    name = "portal"

    def __init__(self, skill_vocabulary: Optional[list[str]] = None):
        self.skill_vocabulary = skill_vocabulary

    async def search_jobs(
        self,
        query: str,
        location: str = "",
        experience_level: str = "",
        limit: int = 25,
    ) -> list[JobPosting]:
        try:
            return await self._fetch(query, location, experience_level, limit)
        except Exception as e:
            # One portal being down must not break the search
            logger.warning("%s search failed for %r: %s", self.name, query, e)
            return []

    async def _fetch(self, query, location, experience_level, limit) -> list[JobPosting]:
        raise NotImplementedError

    def to_posting(self, job, search_location: str = "") -> JobPosting:
        raise NotImplementedError

    def map_records(self, records: list, record_model: type[BaseModel], search_location: str = "") -> list[JobPosting]:
        """Validate and map each native record on its own; a bad record is skipped, not the batch."""
        postings = []
        for index, raw in enumerate(records):
            try:
                postings.append(self.to_posting(record_model.model_validate(raw), search_location))
            except Exception as e:
                logger.warning("%s: skipping malformed job record %d: %s", self.name, index, e)
        return postings

    def extract_requirements(self, text: str) -> list[str]:
        return extract_skills(text, self.skill_vocabulary)


# ─── LinkedIn ────────────────────────────────────────────────────────

# LinkedIn employment types -> our job types (anything else: full-time)
LINKEDIN_JOB_TYPES: dict[str, JobType] = {
    "FULL_TIME": "full-time",
    "PART_TIME": "part-time",
    "CONTRACT": "contract",
    "INTERNSHIP": "internship",
}

# LinkedIn seniority -> our experience levels (anything else: mid)
LINKEDIN_EXPERIENCE_LEVELS: dict[str, ExperienceLevel] = {
    "ENTRY_LEVEL": "entry",
    "MID_SENIOR_LEVEL": "mid",
    "SENIOR_LEVEL": "senior",
    "EXECUTIVE": "senior",
}


class LinkedInCompany(BaseModel):
    name: Optional[str] = None


class LinkedInLocation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    display_name: Optional[str] = Field(default=None, alias="displayName")


class LinkedInSalary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    display_name: Optional[str] = Field(default=None, alias="displayName")


class LinkedInJobElement(BaseModel):
    """One entry of `elements` in a LinkedIn jobSearch response."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | int
    title: str = ""
    company: Optional[LinkedInCompany] = None
    location: Optional[LinkedInLocation] = None
    description: Optional[str] = None
    salary: Optional[LinkedInSalary] = None
    employment_type: Optional[str] = Field(default=None, alias="employmentType")
    experience_level: Optional[str] = Field(default=None, alias="experienceLevel")
    posted_date: Optional[str | int] = Field(default=None, alias="postedDate")
    job_url: Optional[str] = Field(default=None, alias="jobUrl")


class LinkedInSearchResponse(BaseModel):
    elements: list = Field(default_factory=list)


class LinkedInJobsAPI(JobPortal):
    name = "linkedin"
    API_URL = "https://api.linkedin.com/v2/jobSearch"

    def __init__(self, api_key: str, client: httpx.AsyncClient, skill_vocabulary: Optional[list[str]] = None):
        super().__init__(skill_vocabulary)
        self.api_key = api_key
        self.client = client

    async def _fetch(self, query, location, experience_level, limit) -> list[JobPosting]:
        response = await self.client.get(
            self.API_URL,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            params={
                "keywords": query,
                "location": location,
                "experience": experience_level,
                "count": limit,
            },
        )
        response.raise_for_status()

        data = LinkedInSearchResponse.model_validate(response.json() or {})
        return self.map_records(data.elements, LinkedInJobElement, location)

    def to_posting(self, job: LinkedInJobElement, search_location: str = "") -> JobPosting:
        description = html_to_text(job.description)
        return JobPosting(
            id=str(job.id),
            title=job.title,
            company=(job.company.name if job.company else None) or "Unknown Company",
            location=(job.location.display_name if job.location else None) or search_location,
            description=description,
            requirements=self.extract_requirements(description),
            salary=job.salary.display_name if job.salary else None,
            job_type=LINKEDIN_JOB_TYPES.get(job.employment_type or "", "full-time"),
            experience_level=LINKEDIN_EXPERIENCE_LEVELS.get(job.experience_level or "", "mid"),
            date_posted=parse_posted_date(job.posted_date),
            url=job.job_url or f"https://linkedin.com/jobs/view/{job.id}",
            source="linkedin",
        )


# ─── Indeed ──────────────────────────────────────────────────────────

class IndeedResult(BaseModel):
    """One entry of `results` in an Indeed publisher API response."""
    model_config = ConfigDict(extra="ignore")

    jobkey: str
    jobtitle: str = ""
    company: Optional[str] = None
    formattedLocation: Optional[str] = None
    snippet: Optional[str] = None
    date: Optional[str] = None
    url: Optional[str] = None


class IndeedSearchResponse(BaseModel):
    results: list = Field(default_factory=list)


def infer_experience_level(title: str) -> ExperienceLevel:
    """Indeed has no seniority field, so guess from the job title."""
    lower_title = title.lower()
    if any(word in lower_title for word in ("senior", "lead", "principal")):
        return "senior"
    if any(word in lower_title for word in ("junior", "entry", "intern")):
        return "entry"
    return "mid"


class IndeedJobsAPI(JobPortal):
    name = "indeed"
    API_URL = "https://api.indeed.com/ads/apisearch"

    def __init__(self, api_key: str, client: httpx.AsyncClient, skill_vocabulary: Optional[list[str]] = None):
        super().__init__(skill_vocabulary)
        self.api_key = api_key
        self.client = client

    async def _fetch(self, query, location, experience_level, limit) -> list[JobPosting]:
        response = await self.client.get(self.API_URL, params={
            "publisher": self.api_key,
            "q": query,
            "l": location,
            "sort": "date",
            "radius": 25,
            "st": "jobsite",
            "jt": "fulltime",
            "start": 0,
            "limit": limit,
            "format": "json",
            "v": "2",
        })
        response.raise_for_status()

        data = IndeedSearchResponse.model_validate(response.json() or {})
        return self.map_records(data.results, IndeedResult, location)

    def to_posting(self, job: IndeedResult, search_location: str = "") -> JobPosting:
        snippet = html_to_text(job.snippet)
        return JobPosting(
            id=job.jobkey,
            title=job.jobtitle,
            company=job.company or "Unknown Company",
            location=job.formattedLocation or search_location,
            description=snippet,
            requirements=self.extract_requirements(snippet),
            job_type="full-time",       # we only ask Indeed for full-time jobs
            experience_level=infer_experience_level(job.jobtitle),
            date_posted=parse_posted_date(job.date),
            url=job.url or f"https://www.indeed.com/viewjob?jk={job.jobkey}",
            source="indeed",
        )


# ─── Naukri ──────────────────────────────────────────────────────────

class NaukriJobsAPI(JobPortal):
    """Naukri has no public API. Searches are logged and return nothing."""

    name = "naukri"

    async def _fetch(self, query, location, experience_level, limit) -> list[JobPosting]:
        logger.info("Naukri search requested for %r in %r (no public API, skipping)", query, location)
        return []


# ─── Aggregator ──────────────────────────────────────────────────────

@dataclass
class SearchOutcome:
    listings: list[JobPosting] = field(default_factory=list)
    adapter_count: int = 0
    failure_count: int = 0


class JobPortalAggregator:
    def __init__(self, portals: list[JobPortal], timeout: Optional[float] = 15.0):
        self.portals = list(portals)
        self.timeout = timeout

    async def search_all_portals(
        self,
        job_role: str,
        location: str = "",
        experience_level: str = "",
        limit: int = 25,
    ) -> list[JobPosting]:
        outcome = await self.search_with_stats(job_role, location, experience_level, limit)
        return outcome.listings

    async def search_with_stats(
        self,
        job_role: str,
        location: str = "",
        experience_level: str = "",
        limit: int = 25,
    ) -> SearchOutcome:
        """
        Search every portal at once and merge the results.

        Each portal gets ceil(limit / number_of_portals). Portals that raise or
        time out contribute nothing; the rest still count.
        """
        if not self.portals or limit <= 0:
            return SearchOutcome(adapter_count=len(self.portals))

        per_portal = math.ceil(limit / len(self.portals))
        results = await asyncio.gather(
            *(self._run(portal, job_role, location, experience_level, per_portal) for portal in self.portals),
            return_exceptions=True,
        )

        merged: list[JobPosting] = []
        failures = 0
        for portal, result in zip(self.portals, results):
            if isinstance(result, BaseException):
                failures += 1
                logger.warning("%s failed during aggregation: %r", portal.name, result)
                continue
            merged.extend(result)

        # sort() is stable: postings with the same date keep portal order
        merged.sort(key=lambda job: job.date_posted, reverse=True)

        logger.info(
            "Searched %d portals for %r (%d failed), %d postings",
            len(self.portals), job_role, failures, len(merged),
        )
        return SearchOutcome(listings=merged[:limit], adapter_count=len(self.portals), failure_count=failures)

    async def _run(self, portal: JobPortal, job_role, location, experience_level, limit) -> list[JobPosting]:
        if self.timeout is None:
            return await portal.search_jobs(job_role, location, experience_level, limit)
        return await asyncio.wait_for(
            portal.search_jobs(job_role, location, experience_level, limit),
            timeout=self.timeout,
        )

    async def analyze_job_market(self, job_role: str, location: str = "", sample_size: int = 100) -> MarketAnalysis:
        """
        Market statistics from one large search.

        This is a sample of at most `sample_size` postings, not a full scan of
        the market, so the numbers are approximate.
        """
        listings = await self.search_all_portals(job_role, location, "", sample_size)
        return analyze_listings(job_role, location, listings)


def build_portals(keys: ProviderKeys, client: httpx.AsyncClient, skill_vocabulary: Optional[list[str]] = None) -> list[JobPortal]:
    """Create one adapter per configured portal."""
    portals: list[JobPortal] = []
    if keys.linkedin:
        portals.append(LinkedInJobsAPI(keys.linkedin, client, skill_vocabulary))
    if keys.indeed:
        portals.append(IndeedJobsAPI(keys.indeed, client, skill_vocabulary))
    if keys.naukri_enabled:
        portals.append(NaukriJobsAPI(skill_vocabulary))
    return portals


def build_aggregator(app_settings: Settings, client: httpx.AsyncClient) -> JobPortalAggregator:
    """Called once at startup; the caller owns the client's lifetime."""
    portals = build_portals(app_settings.provider_keys(), client, app_settings.skill_vocabulary())
    logger.info("Job portals enabled: %s", ", ".join(p.name for p in portals) or "none")
    return JobPortalAggregator(portals, timeout=app_settings.PROVIDER_TIMEOUT_SECONDS)
