"""Tests for portal adapters and the aggregator."""

import asyncio
from datetime import datetime

import httpx
import pytest

from skillroad.config import ProviderKeys, Settings
from skillroad.services.job_portals import (
    IndeedJobsAPI, JobPortalAggregator, LinkedInJobsAPI, NaukriJobsAPI,
    build_aggregator, build_portals, html_to_text, infer_experience_level,
    parse_posted_date,
)


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


LINKEDIN_PAYLOAD = {
    "elements": [
        {
            "id": 101,
            "title": "Senior Python Engineer",
            "company": {"name": "Acme"},
            "location": {"displayName": "Berlin"},
            "description": "<p>Python, <b>Docker</b> and SQL</p>",
            "salary": {"displayName": "€80k"},
            "employmentType": "CONTRACT",
            "experienceLevel": "SENIOR_LEVEL",
            "postedDate": "2025-03-01T10:00:00Z",
            "jobUrl": "https://linkedin.com/jobs/view/101",
        },
        {
            "id": "102",
            "title": "Engineer",
            "employmentType": "TEMPORARY",
            "experienceLevel": "SOMETHING_NEW",
        },
    ]
}


class TestLinkedInAdapter:
    async def test_maps_native_response(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["auth"] = request.headers["Authorization"]
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=LINKEDIN_PAYLOAD)

        async with mock_client(handler) as client:
            jobs = await LinkedInJobsAPI("secret", client).search_jobs("python", "Berlin", "senior", 5)

        assert seen["auth"] == "Bearer secret"
        assert seen["params"]["keywords"] == "python"
        assert seen["params"]["count"] == "5"

        first = jobs[0]
        assert first.id == "101"
        assert first.company == "Acme"
        assert first.location == "Berlin"
        assert first.description == "Python, Docker and SQL"
        assert first.requirements == ["python", "docker", "sql"]
        assert first.salary == "€80k"
        assert first.job_type == "contract"
        assert first.experience_level == "senior"
        assert first.date_posted == datetime(2025, 3, 1, 10, 0, 0)
        assert first.source == "linkedin"

    async def test_unmapped_values_use_defaults(self):
        async with mock_client(lambda request: httpx.Response(200, json=LINKEDIN_PAYLOAD)) as client:
            jobs = await LinkedInJobsAPI("secret", client).search_jobs("python", "Remote")

        second = jobs[1]
        assert second.company == "Unknown Company"
        assert second.location == "Remote"
        assert second.job_type == "full-time"
        assert second.experience_level == "mid"
        assert second.url == "https://linkedin.com/jobs/view/102"
        assert second.requirements == []

    async def test_http_error_gives_empty_list(self):
        async with mock_client(lambda request: httpx.Response(401, json={"message": "nope"})) as client:
            assert await LinkedInJobsAPI("bad", client).search_jobs("python") == []

    async def test_network_error_gives_empty_list(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        async with mock_client(handler) as client:
            assert await LinkedInJobsAPI("secret", client).search_jobs("python") == []

    async def test_malformed_element_is_skipped(self):
        payload = {"elements": [LINKEDIN_PAYLOAD["elements"][0], {"title": "missing id"}, "junk"]}
        async with mock_client(lambda request: httpx.Response(200, json=payload)) as client:
            jobs = await LinkedInJobsAPI("secret", client).search_jobs("python")

        assert [job.id for job in jobs] == ["101"]

    async def test_malformed_body_gives_empty_list(self):
        async with mock_client(lambda request: httpx.Response(200, json={"elements": "nope"})) as client:
            assert await LinkedInJobsAPI("secret", client).search_jobs("python") == []


class TestIndeedAdapter:
    async def test_maps_results(self):
        payload = {
            "results": [
                {
                    "jobkey": "abc",
                    "jobtitle": "Junior React Developer",
                    "company": "Globex",
                    "formattedLocation": "Austin, TX",
                    "snippet": "React, TypeScript and Git",
                    "date": "Mon, 03 Mar 2025 08:00:00 GMT",
                    "url": "https://indeed.com/viewjob?jk=abc",
                }
            ]
        }
        seen = {}

        def handler(request):
            seen.update(dict(request.url.params))
            return httpx.Response(200, json=payload)

        async with mock_client(handler) as client:
            jobs = await IndeedJobsAPI("pub", client).search_jobs("react", "Austin", limit=3)

        assert seen["publisher"] == "pub"
        assert seen["q"] == "react"
        assert seen["limit"] == "3"
        assert seen["sort"] == "date"

        job = jobs[0]
        assert job.id == "abc"
        assert job.job_type == "full-time"
        assert job.experience_level == "entry"
        assert job.requirements == ["react", "typescript", "git"]
        assert job.date_posted == datetime(2025, 3, 3, 8, 0, 0)
        assert job.source == "indeed"

    async def test_failure_gives_empty_list(self):
        async with mock_client(lambda request: httpx.Response(500)) as client:
            assert await IndeedJobsAPI("pub", client).search_jobs("react") == []

    async def test_result_without_jobkey_is_skipped(self):
        payload = {"results": [{"jobtitle": "No key"}, {"jobkey": "ok", "jobtitle": "Backend Engineer"}]}
        async with mock_client(lambda request: httpx.Response(200, json=payload)) as client:
            jobs = await IndeedJobsAPI("pub", client).search_jobs("backend")

        assert [job.id for job in jobs] == ["ok"]
        assert jobs[0].url == "https://www.indeed.com/viewjob?jk=ok"

    @pytest.mark.parametrize("title,level", [
        ("Senior Data Engineer", "senior"),
        ("Tech Lead", "senior"),
        ("Principal Architect", "senior"),
        ("Junior Developer", "entry"),
        ("Software Intern", "entry"),
        ("Backend Engineer", "mid"),
    ])
    def test_infer_experience_level(self, title, level):
        assert infer_experience_level(title) == level


class TestNaukriAdapter:
    async def test_always_empty(self):
        assert await NaukriJobsAPI().search_jobs("python", "Bangalore") == []


class TestHelpers:
    def test_html_to_text(self):
        assert html_to_text("<ul><li>Python</li><li>SQL</li></ul>") == "Python SQL"
        assert html_to_text("plain text") == "plain text"
        assert html_to_text(None) == ""

    def test_parse_posted_date_variants(self):
        assert parse_posted_date("2025-03-01") == datetime(2025, 3, 1)
        assert parse_posted_date("2025-03-01T12:00:00+02:00") == datetime(2025, 3, 1, 10, 0, 0)
        assert parse_posted_date(1740830400000) == datetime(2025, 3, 1, 12, 0, 0)

    def test_unparseable_date_is_recent(self):
        before = datetime.utcnow()
        assert parse_posted_date("yesterday-ish") >= before


class TestAggregator:
    async def test_fault_isolation(self, stub_portal, posting):
        failing = stub_portal("broken", error=RuntimeError("boom"))
        first = stub_portal("one", [posting("1", days=1), posting("2", days=3)])
        second = stub_portal("two", [posting("3", days=2), posting("4", days=0)])
        aggregator = JobPortalAggregator([failing, first, second], timeout=5)

        outcome = await aggregator.search_with_stats("engineer", limit=12)

        assert [job.id for job in outcome.listings] == ["2", "3", "1", "4"]
        assert outcome.adapter_count == 3
        assert outcome.failure_count == 1

    async def test_per_portal_limit_is_ceiling(self, stub_portal):
        portals = [stub_portal("a"), stub_portal("b"), stub_portal("c")]
        await JobPortalAggregator(portals).search_all_portals("engineer", "Remote", "mid", 25)
        assert [p.calls[0]["limit"] for p in portals] == [9, 9, 9]
        assert portals[0].calls[0]["location"] == "Remote"

    async def test_truncates_to_limit(self, stub_portal, posting):
        portal_a = stub_portal("a", [posting(str(i), days=i) for i in range(5)])
        portal_b = stub_portal("b", [posting(f"b{i}", days=i) for i in range(5)])
        jobs = await JobPortalAggregator([portal_a, portal_b]).search_all_portals("engineer", limit=4)
        assert len(jobs) == 4
        assert [job.date_posted for job in jobs] == sorted((job.date_posted for job in jobs), reverse=True)

    async def test_same_date_keeps_portal_order_and_is_repeatable(self, stub_portal, posting):
        portal_a = stub_portal("a", [posting("a1", days=1), posting("a2", days=0)])
        portal_b = stub_portal("b", [posting("b1", days=1), posting("b2", days=0)])
        aggregator = JobPortalAggregator([portal_a, portal_b])

        first = await aggregator.search_all_portals("engineer", limit=10)
        second = await aggregator.search_all_portals("engineer", limit=10)

        assert [job.id for job in first] == ["a1", "b1", "a2", "b2"]
        assert [job.id for job in first] == [job.id for job in second]

    async def test_slow_portal_times_out(self, stub_portal, posting):
        slow = stub_portal("slow", [posting("slow")], delay=1.0)
        fast = stub_portal("fast", [posting("fast")])
        outcome = await JobPortalAggregator([slow, fast], timeout=0.05).search_with_stats("engineer", limit=10)

        assert [job.id for job in outcome.listings] == ["fast"]
        assert outcome.failure_count == 1

    async def test_all_failing_gives_empty(self, stub_portal):
        portals = [stub_portal("a", error=ValueError("x")), stub_portal("b", error=asyncio.TimeoutError())]
        assert await JobPortalAggregator(portals).search_all_portals("engineer") == []

    async def test_no_portals_gives_empty(self):
        assert await JobPortalAggregator([]).search_all_portals("engineer") == []

    async def test_analyze_job_market_uses_sample(self, stub_portal, posting):
        portal = stub_portal("a", [posting("1", requirements=["python"])])
        analysis = await JobPortalAggregator([portal]).analyze_job_market("Backend Engineer", "Berlin")

        assert portal.calls[0]["limit"] == 100
        assert portal.calls[0]["experience_level"] == ""
        assert analysis.total_jobs == 1
        assert analysis.location == "Berlin"


class TestBuildAggregator:
    def test_missing_keys_skip_portals(self):
        portals = build_portals(ProviderKeys(linkedin=None, indeed="pub", naukri_enabled=False), client=None)
        assert [p.name for p in portals] == ["indeed"]

    def test_all_portals(self):
        portals = build_portals(ProviderKeys(linkedin="li", indeed="pub"), client=None)
        assert [p.name for p in portals] == ["linkedin", "indeed", "naukri"]

    def test_from_settings(self):
        app_settings = Settings(
            LINKEDIN_API_KEY="li", INDEED_API_KEY="", PROVIDER_TIMEOUT_SECONDS=3.0,
            SKILL_VOCABULARY="Go, Rust",
        )
        aggregator = build_aggregator(app_settings, client=None)

        assert [p.name for p in aggregator.portals] == ["linkedin", "naukri"]
        assert aggregator.timeout == 3.0
        assert aggregator.portals[0].skill_vocabulary == ["Go", "Rust"]
