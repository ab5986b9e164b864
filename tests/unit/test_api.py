"""Tests for the FastAPI wrapper (fake adapter, no browser)."""

import pytest
from fastapi.testclient import TestClient

from src.api.server import create_app
from src.core.config import LinkedInCredentials, SearchFilters, Settings
from src.core.errors import AuthenticationError
from src.core.schemas import JobRecord
from src.platforms.base import PlatformAdapter


class FakeAdapter(PlatformAdapter):
    """Records calls and returns canned records (or raises ``error``)."""

    def __init__(self, records: list[JobRecord], error: Exception | None = None) -> None:
        self.records = records
        self.error = error
        self.calls: list[tuple[SearchFilters, int]] = []
        self.closed = 0

    @property
    def platform_id(self) -> str:
        return "linkedin"

    async def search(self, filters: SearchFilters, max_count: int = 10) -> list[JobRecord]:
        self.calls.append((filters, max_count))
        if self.error is not None:
            raise self.error
        return self.records[:max_count]

    async def close(self) -> None:
        self.closed += 1


def _settings() -> Settings:
    return Settings(linkedin=LinkedInCredentials(email="me@example.com", password="secret"))


def _client(adapter: FakeAdapter) -> TestClient:
    def factory(name: str, settings: Settings) -> PlatformAdapter:
        return adapter

    return TestClient(create_app(_settings, factory))


@pytest.fixture
def adapter() -> FakeAdapter:
    return FakeAdapter([
        JobRecord(job_id="1", title="Full Stack Developer", org_name="Acme"),
        JobRecord(job_id="2", title="Backend Developer", org_name="Globex"),
    ])


class TestHealth:
    def test_health(self, adapter: FakeAdapter) -> None:
        res = _client(adapter).get("/health")
        assert res.status_code == 200
        body = res.json()
        assert body["status"] == "healthy"
        assert body["uptime"] >= 0

    def test_platforms(self, adapter: FakeAdapter) -> None:
        res = _client(adapter).get("/platforms")
        assert res.status_code == 200
        assert res.json()["platforms"] == ["linkedin"]


class TestSearchEndpoint:
    def test_success(self, adapter: FakeAdapter) -> None:
        res = _client(adapter).post(
            "/linkedin/jobs/search",
            json={
                "filters": {
                    "keywords": "Full stack developer",
                    "location": "Bengaluru, India",
                    "datePosted": "past-week",
                    "jobType": ["full-time"],
                },
                "maxJobs": 5,
            },
        )
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert body["platform"] == "linkedin"
        assert body["count"] == 2
        assert [d["job_id"] for d in body["data"]] == ["1", "2"]

        filters, max_count = adapter.calls[0]
        assert filters.date_posted == "past-week"
        assert filters.job_type == ("full-time",)
        assert max_count == 5
        assert adapter.closed == 1

    def test_default_max_jobs(self, adapter: FakeAdapter) -> None:
        _client(adapter).post("/linkedin/jobs/search", json={})
        assert adapter.calls[0][1] == 10

    def test_unsupported_platform(self, adapter: FakeAdapter) -> None:
        res = _client(adapter).post("/indeed/jobs/search", json={})
        assert res.status_code == 400
        body = res.json()
        assert body["success"] is False
        assert "Unsupported platform: indeed" in body["error"]
        assert adapter.calls == []

    def test_search_error_is_500(self) -> None:
        failing = FakeAdapter([], error=AuthenticationError("Challenge completion timeout"))
        res = _client(failing).post("/linkedin/jobs/search", json={"maxJobs": 3})
        assert res.status_code == 500
        body = res.json()
        assert body["success"] is False
        assert body["error"] == "Challenge completion timeout"
        assert failing.closed == 1

    def test_invalid_filter_is_422(self, adapter: FakeAdapter) -> None:
        res = _client(adapter).post(
            "/linkedin/jobs/search", json={"filters": {"remote": ["moon"]}},
        )
        assert res.status_code == 422
        body = res.json()
        assert body["success"] is False
        assert body["error"].startswith("Invalid request")
        assert "filters.remote" in body["error"]
        assert "timestamp" in body
        assert adapter.calls == []

    def test_max_jobs_bounds(self, adapter: FakeAdapter) -> None:
        res = _client(adapter).post("/linkedin/jobs/search", json={"maxJobs": 0})
        assert res.status_code == 422
        body = res.json()
        assert body["success"] is False
        assert "maxJobs" in body["error"]


class TestErrorEnvelope:
    def test_unknown_route_is_404_envelope(self, adapter: FakeAdapter) -> None:
        res = _client(adapter).get("/nope")
        assert res.status_code == 404
        body = res.json()
        assert body["success"] is False
        assert body["error"] == "Route GET /nope not found"
        assert "timestamp" in body

    def test_wrong_method_keeps_envelope(self, adapter: FakeAdapter) -> None:
        res = _client(adapter).get("/linkedin/jobs/search")
        assert res.status_code == 405
        body = res.json()
        assert body["success"] is False
        assert body["error"] == "Method Not Allowed"
