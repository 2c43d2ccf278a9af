"""
HTTP API Tests
Routes, API key auth and the error envelope, with the orchestrator mocked.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from adapters import create_adapter
from api.config import AppConfig, config
from api.main import app, get_orchestrator
from core.errors import BrowserError, UnsupportedPlatformError, ValidationError
from core.models import ApplicationResult, BatchResult, ProbeResult, ScrapeResult

API_KEY = "test-key"
AUTH = {"X-API-Key": API_KEY}


@pytest.fixture
def orchestrator():
    orch = MagicMock()
    orch.scrape = AsyncMock(return_value=ScrapeResult(
        platform="indeed", keywords="python", total_jobs=5, new_jobs=4, duplicates=1,
        sample_titles=["Backend Engineer at Acme"],
    ))
    batch = BatchResult()
    batch.add(ApplicationResult(job_id="j1", platform="linkedin", status="applied"))
    orch.apply_to_many = AsyncMock(return_value=batch)
    orch.apply_by_filter = AsyncMock(return_value=BatchResult(message="No jobs matched the filter"))
    orch.test_platform = AsyncMock(return_value=ProbeResult(platform="linkedin", status="success", is_logged_in=True))
    orch.status = AsyncMock(return_value={"database": "connected", "browsers": {}})
    orch.restart_browsers = AsyncMock(return_value=2)
    orch.create_adapter = MagicMock(side_effect=lambda platform: create_adapter(platform, AppConfig()))
    orch.pool.has_session = MagicMock(return_value=False)
    orch.store.get_application_stats = AsyncMock(return_value={"stats": [], "totals": {"total": 0}})
    return orch


@pytest.fixture
def client(orchestrator, monkeypatch):
    monkeypatch.setattr(config, "API_KEY", API_KEY)
    monkeypatch.setattr(config, "DISABLE_API_AUTH", False)
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.mark.api
class TestPublicRoutes:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_status(self, client):
        data = client.get("/api/status").json()["data"]
        assert data["database"] == "connected"
        assert "uptime" in data

    def test_platforms(self, client):
        platforms = client.get("/api/platforms").json()["data"]
        assert [p["id"] for p in platforms] == ["linkedin", "indeed", "glassdoor"]
        assert platforms[0]["name"] == "LinkedIn"
        assert platforms[0]["browserRunning"] is False


@pytest.mark.api
class TestAuth:

    def test_missing_key(self, client):
        response = client.post("/api/scrape-jobs", json={"platform": "indeed", "keywords": "python"})
        assert response.status_code == 401
        assert response.json() == {
            "status": "error",
            "error": {"code": "UNAUTHORIZED", "message": "Invalid or missing API key"},
        }

    def test_wrong_key(self, client):
        response = client.post("/api/status/restart", headers={"X-API-Key": "nope"})
        assert response.status_code == 401

    def test_auth_disabled(self, client, monkeypatch):
        monkeypatch.setattr(config, "DISABLE_API_AUTH", True)
        assert client.post("/api/status/restart").status_code == 200


@pytest.mark.api
class TestScrape:

    def test_scrape(self, client, orchestrator):
        response = client.post("/api/scrape-jobs", headers=AUTH, json={
            "platform": "Indeed", "keywords": ["python", "fastapi"], "country": "US", "quantity": 5,
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert (data["totalJobs"], data["newJobs"], data["duplicates"]) == (5, 4, 1)
        args, kwargs = orchestrator.scrape.await_args
        assert args == ("indeed", ["python", "fastapi"])
        assert kwargs["quantity"] == 5
        assert kwargs["job_type"] == "Remote"

    def test_unsupported_platform_is_validation_error(self, client, orchestrator):
        response = client.post("/api/scrape-jobs", headers=AUTH, json={"platform": "monster", "keywords": "x"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        orchestrator.scrape.assert_not_awaited()

    def test_quantity_bounds(self, client):
        response = client.post("/api/scrape-jobs", headers=AUTH, json={
            "platform": "indeed", "keywords": "x", "quantity": 500,
        })
        assert response.status_code == 400
        assert response.json()["error"]["details"][0]["field"] == "quantity"

    def test_empty_keywords(self, client):
        response = client.post("/api/scrape-jobs", headers=AUTH, json={"platform": "indeed", "keywords": "  "})
        assert response.status_code == 400

    def test_core_validation_error_maps_to_400(self, client, orchestrator):
        orchestrator.scrape.side_effect = ValidationError("Quantity must be between 1 and 100")
        response = client.post("/api/scrape-jobs", headers=AUTH, json={"platform": "indeed", "keywords": "x"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_browser_failure_maps_to_500(self, client, orchestrator):
        orchestrator.scrape.side_effect = BrowserError("Failed to launch browser for indeed:scrape")
        response = client.post("/api/scrape-jobs", headers=AUTH, json={"platform": "indeed", "keywords": "x"})
        assert response.status_code == 500
        assert response.json()["error"] == {
            "code": "BROWSER_ERROR",
            "message": "Failed to launch browser for indeed:scrape",
        }

    def test_unexpected_error_is_generic_500(self, client, orchestrator, monkeypatch):
        monkeypatch.setattr(config, "DEBUG", False)
        orchestrator.scrape.side_effect = KeyError("secret detail")
        response = client.post("/api/scrape-jobs", headers=AUTH, json={"platform": "indeed", "keywords": "x"})
        assert response.status_code == 500
        assert response.json()["error"] == {"code": "INTERNAL_SERVER_ERROR", "message": "Internal server error"}


@pytest.mark.api
class TestApply:

    def test_apply_jobs(self, client, orchestrator):
        response = client.post("/api/apply-jobs", headers=AUTH, json={
            "jobs": [{"id": "j1", "url": "https://www.linkedin.com/jobs/view/1/", "platform": "LinkedIn"}],
            "profile": {"full_name": "Jane Doe", "email": "jane@example.com"},
        })

        assert response.status_code == 200
        assert response.json()["data"]["successCount"] == 1
        jobs, profile = orchestrator.apply_to_many.await_args.args
        assert jobs[0]["platform"] == "linkedin"
        assert profile.first_name == "Jane"

    def test_empty_job_list_rejected(self, client):
        assert client.post("/api/apply-jobs", headers=AUTH, json={"jobs": []}).status_code == 400

    def test_invalid_url_rejected(self, client):
        response = client.post("/api/apply-jobs", headers=AUTH, json={"jobs": [{"id": "j1", "url": "ftp://x"}]})
        assert response.status_code == 400

    def test_apply_by_filter(self, client, orchestrator):
        response = client.post("/api/apply-by-filter", headers=AUTH, json={
            "platform": "indeed", "dateFrom": "2026-01-01", "limit": 10,
        })

        assert response.status_code == 200
        assert response.json()["data"]["message"] == "No jobs matched the filter"
        job_filter = orchestrator.apply_by_filter.await_args.args[0]
        assert (job_filter.platform, job_filter.date_from, job_filter.limit, job_filter.status) == (
            "indeed", "2026-01-01", 10, "pending",
        )

    def test_apply_by_filter_bad_date(self, client):
        response = client.post("/api/apply-by-filter", headers=AUTH, json={"dateFrom": "yesterday"})
        assert response.status_code == 400


@pytest.mark.api
class TestPlatformsAndStats:

    def test_platform_check(self, client):
        response = client.post("/api/platforms/linkedin/test", headers=AUTH)
        assert response.status_code == 200
        assert response.json()["data"]["isLoggedIn"] is True

    def test_unknown_platform_check(self, client, orchestrator):
        orchestrator.test_platform.side_effect = UnsupportedPlatformError("Unsupported platform: monster")
        response = client.post("/api/platforms/monster/test", headers=AUTH)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "UNSUPPORTED_PLATFORM"

    def test_restart(self, client):
        assert client.post("/api/status/restart", headers=AUTH).json()["closed"] == 2

    def test_stats(self, client, orchestrator):
        response = client.get("/api/stats?platform=LinkedIn&limit=5", headers=AUTH)
        assert response.status_code == 200
        kwargs = orchestrator.store.get_application_stats.await_args.kwargs
        assert kwargs["platform"] == "linkedin"
        assert kwargs["limit"] == 5

    def test_dashboard(self, client, orchestrator):
        orchestrator.store.get_application_stats.return_value = {
            "totals": {"total": 12, "successRate": 50.0},
            "platforms": {"linkedin": {"total": 12, "successRate": 50.0}},
            "daily": [{"date": "2026-03-10", "successRate": 50.0}],
            "trends": {"trend": "neutral", "change": 0.0, "days": 1},
        }

        response = client.get("/api/stats/dashboard", headers=AUTH)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["last30Days"]["totalApplications"] == 12
        assert data["last30Days"]["avgDailySuccessRate"] == 50.0
        assert data["platforms"]["best"] == {"name": "linkedin", "successRate": 50.0}
        assert "date_from" in orchestrator.store.get_application_stats.await_args.kwargs

    def test_dashboard_requires_key(self, client):
        assert client.get("/api/stats/dashboard").status_code == 401
