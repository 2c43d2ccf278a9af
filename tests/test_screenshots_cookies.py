"""
Tests for audit screenshots and exported cookie files.
"""

import json
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from browser.cookies import cookie_file, load_cookies, save_cookies
from core.screenshot_manager import ScreenshotManager

from conftest import FakePage


class TestScreenshotManager:

    def test_deterministic_name(self, tmp_path):
        screenshots = ScreenshotManager(tmp_path)
        name = screenshots.build_name("linkedin", "success", "42", datetime(2026, 1, 1, 12, 0, 0))
        assert name == "linkedin_success_42_20260101_120000.png"

    def test_unsafe_characters_replaced(self, tmp_path):
        screenshots = ScreenshotManager(tmp_path)
        name = screenshots.build_name("indeed", "error", "../../etc/passwd", datetime(2026, 1, 1))
        assert "/" not in name
        assert name.startswith("indeed_error_")

    def test_missing_job_id(self, tmp_path):
        name = ScreenshotManager(tmp_path).build_name("glassdoor", "test", None, datetime(2026, 1, 1))
        assert name == "glassdoor_test_none_20260101_000000.png"

    @pytest.mark.asyncio
    async def test_capture_writes_file(self, tmp_path):
        screenshots = ScreenshotManager(tmp_path / "shots")

        path = await screenshots.capture(FakePage(), "linkedin", "success", "7")

        assert path is not None
        assert (tmp_path / "shots").exists()
        assert Path(path).name.startswith("linkedin_success_7_")
        assert Path(path).parent == tmp_path / "shots"

    @pytest.mark.asyncio
    async def test_manager_keeps_no_history(self, tmp_path):
        screenshots = ScreenshotManager(tmp_path)

        for job_id in range(3):
            await screenshots.capture(FakePage(), "indeed", "success", str(job_id))

        assert vars(screenshots) == {"config": screenshots.config}

    @pytest.mark.asyncio
    async def test_capture_failure_returns_none(self, tmp_path):
        page = MagicMock()
        page.screenshot = AsyncMock(side_effect=RuntimeError("Target closed"))

        assert await ScreenshotManager(tmp_path).capture(page, "indeed", "error", "1") is None


class TestCookies:

    def test_round_trip(self, tmp_path):
        cookies = [{"name": "li_at", "value": "v", "domain": ".linkedin.com", "path": "/"}]
        path = save_cookies(tmp_path / "cookies", "linkedin", cookies)

        assert path == cookie_file(tmp_path / "cookies", "linkedin")
        assert load_cookies(tmp_path / "cookies", "linkedin") == cookies

    def test_missing_file(self, tmp_path):
        assert load_cookies(tmp_path, "indeed") == []

    def test_filters_invalid_and_session_expiry(self, tmp_path):
        (tmp_path / "glassdoor.json").write_text(json.dumps({"cookies": [
            {"name": "GSESSIONID", "value": "s", "url": "https://www.glassdoor.com", "expires": -1},
            {"name": "no_value"},
            {"name": "no_scope", "value": "x"},
            {"name": "kept", "value": "k", "domain": ".glassdoor.com", "path": "/", "expires": 1900000000},
        ]}))

        cookies = load_cookies(tmp_path, "glassdoor")

        assert [c["name"] for c in cookies] == ["GSESSIONID", "kept"]
        assert "expires" not in cookies[0]
        assert cookies[1]["expires"] == 1900000000

    def test_malformed_file_raises(self, tmp_path):
        (tmp_path / "indeed.json").write_text("{oops")
        with pytest.raises(ValueError):
            load_cookies(tmp_path, "indeed")
