"""
Tests for webhook and Telegram notifications.
"""

from unittest.mock import AsyncMock, patch

import pytest

from monitoring.notifications import NotificationConfig, NotificationManager, clip


def manager(webhook="", token="", chat=""):
    return NotificationManager(NotificationConfig(webhook_url=webhook, telegram_bot_token=token, telegram_chat_id=chat))


class TestNotificationManager:

    def test_disabled_without_config(self):
        assert manager().enabled() is False
        assert manager(token="t").telegram_enabled() is False
        assert manager(token="t", chat="1").enabled() is True

    @pytest.mark.asyncio
    async def test_nothing_sent_when_disabled(self):
        notifier = manager()
        with patch.object(notifier, "_post_json", AsyncMock(return_value=True)) as post:
            assert await notifier.notify_error("job_scraping", "boom") is False
        post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_webhook_payload(self):
        notifier = manager(webhook="https://hooks.example.com/jobs")
        with patch.object(notifier, "_post_json", AsyncMock(return_value=True)) as post:
            sent = await notifier.notify_scrape_result({"platform": "indeed", "totalJobs": 5, "newJobs": 5})

        assert sent is True
        url, payload = post.await_args.args
        assert url == "https://hooks.example.com/jobs"
        assert payload["event"] == "scrape_results"
        assert payload["data"]["newJobs"] == 5
        assert "timestamp" in payload

    @pytest.mark.asyncio
    async def test_telegram_message_is_escaped(self):
        notifier = manager(token="abc", chat="42")
        with patch.object(notifier, "_post_json", AsyncMock(return_value=True)) as post:
            await notifier.notify_error("job_application", "<script>", {"jobId": "j1"})

        url, payload = post.await_args.args
        assert url == "https://api.telegram.org/botabc/sendMessage"
        assert payload["chat_id"] == "42"
        assert "&lt;script&gt;" in payload["text"]
        assert "jobId: j1" in payload["text"]

    @pytest.mark.asyncio
    async def test_batch_outcome_summary(self):
        notifier = manager(token="abc", chat="42")
        summary = {
            "total": 2,
            "successCount": 1,
            "failedCount": 1,
            "jobs": [
                {"platform": "linkedin", "status": "applied"},
                {"platform": "indeed", "status": "failed", "errorMessage": "indeed: Apply button not found"},
            ],
        }
        with patch.object(notifier, "_post_json", AsyncMock(return_value=True)) as post:
            assert await notifier.notify_outcome(summary) is True

        text = post.await_args.args[1]["text"]
        assert "Applied: 1" in text
        assert "- [indeed] failed: indeed: Apply button not found" in text

    @pytest.mark.asyncio
    async def test_long_error_is_cut_before_escaping(self):
        notifier = manager(token="abc", chat="42")
        message = "x" * 118 + "&&&&"
        summary = {"total": 1, "failedCount": 1, "jobs": [{"platform": "indeed", "status": "failed", "errorMessage": message}]}
        with patch.object(notifier, "_post_json", AsyncMock(return_value=True)) as post:
            await notifier.notify_outcome(summary)

        last_line = post.await_args.args[1]["text"].splitlines()[-1]
        assert last_line == "- [indeed] failed: " + "x" * 118 + "&amp;&amp;"

    def test_clip_keeps_entities_whole(self):
        assert clip("<b>", 2) == "&lt;b"
        assert clip("a & b", 3) == "a &amp;"
        assert clip(None, 10) == "None"

    @pytest.mark.asyncio
    async def test_delivery_failure_is_not_raised(self):
        notifier = manager(webhook="https://hooks.example.com/jobs")
        with patch.object(notifier, "_post_json", AsyncMock(side_effect=RuntimeError("down"))):
            assert await notifier.notify_error("job_scraping", "boom") is False

    @pytest.mark.asyncio
    async def test_post_without_url(self):
        assert await manager()._post_json("", {}) is False

    def test_from_app_config(self):
        class Settings:
            WEBHOOK_URL = "https://hooks.example.com"
            TELEGRAM_BOT_TOKEN = ""
            TELEGRAM_CHAT_ID = ""

        config = NotificationConfig.from_app_config(Settings)
        assert config.webhook_url == "https://hooks.example.com"
