#!/usr/bin/env python3
"""
Notifications: generic JSON webhook and optional Telegram bot.

Design goals:
- Zero-config by default (no notifications if not configured).
- Best-effort: a failed notification never fails the operation it reports on.
- Safety: do not include secrets; keep payloads minimal.
"""

from __future__ import annotations

import asyncio
import html
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import aiohttp

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"


def clip(value: Any, limit: int) -> str:
    """Shorten, then HTML-escape, so an entity is never cut in half."""
    return html.escape(str(value)[:limit])


@dataclass
class NotificationConfig:
    webhook_url: str = os.getenv("WEBHOOK_URL", "")
    telegram_bot_token: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    telegram_chat_id: str = os.getenv("TELEGRAM_CHAT_ID", "")

    @classmethod
    def from_app_config(cls, app_config) -> "NotificationConfig":
        return cls(
            webhook_url=app_config.WEBHOOK_URL,
            telegram_bot_token=app_config.TELEGRAM_BOT_TOKEN,
            telegram_chat_id=app_config.TELEGRAM_CHAT_ID,
        )


class NotificationManager:
    def __init__(self, config: Optional[NotificationConfig] = None):
        self.config = config or NotificationConfig()

    def telegram_enabled(self) -> bool:
        return bool(self.config.telegram_bot_token and self.config.telegram_chat_id)

    def enabled(self) -> bool:
        return bool(self.config.webhook_url or self.telegram_enabled())

    async def _post_json(self, url: str, payload: dict) -> bool:
        if not url:
            return False
        try:
            timeout = aiohttp.ClientTimeout(total=12)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(url, json=payload) as resp:
                    if 200 <= resp.status < 300:
                        return True
                    text = await resp.text()
                    logger.warning(f"Notification POST failed ({resp.status}): {text[:200]}")
                    return False
        except Exception as e:
            logger.warning(f"Notification POST error: {e}")
            return False

    async def send_telegram(self, text: str) -> bool:
        if not self.telegram_enabled():
            return False
        url = f"{TELEGRAM_API}/bot{self.config.telegram_bot_token}/sendMessage"
        return await self._post_json(url, {
            "chat_id": self.config.telegram_chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        })

    async def _dispatch(self, event: str, payload: Dict[str, Any], text: str) -> bool:
        webhook_payload = {
            "event": event,
            "timestamp": datetime.utcnow().isoformat(),
            "data": payload,
        }
        results = await asyncio.gather(
            self._post_json(self.config.webhook_url, webhook_payload) if self.config.webhook_url else asyncio.sleep(0, False),
            self.send_telegram(text),
            return_exceptions=True,
        )
        # Keep structured detail in logs for debugging.
        logger.info(f"Notification {event}: {json.dumps(payload, ensure_ascii=True, default=str)[:800]}")
        return any(result is True for result in results)

    async def notify_outcome(self, summary: Dict[str, Any]) -> bool:
        """
        Report a batch application outcome.

        Expected `summary` keys (best-effort): total, successCount, failedCount, jobs
        """
        try:
            total = summary.get("total", 0)
            succeeded = summary.get("successCount", 0)
            failed = summary.get("failedCount", 0)
            lines = [
                "<b>Application results</b>",
                f"Total: {total}",
                f"Applied: {succeeded}",
                f"Failed: {failed}",
            ]
            for job in (summary.get("jobs") or [])[:10]:
                status = job.get("status", "")
                line = f"- [{job.get('platform')}] {status}"
                if job.get("errorMessage"):
                    line += f": {clip(job['errorMessage'], 120)}"
                lines.append(line)
            return await self._dispatch("application_results", summary, "\n".join(lines))
        except Exception as e:
            logger.warning(f"notify_outcome failed: {e}")
            return False

    async def notify_scrape_result(self, result: Dict[str, Any]) -> bool:
        """Report a finished scrape (counts plus a few sample titles)."""
        try:
            lines = [
                f"<b>Scrape finished: {html.escape(str(result.get('platform')))}</b>",
                f"Keywords: {html.escape(str(result.get('keywords', '')))}",
                f"Found: {result.get('totalJobs', 0)}",
                f"New: {result.get('newJobs', 0)}",
                f"Duplicates: {result.get('duplicates', 0)}",
                f"Time: {result.get('executionTime', 0)}s",
            ]
            for title in result.get("sampleTitles") or []:
                lines.append(f"- {html.escape(str(title))}")
            return await self._dispatch("scrape_results", result, "\n".join(lines))
        except Exception as e:
            logger.warning(f"notify_scrape_result failed: {e}")
            return False

    async def notify_error(self, kind: str, message: str, context: Optional[Dict[str, Any]] = None) -> bool:
        """Report a failure of the given kind (job_scraping, job_application, ...)."""
        try:
            context = context or {}
            lines = [f"<b>Error: {html.escape(kind)}</b>", html.escape(message)]
            for key, value in context.items():
                lines.append(f"{html.escape(str(key))}: {clip(value, 200)}")
            payload = {"kind": kind, "message": message, "context": context}
            return await self._dispatch("error", payload, "\n".join(lines))
        except Exception as e:
            logger.warning(f"notify_error failed: {e}")
            return False
