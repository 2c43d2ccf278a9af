"""
Screenshot capture for application and platform check audits.

Files are named deterministically from platform, outcome, job id and
timestamp, e.g. linkedin_success_42_20260101_120000.png.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from playwright.async_api import Page

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class ScreenshotConfig:
    """Configuration for screenshot capture."""
    base_dir: Path
    naming_template: str = "{platform}_{outcome}_{job_id}_{timestamp}.png"
    full_page: bool = True


def _sanitize(value: str) -> str:
    return _UNSAFE_CHARS.sub("_", value).strip("_") or "unknown"


class ScreenshotManager:
    """Writes audit screenshots to a configured directory."""

    def __init__(self, config: Union[ScreenshotConfig, str, Path]):
        if not isinstance(config, ScreenshotConfig):
            config = ScreenshotConfig(base_dir=Path(config))
        self.config = config

    def build_name(
        self,
        platform: str,
        outcome: str,
        job_id: Optional[str],
        timestamp: Optional[datetime] = None,
    ) -> str:
        """Generate the screenshot file name."""
        timestamp = timestamp or datetime.now()
        return self.config.naming_template.format(
            platform=_sanitize(platform),
            outcome=_sanitize(outcome),
            job_id=_sanitize(str(job_id) if job_id is not None else "none"),
            timestamp=timestamp.strftime("%Y%m%d_%H%M%S"),
        )

    async def capture(
        self,
        page: Page,
        platform: str,
        outcome: str,
        job_id: Optional[str] = None,
    ) -> Optional[str]:
        """
        Capture a full-page screenshot.

        Returns:
            The file path, or None when the capture failed (failures are
            logged, never raised, so they cannot mask the real outcome).
        """
        path = Path(self.config.base_dir) / self.build_name(platform, outcome, job_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await page.screenshot(path=str(path), full_page=self.config.full_page)
        except Exception as e:
            logger.warning(f"Screenshot capture failed for {platform}/{job_id}: {e}")
            return None

        logger.debug(f"Screenshot saved: {path}")
        return str(path)
