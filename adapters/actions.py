"""
Page interaction primitives shared by every platform adapter.

Adapters get a PageActions instance injected instead of talking to
Playwright directly for the common click / fill / wait / read steps.
`scope` arguments accept a Page or a Locator (anything with .locator()).
"""

import asyncio
import logging
import random
from typing import Any, Optional, Tuple

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from core.errors import BrowserError

logger = logging.getLogger(__name__)


class PageActions:
    """Human-paced click/fill/wait/read helpers with fixed timeouts."""

    def __init__(
        self,
        delay_range: Tuple[float, float] = (0.5, 1.5),
        click_delay_range: Tuple[float, float] = (0.3, 0.8),
        click_timeout_ms: int = 5000,
        exists_timeout_ms: int = 1000,
        navigation_timeout_ms: int = 60000,
    ):
        self.delay_range = delay_range
        self.click_delay_range = click_delay_range
        self.click_timeout_ms = click_timeout_ms
        self.exists_timeout_ms = exists_timeout_ms
        self.navigation_timeout_ms = navigation_timeout_ms

    @classmethod
    def from_config(cls, app_config) -> "PageActions":
        return cls(
            delay_range=app_config.human_delay,
            navigation_timeout_ms=app_config.NAVIGATION_TIMEOUT_MS,
        )

    async def delay(self, min_sec: Optional[float] = None, max_sec: Optional[float] = None):
        """Add human-like random delay."""
        low = self.delay_range[0] if min_sec is None else min_sec
        high = self.delay_range[1] if max_sec is None else max_sec
        await asyncio.sleep(random.uniform(low, max(low, high)))

    async def goto(self, page: Page, url: str, wait_until: str = "domcontentloaded"):
        """Navigate; engine failures and timeouts surface as BrowserError."""
        try:
            await page.goto(url, wait_until=wait_until, timeout=self.navigation_timeout_ms)
        except PlaywrightError as e:
            raise BrowserError(f"Navigation to {url} failed: {e}") from e

    async def element_exists(self, scope: Any, selector: str, timeout_ms: Optional[int] = None) -> bool:
        """True if the selector becomes visible within the timeout."""
        try:
            await scope.locator(selector).first.wait_for(
                state="visible",
                timeout=self.exists_timeout_ms if timeout_ms is None else timeout_ms,
            )
            return True
        except PlaywrightTimeoutError:
            return False
        except PlaywrightError as e:
            logger.debug(f"element_exists({selector}) error: {e}")
            return False

    async def click(self, scope: Any, selector: str, timeout_ms: Optional[int] = None) -> bool:
        """Click the first visible match, then pause briefly. False if it never became clickable."""
        try:
            await scope.locator(selector).first.click(
                timeout=self.click_timeout_ms if timeout_ms is None else timeout_ms
            )
        except PlaywrightError as e:
            logger.debug(f"click({selector}) failed: {e}")
            return False
        await self.delay(*self.click_delay_range)
        return True

    async def fill(self, scope: Any, selector: str, value: str, timeout_ms: Optional[int] = None) -> bool:
        try:
            field = scope.locator(selector).first
            await field.fill(value, timeout=self.click_timeout_ms if timeout_ms is None else timeout_ms)
        except PlaywrightError as e:
            logger.debug(f"fill({selector}) failed: {e}")
            return False
        await self.delay(*self.click_delay_range)
        return True

    async def get_text(self, scope: Any, selector: str, default: str = "") -> str:
        """Stripped text of the first match, or default if it is missing."""
        try:
            text = await scope.locator(selector).first.text_content(timeout=self.exists_timeout_ms)
        except PlaywrightError:
            return default
        return " ".join(text.split()) if text else default

    async def get_attribute(self, scope: Any, selector: str, name: str) -> Optional[str]:
        try:
            return await scope.locator(selector).first.get_attribute(name, timeout=self.exists_timeout_ms)
        except PlaywrightError:
            return None

    async def count(self, scope: Any, selector: str) -> int:
        return await scope.locator(selector).count()

    async def scroll(self, page: Page, pixels: Optional[int] = None):
        """Scroll down to trigger lazy-loaded content."""
        distance = pixels or random.randint(1200, 2400)
        await page.mouse.wheel(0, distance)
        await self.delay(0.4, 0.9)
