#!/usr/bin/env python3
"""
Browser Session Pool - one long-lived Playwright browser per pool key.

A key is normally the platform name. Operations get an isolated context and
page from the pooled browser and must hand both back through
release_page_and_context(); the browser itself stays up for reuse until it
disconnects, goes idle past the threshold, or the pool is closed.
"""

import asyncio
import functools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from api.logging_config import log_browser_event
from browser import stealth
from browser.cookies import load_cookies
from .errors import BrowserError
from .proxy_manager import mask_proxy_credentials, to_playwright_proxy
from .retry import log_retry, with_retry

logger = logging.getLogger(__name__)


@dataclass
class PooledBrowser:
    """A browser process in the pool."""
    key: str
    platform: str
    browser: Browser
    proxy: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    last_used: float = field(default_factory=time.time)
    use_count: int = 0

    def idle_seconds(self, now: Optional[float] = None) -> float:
        return (now or time.time()) - self.last_used

    @property
    def is_connected(self) -> bool:
        return self.browser.is_connected()


class BrowserPool:
    """
    Manage Playwright browsers keyed by platform.

    Features:
    - At most one live browser per key
    - Disconnected browsers are evicted before the key is handed out again
    - Launch wrapped in bounded retries
    - Best-effort restore of exported cookies into each new context
    - Optional background sweeper closing idle browsers
    """

    def __init__(
        self,
        headless: bool = True,
        launch_retries: int = 2,
        launch_retry_delay: Tuple[float, float] = (1.0, 3.0),
        default_timeout_ms: int = 30000,
        navigation_timeout_ms: int = 60000,
        slow_mo_ms: int = 0,
        cookies_dir: Optional[str] = None,
        playwright_factory=async_playwright,
    ):
        self.headless = headless
        self.launch_retries = launch_retries
        self.launch_retry_delay = launch_retry_delay
        self.default_timeout_ms = default_timeout_ms
        self.navigation_timeout_ms = navigation_timeout_ms
        self.slow_mo_ms = slow_mo_ms
        self.cookies_dir = cookies_dir
        self._playwright_factory = playwright_factory

        self._playwright = None
        self._browsers: Dict[str, PooledBrowser] = {}
        self._lock = asyncio.Lock()
        self._sweeper_task: Optional[asyncio.Task] = None

        self.stats = {
            'browsers_launched': 0,
            'browsers_reused': 0,
            'browsers_evicted': 0,
            'browsers_swept': 0,
            'launch_failures': 0,
            'contexts_opened': 0,
            'cookie_restore_failures': 0,
        }

    @classmethod
    def from_config(cls, app_config) -> "BrowserPool":
        return cls(
            headless=app_config.HEADLESS,
            launch_retries=app_config.BROWSER_LAUNCH_RETRIES,
            launch_retry_delay=app_config.human_delay,
            default_timeout_ms=app_config.BROWSER_TIMEOUT_MS,
            navigation_timeout_ms=app_config.NAVIGATION_TIMEOUT_MS,
            slow_mo_ms=app_config.SLOW_MO_MS,
            cookies_dir=app_config.COOKIES_DIR,
        )

    # === Acquire / release ===

    async def acquire(
        self,
        platform: str,
        reuse_existing: bool = True,
        proxy: Optional[str] = None,
        extra_options: Optional[Dict[str, Any]] = None,
        key: Optional[str] = None,
        share_context: bool = False,
    ) -> Tuple[PooledBrowser, BrowserContext, Page]:
        """
        Get a page for a platform.

        Args:
            platform: Platform name (linkedin, indeed, glassdoor)
            reuse_existing: Reuse the live browser for the key if there is one.
                When False any existing browser for the key is closed and a new
                one is launched.
            proxy: Proxy URL for a newly launched browser
            extra_options: Extra browser.new_context() options
            key: Pool key (default: platform)
            share_context: Open the page in the browser's existing context
                instead of a fresh isolated one

        Returns:
            (pooled browser, context, page)
        """
        key = key or platform

        async with self._lock:
            pooled = self._browsers.get(key)

            if pooled is not None and not pooled.is_connected:
                logger.warning(f"[Pool] Browser for {key} is disconnected, evicting")
                del self._browsers[key]
                self.stats['browsers_evicted'] += 1
                pooled = None

            if pooled is not None and not reuse_existing:
                logger.debug(f"[Pool] Replacing browser for {key}")
                del self._browsers[key]
                await self._close_browser(pooled)
                pooled = None

            if pooled is None:
                pooled = await self._launch(key, platform, proxy)
                self._browsers[key] = pooled
            else:
                self.stats['browsers_reused'] += 1
                logger.debug(f"[Pool] Reusing browser for {key} (use #{pooled.use_count + 1})")

            pooled.last_used = time.time()
            pooled.use_count += 1

        context, page = await self._open_page(pooled, extra_options, share_context)
        return pooled, context, page

    async def _open_page(
        self,
        pooled: PooledBrowser,
        extra_options: Optional[Dict[str, Any]],
        share_context: bool,
    ) -> Tuple[BrowserContext, Page]:
        context = None
        page = None
        try:
            existing = list(pooled.browser.contexts) if share_context else []
            if existing:
                context = existing[0]
            else:
                context = await pooled.browser.new_context(**stealth.context_options(extra_options))
                await context.add_init_script(stealth.STEALTH_SCRIPT)
                await self._restore_cookies(pooled.platform, context)
                self.stats['contexts_opened'] += 1

            page = await context.new_page()
            page.set_default_timeout(self.default_timeout_ms)
            page.set_default_navigation_timeout(self.navigation_timeout_ms)
            return context, page
        except Exception as e:
            if not share_context:
                await self.release_page_and_context(context, page)
            raise BrowserError(
                f"Failed to open page for {pooled.key}: {e}",
                {"platform": pooled.platform},
            ) from e

    async def _restore_cookies(self, platform: str, context: BrowserContext):
        if not self.cookies_dir:
            return
        try:
            cookies = load_cookies(self.cookies_dir, platform)
            if cookies:
                await context.add_cookies(cookies)
                logger.debug(f"[Pool] Restored {len(cookies)} cookies for {platform}")
        except Exception as e:
            self.stats['cookie_restore_failures'] += 1
            logger.warning(f"[Pool] Cookie restore failed for {platform}: {e}")

    async def release_page_and_context(self, context: Optional[BrowserContext], page: Optional[Page]):
        """Close the context, then the page. The browser stays in the pool."""
        if context is not None:
            try:
                await context.close()
            except Exception as e:
                logger.debug(f"[Pool] Context close error: {e}")
        if page is not None:
            try:
                await page.close()
            except Exception as e:
                logger.debug(f"[Pool] Page close error: {e}")

    # === Launch / close ===

    async def _ensure_playwright(self):
        if self._playwright is None:
            self._playwright = await self._playwright_factory().start()
        return self._playwright

    async def _launch(self, key: str, platform: str, proxy: Optional[str]) -> PooledBrowser:
        launch_options: Dict[str, Any] = {
            "headless": self.headless,
            "args": stealth.launch_args(),
        }
        if self.slow_mo_ms:
            launch_options["slow_mo"] = self.slow_mo_ms
        if proxy:
            launch_options["proxy"] = to_playwright_proxy(proxy)

        async def launch():
            playwright = await self._ensure_playwright()
            return await playwright.chromium.launch(**launch_options)

        min_delay, max_delay = self.launch_retry_delay
        try:
            browser = await with_retry(
                launch,
                retries=self.launch_retries,
                min_delay=min_delay,
                max_delay=max_delay,
                on_retry=log_retry(f"[Pool] Browser launch for {key}"),
            )
        except Exception as e:
            self.stats['launch_failures'] += 1
            raise BrowserError(
                f"Failed to launch browser for {key}: {e}",
                {"platform": platform, "proxy": mask_proxy_credentials(proxy)},
            ) from e

        browser.on("disconnected", functools.partial(self._handle_disconnect, key))
        self.stats['browsers_launched'] += 1
        log_browser_event(key, "launched", mask_proxy_credentials(proxy))
        logger.info(
            f"[Pool] Launched browser for {key}"
            + (f" via {mask_proxy_credentials(proxy)}" if proxy else "")
        )
        return PooledBrowser(key=key, platform=platform, browser=browser, proxy=proxy)

    async def _handle_disconnect(self, key: str, browser: Browser):
        async with self._lock:
            pooled = self._browsers.get(key)
            if pooled is not None and pooled.browser is browser:
                del self._browsers[key]
                self.stats['browsers_evicted'] += 1
                logger.warning(f"[Pool] Browser for {key} disconnected, evicted")
                log_browser_event(key, "disconnected")

    async def _close_browser(self, pooled: PooledBrowser):
        try:
            await pooled.browser.close()
        except Exception as e:
            logger.debug(f"[Pool] Browser close error for {pooled.key}: {e}")

    async def close_session(self, key: str) -> bool:
        """Close and forget the browser for one key."""
        async with self._lock:
            pooled = self._browsers.pop(key, None)
            if pooled is None:
                return False
            await self._close_browser(pooled)
        logger.debug(f"[Pool] Closed browser for {key}")
        return True

    async def close_all(self):
        """Close every tracked browser."""
        async with self._lock:
            pooled_browsers = list(self._browsers.values())
            self._browsers.clear()
            for pooled in pooled_browsers:
                await self._close_browser(pooled)
        logger.info(f"[Pool] Closed {len(pooled_browsers)} browsers")

    async def shutdown(self):
        """Stop the sweeper, close every browser and stop Playwright."""
        await self.stop_idle_sweeper()
        await self.close_all()
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.debug(f"[Pool] Playwright stop error: {e}")
            self._playwright = None

    # === Idle sweep ===

    async def sweep_idle(self, threshold_seconds: float) -> List[str]:
        """Close browsers unused for longer than threshold_seconds; returns their keys."""
        now = time.time()
        swept = []
        async with self._lock:
            for key, pooled in list(self._browsers.items()):
                if pooled.idle_seconds(now) > threshold_seconds:
                    del self._browsers[key]
                    await self._close_browser(pooled)
                    swept.append(key)
                    log_browser_event(key, "idle_closed", f"{pooled.idle_seconds(now):.0f}s idle")
            self.stats['browsers_swept'] += len(swept)

        if swept:
            logger.info(f"[Pool] Closed idle browsers: {', '.join(swept)}")
        return swept

    def start_idle_sweeper(self, interval_seconds: float, threshold_seconds: float):
        if self._sweeper_task is not None and not self._sweeper_task.done():
            return
        self._sweeper_task = asyncio.create_task(
            self._sweep_loop(interval_seconds, threshold_seconds)
        )
        logger.debug(f"[Pool] Idle sweeper started (every {interval_seconds:.0f}s, threshold {threshold_seconds:.0f}s)")

    async def stop_idle_sweeper(self):
        if self._sweeper_task is None:
            return
        self._sweeper_task.cancel()
        try:
            await self._sweeper_task
        except asyncio.CancelledError:
            pass
        self._sweeper_task = None

    async def _sweep_loop(self, interval_seconds: float, threshold_seconds: float):
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.sweep_idle(threshold_seconds)
            except Exception as e:
                logger.warning(f"[Pool] Idle sweep error: {e}")

    # === Introspection ===

    def has_session(self, key: str) -> bool:
        return key in self._browsers

    def get_stats(self) -> Dict[str, Any]:
        """Get pool statistics"""
        now = time.time()
        return {
            'browsers': {
                key: {
                    'platform': pooled.platform,
                    'connected': pooled.is_connected,
                    'use_count': pooled.use_count,
                    'idle_seconds': round(pooled.idle_seconds(now), 1),
                    'proxy': mask_proxy_credentials(pooled.proxy),
                }
                for key, pooled in self._browsers.items()
            },
            'sweeper_running': self._sweeper_task is not None and not self._sweeper_task.done(),
            **self.stats,
        }
