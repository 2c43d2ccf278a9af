"""
Job Orchestrator - Ties all components together behind one caller surface.

Usage:
    orchestrator = JobOrchestrator()
    await orchestrator.start()
    result = await orchestrator.scrape("indeed", "backend engineer", country="us")
    batch = await orchestrator.apply_by_filter(JobFilter(platform="indeed"))
    await orchestrator.shutdown()
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from adapters import create_adapter, detect_platform, supported_platforms
from api.config import AppConfig, get_config
from api.database import JobStore
from monitoring.notifications import NotificationConfig, NotificationManager
from .application_service import ApplicationOrchestrator, JobLike, notify_quietly
from .browser_pool import BrowserPool
from .errors import UnsupportedPlatformError, ValidationError, wrap_error
from .job_pipeline import PipelineConfig, ScrapingPipeline
from .models import (
    ApplicantProfile,
    ApplicationResult,
    BatchResult,
    JobFilter,
    ProbeResult,
    ScrapeResult,
    SearchCriteria,
    normalize_keywords,
)
from .proxy_manager import ProxyManager
from .screenshot_manager import ScreenshotManager

logger = logging.getLogger(__name__)


class JobOrchestrator:
    """
    Main entry point for scraping and applying.

    Coordinates:
    - Browser pool (one long-lived browser per platform, idle sweep)
    - Proxy rotation
    - Scraping pipeline with retries and deduplication
    - Application service with screenshots and outcome tracking
    - Job store and notifications
    """

    def __init__(
        self,
        app_config: Optional[AppConfig] = None,
        pool: Optional[BrowserPool] = None,
        store: Optional[JobStore] = None,
        notifier: Optional[NotificationManager] = None,
        profile: Optional[ApplicantProfile] = None,
    ):
        self.config = app_config or get_config()

        self.pool = pool or BrowserPool.from_config(self.config)
        self.proxy_manager = ProxyManager.from_config(self.config)
        self.store = store or JobStore(self.config.DATABASE_PATH)
        self.notifier = notifier or NotificationManager(NotificationConfig.from_app_config(self.config))
        self.screenshots = ScreenshotManager(self.config.SCREENSHOT_DIR)

        self.pipeline = ScrapingPipeline(
            self.pool,
            self.store,
            self.proxy_manager,
            self.create_adapter,
            PipelineConfig.from_app_config(self.config),
        )
        self.applications = ApplicationOrchestrator(
            self.pool,
            self.store,
            self.notifier,
            self.screenshots,
            self.create_adapter,
            proxy_manager=self.proxy_manager,
            platform_detector=detect_platform,
            profile=profile,
        )

        self._running = False
        self._stats = {
            "started_at": None,
            "scrapes": 0,
            "scrapes_failed": 0,
            "applications_submitted": 0,
            "applications_failed": 0,
        }

    def create_adapter(self, platform: str):
        return create_adapter(platform, self.config)

    # === Lifecycle ===

    async def start(self):
        """Initialize the store and start the idle browser sweeper."""
        if self._running:
            logger.warning("Orchestrator already running")
            return

        logger.info("Starting Job Orchestrator...")
        for problem in self.config.validate():
            logger.warning(f"Config: {problem}")

        await self.store.init()
        self.pool.start_idle_sweeper(
            interval_seconds=self.config.IDLE_SWEEP_INTERVAL_MINUTES * 60,
            threshold_seconds=self.config.IDLE_TIMEOUT_MINUTES * 60,
        )
        self._running = True
        self._stats["started_at"] = datetime.now()
        logger.info(f"Orchestrator ready (platforms: {', '.join(supported_platforms())})")

    async def shutdown(self):
        """Stop the sweeper and close every browser."""
        logger.info("Stopping Job Orchestrator...")
        self._running = False
        await self.pool.shutdown()
        logger.info("Orchestrator stopped")

    async def restart_browsers(self) -> int:
        """Close every pooled browser; they relaunch on next use."""
        count = len(self.pool.get_stats()["browsers"])
        await self.pool.close_all()
        logger.info(f"Restarted browser pool ({count} browsers closed)")
        return count

    # === Scraping ===

    def build_criteria(
        self,
        platform: str,
        keywords: Union[str, List[str], None],
        country: Optional[str] = None,
        job_type: Optional[str] = "Remote",
        seniority: Optional[str] = None,
        quantity: Optional[int] = None,
    ) -> SearchCriteria:
        if platform not in supported_platforms():
            raise UnsupportedPlatformError(f"Unsupported platform: {platform}")

        keywords = normalize_keywords(keywords)
        if not keywords:
            raise ValidationError("Keywords are required")

        if quantity is None:
            quantity = self.config.DEFAULT_SCRAPE_QUANTITY
        if not 1 <= quantity <= self.config.MAX_SCRAPE_QUANTITY:
            raise ValidationError(f"Quantity must be between 1 and {self.config.MAX_SCRAPE_QUANTITY}")

        return SearchCriteria(
            keywords=keywords,
            country=country,
            job_type=job_type,
            seniority=seniority,
            quantity=quantity,
        )

    async def scrape(
        self,
        platform: str,
        keywords: Union[str, List[str], None],
        country: Optional[str] = None,
        job_type: Optional[str] = "Remote",
        seniority: Optional[str] = None,
        quantity: Optional[int] = None,
    ) -> ScrapeResult:
        platform = (platform or "").lower()
        criteria = self.build_criteria(platform, keywords, country, job_type, seniority, quantity)

        try:
            result = await self.pipeline.run(platform, criteria)
        except Exception as e:
            self._stats["scrapes_failed"] += 1
            logger.error(f"Scrape of {platform} failed: {e}")
            await notify_quietly(self.notifier.notify_error, "job_scraping", str(e), {
                "platform": platform,
                "keywords": criteria.keywords,
                "country": country,
            })
            error = wrap_error(e, f"Scrape of {platform} failed")
            if error is e:
                raise
            raise error from e

        self._stats["scrapes"] += 1
        await notify_quietly(self.notifier.notify_scrape_result, result.to_dict())
        return result

    # === Applying ===

    def _track(self, result: ApplicationResult):
        if result.succeeded:
            self._stats["applications_submitted"] += 1
        else:
            self._stats["applications_failed"] += 1

    async def apply_to_one(self, job: JobLike, profile: Optional[ApplicantProfile] = None) -> ApplicationResult:
        result = await self.applications.apply_to_one(job, profile)
        self._track(result)
        return result

    async def apply_to_many(self, jobs: Iterable[JobLike], profile: Optional[ApplicantProfile] = None) -> BatchResult:
        batch = await self.applications.apply_to_many(jobs, profile)
        for result in batch.jobs:
            self._track(result)
        return batch

    async def apply_by_filter(self, job_filter: JobFilter, profile: Optional[ApplicantProfile] = None) -> BatchResult:
        batch = await self.applications.apply_by_filter(job_filter, profile)
        for result in batch.jobs:
            self._track(result)
        return batch

    async def test_platform(self, platform: str) -> ProbeResult:
        platform = (platform or "").lower()
        if platform not in supported_platforms():
            raise UnsupportedPlatformError(f"Unsupported platform: {platform}")
        return await self.applications.test_platform(platform)

    # === Introspection ===

    def get_stats(self) -> Dict[str, Any]:
        """Get current statistics."""
        return {
            **self._stats,
            "running": self._running,
            "pool": self.pool.get_stats(),
            "proxies": {
                "enabled": self.proxy_manager.active,
                "count": len(self.proxy_manager.proxies),
                "strategy": self.proxy_manager.strategy,
            },
        }

    async def status(self) -> Dict[str, Any]:
        """Health summary for the status endpoint."""
        pool_stats = self.pool.get_stats()
        return {
            "running": self._running,
            "database": "connected" if await self.store.check_connection() else "unavailable",
            "browsers": {
                key: {"connected": info["connected"], "idleSeconds": info["idle_seconds"]}
                for key, info in pool_stats["browsers"].items()
            },
            "notifications": self.notifier.enabled(),
            "platforms": supported_platforms(),
            "configProblems": self.config.validate(),
        }
