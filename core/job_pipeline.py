"""
Scraping Pipeline - search a platform, extract postings, deduplicate, store.

Flow per run:
1. Launch a disposable browser owned by this run (never the application
   browser, never another run's)
2. Open the search URL, dismiss popups, scroll and extract listings
3. Retry the whole browser attempt on failure, with a fresh page each time
4. Deduplicate against the store by (platform, url) or (platform, external id)
5. Close the disposable browser
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional

from api.logging_config import log_scrape
from .errors import StoreError
from .models import JobPosting, ScrapeResult, SearchCriteria
from .retry import RetryConfig, log_retry, with_retry

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """Configuration for the scraping pipeline."""
    max_retries: Optional[int] = None  # None: per-platform budget from RetryConfig
    retry_min_delay: float = 3.0
    retry_max_delay: float = 5.0
    sample_size: int = 5

    @classmethod
    def from_app_config(cls, app_config) -> "PipelineConfig":
        return cls(
            max_retries=app_config.SCRAPE_MAX_RETRIES,
            retry_min_delay=app_config.SCRAPE_RETRY_MIN_DELAY,
            retry_max_delay=app_config.SCRAPE_RETRY_MAX_DELAY,
        )

    def retries_for(self, platform: str) -> int:
        """Extra attempts after the first one."""
        budget = self.max_retries if self.max_retries is not None else RetryConfig.scrape_retries(platform)
        return max(0, budget - 1)


class ScrapingPipeline:
    """
    Scrapes one platform search into the job store.

    Usage:
        pipeline = ScrapingPipeline(pool, store, proxy_manager, create_adapter)
        result = await pipeline.run("indeed", SearchCriteria("backend engineer", "us"))
    """

    def __init__(self, pool, store, proxy_manager, adapter_factory: Callable, config: Optional[PipelineConfig] = None):
        self.pool = pool
        self.store = store
        self.proxy_manager = proxy_manager
        self.adapter_factory = adapter_factory
        self.config = config or PipelineConfig()

    @staticmethod
    def session_key(platform: str) -> str:
        """Pool key owned by a single run; retries within the run share it."""
        return f"{platform}:scrape:{uuid.uuid4().hex[:12]}"

    async def run(self, platform: str, criteria: SearchCriteria) -> ScrapeResult:
        adapter = self.adapter_factory(platform)
        key = self.session_key(platform)
        started = time.monotonic()
        attempts = 0

        async def attempt() -> List[JobPosting]:
            nonlocal attempts
            attempts += 1
            # First attempt gets a brand-new browser; retries reuse it with a fresh page
            _, context, page = await self.pool.acquire(
                platform,
                reuse_existing=attempts > 1,
                proxy=self.proxy_manager.next(),
                key=key,
            )
            try:
                return await self._scrape_once(adapter, page, criteria)
            finally:
                await self.pool.release_page_and_context(context, page)

        logger.info(f"Scraping {platform} for '{criteria.keywords}' (quantity {criteria.quantity})")
        try:
            jobs = await with_retry(
                attempt,
                retries=self.config.retries_for(platform),
                min_delay=self.config.retry_min_delay,
                max_delay=self.config.retry_max_delay,
                on_retry=log_retry(f"Scrape of {platform}"),
            )
        finally:
            await self.pool.close_session(key)

        result = ScrapeResult(platform=platform, keywords=criteria.keywords, attempts=attempts)
        await self._persist(jobs, result)
        result.execution_time = time.monotonic() - started
        log_scrape(platform, result.total_jobs, result.new_jobs, result.duplicates, result.execution_time)
        return result

    async def _scrape_once(self, adapter, page, criteria: SearchCriteria) -> List[JobPosting]:
        url = adapter.generate_search_url(criteria)
        logger.debug(f"Opening search page {url}")
        await adapter.actions.goto(page, url)
        await adapter.actions.delay()
        await adapter.dismiss_modals(page)
        return await adapter.scrape_listings(page, criteria)

    async def find_existing(self, job: JobPosting) -> Optional[JobPosting]:
        existing = await self.store.find_job_by_platform_and_url(job.platform, job.url)
        if existing is None and job.external_id:
            existing = await self.store.find_job_by_platform_and_external_id(job.platform, job.external_id)
        return existing

    async def _persist(self, jobs: List[JobPosting], result: ScrapeResult):
        result.total_jobs = len(jobs)
        for job in jobs:
            try:
                if await self.find_existing(job) is not None:
                    result.duplicates += 1
                    continue
                await self.store.insert_job(job)
            except StoreError as e:
                result.failed_writes += 1
                logger.warning(f"Skipping job {job.url}: {e}")
                continue

            result.new_jobs += 1
            if len(result.sample_titles) < self.config.sample_size:
                result.sample_titles.append(job.sample_title)

