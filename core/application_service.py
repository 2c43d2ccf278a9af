"""
Application Service - apply to scraped jobs through the platform adapters.

Per job:
1. Resolve the platform (explicit, or detected from the job URL host)
2. Mark the job in_progress before touching the browser
3. Reuse the platform's long-lived browser, logging in when needed
4. Open the job page and run the adapter's multi-step form
5. Screenshot, persist the outcome and release the page, whatever happened
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional, Union

from api.logging_config import log_application
from .errors import (
    ApplicationError,
    AutomationError,
    LoginError,
    StoreError,
    UnsupportedPlatformError,
    wrap_error,
)
from .models import (
    ApplicantProfile,
    ApplicationAttempt,
    ApplicationPayload,
    ApplicationResult,
    BatchResult,
    JobFilter,
    JobPosting,
    JobStatus,
    ProbeResult,
)

logger = logging.getLogger(__name__)

JobLike = Union[JobPosting, Dict[str, Any]]


async def notify_quietly(send: Callable, *args) -> bool:
    """Call a notifier method; its failures are logged and never reach the caller."""
    try:
        return bool(await send(*args))
    except Exception as e:
        logger.warning(f"Notification via {getattr(send, '__name__', send)} failed: {e}")
        return False


def coerce_job(job: JobLike) -> JobPosting:
    """Accept a JobPosting or a plain dict (API payloads, YAML files)."""
    if isinstance(job, JobPosting):
        return job
    return JobPosting(
        id=job.get("id"),
        platform=(job.get("platform") or "").lower(),
        url=job.get("url") or "",
        title=job.get("title") or "",
        company=job.get("company") or "",
        location=job.get("location") or "",
        description=job.get("description") or "",
        external_id=job.get("external_id") or job.get("externalId"),
    )


class ApplicationOrchestrator:
    """
    Applies to jobs one at a time.

    Usage:
        service = ApplicationOrchestrator(pool, store, notifier, screenshots, create_adapter)
        result = await service.apply_to_one(job, profile)
    """

    def __init__(
        self,
        pool,
        store,
        notifier,
        screenshots,
        adapter_factory: Callable,
        proxy_manager=None,
        platform_detector: Optional[Callable[[str], Optional[str]]] = None,
        profile: Optional[ApplicantProfile] = None,
    ):
        self.pool = pool
        self.store = store
        self.notifier = notifier
        self.screenshots = screenshots
        self.adapter_factory = adapter_factory
        self.proxy_manager = proxy_manager
        self.platform_detector = platform_detector
        self.profile = profile or ApplicantProfile()

    @staticmethod
    def check_key(platform: str) -> str:
        return f"{platform}:check:{uuid.uuid4().hex[:12]}"

    def resolve_platform(self, job: JobPosting) -> str:
        if not job.url:
            raise ApplicationError(job.id, "Job has no URL")
        platform = job.platform
        if not platform and self.platform_detector is not None:
            platform = self.platform_detector(job.url)
        if not platform:
            raise UnsupportedPlatformError(f"Cannot detect platform from URL: {job.url}")
        return platform

    async def _store_call(self, what: str, operation) -> Any:
        """Run a store write; failures are logged and never reverse browser work."""
        try:
            return await operation
        except StoreError as e:
            logger.warning(f"Store {what} failed: {e}")
            return None

    # === Single job ===

    async def apply_to_one(self, job: JobLike, profile: Optional[ApplicantProfile] = None) -> ApplicationResult:
        """Apply to a single job. Failures are reported by notify_error, successes by an outcome summary."""
        result = await self._apply_one(job, profile)
        if result.succeeded:
            summary = BatchResult(finished_at=datetime.utcnow())
            summary.add(result)
            await notify_quietly(self.notifier.notify_outcome, summary.to_dict())
        return result

    async def _apply_one(self, job: JobLike, profile: Optional[ApplicantProfile]) -> ApplicationResult:
        job = coerce_job(job)
        profile = profile or self.profile

        try:
            platform = self.resolve_platform(job)
            adapter = self.adapter_factory(platform)
        except AutomationError as e:
            return await self._reject(job, e)

        attempt = ApplicationAttempt(
            job_id=job.id,
            platform=platform,
            status=JobStatus.IN_PROGRESS.value,
            resume_used=profile.resume_path,
        )
        if job.id:
            await self._store_call("status update", self.store.update_job_status(
                job.id, JobStatus.IN_PROGRESS.value, {"startedAt": attempt.started_at.isoformat()}
            ))

        logger.info(f"Applying to {job.url} on {platform}")
        context = page = None
        try:
            proxy = self.proxy_manager.next() if self.proxy_manager else None
            _, context, page = await self.pool.acquire(platform, reuse_existing=True, proxy=proxy)

            if adapter.requires_login:
                await adapter.actions.goto(page, adapter.base_url)
                if not await adapter.check_login(page):
                    await adapter.login(page)

            await adapter.actions.goto(page, job.url)
            await adapter.actions.delay()
            submitted = await adapter.apply_to_job(page, ApplicationPayload(job=job, profile=profile))
            if not submitted:
                raise ApplicationError(job.id, "Application was not submitted")

            attempt.status = JobStatus.APPLIED.value
            attempt.screenshot_path = await self.screenshots.capture(page, platform, "success", job.id)
        except Exception as e:
            error = wrap_error(e, "Application failed")
            attempt.status = JobStatus.FAILED.value
            attempt.error_message = str(error)
            logger.error(f"Application to {job.url} failed: {error}")
            if page is not None:
                attempt.screenshot_path = await self.screenshots.capture(page, platform, "error", job.id)
            await notify_quietly(self.notifier.notify_error, "job_application", str(error), {
                "jobId": job.id,
                "platform": platform,
                "url": job.url,
                "code": error.code,
            })
        finally:
            await self.pool.release_page_and_context(context, page)
            attempt.finished_at = datetime.utcnow()
            await self._record(job, attempt)

        log_application(job.id, platform, attempt.status, attempt.error_message)
        return ApplicationResult(
            job_id=job.id,
            platform=platform,
            status=attempt.status,
            url=job.url,
            screenshot_path=attempt.screenshot_path,
            error_message=attempt.error_message,
        )

    async def _reject(self, job: JobPosting, error: AutomationError) -> ApplicationResult:
        """Fail a job before any browser work (no platform, unsupported platform)."""
        logger.error(f"Rejected job {job.id or job.url}: {error}")
        if job.id:
            await self._store_call("status update", self.store.update_job_status(
                job.id, JobStatus.FAILED.value, {"error": str(error)}
            ))
        await notify_quietly(self.notifier.notify_error, "job_application", str(error), {"jobId": job.id, "url": job.url})
        log_application(job.id, job.platform or "unknown", JobStatus.FAILED.value, str(error))
        return ApplicationResult(
            job_id=job.id,
            platform=job.platform or None,
            status=JobStatus.FAILED.value,
            url=job.url or None,
            error_message=str(error),
        )

    async def _record(self, job: JobPosting, attempt: ApplicationAttempt):
        details = {
            "status": attempt.status,
            "screenshotPath": attempt.screenshot_path,
            "errorMessage": attempt.error_message,
            "finishedAt": attempt.finished_at.isoformat() if attempt.finished_at else None,
        }
        if job.id:
            await self._store_call("status update", self.store.update_job_status(job.id, attempt.status, details))
        await self._store_call("application record", self.store.insert_application_record(attempt))
        await self._store_call("stats update", self.store.increment_stats(attempt.platform, attempt.status))

    # === Batches ===

    async def apply_to_many(self, jobs: Iterable[JobLike], profile: Optional[ApplicantProfile] = None) -> BatchResult:
        """Apply sequentially; one job's failure never stops the batch."""
        batch = BatchResult()
        for job in jobs:
            batch.add(await self._apply_one(job, profile))
        batch.finished_at = datetime.utcnow()

        logger.info(f"Batch finished: {batch.success_count} applied, {batch.failed_count} failed")
        await notify_quietly(self.notifier.notify_outcome, batch.to_dict())
        return batch

    async def apply_by_filter(self, job_filter: JobFilter, profile: Optional[ApplicantProfile] = None) -> BatchResult:
        page = await self.store.query_jobs_by_filter(job_filter)
        if not page.items:
            batch = BatchResult(finished_at=datetime.utcnow(), message="No jobs matched the filter")
            logger.info(batch.message)
            return batch
        logger.info(f"Applying to {len(page.items)} of {page.total} matching jobs")
        return await self.apply_to_many(page.items, profile)

    # === Platform check ===

    async def test_platform(self, platform: str) -> ProbeResult:
        """Open the platform, check (or perform) login and take a screenshot; never applies."""
        adapter = self.adapter_factory(platform)
        key = self.check_key(platform)
        result = ProbeResult(platform=platform, status="error")
        context = page = None
        try:
            proxy = self.proxy_manager.next() if self.proxy_manager else None
            _, context, page = await self.pool.acquire(platform, reuse_existing=False, proxy=proxy, key=key)
            await adapter.actions.goto(page, adapter.base_url)
            await adapter.actions.delay()

            result.is_logged_in = await adapter.check_login(page)
            if not result.is_logged_in and adapter.requires_login:
                try:
                    result.is_logged_in = await adapter.login(page)
                except LoginError as e:
                    result.message = f"Login failed: {e.message}"

            result.screenshot_path = await self.screenshots.capture(page, platform, "test", "check")
            result.status = "success"
            if not result.message:
                result.message = "Logged in" if result.is_logged_in else "Reachable, not logged in"
        except Exception as e:
            logger.error(f"Platform test for {platform} failed: {e}")
            result.message = str(e)
            if page is not None:
                result.screenshot_path = await self.screenshots.capture(page, platform, "test_error", "check")
        finally:
            await self.pool.release_page_and_context(context, page)
            await self.pool.close_session(key)

        logger.info(f"Platform test {platform}: {result.status} ({result.message})")
        return result
