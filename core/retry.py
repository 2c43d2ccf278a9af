"""
Retry utilities for browser automation.

with_retry() wraps a coroutine factory with bounded attempts and a
randomized pause between them.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar('T')

logger = logging.getLogger(__name__)

OnRetry = Callable[[BaseException, int, float], None]


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    retries: int = 3,
    min_delay: float = 1.0,
    max_delay: float = 3.0,
    on_retry: Optional[OnRetry] = None,
    exceptions: tuple = (Exception,),
) -> T:
    """
    Run operation, retrying on failure.

    Args:
        operation: Zero-argument callable returning an awaitable
        retries: Extra attempts after the first (total attempts = retries + 1)
        min_delay: Lower bound of the pause between attempts (seconds)
        max_delay: Upper bound of the pause between attempts (seconds)
        on_retry: Observer called as on_retry(error, attempt, delay) before each pause
        exceptions: Exception types that trigger a retry

    Raises:
        The last error once every attempt has failed.
    """
    last_exception: Optional[BaseException] = None

    for attempt in range(retries + 1):
        try:
            return await operation()
        except exceptions as e:
            last_exception = e
            if attempt >= retries:
                break
            delay = random.uniform(min_delay, max(min_delay, max_delay))
            if on_retry:
                try:
                    on_retry(e, attempt + 1, delay)
                except Exception as hook_error:
                    logger.debug(f"on_retry hook failed: {hook_error}")
            await asyncio.sleep(delay)

    raise last_exception


def log_retry(label: str) -> OnRetry:
    """Build an on_retry hook that logs attempts under a label."""
    def hook(error: BaseException, attempt: int, delay: float):
        logger.warning(f"{label} failed (attempt {attempt}): {error}. Retrying in {delay:.1f}s")
    return hook


class RetryConfig:
    """Configuration for retry behavior"""

    # Default settings
    DEFAULT_MAX_RETRIES = 3

    # Platform-specific scrape budgets
    INDEED_RETRIES = 3
    GLASSDOOR_RETRIES = 3
    LINKEDIN_RETRIES = 2  # LinkedIn flags repeated loads faster, fewer retries

    @classmethod
    def scrape_retries(cls, platform: str) -> int:
        """Total scrape attempts for a platform."""
        return getattr(cls, f"{platform.upper()}_RETRIES", cls.DEFAULT_MAX_RETRIES)
