"""
Core components for job scraping and application automation.

Modules:
- browser_pool: One pooled Playwright browser per platform, with idle sweep
- proxy_manager: Round-robin / random proxy selection
- retry: Bounded retries with randomized delays
- job_pipeline: Scrape, deduplicate and store job postings
- application_service: Log in, apply and record the outcome
- orchestrator: Ties everything together
"""

from .errors import (
    AutomationError,
    BrowserError,
    PlatformError,
    ApplicationError,
    StoreError,
)
from .proxy_manager import ProxyManager
from .retry import with_retry, RetryConfig
from .browser_pool import BrowserPool

__all__ = [
    "AutomationError",
    "BrowserError",
    "PlatformError",
    "ApplicationError",
    "StoreError",
    "ProxyManager",
    "with_retry",
    "RetryConfig",
    "BrowserPool",
]
