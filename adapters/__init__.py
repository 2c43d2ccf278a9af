"""
Job Platform Adapters
Unified interface for scraping and applying to jobs across platforms.
Supports: LinkedIn, Indeed, Glassdoor.
"""

from typing import Dict, List, Optional, Type
from urllib.parse import urlparse

from api.config import get_config
from core.errors import UnsupportedPlatformError
from .actions import PageActions
from .base import PlatformAdapter, normalize_job_type, normalize_seniority, scroll_rounds
from .form_runner import FormStepFiller, MultiStepFormRunner, StepControls
from .glassdoor import GlassdoorAdapter
from .indeed import IndeedAdapter
from .linkedin import LinkedInAdapter


ADAPTERS: Dict[str, Type[PlatformAdapter]] = {
    "linkedin": LinkedInAdapter,
    "indeed": IndeedAdapter,
    "glassdoor": GlassdoorAdapter,
}

# Registrable domain labels per platform (any subdomain or country TLD)
PLATFORM_DOMAINS = {
    "linkedin": "linkedin",
    "indeed": "indeed",
    "glassdoor": "glassdoor",
}

_SECOND_LEVEL_SUFFIXES = {"co", "com", "org", "net", "ac", "gov"}


def supported_platforms() -> List[str]:
    return list(ADAPTERS)


def detect_platform(url: Optional[str]) -> Optional[str]:
    """
    Detect platform from a job URL host.

    Matches linkedin.com, uk.indeed.com, www.glassdoor.co.uk and the like;
    returns None for anything else.
    """
    if not url:
        return None
    host = urlparse(url if "://" in url else f"https://{url}").hostname or ""
    labels = host.lower().split(".")
    if len(labels) < 2:
        return None

    # example.co.uk -> example
    name = labels[-2]
    if name in _SECOND_LEVEL_SUFFIXES and len(labels) >= 3:
        name = labels[-3]

    for platform, domain in PLATFORM_DOMAINS.items():
        if name == domain:
            return platform
    return None


def get_adapter_class(platform: str) -> Optional[Type[PlatformAdapter]]:
    return ADAPTERS.get((platform or "").lower())


def create_adapter(platform: str, app_config=None, actions: Optional[PageActions] = None) -> PlatformAdapter:
    """Build the adapter for a platform with credentials and limits from config."""
    adapter_class = get_adapter_class(platform)
    if adapter_class is None:
        raise UnsupportedPlatformError(f"Unsupported platform: {platform}")

    app_config = app_config or get_config()
    return adapter_class(
        credentials=app_config.platform_credentials(adapter_class.platform),
        actions=actions or PageActions.from_config(app_config),
        max_form_steps=app_config.MAX_APPLICATION_STEPS,
        selector_timeout_ms=app_config.SELECTOR_TIMEOUT_MS,
        max_scroll_rounds=app_config.MAX_SCROLL_ROUNDS,
    )


__all__ = [
    "PlatformAdapter",
    "PageActions",
    "FormStepFiller",
    "MultiStepFormRunner",
    "StepControls",
    "LinkedInAdapter",
    "IndeedAdapter",
    "GlassdoorAdapter",
    "ADAPTERS",
    "detect_platform",
    "supported_platforms",
    "get_adapter_class",
    "create_adapter",
    "normalize_job_type",
    "normalize_seniority",
    "scroll_rounds",
]
