"""
LinkedIn Platform Adapter
Handles job search scraping and Easy Apply on LinkedIn.
"""

import logging
import re
import urllib.parse
from typing import Any, Optional, Tuple

from playwright.async_api import Page

from api.config import COUNTRY_NAMES, LINKEDIN_GEO_IDS, resolve_country
from core.models import SearchCriteria
from .base import (
    ApplySelectors,
    ListingSelectors,
    LoginSelectors,
    PlatformAdapter,
    normalize_job_type,
    normalize_seniority,
)
from .form_runner import StepControls

logger = logging.getLogger(__name__)

SEARCH_URL = "https://www.linkedin.com/jobs/search/"

# f_WT workplace type
WORKPLACE_TYPES = {"onsite": "1", "remote": "2", "hybrid": "3"}

# f_E experience level
EXPERIENCE_LEVELS = {"junior": "1,2", "middle": "3,4", "senior": "5,6"}

# f_JT job type
JOB_TYPES = {"fulltime": "F", "parttime": "P", "contract": "C"}

_JOB_ID_PATTERNS = (
    re.compile(r"/jobs/view/(?:[^/?#]*?-)?(\d+)"),
    re.compile(r"currentJobId=(\d+)"),
    re.compile(r"urn:li:jobPosting:(\d+)"),
)


def parse_job_id(value: Optional[str]) -> Optional[str]:
    """Extract the numeric LinkedIn job id from a URL or entity URN."""
    if not value:
        return None
    for pattern in _JOB_ID_PATTERNS:
        match = pattern.search(value)
        if match:
            return match.group(1)
    return None


def job_view_url(job_id: str) -> str:
    return f"https://www.linkedin.com/jobs/view/{job_id}/"


class LinkedInAdapter(PlatformAdapter):
    """LinkedIn adapter with Easy Apply support."""

    platform = "linkedin"
    display_name = "LinkedIn"
    base_url = "https://www.linkedin.com"
    login_url = "https://www.linkedin.com/login"

    listing_selectors = ListingSelectors(
        list_container=".jobs-search__results-list, .scaffold-layout__list",
        card=".jobs-search__results-list > li, li.jobs-search-results__list-item",
        title=".base-search-card__title, .job-card-list__title",
        company=".base-search-card__subtitle, .job-card-container__primary-description",
        location=".job-search-card__location, .job-card-container__metadata-item",
        description=".show-more-less-html__markup, .jobs-description__content",
        salary=".job-search-card__salary-info",
        load_more=".infinite-scroller__show-more-button--visible",
    )

    login_selectors = LoginSelectors(
        logged_in_marker="div.global-nav__me, img.global-nav__me-photo",
        username="#username",
        password="#password",
        submit="button[type='submit'], .btn__primary--large",
        error=".alert-content, #error-for-password, #error-for-username",
    )

    apply_selectors = ApplySelectors(
        job_page_marker=".job-details-jobs-unified-top-card__container--two-pane, .jobs-unified-top-card, .top-card-layout",
        apply_button="button.jobs-apply-button",
        already_applied=".jobs-s-apply__applied-date, .artdeco-inline-feedback--success .jobs-s-apply",
        external_apply="button.jobs-apply-button[role='link'], a.apply-button--link",
        controls=StepControls(
            continue_button="button[aria-label='Continue to next step']",
            review_button="button[aria-label='Review your application']",
            submit_button="button[aria-label='Submit application']",
            success=".artdeco-inline-feedback--success, .jpac-modal-header, h2#post-apply-modal",
            error=".artdeco-inline-feedback--error",
            form_container=".jobs-easy-apply-content, .jobs-easy-apply-modal",
        ),
    )

    modal_selectors = (
        (".artdeco-global-alert--COOKIE_CONSENT", "button[action-type='DENY']"),
        (".contextual-sign-in-modal", ".contextual-sign-in-modal__modal-dismiss"),
        (".artdeco-modal", ".artdeco-modal__dismiss"),
    )

    def generate_search_url(self, criteria: SearchCriteria) -> str:
        """Build LinkedIn search URL."""
        params = {"keywords": criteria.keywords}

        country_code = resolve_country(criteria.country)
        if country_code:
            params["location"] = COUNTRY_NAMES[country_code]
            params["geoId"] = LINKEDIN_GEO_IDS[country_code]
        elif criteria.country:
            # LinkedIn resolves free-text locations itself
            params["location"] = criteria.country

        job_type = normalize_job_type(criteria.job_type)
        if job_type in WORKPLACE_TYPES:
            params["f_WT"] = WORKPLACE_TYPES[job_type]
        elif job_type in JOB_TYPES:
            params["f_JT"] = JOB_TYPES[job_type]

        seniority = normalize_seniority(criteria.seniority)
        if seniority:
            params["f_E"] = EXPERIENCE_LEVELS[seniority]

        params["sortBy"] = "R"
        return f"{SEARCH_URL}?{urllib.parse.urlencode(params)}"

    async def _submit_credentials(self, page: Page):
        selectors = self.login_selectors
        await self.actions.goto(page, self.login_url)
        await self._fill_required(page, selectors.username, self.credentials.username, "Username")
        await self._fill_required(page, selectors.password, self.credentials.password, "Password")
        await self.actions.click(page, selectors.submit)

    async def _listing_identity(self, card: Any, criteria: SearchCriteria) -> Tuple[Optional[str], Optional[str]]:
        href = await self.actions.get_attribute(card, "a.base-card__full-link, a.job-card-container__link, a", "href")
        job_id = parse_job_id(href)
        if job_id is None:
            job_id = parse_job_id(await card.get_attribute("data-entity-urn"))
        if job_id is None:
            inner = await self.actions.get_attribute(card, "[data-entity-urn]", "data-entity-urn")
            job_id = parse_job_id(inner)

        if job_id:
            return job_id, job_view_url(job_id)
        if href:
            return None, urllib.parse.urljoin(self.base_url, href.split("?")[0])
        return None, None
