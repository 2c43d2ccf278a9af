"""
Indeed Platform Adapter
Handles job search scraping and Indeed Apply.
"""

import logging
import urllib.parse
from typing import Any, Optional, Tuple

from playwright.async_api import Page

from api.config import INDEED_DEFAULT_DOMAIN, INDEED_DOMAINS, INDEED_REMOTE_FILTER, resolve_country
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

EXPERIENCE_LEVELS = {"junior": "entry_level", "middle": "mid_level", "senior": "senior_level"}

JOB_TYPES = {"fulltime": "fulltime", "parttime": "parttime", "contract": "contract"}


def indeed_domain(country: Optional[str]) -> str:
    """Country-specific Indeed host; unknown countries use www.indeed.com."""
    code = resolve_country(country)
    return INDEED_DOMAINS.get(code, INDEED_DEFAULT_DOMAIN) if code else INDEED_DEFAULT_DOMAIN


def view_job_url(domain: str, job_key: str) -> str:
    return f"https://{domain}/viewjob?jk={job_key}"


class IndeedAdapter(PlatformAdapter):
    """Indeed adapter with Indeed Apply support."""

    platform = "indeed"
    display_name = "Indeed"
    base_url = "https://www.indeed.com"
    login_url = "https://secure.indeed.com/account/login"

    listing_selectors = ListingSelectors(
        list_container="#mosaic-provider-jobcards, #mosaic-jobResults",
        card=".job_seen_beacon",
        title="h2.jobTitle span[title], h2.jobTitle span",
        company="[data-testid='company-name'], span.companyName",
        location="[data-testid='text-location'], div.companyLocation",
        description="#jobDescriptionText",
        salary="div.salary-snippet-container, [data-testid='attribute_snippet_testid']",
    )

    login_selectors = LoginSelectors(
        logged_in_marker="[data-gnav-element-name='AccountMenu'], #AccountMenu",
        username="input[type='email'], #ifl-InputFormField-3",
        password="input[type='password'], #ifl-InputFormField-7",
        submit="button[type='submit']",
        continue_button="button[type='submit']",
        error=".auth-page-formError, [data-testid='auth-page-error']",
    )

    apply_selectors = ApplySelectors(
        job_page_marker=".jobsearch-JobInfoHeader-title, .jobsearch-JobInfoHeader",
        apply_button="#indeedApplyButton, .jobsearch-IndeedApplyButton-contentWrapper",
        already_applied=".jobsearch-IndeedApplyButton--applied, [data-testid='applied-badge']",
        external_apply="#applyButtonLinkContainer a, a[id='applyButtonLinkContainer']",
        controls=StepControls(
            continue_button="button:has-text('Continue')",
            review_button="button:has-text('Review your application'), button:has-text('Review')",
            submit_button="button:has-text('Submit your application'), button:has-text('Submit application')",
            success=".ia-PostApply-header, .ia-JobApplication-success, h1:has-text('Your application has been submitted')",
            error=".ia-JobApplication-error, .css-error-message",
            form_container="#ia-container, .ia-BasePage",
        ),
    )

    modal_selectors = (
        ("#onetrust-banner-sdk", "#onetrust-reject-all-handler"),
        ("#mosaic-desktopserpjapopup", "button[aria-label='close']"),
        ("[role='dialog'] button[aria-label='close']", "[role='dialog'] button[aria-label='close']"),
    )

    def generate_search_url(self, criteria: SearchCriteria) -> str:
        """Build Indeed search URL on the country's domain."""
        params = {"q": criteria.keywords}

        job_type = normalize_job_type(criteria.job_type)
        if job_type == "remote":
            params["remotejob"] = INDEED_REMOTE_FILTER
        elif job_type in JOB_TYPES:
            params["jt"] = JOB_TYPES[job_type]

        seniority = normalize_seniority(criteria.seniority)
        if seniority:
            params["explvl"] = EXPERIENCE_LEVELS[seniority]

        return f"https://{indeed_domain(criteria.country)}/jobs?{urllib.parse.urlencode(params)}"

    async def _submit_credentials(self, page: Page):
        selectors = self.login_selectors
        await self.actions.goto(page, self.login_url)
        await self._fill_required(page, selectors.username, self.credentials.username, "Email")
        # Email and password are separate steps
        await self.actions.click(page, selectors.continue_button)
        await self.actions.delay(1.5, 3.0)
        await self._fill_required(page, selectors.password, self.credentials.password, "Password")
        await self.actions.click(page, selectors.submit)

    async def _listing_identity(self, card: Any, criteria: SearchCriteria) -> Tuple[Optional[str], Optional[str]]:
        job_key = await self.actions.get_attribute(card, "a[data-jk]", "data-jk")
        if not job_key:
            job_key = await card.get_attribute("data-jk")
        if not job_key:
            return None, None
        return job_key, view_job_url(indeed_domain(criteria.country), job_key)
