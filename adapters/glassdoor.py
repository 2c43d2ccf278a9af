"""
Glassdoor Platform Adapter
Handles job search scraping and Glassdoor Easy Apply.
"""

import logging
import re
import urllib.parse
from typing import Any, Optional, Tuple

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from api.config import COUNTRY_NAMES, resolve_country
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

SEARCH_URL = "https://www.glassdoor.com/Job/jobs.htm"

SENIORITY_TYPES = {"junior": "entrylevel", "middle": "midlevel", "senior": "senior"}

JOB_TYPES = {"fulltime": "fulltime", "parttime": "parttime", "contract": "contract"}

_JOB_LISTING_ID = re.compile(r"[?&]jl=(\d+)")


def parse_listing_id(href: Optional[str]) -> Optional[str]:
    if not href:
        return None
    match = _JOB_LISTING_ID.search(href)
    return match.group(1) if match else None


class GlassdoorAdapter(PlatformAdapter):
    """Glassdoor adapter with Easy Apply support."""

    platform = "glassdoor"
    display_name = "Glassdoor"
    base_url = "https://www.glassdoor.com"
    login_url = "https://www.glassdoor.com/profile/login_input.htm"

    listing_selectors = ListingSelectors(
        list_container="ul[aria-label='Jobs List'], ul.JobsList_jobsList__Ey2Vo",
        card="li[data-test='jobListing'], li.JobsList_jobListItem__JBBUV",
        title="a[data-test='job-title'], a.JobCard_jobTitle__QYgYP",
        company=".EmployerProfile_compactEmployerName__9MGcV, a.JobCard_companyInfo__6lVeA",
        location="[data-test='emp-location'], .JobCard_location__N_iYE",
        description=".JobDetails_jobDescription__uW_fK, .JobDetails_jobDescriptionWrapper__BTDH5",
        salary="[data-test='detailSalary'], .JobCard_salaryEstimate__NRTbj",
        load_more="button[data-test='load-more']",
    )

    login_selectors = LoginSelectors(
        logged_in_marker="[data-test='user-profile-dropdown'], .member-home",
        username="#inlineUserEmail, #modalUserEmail",
        password="#inlineUserPassword, #modalUserPassword",
        submit="button[type='submit']",
        continue_button="button[data-test='email-form-button']",
        error="[data-test='auth-error'], .errorMessage",
    )

    apply_selectors = ApplySelectors(
        job_page_marker="[data-test='job-details-header'], .JobDetails_jobDetailsHeader__Hd9M3",
        apply_button="button[data-test='easyApply'], .applyButton",
        already_applied="[data-test='applied-button']",
        external_apply="button[data-test='applyButton'], .job-apply",
        controls=StepControls(
            continue_button="button:has-text('Continue')",
            review_button="button:has-text('Review')",
            submit_button="button:has-text('Submit Application'), button:has-text('Submit your application')",
            success=".ia-PostApply-header, [data-test='application-success']",
            error=".ia-JobApplication-error, [data-test='application-error']",
            form_container="#ia-container, .ia-BasePage",
        ),
    )

    modal_selectors = (
        ("#onetrust-banner-sdk", "#onetrust-accept-btn-handler"),
        ("[data-test='authModalContainerV2-content']", "button.CloseButton"),
        ("button[data-test='modal-close-btn']", "button[data-test='modal-close-btn']"),
        (".ReactModal__Content", ".modal_closeIcon"),
    )

    def generate_search_url(self, criteria: SearchCriteria) -> str:
        """Build Glassdoor search URL."""
        params = {"sc.keyword": criteria.keywords}

        country_code = resolve_country(criteria.country)
        if country_code:
            params["loc"] = COUNTRY_NAMES[country_code]
        elif criteria.country:
            params["loc"] = criteria.country

        job_type = normalize_job_type(criteria.job_type)
        if job_type == "remote":
            params["jobType"] = "remote"
        elif job_type in JOB_TYPES:
            params["jobType"] = JOB_TYPES[job_type]

        seniority = normalize_seniority(criteria.seniority)
        if seniority:
            params["seniorityType"] = SENIORITY_TYPES[seniority]

        return f"{SEARCH_URL}?{urllib.parse.urlencode(params)}"

    async def _submit_credentials(self, page: Page):
        selectors = self.login_selectors
        await self.actions.goto(page, self.login_url)
        await self._fill_required(page, selectors.username, self.credentials.username, "Email")
        if await self.actions.element_exists(page, selectors.continue_button):
            await self.actions.click(page, selectors.continue_button)
            await self.actions.delay(1.5, 3.0)
        await self._fill_required(page, selectors.password, self.credentials.password, "Password")
        await self.actions.click(page, selectors.submit)

    async def _listing_identity(self, card: Any, criteria: SearchCriteria) -> Tuple[Optional[str], Optional[str]]:
        href = await self.actions.get_attribute(card, self.listing_selectors.title, "href")
        listing_id = await card.get_attribute("data-jobid") or parse_listing_id(href)
        if not href:
            return listing_id, None
        return listing_id, urllib.parse.urljoin(self.base_url, href)

    async def _open_application(self, page: Page) -> Page:
        # Easy Apply usually opens in a new tab
        try:
            async with page.context.expect_page(timeout=8000) as new_page_info:
                await page.locator(self.apply_selectors.apply_button).first.click(
                    timeout=self.actions.click_timeout_ms
                )
            form_page = await new_page_info.value
            await form_page.wait_for_load_state("domcontentloaded")
            logger.debug(f"{self.log_prefix} Application opened in a new tab")
            return form_page
        except PlaywrightTimeoutError:
            await self.actions.delay()
            return page
