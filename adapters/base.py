"""
Base adapter interface for job platforms.
LinkedIn, Indeed and Glassdoor implement this; they differ in URLs,
selectors and how a listing's id and url are read, while the login, scrape
and apply flows are shared here.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from playwright.async_api import Page

from api.config import PlatformCredentials
from core.errors import (
    AutomationError,
    ExternalApplicationError,
    ListingsNotFoundError,
    LoginError,
    PlatformError,
)
from core.models import ApplicationPayload, JobPosting, SearchCriteria
from .actions import PageActions
from .form_runner import DEFAULT_MAX_STEPS, FormStepFiller, MultiStepFormRunner, StepControls

logger = logging.getLogger(__name__)

SENIORITY_ALIASES = {
    "junior": "junior", "entry": "junior", "entry level": "junior", "intern": "junior",
    "middle": "middle", "mid": "middle", "mid level": "middle", "intermediate": "middle",
    "senior": "senior", "lead": "senior", "principal": "senior", "staff": "senior",
}

JOB_TYPE_ALIASES = {
    "remote": "remote",
    "hybrid": "hybrid",
    "onsite": "onsite", "on-site": "onsite", "office": "onsite",
    "full-time": "fulltime", "fulltime": "fulltime", "full time": "fulltime",
    "part-time": "parttime", "parttime": "parttime", "part time": "parttime",
    "contract": "contract",
}


def normalize_seniority(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return SENIORITY_ALIASES.get(value.strip().lower().replace("_", " "))


def normalize_job_type(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return JOB_TYPE_ALIASES.get(value.strip().lower())


def scroll_rounds(quantity: int, max_rounds: int = 5) -> int:
    """Scroll rounds needed for a result count: one per ten results, bounded."""
    return max(1, min(max_rounds, math.ceil(max(quantity, 1) / 10)))


@dataclass(frozen=True)
class ListingSelectors:
    list_container: str
    card: str
    title: str
    company: str
    location: str
    description: str
    salary: Optional[str] = None
    load_more: Optional[str] = None


@dataclass(frozen=True)
class LoginSelectors:
    logged_in_marker: str
    username: str
    password: str
    submit: str
    error: Optional[str] = None
    continue_button: Optional[str] = None


@dataclass(frozen=True)
class ApplySelectors:
    job_page_marker: str
    apply_button: str
    controls: StepControls
    already_applied: Optional[str] = None
    external_apply: Optional[str] = None


class PlatformAdapter(ABC):
    """
    Abstract base class for job platform adapters.

    Subclasses provide the selectors plus generate_search_url(),
    _submit_credentials() and _listing_identity().
    """

    platform: str
    display_name: str
    requires_login: bool = True
    base_url: str
    login_url: str

    listing_selectors: ListingSelectors
    login_selectors: LoginSelectors
    apply_selectors: ApplySelectors
    # (marker, close button) pairs; the close button is clicked when the marker is visible
    modal_selectors: Sequence[Tuple[str, str]] = ()

    def __init__(
        self,
        credentials: Optional[PlatformCredentials] = None,
        actions: Optional[PageActions] = None,
        max_form_steps: int = DEFAULT_MAX_STEPS,
        selector_timeout_ms: int = 10000,
        max_scroll_rounds: int = 5,
        description_polls: int = 3,
    ):
        self.credentials = credentials or PlatformCredentials()
        self.actions = actions or PageActions()
        self.max_form_steps = max_form_steps
        self.selector_timeout_ms = selector_timeout_ms
        self.max_scroll_rounds = max_scroll_rounds
        self.description_polls = description_polls

    @property
    def log_prefix(self) -> str:
        return f"[{self.display_name}]"

    # === Search ===

    @abstractmethod
    def generate_search_url(self, criteria: SearchCriteria) -> str:
        """Build the search results URL for the criteria."""

    # === Login ===

    async def check_login(self, page: Page) -> bool:
        logged_in = await self.actions.element_exists(
            page, self.login_selectors.logged_in_marker, timeout_ms=3000
        )
        logger.debug(f"{self.log_prefix} Logged in: {logged_in}")
        return logged_in

    async def login(self, page: Page) -> bool:
        """Submit credentials once; raises LoginError if login is not confirmed."""
        if not self.credentials.complete:
            raise LoginError(self.platform, "Credentials are not configured")

        logger.info(f"{self.log_prefix} Logging in")
        try:
            await self._submit_credentials(page)
        except AutomationError:
            raise
        except Exception as e:
            raise LoginError(self.platform, f"Login form interaction failed: {e}") from e

        await self.actions.delay(2.0, 4.0)
        if await self.check_login(page):
            logger.info(f"{self.log_prefix} Login successful")
            return True

        message = "Login was not confirmed"
        if self.login_selectors.error:
            message = await self.actions.get_text(page, self.login_selectors.error, default=message)
        raise LoginError(self.platform, message)

    @abstractmethod
    async def _submit_credentials(self, page: Page):
        """Fill and submit the login form."""

    async def _fill_required(self, page: Page, selector: str, value: str, what: str):
        if not await self.actions.element_exists(page, selector, timeout_ms=self.selector_timeout_ms):
            raise LoginError(self.platform, f"{what} field not found")
        await self.actions.fill(page, selector, value)

    # === Modals ===

    async def dismiss_modals(self, page: Page):
        """Close cookie banners and sign-in popups when they are showing."""
        for marker, close_button in self.modal_selectors:
            if await self.actions.element_exists(page, marker):
                if await self.actions.click(page, close_button):
                    logger.debug(f"{self.log_prefix} Dismissed modal {marker}")

    # === Scraping ===

    async def scrape_listings(self, page: Page, criteria: SearchCriteria) -> List[JobPosting]:
        """Extract up to criteria.quantity postings from the open search page."""
        selectors = self.listing_selectors
        if not await self.actions.element_exists(
            page, selectors.list_container, timeout_ms=self.selector_timeout_ms
        ):
            raise ListingsNotFoundError(self.platform, "Job listings container not found")

        for _ in range(scroll_rounds(criteria.quantity, self.max_scroll_rounds)):
            if await self.actions.count(page, selectors.card) >= criteria.quantity:
                break
            await self.actions.scroll(page)
            await self.actions.delay()
            if selectors.load_more and await self.actions.element_exists(page, selectors.load_more):
                await self.actions.click(page, selectors.load_more)

        cards = (await page.locator(selectors.card).all())[:criteria.quantity]
        logger.info(f"{self.log_prefix} Found {len(cards)} listings")

        jobs = []
        shown_description = ""
        for index, card in enumerate(cards):
            try:
                job = await self._extract_listing(page, card, criteria, shown_description)
            except Exception as e:
                logger.debug(f"{self.log_prefix} Skipping listing {index}: {e}")
                continue
            if job is not None:
                jobs.append(job)
                shown_description = job.description or shown_description
        return jobs

    async def _extract_listing(
        self, page: Page, card: Any, criteria: SearchCriteria, shown_description: str = ""
    ) -> Optional[JobPosting]:
        selectors = self.listing_selectors
        title = await self.actions.get_text(card, selectors.title)
        external_id, url = await self._listing_identity(card, criteria)
        if not title or not url:
            return None

        company = await self.actions.get_text(card, selectors.company)
        location = await self.actions.get_text(card, selectors.location)
        salary = await self.actions.get_text(card, selectors.salary) if selectors.salary else ""

        description = ""
        try:
            description = await self._read_description(page, card, shown_description)
        except Exception as e:
            logger.debug(f"{self.log_prefix} No description for {url}: {e}")

        return JobPosting(
            platform=self.platform,
            url=url,
            title=title,
            company=company,
            location=location,
            description=description,
            salary=salary or None,
            external_id=external_id,
            raw={
                "title": title,
                "company": company,
                "location": location,
                "salary": salary,
                "external_id": external_id,
                "search_keywords": criteria.keywords,
            },
        )

    async def _read_description(self, page: Page, card: Any, shown_description: str) -> str:
        """
        Click the card and read the detail pane.

        The pane keeps the previous card's text until it re-renders, so text
        equal to `shown_description` is not accepted. Returns "" if the pane
        never changes.
        """
        await card.click(timeout=self.actions.click_timeout_ms)
        for _ in range(self.description_polls):
            await self.actions.delay()
            text = await self.actions.get_text(page, self.listing_selectors.description)
            if text and text != shown_description:
                return text
        return ""

    @abstractmethod
    async def _listing_identity(self, card: Any, criteria: SearchCriteria) -> Tuple[Optional[str], Optional[str]]:
        """Return (external id, canonical url) for a listing card."""

    # === Applying ===

    async def apply_to_job(self, page: Page, payload: ApplicationPayload) -> bool:
        """Apply on the already-open job page. True when submitted or already applied."""
        selectors = self.apply_selectors

        if not await self.actions.element_exists(
            page, selectors.job_page_marker, timeout_ms=self.selector_timeout_ms
        ):
            raise PlatformError(self.platform, "Job page did not load")

        if selectors.already_applied and await self.actions.element_exists(page, selectors.already_applied):
            logger.info(f"{self.log_prefix} Already applied to {payload.job.url}")
            return True

        if not await self.actions.element_exists(page, selectors.apply_button):
            if selectors.external_apply and await self.actions.element_exists(page, selectors.external_apply):
                raise ExternalApplicationError(self.platform, "Job only accepts applications on the company site")
            raise PlatformError(self.platform, "Apply button not found")

        form_page = await self._open_application(page)

        controls = selectors.controls
        if controls.form_container and not await self.actions.element_exists(
            form_page, controls.form_container, timeout_ms=self.selector_timeout_ms
        ):
            raise PlatformError(self.platform, "Application form did not open")

        runner = MultiStepFormRunner(
            platform=self.platform,
            actions=self.actions,
            controls=controls,
            filler=FormStepFiller(payload.profile, controls.form_container),
            max_steps=self.max_form_steps,
            log_prefix=self.log_prefix,
        )
        return await runner.run(form_page)

    async def _open_application(self, page: Page) -> Page:
        """Click apply and return the page holding the form."""
        if not await self.actions.click(page, self.apply_selectors.apply_button):
            raise PlatformError(self.platform, "Could not click the apply button")
        await self.actions.delay()
        return page
