"""
Pytest fixtures and configuration for the job automation test suite.

No live browser or network: Playwright objects are replaced by the small
fakes below, and the store is either a temp-file SQLite database or an
in-memory fake.
"""

import pytest
import pytest_asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

# Add project root to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.models import JobPage, JobPosting  # noqa: E402


# === Fake Playwright ===

class FakePage:
    def __init__(self):
        self.closed = False
        self.default_timeout = None
        self.navigation_timeout = None
        self.visited: List[str] = []

    def set_default_timeout(self, ms):
        self.default_timeout = ms

    def set_default_navigation_timeout(self, ms):
        self.navigation_timeout = ms

    async def goto(self, url, **kwargs):
        self.visited.append(url)

    async def screenshot(self, path, full_page=True):
        Path(path).write_bytes(b"\x89PNG")

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, options: Dict[str, Any]):
        self.options = options
        self.pages: List[FakePage] = []
        self.cookies: List[Dict[str, Any]] = []
        self.init_scripts: List[str] = []
        self.closed = False
        self.fail_cookies = False

    async def add_init_script(self, script):
        self.init_scripts.append(script)

    async def add_cookies(self, cookies):
        if self.fail_cookies:
            raise RuntimeError("cookie rejected")
        self.cookies.extend(cookies)

    async def new_page(self):
        page = FakePage()
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, launch_options: Dict[str, Any]):
        self.launch_options = launch_options
        self.contexts: List[FakeContext] = []
        self.connected = True
        self.closed = False
        self.handlers: Dict[str, list] = {}
        self.fail_cookies = False

    def is_connected(self):
        return self.connected

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    async def new_context(self, **options):
        context = FakeContext(options)
        context.fail_cookies = self.fail_cookies
        self.contexts.append(context)
        return context

    async def close(self):
        self.closed = True
        self.connected = False

    async def crash(self):
        """Simulate the process dying: Playwright emits 'disconnected'."""
        self.connected = False
        for handler in self.handlers.get("disconnected", []):
            await handler(self)


class FakeChromium:
    def __init__(self, failures: int = 0):
        self.failures = failures
        self.launch_calls = 0
        self.browsers: List[FakeBrowser] = []

    async def launch(self, **options):
        self.launch_calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("Executable doesn't exist")
        browser = FakeBrowser(options)
        self.browsers.append(browser)
        return browser


class FakePlaywright:
    def __init__(self, failures: int = 0):
        self.chromium = FakeChromium(failures)
        self.stopped = False

    async def stop(self):
        self.stopped = True


class FakePlaywrightStarter:
    """Stands in for async_playwright(): .start() returns the driver."""

    def __init__(self, playwright: FakePlaywright):
        self.playwright = playwright

    async def start(self):
        return self.playwright


@pytest.fixture
def fake_playwright():
    return FakePlaywright()


@pytest.fixture
def pool(fake_playwright, tmp_path):
    from core.browser_pool import BrowserPool

    return BrowserPool(
        launch_retries=2,
        launch_retry_delay=(0, 0),
        cookies_dir=str(tmp_path / "cookies"),
        playwright_factory=lambda: FakePlaywrightStarter(fake_playwright),
    )


# === Fake DOM (locators) ===

class FakeLocator:
    """Locator over a fixed node list; missing nodes time out like Playwright."""

    def __init__(self, nodes):
        self.nodes = list(nodes)

    @property
    def first(self):
        return FakeLocator(self.nodes[:1])

    def _node(self):
        if not self.nodes:
            raise PlaywrightTimeoutError("Timeout waiting for locator")
        return self.nodes[0]

    def locator(self, selector):
        return self._node().locator(selector)

    async def all(self):
        return list(self.nodes)

    async def count(self):
        return len(self.nodes)

    async def wait_for(self, state="visible", timeout=None):
        self._node()

    async def text_content(self, timeout=None):
        return self._node().text

    async def get_attribute(self, name, timeout=None):
        return await self._node().get_attribute(name)

    async def click(self, timeout=None):
        await self._node().click(timeout=timeout)

    async def fill(self, value, timeout=None):
        await self._node().fill(value)


class FakeNode:
    """
    An element with text, attributes, form state and child nodes by selector.

    `children` maps a selector string to a list of nodes. `on_click` runs when
    the node is clicked (e.g. to re-render a detail pane).
    """

    def __init__(self, text="", attrs=None, children=None, label="", value="", options=None,
                 visible=True, checked=False, has_file=False, on_click=None, broken=False):
        self.text = text
        self.attrs = dict(attrs or {})
        self.children = dict(children or {})
        self.label = label
        self.value = value
        self.options = list(options or [])
        self.visible = visible
        self.checked = checked
        self.has_file = has_file
        self.on_click = on_click
        self.broken = broken
        self.clicks = 0
        self.uploaded = None

    def _check(self):
        if self.broken:
            raise RuntimeError("Element is not attached to the DOM")

    def locator(self, selector):
        self._check()
        return FakeLocator(self.children.get(selector, []))

    async def get_attribute(self, name, timeout=None):
        self._check()
        return self.attrs.get(name)

    async def click(self, timeout=None):
        self._check()
        self.clicks += 1
        if self.on_click:
            self.on_click()

    async def is_visible(self):
        return self.visible

    async def input_value(self):
        self._check()
        return self.value

    async def evaluate(self, script):
        self._check()
        from adapters.form_runner import LABEL_SCRIPT, OPTIONS_SCRIPT

        if script == LABEL_SCRIPT:
            return self.label
        if script == OPTIONS_SCRIPT:
            return self.options
        return self.has_file

    async def fill(self, value, timeout=None):
        self._check()
        self.value = value

    async def select_option(self, value=None):
        self._check()
        self.value = value

    async def is_checked(self):
        return self.checked

    async def check(self, force=False):
        self._check()
        self.checked = True

    async def set_input_files(self, path):
        self._check()
        self.uploaded = path


class FakeDomPage(FakeNode):
    """A page built from FakeNodes, with the mouse and navigation a page has."""

    def __init__(self, children=None):
        super().__init__(children=children)
        self.mouse = MagicMock()
        self.mouse.wheel = AsyncMock()
        self.visited: List[str] = []

    async def goto(self, url, **kwargs):
        self.visited.append(url)


@pytest.fixture
def quick_actions():
    """Real PageActions without the human-paced pauses."""
    from adapters.actions import PageActions

    class QuickActions(PageActions):
        async def delay(self, min_sec=None, max_sec=None):
            return None

    return QuickActions(exists_timeout_ms=0)


# === Fake Store ===

class FakeStore:
    """In-memory stand-in for api.database.JobStore."""

    def __init__(self):
        self.jobs: Dict[str, JobPosting] = {}
        self.status_updates: List[tuple] = []
        self.applications: List[Any] = []
        self.stats: List[tuple] = []
        self.fail_inserts_for: set = set()
        self.fail_writes: set = set()
        self._next_id = 1

    def _check_write(self, name):
        from core.errors import StoreError

        if name in self.fail_writes:
            raise StoreError(f"{name} failed")

    async def find_job_by_platform_and_url(self, platform, url):
        return next((j for j in self.jobs.values() if j.platform == platform and j.url == url), None)

    async def find_job_by_platform_and_external_id(self, platform, external_id):
        return next(
            (j for j in self.jobs.values() if j.platform == platform and j.external_id == external_id),
            None,
        )

    async def insert_job(self, job):
        from core.errors import StoreError

        if job.url in self.fail_inserts_for:
            raise StoreError("insert failed")
        job.id = f"job-{self._next_id}"
        self._next_id += 1
        self.jobs[job.id] = job
        return job.id

    async def update_job_status(self, job_id, status, details=None):
        self._check_write("update_job_status")
        self.status_updates.append((job_id, status, details))
        if job_id in self.jobs:
            self.jobs[job_id].application_status = status
            return True
        return False

    async def insert_application_record(self, attempt):
        self._check_write("insert_application_record")
        self.applications.append(attempt)
        return f"app-{len(self.applications)}"

    async def increment_stats(self, platform, outcome, day=None):
        self._check_write("increment_stats")
        self.stats.append((platform, outcome))

    async def query_jobs_by_filter(self, job_filter):
        items = [
            j for j in self.jobs.values()
            if (not job_filter.platform or j.platform == job_filter.platform)
            and (not job_filter.status or j.application_status == job_filter.status)
        ]
        start = (job_filter.page - 1) * job_filter.limit
        return JobPage(items=items[start:start + job_filter.limit], total=len(items),
                       page=job_filter.page, limit=job_filter.limit)

    async def check_connection(self):
        return True


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest_asyncio.fixture
async def job_store(tmp_path):
    """Temp-file SQLite store with the schema created."""
    from api.database import JobStore

    store = JobStore(tmp_path / "jobs.db")
    await store.init()
    return store


# === Collaborator Mocks ===

@pytest.fixture
def mock_notifier():
    notifier = MagicMock()
    notifier.notify_outcome = AsyncMock(return_value=True)
    notifier.notify_error = AsyncMock(return_value=True)
    notifier.notify_scrape_result = AsyncMock(return_value=True)
    notifier.enabled = MagicMock(return_value=False)
    return notifier


@pytest.fixture
def mock_screenshots():
    screenshots = MagicMock()

    async def capture(page, platform, outcome, job_id=None):
        return f"/tmp/{platform}_{outcome}_{job_id}.png"

    screenshots.capture = AsyncMock(side_effect=capture)
    return screenshots


def make_adapter(platform: str = "indeed", listings: Optional[List[JobPosting]] = None):
    """A platform adapter double with the attributes the services use."""
    adapter = MagicMock()
    adapter.platform = platform
    adapter.display_name = platform.title()
    adapter.requires_login = True
    adapter.base_url = f"https://www.{platform}.com"
    adapter.generate_search_url = MagicMock(return_value=f"https://www.{platform}.com/jobs?q=test")
    adapter.actions = MagicMock()
    adapter.actions.goto = AsyncMock()
    adapter.actions.delay = AsyncMock()
    adapter.dismiss_modals = AsyncMock()
    adapter.scrape_listings = AsyncMock(return_value=list(listings or []))
    adapter.check_login = AsyncMock(return_value=True)
    adapter.login = AsyncMock(return_value=True)
    adapter.apply_to_job = AsyncMock(return_value=True)
    return adapter


@pytest.fixture
def adapter_factory():
    return make_adapter


def make_listings(platform: str, count: int, prefix: str = "job") -> List[JobPosting]:
    return [
        JobPosting(
            platform=platform,
            url=f"https://www.{platform}.com/viewjob?jk={prefix}{i}",
            title=f"Backend Engineer {i}",
            company=f"Company {i}",
            external_id=f"{prefix}{i}",
        )
        for i in range(count)
    ]


@pytest.fixture
def sample_listings():
    return make_listings("indeed", 5)


@pytest.fixture
def sample_profile():
    from core.models import ApplicantProfile

    return ApplicantProfile(
        full_name="Jane Doe",
        email="jane.doe@example.com",
        phone="+1 555 123 4567",
        cover_letter="I would love to join your team.",
    )


# === Markers ===

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "pool: Browser session pool tests")
    config.addinivalue_line("markers", "adapters: Platform adapter tests")
    config.addinivalue_line("markers", "pipeline: Scraping pipeline tests")
    config.addinivalue_line("markers", "application: Application orchestrator tests")
    config.addinivalue_line("markers", "api: HTTP API tests")
