"""
Renderer implementations for retrieving pages during a crawl.

Provides browser rendering (JS-enabled, Playwright) and plain HTTP fetching
(non-JS, httpx). Both report failures in the RenderResult instead of raising.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import ComparatorConfig
from .models import Credentials, RenderResult

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Comparator Bot 1.2.1"

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-web-security",
    "--allow-running-insecure-content",
    "--ignore-certificate-errors",
]

# Absolute anchor targets as resolved by the browser
COLLECT_LINKS_SCRIPT = (
    "anchors => anchors.map(a => a.href).filter(href => href && href.startsWith('http'))"
)


class FetchError(Exception):
    """Raised when a renderer cannot be started."""

    pass


class Renderer(ABC):
    """
    Abstract base class for renderers.

    A renderer is started once per crawl, renders any number of URLs and is
    closed at the end. Usable as an async context manager.
    """

    async def start(self) -> None:
        """Acquire long-lived resources (browser, HTTP client)."""
        pass

    async def close(self) -> None:
        """Release resources acquired by start()."""
        pass

    @abstractmethod
    async def render(self, url: str) -> RenderResult:
        """
        Render a URL.

        Args:
            url: The URL to render

        Returns:
            RenderResult; ``content`` is None and ``error`` is set on failure
        """
        pass

    async def __aenter__(self) -> "Renderer":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class BrowserRenderer(Renderer):
    """
    Renders URLs with JavaScript execution enabled.

    Uses Playwright with headless Chromium. One browser context is shared by
    all pages of a crawl so HTTP credentials apply to every request.
    """

    def __init__(
        self,
        user_agent: str | None = None,
        wait_strategy: str = "network_idle",
        timeout: int = 30000,
        delay: int = 1000,
        credentials: Credentials | None = None,
        headless: bool = True,
    ):
        """
        Initialize the browser renderer.

        Args:
            user_agent: Custom User-Agent header (optional)
            wait_strategy: Wait strategy ('network_idle', 'load', or 'timeout')
            timeout: Navigation timeout in milliseconds
            delay: Extra settle time after loading, in milliseconds
            credentials: HTTP basic auth credentials (optional)
            headless: Whether to run browser in headless mode
        """
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.wait_strategy = wait_strategy
        self.timeout = timeout
        self.delay = delay
        self.credentials = credentials
        self.headless = headless

        self._playwright = None
        self._browser = None
        self._context = None

    async def start(self) -> None:
        if self._context is not None:
            return

        from playwright.async_api import async_playwright

        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless, args=BROWSER_ARGS
            )
            http_credentials = None
            if self.credentials:
                http_credentials = {
                    "username": self.credentials.username,
                    "password": self.credentials.password,
                }
            self._context = await self._browser.new_context(
                user_agent=self.user_agent,
                viewport={"width": 1920, "height": 1080},
                ignore_https_errors=True,
                http_credentials=http_credentials,
            )
        except PlaywrightError as e:
            await self.close()
            raise FetchError(f"Browser initialization error: {str(e)}")

    async def close(self) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def render(self, url: str) -> RenderResult:
        await self.start()

        start_time = asyncio.get_event_loop().time()
        page = None

        try:
            page = await self._context.new_page()
            response = await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout)

            if not response:
                return RenderResult(url=url, content=None, error="No response received")

            if not response.ok:
                return RenderResult(
                    url=url,
                    content=None,
                    status=response.status,
                    error=f"HTTP {response.status}: {response.status_text}",
                )

            await self._wait_for_content(page)

            # Give late scripts a chance to settle
            if self.delay:
                await asyncio.sleep(self.delay / 1000.0)

            content = await page.content()
            links = await self._collect_links(page, url)
            render_time_ms = int((asyncio.get_event_loop().time() - start_time) * 1000)

            return RenderResult(
                url=url,
                content=content,
                status=response.status,
                links=links,
                render_time_ms=render_time_ms,
            )

        except PlaywrightTimeoutError:
            return RenderResult(url=url, content=None, error=f"Render timeout after {self.timeout}ms")
        except PlaywrightError as e:
            return RenderResult(url=url, content=None, error=f"Render error: {str(e)}")
        finally:
            if page is not None:
                await self._close_page(page, url)

    async def _close_page(self, page: Page, url: str):
        try:
            await page.close()
        except PlaywrightError as e:
            logger.warning("Could not close page for %s: %s", url, e)

    async def _wait_for_content(self, page: Page):
        """
        Apply wait strategy to ensure content is loaded.

        Args:
            page: Playwright Page object
        """
        if self.wait_strategy == "load":
            await page.wait_for_load_state("load", timeout=self.timeout)

        elif self.wait_strategy == "timeout":
            # Simple timeout-based wait (half of total timeout)
            await asyncio.sleep(self.timeout / 2000.0)

        else:
            # Wait until network is mostly idle
            try:
                await page.wait_for_load_state("networkidle", timeout=self.timeout)
            except PlaywrightTimeoutError:
                # Keep whatever loaded by domcontentloaded
                pass

    async def _collect_links(self, page: Page, url: str) -> list[str]:
        try:
            links = await page.eval_on_selector_all("a[href]", COLLECT_LINKS_SCRIPT)
        except PlaywrightError as e:
            logger.warning("Could not extract links from %s: %s", url, e)
            return []

        logger.debug("Found %d links on %s", len(links), url)
        return links


class HttpRenderer(Renderer):
    """
    Fetches URLs without JavaScript execution.

    Uses httpx. Follows redirects; links are discovered by parsing anchors
    and resolving them against the final URL.
    """

    def __init__(
        self,
        user_agent: str | None = None,
        timeout: int = 30000,
        credentials: Credentials | None = None,
        follow_redirects: bool = True,
    ):
        """
        Initialize the HTTP renderer.

        Args:
            user_agent: Custom User-Agent header (optional)
            timeout: Request timeout in milliseconds
            credentials: HTTP basic auth credentials (optional)
            follow_redirects: Whether to follow HTTP redirects
        """
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.timeout = timeout
        self.credentials = credentials
        self.follow_redirects = follow_redirects
        self._client: httpx.AsyncClient | None = None

    async def start(self) -> None:
        if self._client is not None:
            return

        auth = None
        if self.credentials:
            auth = httpx.BasicAuth(self.credentials.username, self.credentials.password)

        self._client = httpx.AsyncClient(
            follow_redirects=self.follow_redirects,
            timeout=self.timeout / 1000.0,
            headers={"User-Agent": self.user_agent},
            auth=auth,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def render(self, url: str) -> RenderResult:
        await self.start()

        start_time = asyncio.get_event_loop().time()

        try:
            response = await self._client.get(url)
        except httpx.TimeoutException:
            return RenderResult(url=url, content=None, error=f"Timeout after {self.timeout}ms")
        except httpx.HTTPError as e:
            return RenderResult(url=url, content=None, error=f"HTTP error: {str(e)}")

        if not response.is_success:
            return RenderResult(
                url=url,
                content=None,
                status=response.status_code,
                error=f"HTTP {response.status_code}: {response.reason_phrase}",
            )

        render_time_ms = int((asyncio.get_event_loop().time() - start_time) * 1000)
        html = response.text

        return RenderResult(
            url=url,
            content=html,
            status=response.status_code,
            links=extract_absolute_links(html, str(response.url)),
            render_time_ms=render_time_ms,
        )


def extract_absolute_links(html: str, base_url: str) -> list[str]:
    """Resolve every anchor href against ``base_url`` and keep http(s) targets."""
    soup = BeautifulSoup(html, "lxml")
    links: list[str] = []

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.startswith(("javascript:", "mailto:", "tel:")):
            continue
        absolute = urljoin(base_url, href)
        if absolute.startswith(("http://", "https://")):
            links.append(absolute)

    return links


def create_renderer(config: ComparatorConfig, credentials: Credentials | None = None) -> Renderer:
    """Build the renderer selected in the configuration."""
    if config.renderer == "http":
        return HttpRenderer(
            user_agent=config.user_agent,
            timeout=config.timeout,
            credentials=credentials,
        )

    return BrowserRenderer(
        user_agent=config.user_agent,
        wait_strategy=config.wait_strategy,
        timeout=config.timeout,
        delay=config.delay,
        credentials=credentials,
    )
