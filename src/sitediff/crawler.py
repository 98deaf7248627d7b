"""
Breadth-first page discovery for one site.

Crawl state (the frontier queue and the discovered set) belongs to a single
discover() call; nothing is shared between sites or runs.
"""

import logging
from collections import deque
from urllib.parse import urlparse

from .fetcher import Renderer
from .models import RenderResult

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 5


def url_path(url: str) -> str:
    """Return the path of a URL, "/" for a bare host."""
    return urlparse(url).path or "/"


class SiteCrawler:
    """
    Discovers same-host pages starting from a site root.

    Links with fragments or query strings are skipped.
    """

    def __init__(self, renderer: Renderer, max_pages: int = 20, max_discovery: int = 500):
        """
        Initialize the crawler.

        Args:
            renderer: Renderer used for every page
            max_pages: Maximum number of pages to render
            max_discovery: Maximum number of unique URLs to queue
        """
        self.renderer = renderer
        self.max_pages = max_pages
        self.max_discovery = max_discovery

    async def discover(self, domain: str) -> dict[str, RenderResult]:
        """
        Crawl a site breadth-first.

        Args:
            domain: Site root URL, the first page rendered

        Returns:
            Mapping of URL to RenderResult, in crawl order
        """
        frontier: deque[str] = deque([domain])
        discovered: set[str] = {domain}
        visited: set[str] = set()
        pages: dict[str, RenderResult] = {}
        hostname = urlparse(domain).hostname

        logger.info("Discovering pages from %s...", domain)

        while frontier and len(pages) < self.max_pages:
            url = frontier.popleft()

            if url in visited:
                continue
            visited.add(url)

            logger.info("Crawling: %s", url)
            result = await self.renderer.render(url)
            pages[url] = result

            if result.error:
                logger.warning("Error crawling %s: %s", url, result.error)

            if result.content is not None:
                for link in result.links:
                    if len(pages) >= self.max_pages or len(discovered) >= self.max_discovery:
                        break
                    if self._should_enqueue(link, hostname, discovered):
                        discovered.add(link)
                        frontier.append(link)
                        logger.debug("Adding to queue: %s", link)

            if len(pages) % PROGRESS_INTERVAL == 0:
                logger.info("Crawled %d pages from %s", len(pages), domain)

        total_links = sum(len(page.links) for page in pages.values())
        logger.info(
            "Finished discovering %d pages from %s (%d links found)",
            len(pages),
            domain,
            total_links,
        )
        return pages

    def _should_enqueue(self, link: str, hostname: str | None, discovered: set[str]) -> bool:
        if link in discovered or "#" in link or "?" in link:
            return False

        try:
            link_hostname = urlparse(link).hostname
        except ValueError:
            return False

        return link_hostname is not None and link_hostname == hostname
