"""
Job runner for orchestrating a full two-site comparison.

Probes credentials, discovers both sites concurrently, then compares every
path present on both.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from .aggregator import ResultCollector
from .auth import AuthenticationError, AuthenticationProbe
from .config import ComparatorConfig
from .crawler import SiteCrawler, url_path
from .differ import PageDiffer
from .fetcher import Renderer, create_renderer
from .models import ComparisonResult, Credentials, RenderResult

logger = logging.getLogger(__name__)

RendererFactory = Callable[[ComparatorConfig, Credentials | None], Renderer]


class JobRunner:
    """
    Orchestrates crawling and comparison of two sites.

    Designed to be reusable by the CLI and other front ends.
    """

    def __init__(
        self,
        config: ComparatorConfig | None = None,
        renderer_factory: RendererFactory = create_renderer,
        auth_probe: AuthenticationProbe | None = None,
    ):
        """
        Initialize the job runner.

        Args:
            config: Run configuration (defaults apply when omitted)
            renderer_factory: Builds one renderer per site
            auth_probe: Probe used to check credentials before crawling
        """
        self.config = config or ComparatorConfig()
        self.renderer_factory = renderer_factory
        self.auth_probe = auth_probe or AuthenticationProbe(
            user_agent=self.config.user_agent, timeout=self.config.timeout
        )
        self.differ = PageDiffer.from_config(self.config)

    async def run_job_async(
        self,
        domain1: str,
        domain2: str,
        auth1: Credentials | None = None,
        auth2: Credentials | None = None,
    ) -> ComparisonResult:
        """
        Run a comparison asynchronously.

        Args:
            domain1: Site 1 root URL
            domain2: Site 2 root URL
            auth1: Credentials for site 1 (optional)
            auth2: Credentials for site 2 (optional)

        Returns:
            ComparisonResult with every compared path and path-level errors

        Raises:
            AuthenticationError: If credentials are rejected by either site
        """
        started_at = datetime.now()
        logger.info("Starting comparison between %s and %s", domain1, domain2)

        for domain, credentials in ((domain1, auth1), (domain2, auth2)):
            if credentials:
                await self._check_authentication(domain, credentials)

        pages1, pages2 = await asyncio.gather(
            self._discover(domain1, auth1),
            self._discover(domain2, auth2),
        )
        logger.info("Found %d pages on site 1, %d pages on site 2", len(pages1), len(pages2))

        collector = self.compare_pages(pages1, pages2, domain1, domain2)

        return ComparisonResult(
            site1=domain1,
            site2=domain2,
            started_at=started_at,
            finished_at=datetime.now(),
            comparisons=collector.comparisons,
            errors=collector.errors,
            pages_discovered_site1=len(pages1),
            pages_discovered_site2=len(pages2),
        )

    def run_job(
        self,
        domain1: str,
        domain2: str,
        auth1: Credentials | None = None,
        auth2: Credentials | None = None,
    ) -> ComparisonResult:
        """
        Run a comparison synchronously.

        Convenience method that wraps run_job_async.
        """
        return asyncio.run(self.run_job_async(domain1, domain2, auth1, auth2))

    def compare_pages(
        self,
        pages1: dict[str, RenderResult],
        pages2: dict[str, RenderResult],
        domain1: str,
        domain2: str,
    ) -> ResultCollector:
        """
        Compare every path discovered on both sites.

        A path where either side has no content becomes a path-level error;
        the remaining paths are still compared.
        """
        by_path1 = _index_by_path(pages1)
        by_path2 = _index_by_path(pages2)
        common_paths = [path for path in by_path1 if path in by_path2]

        logger.info("Comparing %d common paths...", len(common_paths))
        collector = ResultCollector()

        for path in common_paths:
            page1 = by_path1[path]
            page2 = by_path2[path]

            if page1.content is None or page2.content is None:
                error = page1.error or page2.error or "Unknown error"
                collector.add_error(path, error)
                logger.warning("%s: Error - %s", path, error)
                continue

            try:
                comparison = self.differ.compare(path, page1.content, page2.content, domain1, domain2)
            except Exception as e:
                logger.exception("Comparison failed for %s", path)
                collector.add_error(path, f"Content comparison failed: {str(e)}")
                continue

            collector.add_comparison(comparison)
            if comparison.has_differences:
                logger.info("%s: %d differences found", path, len(comparison.differences))
            else:
                logger.info("%s: No significant differences", path)

        return collector

    async def _check_authentication(self, domain: str, credentials: Credentials) -> None:
        logger.info("Testing authentication for %s...", domain)
        result = await self.auth_probe.probe(domain, credentials)
        if not result.success:
            raise AuthenticationError(f"Authentication failed for {domain}: {result.error}")
        logger.info("Authentication successful for %s (HTTP %d)", domain, result.status)

    async def _discover(
        self, domain: str, credentials: Credentials | None
    ) -> dict[str, RenderResult]:
        async with self.renderer_factory(self.config, credentials) as renderer:
            crawler = SiteCrawler(
                renderer,
                max_pages=self.config.max_pages,
                max_discovery=self.config.max_discovery,
            )
            return await crawler.discover(domain)


def _index_by_path(pages: dict[str, RenderResult]) -> dict[str, RenderResult]:
    """Map each path to the first crawled URL with that path."""
    by_path: dict[str, RenderResult] = {}
    for url, result in pages.items():
        by_path.setdefault(url_path(url), result)
    return by_path
