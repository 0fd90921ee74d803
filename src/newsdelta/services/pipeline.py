"""Delta service: one pass over a site's robots.txt and sitemaps."""

import logging
from collections.abc import Iterable, Set
from typing import AsyncGenerator

from newsdelta.config import get_settings
from newsdelta.discovery.robots import parse_robots_txt
from newsdelta.exceptions import FetchError
from newsdelta.models import DeltaEvent, DeltaReport, RobotsRules
from newsdelta.services.delta import compute_delta
from newsdelta.services.fetcher import SitemapFetcher
from newsdelta.utils import HashBits, define_base_url, log_with_correlation

LOGGER = logging.getLogger(__name__)


class DeltaService:
    """Find new, crawlable URLs across every sitemap of a site.

    Usage (streaming with progress):
        async with SitemapFetcher() as fetcher:
            service = DeltaService(fetcher)
            async for event in service.run("https://example.com", seen_hashes=seen):
                if event.type == "delta":
                    print(event.url, len(event.delta.new_urls))
                elif event.type == "complete":
                    report = event.report

    Sitemap indexes are followed depth-first in document order. Each sitemap
    URL is fetched at most once per run, and a URL reported as new by one
    document is not reported again by a later one.
    """

    def __init__(
        self,
        fetcher: SitemapFetcher,
        user_agent: str | None = None,
        hash_bits: HashBits | None = None,
        max_depth: int | None = None,
    ):
        """Initialise delta service.

        Args:
            fetcher: Started SitemapFetcher used for all requests.
            user_agent: Agent matched against robots.txt groups
                (default from NEWSDELTA_ROBOTS_USER_AGENT, or "*").
            hash_bits: Dedup hash width (default from NEWSDELTA_HASH_BITS, or 128).
            max_depth: Maximum sitemap index nesting (default from NEWSDELTA_MAX_DEPTH, or 3).
        """
        settings = get_settings()
        self._fetcher = fetcher
        self._user_agent = user_agent or settings.robots_user_agent
        self._hash_bits: HashBits = hash_bits or settings.hash_bits  # type: ignore[assignment]
        self._max_depth = max(1, max_depth if max_depth is not None else settings.max_depth)

    async def _load_rules(self, site_url: str) -> RobotsRules:
        """Fetch and parse robots.txt; a missing file means no restrictions."""
        try:
            robots_txt = await self._fetcher.fetch_robots_txt(site_url)
        except FetchError as e:
            if e.status_code == 404:
                # 404 means no robots.txt - allow all
                LOGGER.debug("No robots.txt for %s (404)", site_url)
                robots_txt = ""
            else:
                raise
        return parse_robots_txt(robots_txt, self._user_agent)

    async def run(
        self,
        site_url: str,
        sitemap_urls: Iterable[str] | None = None,
        seen_hashes: Set[str] = frozenset(),
    ) -> AsyncGenerator[DeltaEvent, None]:
        """Walk a site's sitemaps, yielding progress events.

        Args:
            site_url: Any https URL on the site.
            sitemap_urls: Sitemaps to start from. Defaults to the Sitemap
                directives of robots.txt.
            seen_hashes: Snapshot of previously recorded dedup hashes. Not modified.

        Yields:
            DeltaEvent for each phase:
            - robots: robots.txt loaded
            - sitemap: before each sitemap fetch
            - delta: per classified sitemap document
            - complete: final event with DeltaReport
            - error: robots.txt could not be loaded

        Raises:
            InvalidUrlError: If site_url is not an https URL.
        """
        origin = define_base_url(site_url)
        report = DeltaReport(site_url=origin, success=False)

        try:
            rules = await self._load_rules(origin)
        except FetchError as e:
            log_with_correlation(
                LOGGER,
                logging.ERROR,
                f"Failed to load robots.txt for {origin}: {e.message}",
                correlation_id=e.correlation_id,
            )
            report.error = e.message
            yield DeltaEvent(type="error", url=origin, message=e.message, report=report)
            return

        report.rules = rules
        yield DeltaEvent(
            type="robots",
            url=origin,
            message=(
                f"robots.txt: {len(rules.allows)} allow, {len(rules.disallows)} disallow, "
                f"{len(rules.sitemaps)} sitemaps"
            ),
        )

        targets = list(sitemap_urls) if sitemap_urls else list(rules.sitemaps)
        if not targets:
            LOGGER.warning("No sitemaps declared for %s", origin)

        working_seen = set(seen_hashes)
        visited: set[str] = set()

        for target in targets:
            async for event in self._walk(target, 0, rules, working_seen, visited, report):
                yield event

        report.success = True
        LOGGER.info(
            "Delta complete for %s: %d documents, %d new URLs, %d errors",
            origin,
            len(report.documents),
            len(report.new_urls),
            len(report.errors),
        )
        yield DeltaEvent(
            type="complete",
            url=origin,
            message=f"Found {len(report.new_urls)} new URLs",
            report=report,
        )

    async def _walk(
        self,
        sitemap_url: str,
        depth: int,
        rules: RobotsRules,
        working_seen: set[str],
        visited: set[str],
        report: DeltaReport,
    ) -> AsyncGenerator[DeltaEvent, None]:
        """Fetch, classify and diff one sitemap, then recurse into index children."""
        if sitemap_url in visited:
            return
        visited.add(sitemap_url)

        if depth >= self._max_depth:
            LOGGER.warning("Max sitemap depth reached at %s", sitemap_url)
            report.errors.append(f"{sitemap_url}: max sitemap depth {self._max_depth} reached")
            return

        yield DeltaEvent(type="sitemap", url=sitemap_url, message=f"Fetching sitemap {sitemap_url}")

        try:
            xml = await self._fetcher.fetch_xml_text(sitemap_url)
        except FetchError as e:
            log_with_correlation(
                LOGGER,
                logging.WARNING,
                f"Failed to fetch sitemap {sitemap_url}: {e.message}",
                correlation_id=e.correlation_id,
            )
            report.errors.append(f"{sitemap_url}: {e.message}")
            return

        delta = compute_delta(
            sitemap_url,
            xml,
            rules,
            seen_hashes=working_seen,
            hash_bits=self._hash_bits,
        )
        report.documents.append(delta)

        for url, url_hash in zip(delta.new_urls, delta.new_hashes):
            if url_hash in working_seen:
                continue
            working_seen.add(url_hash)
            report.new_urls.append(url)
            report.new_hashes.append(url_hash)

        analysis = delta.analysis
        yield DeltaEvent(
            type="delta",
            url=sitemap_url,
            message=f"{analysis.kind}/{analysis.mode}: {len(delta.new_urls)} new of {len(delta.all_urls)}",
            delta=delta,
        )

        if analysis.kind == "index":
            for child in analysis.children or []:
                async for event in self._walk(child, depth + 1, rules, working_seen, visited, report):
                    yield event

    async def run_all(
        self,
        site_url: str,
        sitemap_urls: Iterable[str] | None = None,
        seen_hashes: Set[str] = frozenset(),
    ) -> DeltaReport:
        """Walk a site's sitemaps and return the final report.

        Args:
            site_url: Any https URL on the site.
            sitemap_urls: Sitemaps to start from (default: from robots.txt).
            seen_hashes: Snapshot of previously recorded dedup hashes.

        Returns:
            DeltaReport; ``success`` is False when robots.txt could not be loaded.
        """
        report: DeltaReport | None = None
        async for event in self.run(site_url, sitemap_urls=sitemap_urls, seen_hashes=seen_hashes):
            if event.type in ("complete", "error"):
                report = event.report
        return report or DeltaReport(site_url=site_url, success=False, error="No result")
