"""HTTP fetcher for robots.txt and sitemap documents.

The fetcher owns one httpx client for its lifetime and must be used as an
async context manager so the client is closed on every exit path.
"""

from __future__ import annotations

import gzip
import logging
from typing import Any

import httpx

from newsdelta.config import NewsDeltaSettings, get_settings
from newsdelta.exceptions import FetchError
from newsdelta.utils import define_base_url

LOGGER = logging.getLogger(__name__)

XML_ACCEPT = "application/xml,text/xml;q=0.9,*/*;q=0.8"


class SitemapFetcher:
    """Fetches raw robots.txt and sitemap text.

    Usage:
        async with SitemapFetcher() as fetcher:
            robots_txt = await fetcher.fetch_robots_txt("https://example.com")
            xml = await fetcher.fetch_xml_text("https://example.com/sitemap.xml")

    Non-2xx responses and transport failures raise FetchError. There are no
    retries.
    """

    def __init__(
        self,
        settings: NewsDeltaSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialise fetcher.

        Args:
            settings: Settings to use (defaults to environment settings).
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests.
        """
        self.settings = settings or get_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> SitemapFetcher:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    async def start(self) -> None:
        """Open the HTTP client."""
        if self._client is not None:
            return
        kwargs: dict[str, Any] = {
            "headers": {"User-Agent": self.settings.user_agent},
            "follow_redirects": True,
            "max_redirects": self.settings.max_redirects,
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        self._client = httpx.AsyncClient(**kwargs)
        LOGGER.debug("HTTP client opened (user agent %s)", self.settings.user_agent)

    async def stop(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            LOGGER.debug("HTTP client closed")

    def _require_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("SitemapFetcher not started; use 'async with SitemapFetcher()'")
        return self._client

    async def _get(self, url: str, timeout: float, headers: dict[str, str] | None = None) -> httpx.Response:
        client = self._require_client()
        try:
            response = await client.get(url, timeout=timeout, headers=headers)
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch {url}: {e}", url=url) from e

        LOGGER.debug("GET %s -> %d", url, response.status_code)
        if not response.is_success:
            raise FetchError(
                f"HTTP {response.status_code} fetching {url}",
                url=url,
                status_code=response.status_code,
            )
        return response

    async def fetch_robots_txt(self, site_url: str) -> str:
        """
        Fetch robots.txt for the https origin of a site.

        Args:
            site_url: Any https URL on the site.

        Returns:
            robots.txt text with surrounding whitespace stripped.

        Raises:
            InvalidUrlError: If site_url is not an https URL.
            FetchError: If the request fails or returns a non-2xx status.
        """
        robots_url = f"{define_base_url(site_url)}/robots.txt"
        LOGGER.info("Fetching robots.txt from %s", robots_url)

        response = await self._get(robots_url, timeout=self.settings.robots_timeout)
        text = response.text.strip()
        LOGGER.debug("robots.txt size: %d chars", len(text))
        return text

    async def fetch_xml_text(self, sitemap_url: str) -> str:
        """
        Fetch a sitemap document, handling gzip compression.

        Args:
            sitemap_url: URL of the sitemap.

        Returns:
            Decoded XML text.

        Raises:
            FetchError: If the request fails or returns a non-2xx status.
        """
        LOGGER.info("Fetching sitemap %s", sitemap_url)
        response = await self._get(
            sitemap_url,
            timeout=self.settings.sitemap_timeout,
            headers={"Accept": XML_ACCEPT},
        )

        content = response.content
        # Handle gzipped sitemaps
        if sitemap_url.lower().endswith(".gz") or content[:2] == b"\x1f\x8b":
            try:
                content = gzip.decompress(content)
            except (gzip.BadGzipFile, EOFError):
                # Not actually gzipped, use as-is
                pass
            return content.decode("utf-8", errors="replace")

        return response.text
