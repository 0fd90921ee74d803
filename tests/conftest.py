"""Pytest configuration and shared fixtures for newsdelta tests."""

from collections.abc import Iterator
from pathlib import Path

import pytest

from newsdelta.config import get_settings


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Pure logic tests with no I/O or network")
    config.addinivalue_line("markers", "integration: Filesystem or mocked-HTTP tests")
    config.addinivalue_line(
        "markers",
        "e2e: End-to-end tests with live network",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """
    Apply default markers to tests without explicit markers.

    Tests should use explicit markers (@pytest.mark.unit, @pytest.mark.e2e).
    Unmarked tests default to unit.
    """
    for item in items:
        # Skip if already has a category marker
        markers = list(item.iter_markers())
        marker_names = [m.name for m in markers]
        if any(m in marker_names for m in ("unit", "integration", "e2e")):
            continue

        # Default unmarked tests to unit
        item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Point state at a temp file and reset cached settings around each test."""
    for key in (
        "NEWSDELTA_HASH_BITS",
        "NEWSDELTA_MAX_DEPTH",
        "NEWSDELTA_ROBOTS_USER_AGENT",
        "NEWSDELTA_LOG_LEVEL",
        "NEWSDELTA_USER_AGENT",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("NEWSDELTA_STATE_PATH", str(tmp_path / "state" / "seen.json"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# Sample documents


@pytest.fixture
def robots_txt() -> str:
    """A robots.txt with a named group, a shared group and global sitemaps."""
    return """
# Example robots
User-agent: googlebot
Disallow: /no-google

User-agent: *
Allow: /news/public
Disallow: /news
Disallow: /admin

Sitemap: https://example.com/sitemap_index.xml
Sitemap: https://example.com/news-sitemap.xml
"""


@pytest.fixture
def index_xml() -> str:
    """A sitemap index with two children."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <sitemap><loc>https://example.com/sitemap/2025/07/22_1.xml</loc></sitemap>
  <sitemap><loc>https://example.com/sitemap/2025/07/22_2.xml</loc></sitemap>
</sitemapindex>
"""


@pytest.fixture
def shard_xml() -> str:
    """A urlset whose entries all share one lastmod day."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://example.com/story/one</loc><lastmod>2025-07-22T08:00:00Z</lastmod></url>
  <url><loc>https://example.com/story/two</loc><lastmod>2025-07-22T12:30:00+00:00</lastmod></url>
  <url><loc>https://example.com/story/three</loc><lastmod>2025-07-22</lastmod></url>
</urlset>
"""
