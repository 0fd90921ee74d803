"""Service layer for newsdelta.

This module provides:
- compute_delta: Stateless new-versus-seen split of one sitemap
- SitemapFetcher: httpx client lifecycle for robots.txt and sitemap fetching
- DeltaService: One pass over a site's sitemaps
"""

from newsdelta.services.delta import compute_delta
from newsdelta.services.fetcher import SitemapFetcher
from newsdelta.services.pipeline import DeltaService

__all__ = [
    "DeltaService",
    "SitemapFetcher",
    "compute_delta",
]
