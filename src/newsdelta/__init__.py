"""Sitemap intelligence and delta engine for news crawling.

Decides which sitemap URLs may be fetched under robots.txt and which are new
since the last crawl.
"""

from newsdelta.discovery.robots import is_path_allowed, parse_robots_txt
from newsdelta.discovery.sitemap import analyze_sitemap
from newsdelta.exceptions import InvalidUrlError, NewsDeltaError
from newsdelta.models import DeltaResult, RobotsRules, SitemapAnalysis, UrlItem
from newsdelta.services.delta import compute_delta
from newsdelta.utils import hash_url, normalise_url

__version__ = "0.1.0"

__all__ = [
    "DeltaResult",
    "InvalidUrlError",
    "NewsDeltaError",
    "RobotsRules",
    "SitemapAnalysis",
    "UrlItem",
    "analyze_sitemap",
    "compute_delta",
    "hash_url",
    "is_path_allowed",
    "normalise_url",
    "parse_robots_txt",
    "__version__",
]
