"""robots.txt and sitemap understanding.

This package provides the robots rule engine and the sitemap classifier.
"""

from newsdelta.discovery.robots import (
    filter_urls_by_robots,
    is_path_allowed,
    is_url_allowed,
    parse_robots_txt,
)
from newsdelta.discovery.sitemap import (
    analyze_sitemap,
    count_distinct_lastmod_days,
    detect_mode,
    detect_namespaces,
    looks_date_sharded,
)

__all__ = [
    # Robots
    "filter_urls_by_robots",
    "is_path_allowed",
    "is_url_allowed",
    "parse_robots_txt",
    # Sitemap
    "analyze_sitemap",
    "count_distinct_lastmod_days",
    "detect_mode",
    "detect_namespaces",
    "looks_date_sharded",
]
