"""Sitemap parsing and classification.

Infers document structure (index vs urlset) and refresh behaviour (daily
shards vs a rolling window) from the sitemap URL and its lastmod values.
Malformed input never raises; it is classified as ``unknown``.
"""

import logging
import re
from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from urllib.parse import urlsplit
from xml.etree import ElementTree

from newsdelta.models import (
    SitemapAnalysis,
    SitemapKind,
    SitemapMode,
    SitemapNamespaces,
    SitemapStats,
    UrlItem,
)

LOGGER = logging.getLogger(__name__)

DATE_SEGMENT_RE = re.compile(r"\b\d{4}/\d{2}/\d{2}\b")
SHARD_SUFFIX_RE = re.compile(r"_\d+\.xml(\.gz)?$", re.IGNORECASE)
GENERIC_NAME_RE = re.compile(r"(news-)?sitemap(\.xml|_news\.xml|_index\.xml|\.xml\.gz)$", re.IGNORECASE)
NEWS_NS_RE = re.compile(r"(?:xmlns\s*:\s*news\s*=|<\s*news:news\b)", re.IGNORECASE)
VIDEO_NS_RE = re.compile(r"(?:xmlns\s*:\s*video\s*=|<\s*video:video\b)", re.IGNORECASE)


def _split_tag(tag: str) -> tuple[str, str]:
    """Split "{ns}local" into (ns, local)."""
    if tag.startswith("{"):
        ns, local = tag[1:].split("}", 1)
        return ns, local
    return "", tag


def _is(element: ElementTree.Element, name: str, namespace: str) -> bool:
    """True if element has the given local name in the sitemap vocabulary."""
    if not isinstance(element.tag, str):
        return False
    ns, local = _split_tag(element.tag)
    return local == name and ns in ("", namespace)


def _children(element: ElementTree.Element, name: str, namespace: str) -> list[ElementTree.Element]:
    return [child for child in element if _is(child, name, namespace)]


def _first_text(element: ElementTree.Element, name: str, namespace: str) -> str:
    """Stripped text of the first descendant with this name, or ""."""
    for descendant in element.iter():
        if descendant is not element and _is(descendant, name, namespace):
            return (descendant.text or "").strip()
    return ""


def _parse_xml(raw_xml: str) -> ElementTree.Element | None:
    """Parse XML text, returning None for anything unparseable."""
    text = raw_xml.lstrip("\ufeff").strip()
    if not text:
        return None
    try:
        return ElementTree.fromstring(text)
    except (ElementTree.ParseError, ValueError) as e:
        LOGGER.debug("Could not parse sitemap XML: %s", e)
        return None


def _find_first(root: ElementTree.Element | None, name: str) -> ElementTree.Element | None:
    """First element (document order) with this local name, any namespace."""
    if root is None:
        return None
    for element in root.iter():
        if isinstance(element.tag, str) and _split_tag(element.tag)[1] == name:
            return element
    return None


def get_kind(root: ElementTree.Element | None) -> SitemapKind:
    """Determine document kind from the presence of sitemapindex/urlset."""
    if _find_first(root, "sitemapindex") is not None:
        return "index"
    if _find_first(root, "urlset") is not None:
        return "urlset"
    return "unknown"


def extract_child_sitemaps(root: ElementTree.Element | None) -> list[str]:
    """
    Extract child sitemap locations from a sitemap index.

    Args:
        root: Parsed document root.

    Returns:
        Stripped <loc> values of every sitemapindex > sitemap > loc that start
        with "http", in document order.
    """
    index = _find_first(root, "sitemapindex")
    if index is None:
        return []

    namespace = _split_tag(index.tag)[0]
    children: list[str] = []
    for sitemap_elem in _children(index, "sitemap", namespace):
        for loc_elem in _children(sitemap_elem, "loc", namespace):
            loc = (loc_elem.text or "").strip()
            if loc.startswith("http"):
                children.append(loc)
    return children


def extract_urls(root: ElementTree.Element | None) -> list[UrlItem]:
    """
    Extract page entries from a urlset.

    Args:
        root: Parsed document root.

    Returns:
        One UrlItem per urlset > url whose first <loc> starts with "http".
    """
    urlset = _find_first(root, "urlset")
    if urlset is None:
        return []

    namespace = _split_tag(urlset.tag)[0]
    items: list[UrlItem] = []
    for url_elem in _children(urlset, "url", namespace):
        loc = _first_text(url_elem, "loc", namespace)
        if not loc.startswith("http"):
            continue
        lastmod = _first_text(url_elem, "lastmod", namespace) or None
        items.append(UrlItem(loc=loc, lastmod=lastmod))
    return items


def parse_lastmod(value: str) -> datetime | None:
    """
    Parse a lastmod value as an aware UTC datetime.

    Accepts ISO 8601 (date only, "Z", offsets, fractions) and RFC 2822 dates.
    Values without a timezone are taken as UTC.

    Args:
        value: Raw lastmod text.

    Returns:
        Parsed datetime, or None when the value is not a timestamp.
    """
    value = value.strip()
    if not value:
        return None

    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError, IndexError):
            LOGGER.debug("Could not parse lastmod: %s", value)
            return None

    try:
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        # Offset pushes the value outside the datetime range
        LOGGER.debug("Lastmod out of range: %s", value)
        return None


def count_distinct_lastmod_days(lastmods: list[str]) -> int:
    """Count distinct UTC calendar dates among parseable lastmod values."""
    days: set[date] = set()
    for value in lastmods:
        parsed = parse_lastmod(value)
        if parsed is not None:
            days.add(parsed.date())
    return len(days)


def detect_namespaces(raw_xml: str) -> SitemapNamespaces:
    """Detect news/video extension namespaces in the raw text."""
    return SitemapNamespaces(
        news=bool(NEWS_NS_RE.search(raw_xml)),
        video=bool(VIDEO_NS_RE.search(raw_xml)),
    )


def looks_date_sharded(sitemap_url: str) -> bool:
    """True if the URL path has a YYYY/MM/DD segment or a _<n>.xml suffix."""
    try:
        path = urlsplit(sitemap_url).path
    except ValueError:
        return False
    return bool(DATE_SEGMENT_RE.search(path) or SHARD_SUFFIX_RE.search(path))


def detect_mode(sitemap_url: str, stats: SitemapStats) -> tuple[SitemapMode, list[str]]:
    """
    Infer how a urlset is refreshed.

    Rules, first match wins:
    1. sharded: date/shard URL and lastmods concentrated on at most one day.
    2. rolling: generic sitemap filename, or lastmods spread over 2+ days.
    3. unknown.

    Args:
        sitemap_url: URL the urlset was fetched from.
        stats: Aggregates computed from the urlset entries.

    Returns:
        Tuple of (mode, reasons).
    """
    days = stats.lastmod_days

    if looks_date_sharded(sitemap_url) and (days == 1 or (stats.has_lastmod and days == 0)):
        return "sharded", ["URL matches a date/shard pattern", "lastmod concentrated on a single day"]

    if GENERIC_NAME_RE.search(sitemap_url.lower()) or days >= 2:
        return "rolling", ["generic sitemap name or lastmod spread over multiple days"]

    return "unknown", ["no strong pattern matched"]


def analyze_sitemap(sitemap_url: str, raw_xml: str | bytes) -> SitemapAnalysis:
    """
    Classify a sitemap document.

    Args:
        sitemap_url: URL the document was fetched from.
        raw_xml: Raw XML text (bytes are decoded as UTF-8).

    Returns:
        A complete SitemapAnalysis; never raises on malformed XML.
    """
    if isinstance(raw_xml, bytes):
        raw_xml = raw_xml.decode("utf-8", errors="replace")

    root = _parse_xml(raw_xml)
    kind = get_kind(root)
    namespaces = detect_namespaces(raw_xml)
    reasons: list[str] = []

    children: list[str] | None = None
    urls: list[UrlItem] | None = None
    stats: SitemapStats | None = None
    mode: SitemapMode = "unknown"

    if kind == "index":
        children = extract_child_sitemaps(root)
        mode = "index"
        reasons.append("sitemapindex found")
    elif kind == "urlset":
        urls = extract_urls(root)
        lastmods = [u.lastmod for u in urls if u.lastmod]
        stats = SitemapStats(
            url_count=len(urls),
            has_lastmod=bool(lastmods),
            lastmod_days=count_distinct_lastmod_days(lastmods),
        )
        mode, mode_reasons = detect_mode(sitemap_url, stats)
        reasons.extend(mode_reasons)
    else:
        reasons.append("unrecognized XML structure")

    if namespaces.news:
        reasons.append("news namespace present")
    if namespaces.video:
        reasons.append("video namespace present")

    LOGGER.debug("Sitemap %s classified as %s/%s", sitemap_url, kind, mode)

    return SitemapAnalysis(
        url=sitemap_url,
        kind=kind,
        mode=mode,
        reasons=reasons,
        namespaces=namespaces,
        children=children,
        urls=urls,
        stats=stats,
    )
