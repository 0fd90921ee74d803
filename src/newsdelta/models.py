"""Data models for newsdelta."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# robots.txt
# =============================================================================


class RobotsRules(BaseModel):
    """Effective robots.txt rules for one user agent.

    Built once per robots.txt fetch and never mutated afterwards. Rule lists
    keep document order; ``sitemaps`` holds every ``Sitemap:`` directive in
    the file regardless of which user-agent block it appeared in.
    """

    model_config = ConfigDict(frozen=True)

    allows: list[str] = Field(default_factory=list)
    disallows: list[str] = Field(default_factory=list)
    sitemaps: list[str] = Field(default_factory=list)


# =============================================================================
# Sitemaps
# =============================================================================

SitemapKind = Literal["index", "urlset", "unknown"]
SitemapMode = Literal["index", "sharded", "rolling", "unknown"]


class UrlItem(BaseModel):
    """A single <url> entry from a urlset."""

    loc: str
    lastmod: str | None = None


class SitemapNamespaces(BaseModel):
    """Extension namespaces detected in the raw sitemap text."""

    news: bool = False
    video: bool = False


class SitemapStats(BaseModel):
    """Aggregate figures for a urlset, used by mode detection."""

    url_count: int
    lastmod_days: int
    has_lastmod: bool


class SitemapAnalysis(BaseModel):
    """Classification of one sitemap document.

    ``children`` is only set for index documents, ``urls`` and ``stats`` only
    for urlsets. ``reasons`` explains, in order, how kind and mode were decided.
    """

    url: str
    kind: SitemapKind
    mode: SitemapMode
    reasons: list[str] = Field(default_factory=list)
    namespaces: SitemapNamespaces = Field(default_factory=SitemapNamespaces)
    children: list[str] | None = None
    urls: list[UrlItem] | None = None
    stats: SitemapStats | None = None


# =============================================================================
# Delta
# =============================================================================


class DeltaResult(BaseModel):
    """New-versus-seen partition of one sitemap document.

    ``all_urls[i]`` and ``all_hashes[i]`` always describe the same entry, and
    ``new_urls``/``new_hashes`` keep the relative order of the ``all_*`` lists.
    """

    analysis: SitemapAnalysis
    all_urls: list[str] = Field(default_factory=list)
    all_hashes: list[str] = Field(default_factory=list)
    new_urls: list[str] = Field(default_factory=list)
    new_hashes: list[str] = Field(default_factory=list)


class DeltaReport(BaseModel):
    """Result of walking every sitemap of a site once."""

    site_url: str
    success: bool
    rules: RobotsRules | None = None
    documents: list[DeltaResult] = Field(default_factory=list)
    new_urls: list[str] = Field(default_factory=list)
    new_hashes: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    error: str | None = None


class DeltaEvent(BaseModel):
    """Event emitted while walking a site's sitemaps.

    Provides progress feedback during fetching and classification.
    """

    type: Literal["robots", "sitemap", "delta", "complete", "error"]
    url: str | None = None
    message: str | None = None
    delta: DeltaResult | None = None  # Only set for "delta" type
    report: DeltaReport | None = None  # Only set for "complete" and "error" types
