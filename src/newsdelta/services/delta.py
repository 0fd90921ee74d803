"""Stateless new-versus-seen computation for one sitemap document."""

import logging
from collections.abc import Set
from urllib.parse import urlsplit

from newsdelta.discovery.robots import PathPredicate, is_path_allowed
from newsdelta.discovery.sitemap import analyze_sitemap
from newsdelta.exceptions import InvalidUrlError
from newsdelta.models import DeltaResult, RobotsRules
from newsdelta.utils import HashBits, hash_url

LOGGER = logging.getLogger(__name__)


def compute_delta(
    sitemap_url: str,
    raw_xml: str | bytes,
    rules: RobotsRules,
    is_path_allowed: PathPredicate = is_path_allowed,
    seen_hashes: Set[str] = frozenset(),
    hash_bits: HashBits = 128,
) -> DeltaResult:
    """
    Split a urlset's crawlable URLs into new and already-seen.

    Only https URLs whose path passes the robots check are considered. Index
    and unrecognised documents yield empty lists; the caller recurses into
    ``analysis.children`` itself. Nothing is persisted and ``seen_hashes`` is
    never modified: committing ``new_hashes`` is up to the caller.

    Args:
        sitemap_url: URL the document was fetched from.
        raw_xml: Raw sitemap XML.
        rules: Effective robots rules for the crawler's user agent.
        is_path_allowed: Path permission check (defaults to the robots engine).
        seen_hashes: Snapshot of previously recorded dedup hashes.
        hash_bits: Dedup hash width, 64 or 128.

    Returns:
        DeltaResult with aligned URL/hash lists.
    """
    analysis = analyze_sitemap(sitemap_url, raw_xml)

    if analysis.kind != "urlset" or not analysis.urls:
        return DeltaResult(analysis=analysis)

    all_urls: list[str] = []
    all_hashes: list[str] = []

    for item in analysis.urls:
        loc = item.loc
        if not loc.startswith("https://"):
            continue

        try:
            path = urlsplit(loc).path
            if not is_path_allowed(path, rules):
                continue
            url_hash = hash_url(loc, hash_bits)
        except (ValueError, InvalidUrlError) as e:
            LOGGER.warning("Skipping malformed sitemap URL %s: %s", loc, e)
            continue

        all_urls.append(loc)
        all_hashes.append(url_hash)

    new_urls: list[str] = []
    new_hashes: list[str] = []
    for url, url_hash in zip(all_urls, all_hashes):
        if url_hash not in seen_hashes:
            new_urls.append(url)
            new_hashes.append(url_hash)

    LOGGER.debug(
        "Delta for %s: %d crawlable, %d new",
        sitemap_url,
        len(all_urls),
        len(new_urls),
    )

    return DeltaResult(
        analysis=analysis,
        all_urls=all_urls,
        all_hashes=all_hashes,
        new_urls=new_urls,
        new_hashes=new_hashes,
    )
