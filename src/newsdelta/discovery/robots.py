"""robots.txt parsing and permission evaluation.

Only the commonly used subset of robots.txt is understood: User-agent groups,
Allow, Disallow, Sitemap, ``*`` wildcards and a trailing ``$``. Parsing is
permissive and never fails; unknown or malformed lines are skipped.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, TypeAlias
from urllib.parse import urlsplit

from newsdelta.models import RobotsRules

LOGGER = logging.getLogger(__name__)

# Signature of a path permission check, injectable into compute_delta
PathPredicate: TypeAlias = Callable[[str, RobotsRules], bool]


@dataclass
class _Block:
    """One User-agent group while parsing."""

    agents: list[str] = field(default_factory=list)
    allows: list[str] = field(default_factory=list)
    disallows: list[str] = field(default_factory=list)

    def has_rules(self) -> bool:
        return bool(self.allows or self.disallows)

    def is_empty(self) -> bool:
        return not (self.agents or self.allows or self.disallows)


def parse_robots_txt(content: str, user_agent: str = "*") -> RobotsRules:
    """
    Parse robots.txt content into the effective rules for one user agent.

    Consecutive User-agent lines share the rule set that follows them. When a
    block names ``user_agent`` exactly, only such blocks apply; otherwise
    every ``*`` block applies. Sitemap directives are collected from the
    whole file.

    Args:
        content: Raw robots.txt content.
        user_agent: User agent to match rules for.

    Returns:
        RobotsRules with rules concatenated in document order.
    """
    blocks: list[_Block] = []
    current = _Block()
    sitemaps: list[str] = []

    for raw_line in content.replace("\r\n", "\n").split("\n"):
        line = raw_line.strip()

        # Skip comments and empty lines
        if not line or line.startswith("#"):
            continue

        # Remove inline comments
        if "#" in line:
            line = line.split("#", 1)[0].strip()

        if ":" not in line:
            continue

        directive, value = line.split(":", 1)
        directive = directive.strip().lower()
        value = value.strip()

        if directive == "user-agent":
            # A User-agent line after rules starts a new group
            if current.agents and current.has_rules():
                blocks.append(current)
                current = _Block()
            current.agents.append(value.lower())

        elif directive == "allow":
            current.allows.append(value)

        elif directive == "disallow":
            current.disallows.append(value)

        elif directive == "sitemap":
            # Sitemap directives are global
            sitemaps.append(value)

    if not current.is_empty():
        blocks.append(current)

    wanted = user_agent.lower()
    exact = [b for b in blocks if wanted in b.agents]
    effective = exact or [b for b in blocks if "*" in b.agents]

    LOGGER.debug(
        "robots.txt: %d blocks, %d selected for %r, %d sitemaps",
        len(blocks),
        len(effective),
        user_agent,
        len(sitemaps),
    )

    return RobotsRules(
        allows=[rule for b in effective for rule in b.allows],
        disallows=[rule for b in effective for rule in b.disallows],
        sitemaps=sitemaps,
    )


def _matches_rule(path: str, rule: str) -> bool:
    """
    Check if a path matches a robots.txt rule.

    Handles:
    - Empty rule (never matches)
    - "/" (matches every path)
    - Trailing $ (whole-path equality, not suffix anchoring)
    - * wildcard (prefix match with interior wildcards)
    - Plain prefix matching

    Args:
        path: URL path to check.
        rule: robots.txt rule value.

    Returns:
        True if the rule matches.
    """
    if not rule:
        return False

    if rule == "/":
        return path.startswith("/")

    if rule.endswith("$"):
        return path == rule[:-1]

    if "*" in rule:
        regex_pattern = ".*".join(re.escape(part) for part in rule.split("*"))
        return re.match(regex_pattern, path) is not None

    return path.startswith(rule)


def _longest_match(path: str, rules: list[str]) -> str:
    """Return the longest matching rule, the first one on ties, or ""."""
    best = ""
    for rule in rules:
        if len(rule) > len(best) and _matches_rule(path, rule):
            best = rule
    return best


def is_path_allowed(path: str, rules: RobotsRules) -> bool:
    """
    Check if a path may be fetched under the given rules.

    The longest matching rule wins; when an Allow and a Disallow match with
    the same length, Allow wins.

    Args:
        path: URL path to check. Empty means "/".
        rules: Parsed robots rules.

    Returns:
        True if the path is allowed, False if disallowed.
    """
    path = path or "/"

    best_disallow = _longest_match(path, rules.disallows)
    if not best_disallow:
        return True

    best_allow = _longest_match(path, rules.allows)
    if not best_allow:
        return False

    return len(best_allow) >= len(best_disallow)


def is_url_allowed(url: str, rules: RobotsRules) -> bool:
    """
    Check if a URL is allowed by robots.txt rules.

    Args:
        url: URL to check.
        rules: Parsed robots rules.

    Returns:
        True if URL is allowed, False if disallowed.
    """
    return is_path_allowed(urlsplit(url).path, rules)


def filter_urls_by_robots(
    urls: list[str],
    rules: RobotsRules,
    log_skipped: bool = True,
) -> tuple[list[str], list[str]]:
    """
    Filter URLs based on robots.txt rules.

    Args:
        urls: List of URLs to filter.
        rules: Parsed robots rules.
        log_skipped: Whether to log skipped URLs.

    Returns:
        Tuple of (allowed_urls, disallowed_urls).
    """
    allowed: list[str] = []
    disallowed: list[str] = []

    for url in urls:
        if is_url_allowed(url, rules):
            allowed.append(url)
        else:
            disallowed.append(url)
            if log_skipped:
                LOGGER.info("Skipping URL (robots.txt): %s", url)

    return allowed, disallowed
