"""URL canonicalisation, dedup hashing and small shared helpers."""

import hashlib
import logging
from typing import Any, Literal
from urllib.parse import SplitResult, parse_qsl, urlencode, urlsplit, urlunsplit

from newsdelta.exceptions import InvalidUrlError, ValidationError, generate_correlation_id

LOGGER = logging.getLogger(__name__)

HashBits = Literal[64, 128]

# Hex digits kept from the SHA-256 digest for each supported width
HASH_WIDTHS: dict[int, int] = {64: 16, 128: 32}

DEFAULT_PORTS = {"http": 80, "https": 443}


def log_with_correlation(
    logger: logging.Logger,
    level: int,
    message: str,
    correlation_id: str | None = None,
    **kwargs: Any,
) -> None:
    """
    Log a message with correlation ID and additional context.

    Args:
        logger: Logger instance to use.
        level: Logging level (e.g., logging.INFO, logging.ERROR).
        message: Log message format string.
        correlation_id: Optional correlation ID. If None, generates a new one.
        **kwargs: Additional context to include in log extra fields.
    """
    corr_id = correlation_id or generate_correlation_id()
    extra = {"correlation_id": corr_id, **kwargs}
    logger.log(level, message, extra=extra)


def _split_absolute(raw_url: str) -> SplitResult:
    """Split a URL, insisting on a scheme and a host."""
    if not raw_url or not raw_url.strip():
        raise InvalidUrlError(url=raw_url)

    try:
        parts = urlsplit(raw_url.strip())
        # Accessing port validates it (raises ValueError on garbage)
        _ = parts.port
    except ValueError as e:
        raise InvalidUrlError(url=raw_url) from e

    if not parts.scheme or not parts.netloc or not parts.hostname:
        raise InvalidUrlError(url=raw_url)
    return parts


def _host_port(parts: SplitResult) -> str:
    """Return lowercased host with any non-default port, without userinfo."""
    hostport = parts.netloc.rsplit("@", 1)[-1].lower()
    scheme = parts.scheme.lower()
    if parts.port is not None and parts.port == DEFAULT_PORTS.get(scheme):
        hostport = hostport.rsplit(":", 1)[0]
    return hostport


def _authority(parts: SplitResult) -> str:
    """Return the full authority with host normalised and userinfo preserved."""
    hostport = _host_port(parts)
    if "@" in parts.netloc:
        userinfo = parts.netloc.rsplit("@", 1)[0]
        return f"{userinfo}@{hostport}"
    return hostport


def normalise_url(raw_url: str) -> str:
    """
    Normalise a URL into the canonical form used as the dedup key.

    - Lowercases scheme and host and drops a default port.
    - Strips the fragment.
    - Drops every query parameter whose key starts with ``utm_``
      (case-insensitive); the remaining parameters keep their order and case.

    Args:
        raw_url: Absolute URL to normalise.

    Returns:
        Canonical absolute URL string.

    Raises:
        InvalidUrlError: If the value is not an absolute URL.
    """
    parts = _split_absolute(raw_url)

    params = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if not key.lower().startswith("utm_")
    ]

    return urlunsplit(
        (
            parts.scheme.lower(),
            _authority(parts),
            parts.path or "/",
            urlencode(params),
            "",
        )
    )


def hash_url(url: str, bits: HashBits = 64) -> str:
    """
    Return the truncated SHA-256 dedup hash of a normalised URL.

    The 64-bit value is always the first half of the 128-bit value for the
    same input, since both are prefixes of one digest.

    Args:
        url: URL to hash.
        bits: Hash width, 64 (16 hex chars) or 128 (32 hex chars).

    Returns:
        Lowercase hexadecimal hash string.

    Raises:
        InvalidUrlError: If the URL cannot be normalised.
        ValidationError: If bits is not 64 or 128.
    """
    width = HASH_WIDTHS.get(bits)
    if width is None:
        raise ValidationError("Hash width must be 64 or 128 bits", field="bits", value=bits)

    canonical = normalise_url(url)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:width]


def define_base_url(site_url: str) -> str:
    """
    Derive the https origin of a site.

    Args:
        site_url: Any URL on the site, e.g. "https://example.com/news".

    Returns:
        Origin string such as "https://example.com".

    Raises:
        InvalidUrlError: If the value is empty, not absolute, or not https.
    """
    parts = _split_absolute(site_url)
    if parts.scheme.lower() != "https":
        raise InvalidUrlError(url=site_url)
    return f"https://{_host_port(parts)}"


def url_path(url: str) -> str:
    """
    Extract a path component from a URL with a sensible default.

    Args:
        url: URL string.

    Returns:
        Path portion or "/" when absent.
    """
    parsed = urlsplit(url)
    return parsed.path or "/"
