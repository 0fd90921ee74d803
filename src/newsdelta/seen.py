"""Local store of seen dedup hashes.

A minimal stand-in for the uniqueness-constrained hash column of a real
article store. The delta engine only reads a snapshot; recording new hashes
is an explicit, separate step.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from newsdelta.config import get_settings

LOGGER = logging.getLogger(__name__)


class SeenEntry(BaseModel):
    """A recorded URL hash."""

    url: str
    first_seen: str  # ISO format timestamp


class SeenHashStore:
    """Manages a JSON file of seen URL hashes.

    Usage:
        store = SeenHashStore()
        result = compute_delta(url, xml, rules, seen_hashes=store.snapshot())
        store.record(result.new_urls, result.new_hashes)

    File structure:
        ~/.newsdelta/seen.json
        {"<hash>": {"url": "...", "first_seen": "..."}, ...}
    """

    def __init__(self, path: Path | None = None):
        """Initialise store.

        Args:
            path: State file. Defaults to NEWSDELTA_STATE_PATH or
                ~/.newsdelta/seen.json.
        """
        self.path = path or get_settings().get_state_path()

        # Ensure parent directory exists
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _load(self) -> dict[str, SeenEntry]:
        """Load entries from disk.

        Returns:
            Dict mapping hash to entry. Empty when missing or unreadable.
        """
        if not self.path.exists():
            return {}

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return {key: SeenEntry.model_validate(value) for key, value in raw.items()}
        except (json.JSONDecodeError, OSError, ValidationError, AttributeError) as e:
            LOGGER.warning("Failed to load seen hashes from %s: %s", self.path, e)
            return {}

    def _save(self, entries: dict[str, SeenEntry]) -> None:
        """Write entries to disk.

        Args:
            entries: Dict mapping hash to entry.
        """
        payload = {key: entry.model_dump() for key, entry in entries.items()}
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def snapshot(self) -> frozenset[str]:
        """Return the currently recorded hashes."""
        return frozenset(self._load())

    def record(self, urls: list[str], hashes: list[str]) -> int:
        """Record hashes that are not yet present.

        A hash that is already recorded counts as already seen, never as an
        error, so concurrent runs that discover the same URL are harmless.

        Args:
            urls: URLs aligned with hashes.
            hashes: Dedup hashes to record.

        Returns:
            Number of hashes newly recorded.
        """
        if len(urls) != len(hashes):
            raise ValueError("urls and hashes must have the same length")

        entries = self._load()
        now = datetime.now(timezone.utc).isoformat()
        inserted = 0

        for url, url_hash in zip(urls, hashes):
            if url_hash in entries:
                LOGGER.debug("Already seen: %s", url)
                continue
            entries[url_hash] = SeenEntry(url=url, first_seen=now)
            inserted += 1

        if inserted:
            self._save(entries)
        LOGGER.debug("Recorded %d new hashes in %s", inserted, self.path)
        return inserted

    def clear(self) -> int:
        """Remove every recorded hash.

        Returns:
            Number of entries cleared.
        """
        cleared = len(self._load())
        if self.path.exists():
            self.path.unlink()
        LOGGER.debug("Cleared %d seen hashes", cleared)
        return cleared

    def stats(self) -> dict[str, Any]:
        """Get store statistics.

        Returns:
            Dict with entry count, file size and first/last recorded times.
        """
        entries = self._load()
        seen_times = sorted(entry.first_seen for entry in entries.values())
        size = self.path.stat().st_size if self.path.exists() else 0

        return {
            "path": str(self.path),
            "entries": len(entries),
            "size_bytes": size,
            "oldest": seen_times[0] if seen_times else None,
            "newest": seen_times[-1] if seen_times else None,
        }
