"""Time-bounded cache of fetched feed documents.

The feeds are static government datasets republished on a schedule, so
refetching them on every request is wasteful. This cache is opt-in
(`FEED_CACHE_TTL_SECONDS > 0`). When it is off every request goes to the
remote feeds.

Entries are keyed by feed URL and remember when they were fetched, so callers
can report how stale a response is.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone

from cachetools import TTLCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedFeed:
    """A feed document and the time it was fetched."""

    url: str
    content: bytes
    fetched_at: datetime

    @property
    def age_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.fetched_at).total_seconds()


class FeedCache:
    """TTL cache of feed documents keyed by URL."""

    def __init__(self, ttl_seconds: int, maxsize: int = 8):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._entries: TTLCache[str, CachedFeed] = TTLCache(maxsize=maxsize, ttl=ttl_seconds)
        self._lock = threading.Lock()

    def get(self, url: str) -> CachedFeed | None:
        with self._lock:
            entry = self._entries.get(url)
        if entry is not None:
            logger.debug(f"Feed cache hit for {url} (age {entry.age_seconds:.0f}s)")
        return entry

    def put(self, url: str, content: bytes, fetched_at: datetime | None = None) -> CachedFeed:
        entry = CachedFeed(
            url=url,
            content=content,
            fetched_at=fetched_at or datetime.now(timezone.utc),
        )
        with self._lock:
            self._entries[url] = entry
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
