"""Feed pipeline: fetch, parse, join.

`EventPipeline.run()` is the whole request-scoped computation behind
`GET /api/fetchEvents`:

1. Fetch the venue and event feeds (concurrently, or from the cache when enabled)
2. Parse and validate both documents into a `FeedSnapshot`
3. Join venues to events and keep venues with enough events

Any failure is terminal. There is no partial result and no retry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable

from event_discovery.config import Settings, get_settings
from event_discovery.feeds.cache import FeedCache
from event_discovery.feeds.client import FeedClient
from event_discovery.feeds.parser import parse_events, parse_venues
from event_discovery.models.venue import FeedSnapshot, VenueEventsGroup
from event_discovery.pipeline.join import join_venues_events

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Output of one pipeline run."""

    groups: list[VenueEventsGroup]
    fetched_at: datetime
    from_cache: bool = False
    venue_count: int = 0
    event_count: int = 0

    def to_response(self) -> list[dict]:
        return [group.to_response() for group in self.groups]


class EventPipeline:
    """Fetches both feeds and joins them.

    Example:
        ```python
        pipeline = EventPipeline(get_settings())
        result = await pipeline.run()
        payload = result.to_response()
        ```
    """

    def __init__(
        self,
        settings: Settings,
        client_factory: Callable[[], FeedClient] | None = None,
        cache: FeedCache | None = None,
    ):
        """Initialize the pipeline.

        Args:
            settings: Application settings (feed URLs, timeout, threshold)
            client_factory: Builds the feed client (tests inject a mock transport)
            cache: Feed cache, or None to always fetch
        """
        self.settings = settings
        self.venue_url = settings.venue_feed_url
        self.event_url = settings.event_feed_url
        self.min_events = settings.min_events_per_venue
        self.cache = cache
        self._client_factory = client_factory or self._default_client

    def _default_client(self) -> FeedClient:
        return FeedClient(
            timeout=self.settings.feed_timeout_seconds,
            user_agent=self.settings.feed_user_agent,
        )

    async def _fetch(self) -> tuple[str, str, datetime, bool]:
        """Return (venue_doc, event_doc, fetched_at, from_cache)."""
        if self.cache is not None:
            venue_hit = self.cache.get(self.venue_url)
            event_hit = self.cache.get(self.event_url)
            if venue_hit is not None and event_hit is not None:
                fetched_at = min(venue_hit.fetched_at, event_hit.fetched_at)
                return venue_hit.content, event_hit.content, fetched_at, True

        logger.info("Fetching venue and event feeds")
        async with self._client_factory() as client:
            venue_doc, event_doc = await client.fetch_both(self.venue_url, self.event_url)
        fetched_at = datetime.now(timezone.utc)

        return venue_doc, event_doc, fetched_at, False

    async def load_snapshot(self) -> FeedSnapshot:
        """Fetch and parse both feeds.

        Raises:
            FetchFailure: If either feed cannot be fetched
            ParseFailure: If either feed is malformed or fails validation
        """
        venue_doc, event_doc, fetched_at, from_cache = await self._fetch()

        venues = parse_venues(self.venue_url, venue_doc)
        events = parse_events(self.event_url, event_doc)

        # Only cache documents that parsed
        if self.cache is not None and not from_cache:
            self.cache.put(self.venue_url, venue_doc, fetched_at)
            self.cache.put(self.event_url, event_doc, fetched_at)

        if venues:
            logger.debug(f"First venue: {venues[0]!r}")
        if events:
            logger.debug(f"First event: {events[0]!r}")

        return FeedSnapshot(
            venues=venues,
            events=events,
            fetched_at=fetched_at,
            from_cache=from_cache,
        )

    async def run(self) -> PipelineResult:
        """Run the pipeline once."""
        snapshot = await self.load_snapshot()
        groups = join_venues_events(snapshot.venues, snapshot.events, self.min_events)

        return PipelineResult(
            groups=groups,
            fetched_at=snapshot.fetched_at,
            from_cache=snapshot.from_cache,
            venue_count=len(snapshot.venues),
            event_count=len(snapshot.events),
        )


@lru_cache
def get_feed_cache() -> FeedCache | None:
    """Process-wide feed cache, or None when caching is disabled."""
    settings = get_settings()
    if not settings.feed_cache_enabled:
        return None
    return FeedCache(settings.feed_cache_ttl_seconds)


def get_pipeline() -> EventPipeline:
    """FastAPI dependency for the feed pipeline."""
    return EventPipeline(get_settings(), cache=get_feed_cache())
