"""Open-data feed access: fetching, parsing and caching."""

from event_discovery.feeds.cache import CachedFeed, FeedCache
from event_discovery.feeds.client import FeedClient
from event_discovery.feeds.parser import parse_events, parse_venues, parse_xml

__all__ = [
    "CachedFeed",
    "FeedCache",
    "FeedClient",
    "parse_events",
    "parse_venues",
    "parse_xml",
]
