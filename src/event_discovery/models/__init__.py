"""Domain models for event discovery."""

from event_discovery.models.venue import (
    VenueRecord,
    EventRecord,
    VenueEventsGroup,
    FeedSnapshot,
)

__all__ = [
    "VenueRecord",
    "EventRecord",
    "VenueEventsGroup",
    "FeedSnapshot",
]
