"""Venue/event join.

Associates each venue with the events whose `venueid` matches the venue's `id`
attribute, and keeps only venues with enough events to be worth showing.

## Matching

Identifiers are compared as strings. The venue id is an XML attribute and is
always a string; the event's venue reference may arrive as a number and is
converted with `str()` before comparison, so `1` matches `"1"`.

## Ordering

Venues appear in venue-feed order and each venue's events appear in event-feed
order.

## Cost

The straightforward form is a nested scan, O(V x E). Events are instead indexed
by venue id in one pass, which gives O(V + E) with identical output. The index
holds every event in memory, which is fine for the LCSD feeds (a few thousand
events) but bounds how large a feed this can handle per request.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from event_discovery.models.venue import EventRecord, VenueEventsGroup, VenueRecord

logger = logging.getLogger(__name__)

# Venues with fewer events than this are dropped
DEFAULT_MIN_EVENTS = 3


def index_events_by_venue(events: Iterable[EventRecord]) -> dict[str, list[EventRecord]]:
    """Group events by their venue reference, preserving event order."""
    index: dict[str, list[EventRecord]] = {}
    for event in events:
        index.setdefault(str(event.venue_id), []).append(event)
    return index


def join_venues_events(
    venues: Sequence[VenueRecord],
    events: Sequence[EventRecord],
    min_events: int = DEFAULT_MIN_EVENTS,
) -> list[VenueEventsGroup]:
    """Join venues to their events.

    Args:
        venues: Venue records in feed order
        events: Event records in feed order
        min_events: Minimum number of events for a venue to be kept

    Returns:
        One group per venue with at least `min_events` events
    """
    if min_events < 1:
        raise ValueError("min_events must be at least 1")

    index = index_events_by_venue(events)

    groups: list[VenueEventsGroup] = []
    for venue in venues:
        matched = index.get(str(venue.id), [])
        if len(matched) >= min_events:
            groups.append(VenueEventsGroup(venue=venue, events=list(matched)))

    logger.info(
        f"Found {len(groups)} of {len(venues)} venues with {min_events}+ events "
        f"({len(events)} events total)"
    )
    return groups
