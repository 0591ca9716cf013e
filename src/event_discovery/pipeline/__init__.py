"""Venue/event pipeline."""

from event_discovery.pipeline.join import (
    DEFAULT_MIN_EVENTS,
    index_events_by_venue,
    join_venues_events,
)
from event_discovery.pipeline.service import (
    EventPipeline,
    PipelineResult,
    get_pipeline,
)

__all__ = [
    "DEFAULT_MIN_EVENTS",
    "index_events_by_venue",
    "join_venues_events",
    "EventPipeline",
    "PipelineResult",
    "get_pipeline",
]
