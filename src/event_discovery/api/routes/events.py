"""Venue/event routes.

`GET /api/fetchEvents` runs the feed pipeline and returns the venues with
enough events, each with its events attached:

```json
[
  {
    "venueID": "36310035",
    "venueNameC": "...",
    "venueNameE": "...",
    "latitude": 22.29386,
    "longitude": 114.17053,
    "events": [{"@_id": "152517", "venueid": "36310035", "titlee": "..."}]
  }
]
```

Feed failures are handled by the app-level `FeedError` handler (500).
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Response

from event_discovery.pipeline.service import EventPipeline, get_pipeline

logger = logging.getLogger(__name__)

router = APIRouter()

FETCHED_AT_HEADER = "X-Feed-Fetched-At"
CACHE_HEADER = "X-Feed-Cache"


@router.get("/fetchEvents")
async def fetch_events(
    response: Response,
    pipeline: EventPipeline = Depends(get_pipeline),
) -> list[dict[str, Any]]:
    """Fetch both feeds, join them and return the venue groups."""
    result = await pipeline.run()

    response.headers[FETCHED_AT_HEADER] = result.fetched_at.isoformat()
    if pipeline.cache is not None:
        response.headers[CACHE_HEADER] = "hit" if result.from_cache else "miss"

    logger.info(
        f"Returning {len(result.groups)} venue groups "
        f"({result.venue_count} venues, {result.event_count} events in feeds)"
    )
    return result.to_response()
