"""Venue and event models for the open-data feeds.

Records are validated straight out of the parsed XML tree. Attribute keys carry
the `@_` prefix produced by the parser (`<venue id="...">` becomes `@_id`).

The venue feed looks like:

```xml
<venues>
  <venue id="36310035">
    <venuec>香港文化中心 (大劇院)</venuec>
    <venuee>Hong Kong Cultural Centre (Grand Theatre)</venuee>
    <latitude>22.29386</latitude>
    <longitude>114.17053</longitude>
  </venue>
</venues>
```

and the event feed:

```xml
<events>
  <event id="152517">
    <titlec>...</titlec>
    <titlee>...</titlee>
    <venueid>36310035</venueid>
    ...
  </event>
</events>
```
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN_NAME = "Unknown"


def _id_to_str(v: Any) -> Any:
    # Ids are compared as strings on both sides of the join
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    if isinstance(v, str):
        return v.strip()
    return v


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


class VenueRecord(BaseModel):
    """A venue from the venue feed."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., alias="@_id", min_length=1)
    name_c: str | None = Field(default=None, alias="venuec")
    name_e: str | None = Field(default=None, alias="venuee")
    latitude: float | None = None
    longitude: float | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return _id_to_str(v)

    @field_validator("name_c", "name_e", "latitude", "longitude", mode="before")
    @classmethod
    def blank_is_missing(cls, v: Any) -> Any:
        return _blank_to_none(v)


class EventRecord(BaseModel):
    """An event from the event feed.

    Only the fields used for the join are typed. Every other child element of
    `<event>` is kept as extra data so the record serializes back to what the
    feed published.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    id: str = Field(..., alias="@_id", min_length=1)
    venue_id: str = Field(..., alias="venueid", min_length=1)
    quota: int | None = None

    @field_validator("id", "venue_id", mode="before")
    @classmethod
    def coerce_to_str(cls, v: Any) -> Any:
        # The venue reference arrives as a number from some producers
        return _id_to_str(v)

    @field_validator("quota", mode="before")
    @classmethod
    def blank_quota(cls, v: Any) -> Any:
        return _blank_to_none(v)

    def to_response(self) -> dict[str, Any]:
        """Serialize with the feed's own keys."""
        data: dict[str, Any] = {"@_id": self.id, "venueid": self.venue_id}
        if "quota" in self.model_fields_set:
            data["quota"] = self.quota
        data.update(self.model_extra or {})
        return data


class VenueEventsGroup(BaseModel):
    """A venue together with the events held there, in feed order."""

    venue: VenueRecord
    events: list[EventRecord] = Field(default_factory=list)

    @property
    def event_count(self) -> int:
        return len(self.events)

    def to_response(self) -> dict[str, Any]:
        """Serialize to the shape the frontend renders."""
        return {
            "venueID": self.venue.id,
            "venueNameC": self.venue.name_c or UNKNOWN_NAME,
            "venueNameE": self.venue.name_e or UNKNOWN_NAME,
            "latitude": self.venue.latitude,
            "longitude": self.venue.longitude,
            "events": [event.to_response() for event in self.events],
        }


class FeedSnapshot(BaseModel):
    """Parsed contents of both feeds at one point in time."""

    venues: list[VenueRecord]
    events: list[EventRecord]
    fetched_at: datetime
    from_cache: bool = False
