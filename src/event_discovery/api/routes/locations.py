"""Favorite location routes."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from event_discovery.database.connection import get_db_session
from event_discovery.database.models import Location
from event_discovery.database.repository import add_locations, list_locations

logger = logging.getLogger(__name__)

router = APIRouter()


class SelectedVenue(BaseModel):
    """A venue picked on the frontend, as rendered from /api/fetchEvents."""

    venueNameE: str | None = None
    venueNameC: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def blank_is_missing(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def to_location(self) -> Location:
        return Location(
            namee=self.venueNameE,
            namec=self.venueNameC or "",
            latitude=self.latitude,
            longitude=self.longitude,
        )


class UpdateLocationRequest(BaseModel):
    selectedVenues: list[SelectedVenue] = Field(default_factory=list)


class LocationResponse(BaseModel):
    id: int
    namee: str | None
    namec: str | None
    latitude: float | None
    longitude: float | None


@router.post("/updateLocation", status_code=status.HTTP_201_CREATED)
async def update_location(
    body: UpdateLocationRequest,
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    """Store each selected venue as a favorite location.

    Every entry becomes a new row, even if the venue was saved before.
    """
    rows = await add_locations(db, (venue.to_location() for venue in body.selectedVenues))

    logger.info(f"Stored {len(rows)} favorite locations")

    return {
        "success": True,
        "message": "Successfully updated venues",
        "count": len(rows),
    }


@router.get("/locations", response_model=list[LocationResponse])
async def get_locations(
    db: AsyncSession = Depends(get_db_session),
) -> list[LocationResponse]:
    """List stored favorite locations, oldest first."""
    rows = await list_locations(db)
    return [
        LocationResponse(
            id=row.id,
            namee=row.namee,
            namec=row.namec,
            latitude=row.latitude,
            longitude=row.longitude,
        )
        for row in rows
    ]
