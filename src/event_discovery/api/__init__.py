"""FastAPI application and routes.

This module provides the REST API for the event discovery service.

## API Structure

- /api/check-auth, /api/login, /api/signup, /api/logout - Sessions
- /api/fetchEvents - Venues joined with their events from the open-data feeds
- /api/updateLocation, /api/locations - Favorite venues
- /health - Health check

## Authentication

Sessions are created at login or signup and carried in an HTTP-only cookie.
"""

from event_discovery.api.app import create_app

__all__ = ["create_app"]
