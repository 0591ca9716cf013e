"""Pytest fixtures for event discovery tests.

This module provides test fixtures that ensure:
1. No external HTTP calls are made (feeds are served by httpx.MockTransport)
2. The database is an in-memory SQLite instance, fresh per app instance
3. Isolated test environment with controlled configuration
"""

import os
from collections.abc import Callable

import httpx
import pytest

# Set test environment BEFORE importing application modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-at-least-32-characters-long")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DATABASE_CREATE_TABLES", "true")
os.environ.setdefault("FEED_CACHE_TTL_SECONDS", "0")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

from event_discovery.config import get_settings
from event_discovery.feeds.client import FeedClient
from event_discovery.pipeline.service import EventPipeline

VENUE_URL = "https://feeds.test/venues.xml"
EVENT_URL = "https://feeds.test/events.xml"


# =============================================================================
# Test Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_caches():
    """Reset cached settings and process-wide stores around each test."""
    from event_discovery.auth.session import get_session_store
    from event_discovery.pipeline.service import get_feed_cache

    caches = (get_settings, get_session_store, get_feed_cache)
    for cached in caches:
        cached.cache_clear()
    yield
    for cached in caches:
        cached.cache_clear()


# =============================================================================
# Feed documents
# =============================================================================


def venue_xml(*venues: tuple[str, str]) -> str:
    """Build a venue feed from (id, english name) pairs."""
    body = "".join(
        f'<venue id="{venue_id}">'
        f"<venuec>場地{venue_id}</venuec>"
        f"<venuee>{name}</venuee>"
        f"<latitude>22.3{venue_id}</latitude>"
        f"<longitude>114.1{venue_id}</longitude>"
        f"</venue>"
        for venue_id, name in venues
    )
    return f'<?xml version="1.0" encoding="UTF-8"?><venues>{body}</venues>'


def event_xml(*events: tuple[str, str]) -> str:
    """Build an event feed from (event id, venue id) pairs."""
    body = "".join(
        f'<event id="{event_id}">'
        f"<titlee>Event {event_id}</titlee>"
        f"<venueid>{venue_id}</venueid>"
        f"</event>"
        for event_id, venue_id in events
    )
    return f'<?xml version="1.0" encoding="UTF-8"?><events>{body}</events>'


@pytest.fixture
def sample_venue_xml() -> str:
    """Three venues: one busy, one with exactly two events, one idle."""
    return venue_xml(("1", "City Hall"), ("2", "Cultural Centre"), ("3", "Town Hall"))


@pytest.fixture
def sample_event_xml() -> str:
    """Events for the sample venues, interleaved across venues."""
    return event_xml(
        ("101", "1"),
        ("201", "2"),
        ("102", "1"),
        ("202", "2"),
        ("103", "1"),
        ("104", "1"),
    )


@pytest.fixture
def build_venue_xml() -> Callable[..., str]:
    return venue_xml


@pytest.fixture
def build_event_xml() -> Callable[..., str]:
    return event_xml


# =============================================================================
# Mock feed transport
# =============================================================================


# url -> (status, body), or an exception to raise. Bytes bodies are sent as-is
FeedRoutes = dict[str, "tuple[int, str | bytes] | Exception"]


def feed_transport(routes: FeedRoutes, calls: list[str] | None = None) -> httpx.MockTransport:
    """Serve canned responses per URL; unknown URLs answer 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if calls is not None:
            calls.append(url)
        outcome = routes.get(url)
        if outcome is None:
            return httpx.Response(404, text="not found")
        if isinstance(outcome, Exception):
            raise outcome
        status_code, body = outcome
        if isinstance(body, bytes):
            return httpx.Response(status_code, content=body)
        return httpx.Response(status_code, text=body)

    return httpx.MockTransport(handler)


@pytest.fixture
def make_transport() -> Callable[..., httpx.MockTransport]:
    return feed_transport


@pytest.fixture
def feed_calls() -> list[str]:
    """URLs requested through the mock transport, in order."""
    return []


@pytest.fixture
def make_pipeline(feed_calls: list[str]) -> Callable[..., EventPipeline]:
    """Build a pipeline whose feeds are served from `routes`."""

    def factory(routes: FeedRoutes, cache=None, **overrides) -> EventPipeline:
        settings = get_settings().model_copy(
            update={"venue_feed_url": VENUE_URL, "event_feed_url": EVENT_URL, **overrides}
        )
        transport = feed_transport(routes, feed_calls)
        return EventPipeline(
            settings,
            client_factory=lambda: FeedClient(timeout=1.0, transport=transport),
            cache=cache,
        )

    return factory


@pytest.fixture
def feed_urls() -> tuple[str, str]:
    return VENUE_URL, EVENT_URL


@pytest.fixture
def ok_routes(sample_venue_xml: str, sample_event_xml: str) -> FeedRoutes:
    return {
        VENUE_URL: (200, sample_venue_xml),
        EVENT_URL: (200, sample_event_xml),
    }


# =============================================================================
# API client
# =============================================================================


@pytest.fixture
def feed_routes(ok_routes: FeedRoutes) -> FeedRoutes:
    """Routes used by the API client's pipeline. Tests may mutate this."""
    return dict(ok_routes)


@pytest.fixture
def client(make_pipeline, feed_routes: FeedRoutes):
    """TestClient against a fresh app with an in-memory database."""
    from fastapi.testclient import TestClient

    from event_discovery.api.app import create_app
    from event_discovery.pipeline.service import get_pipeline

    app = create_app()
    app.dependency_overrides[get_pipeline] = lambda: make_pipeline(feed_routes)

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def credentials() -> dict:
    return {"username": "alice", "password": "correct horse battery staple"}


@pytest.fixture
def signed_up(client, credentials: dict) -> dict:
    """An account created through the API (the client is logged in)."""
    response = client.post("/api/signup", json=credentials)
    assert response.status_code == 201
    return response.json()["user"]
