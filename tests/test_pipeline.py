"""Tests for feed fetching and the end-to-end pipeline."""

import asyncio
import time
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from event_discovery.errors import FetchFailure, ParseFailure
from event_discovery.feeds.cache import FeedCache
from event_discovery.feeds.client import FeedClient


class TestFeedClient:
    """Tests for FeedClient."""

    @pytest.mark.asyncio
    async def test_fetch_document(self, make_transport):
        transport = make_transport({"https://a.test/x.xml": (200, "<x/>")})
        async with FeedClient(transport=transport) as client:
            assert await client.fetch_document("https://a.test/x.xml") == b"<x/>"

    @pytest.mark.asyncio
    async def test_non_success_status(self, make_transport):
        transport = make_transport({"https://a.test/x.xml": (503, "busy")})
        async with FeedClient(transport=transport) as client:
            with pytest.raises(FetchFailure) as exc_info:
                await client.fetch_document("https://a.test/x.xml")

        assert exc_info.value.status == 503
        assert exc_info.value.url == "https://a.test/x.xml"

    @pytest.mark.asyncio
    async def test_timeout_is_fetch_failure(self, make_transport):
        transport = make_transport({"https://a.test/x.xml": httpx.ReadTimeout("slow")})
        async with FeedClient(timeout=0.5, transport=transport) as client:
            with pytest.raises(FetchFailure) as exc_info:
                await client.fetch_document("https://a.test/x.xml")

        assert exc_info.value.status is None
        assert "timed out" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout_caps_trickling_body(self):
        """Test that a body sent a byte at a time cannot outlast the timeout."""

        async def trickle():
            for _ in range(10):
                await asyncio.sleep(0.1)
                yield b" "

        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=trickle()))
        started = time.monotonic()
        async with FeedClient(timeout=0.3, transport=transport) as client:
            with pytest.raises(FetchFailure) as exc_info:
                await client.fetch_document("https://a.test/x.xml")

        assert time.monotonic() - started < 0.9
        assert exc_info.value.status is None
        assert "timed out" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout_caps_stalled_server(self):
        async def stall(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, text="<venues/>")

        started = time.monotonic()
        async with FeedClient(timeout=0.2, transport=httpx.MockTransport(stall)) as client:
            with pytest.raises(FetchFailure):
                await client.fetch_document("https://a.test/x.xml")

        assert time.monotonic() - started < 1.0

    @pytest.mark.asyncio
    async def test_connection_error_is_fetch_failure(self, make_transport):
        transport = make_transport({"https://a.test/x.xml": httpx.ConnectError("refused")})
        async with FeedClient(transport=transport) as client:
            with pytest.raises(FetchFailure):
                await client.fetch_document("https://a.test/x.xml")

    @pytest.mark.asyncio
    async def test_fetch_both_fails_if_either_fails(self, make_transport):
        transport = make_transport(
            {"https://a.test/v.xml": (200, "<venues/>"), "https://a.test/e.xml": (500, "")}
        )
        async with FeedClient(transport=transport) as client:
            with pytest.raises(FetchFailure) as exc_info:
                await client.fetch_both("https://a.test/v.xml", "https://a.test/e.xml")

        assert exc_info.value.url == "https://a.test/e.xml"

    @pytest.mark.asyncio
    async def test_no_retry(self, make_transport, feed_calls):
        transport = make_transport({"https://a.test/x.xml": (502, "")}, feed_calls)
        async with FeedClient(transport=transport) as client:
            with pytest.raises(FetchFailure):
                await client.fetch_document("https://a.test/x.xml")

        assert feed_calls == ["https://a.test/x.xml"]


class TestEventPipeline:
    """Tests for EventPipeline."""

    @pytest.mark.asyncio
    async def test_run(self, make_pipeline, ok_routes):
        result = await make_pipeline(ok_routes).run()

        # Venue 1 has four events, venue 2 only two, venue 3 none
        assert [g.venue.id for g in result.groups] == ["1"]
        assert [e.id for e in result.groups[0].events] == ["101", "102", "103", "104"]
        assert result.venue_count == 3
        assert result.event_count == 6
        assert result.from_cache is False

    @pytest.mark.asyncio
    async def test_end_to_end_example(self, make_pipeline, feed_urls, build_venue_xml, build_event_xml):
        """Test one venue with three matching events and one unrelated event."""
        venue_url, event_url = feed_urls
        routes = {
            venue_url: (200, build_venue_xml(("1", "A"))),
            event_url: (200, build_event_xml(("e1", "1"), ("e2", "1"), ("e3", "1"), ("e4", "2"))),
        }

        payload = (await make_pipeline(routes).run()).to_response()

        assert len(payload) == 1
        assert payload[0]["venueID"] == "1"
        assert payload[0]["venueNameE"] == "A"
        assert [e["@_id"] for e in payload[0]["events"]] == ["e1", "e2", "e3"]

    @pytest.mark.asyncio
    async def test_document_encoding_declaration_honored(self, make_pipeline, ok_routes, feed_urls):
        """Test that a non-UTF-8 feed decodes per its XML declaration."""
        venue_url, _ = feed_urls
        ok_routes[venue_url] = (
            200,
            '<?xml version="1.0" encoding="ISO-8859-1"?>'
            '<venues><venue id="1"><venuee>Café Hall</venuee></venue></venues>'.encode("latin-1"),
        )

        result = await make_pipeline(ok_routes).run()

        assert result.groups[0].venue.name_e == "Café Hall"

    @pytest.mark.asyncio
    async def test_venue_feed_unavailable(self, make_pipeline, ok_routes, feed_urls):
        """Test that a 503 on the venue feed fails the whole run."""
        venue_url, _ = feed_urls
        ok_routes[venue_url] = (503, "Service Unavailable")

        with pytest.raises(FetchFailure) as exc_info:
            await make_pipeline(ok_routes).run()

        assert exc_info.value.status == 503
        assert exc_info.value.url == venue_url

    @pytest.mark.asyncio
    async def test_malformed_event_feed(self, make_pipeline, ok_routes, feed_urls):
        _, event_url = feed_urls
        ok_routes[event_url] = (200, "<events><event id='1'>")

        with pytest.raises(ParseFailure) as exc_info:
            await make_pipeline(ok_routes).run()

        assert exc_info.value.url == event_url

    @pytest.mark.asyncio
    async def test_empty_event_feed(self, make_pipeline, ok_routes, feed_urls):
        _, event_url = feed_urls
        ok_routes[event_url] = (200, "<events></events>")

        result = await make_pipeline(ok_routes).run()

        assert result.groups == []
        assert result.venue_count == 3

    @pytest.mark.asyncio
    async def test_threshold_from_settings(self, make_pipeline, ok_routes):
        result = await make_pipeline(ok_routes, min_events_per_venue=2).run()
        assert [g.venue.id for g in result.groups] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_refetches_without_cache(self, make_pipeline, ok_routes, feed_calls):
        pipeline = make_pipeline(ok_routes)
        await pipeline.run()
        await pipeline.run()

        assert len(feed_calls) == 4


class TestFeedCache:
    """Tests for the optional feed cache."""

    def test_put_and_get(self):
        cache = FeedCache(ttl_seconds=60)
        cache.put("https://a.test/x.xml", b"<x/>")

        entry = cache.get("https://a.test/x.xml")
        assert entry is not None
        assert entry.content == b"<x/>"
        assert entry.age_seconds >= 0
        assert cache.get("https://a.test/other.xml") is None

    def test_age_reported(self):
        cache = FeedCache(ttl_seconds=60)
        fetched = datetime.now(timezone.utc) - timedelta(seconds=30)
        entry = cache.put("https://a.test/x.xml", b"<x/>", fetched_at=fetched)
        assert entry.age_seconds == pytest.approx(30, abs=5)

    def test_ttl_must_be_positive(self):
        with pytest.raises(ValueError):
            FeedCache(ttl_seconds=0)

    @pytest.mark.asyncio
    async def test_cache_hit_skips_fetch(self, make_pipeline, ok_routes, feed_calls):
        pipeline = make_pipeline(ok_routes, cache=FeedCache(ttl_seconds=60))

        first = await pipeline.run()
        second = await pipeline.run()

        assert len(feed_calls) == 2
        assert first.from_cache is False
        assert second.from_cache is True
        assert second.fetched_at == first.fetched_at
        assert [g.venue.id for g in second.groups] == [g.venue.id for g in first.groups]

    @pytest.mark.asyncio
    async def test_failed_parse_not_cached(self, make_pipeline, ok_routes, feed_urls):
        _, event_url = feed_urls
        ok_routes[event_url] = (200, "<broken")
        cache = FeedCache(ttl_seconds=60)

        with pytest.raises(ParseFailure):
            await make_pipeline(ok_routes, cache=cache).run()

        assert len(cache) == 0
