"""HTTP client for the open-data XML feeds.

Both feeds are published by a third party on a fixed schedule and are not under
our control. Every fetch is bounded by a timeout and any non-2xx status, transport
error or timeout is reported as a `FetchFailure`. Nothing is retried.

The timeout caps the whole fetch, body included. httpx applies its own timeout to
each connect and read separately, so a server trickling bytes would never trip it.

Bodies are returned as bytes. The XML parser then decodes them according to the
document's own `<?xml encoding=...?>` declaration.

## Usage

```python
async with FeedClient(timeout=10.0) as client:
    venue_xml, event_xml = await client.fetch_both(venue_url, event_url)
```
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from event_discovery.errors import FetchFailure

logger = logging.getLogger(__name__)


class FeedClient:
    """Async client that fetches feed documents as bytes.

    Attributes:
        timeout: Request timeout in seconds
        user_agent: User-Agent sent with every request
    """

    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent string for requests
            transport: Custom transport (tests use `httpx.MockTransport`)
        """
        self.timeout = timeout
        self.user_agent = user_agent or "event-discovery/0.1.0"
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> FeedClient:
        """Enter async context manager."""
        self._client = self._build_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = self._build_client()
        return self._client

    def _get_default_headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/xml, text/xml",
        }

    async def fetch_document(self, url: str) -> bytes:
        """Fetch a feed document.

        Args:
            url: Full URL of the feed

        Returns:
            Raw response body

        Raises:
            FetchFailure: On timeout, transport error or non-success status
        """
        client = self._get_client()

        try:
            async with asyncio.timeout(self.timeout):
                response = await client.get(url, headers=self._get_default_headers())
        except (TimeoutError, httpx.TimeoutException) as e:
            logger.error(f"Timed out fetching {url} after {self.timeout}s")
            raise FetchFailure(url, reason=f"timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            logger.error(f"Transport error fetching {url}: {e}")
            raise FetchFailure(url, reason=str(e) or type(e).__name__) from e

        if not response.is_success:
            logger.error(f"Feed {url} answered HTTP {response.status_code}")
            raise FetchFailure(url, status=response.status_code)

        logger.debug(f"Fetched {len(response.content)} bytes from {url}")
        return response.content

    async def fetch_both(self, venue_url: str, event_url: str) -> tuple[bytes, bytes]:
        """Fetch the venue and event feeds concurrently.

        The two requests are independent. If either fails the whole call fails
        with that error and the other result is discarded.

        Returns:
            (venue_document, event_document)
        """
        venue_task = asyncio.ensure_future(self.fetch_document(venue_url))
        event_task = asyncio.ensure_future(self.fetch_document(event_url))
        try:
            venue_doc, event_doc = await asyncio.gather(venue_task, event_task)
        except BaseException:
            for task in (venue_task, event_task):
                task.cancel()
            # Reap the sibling so its exception is not reported as unretrieved
            await asyncio.gather(venue_task, event_task, return_exceptions=True)
            raise
        return venue_doc, event_doc
