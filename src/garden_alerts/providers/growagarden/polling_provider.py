"""Polling client for the Grow A Garden stock and weather endpoints."""
import asyncio
from collections.abc import AsyncIterator
from typing import Any

import httpx

from garden_alerts.exceptions import UpstreamFetchError
from garden_alerts.providers.core import (UpstreamProviderABC, fetch_json,
                                          stream_by_polling)
from garden_alerts.schemas import Feed, UpstreamUpdate


class GrowAGardenPollingProvider(UpstreamProviderABC):
    """Upstream client that polls the REST endpoints on a fixed interval.

    Stock and weather are fetched one after the other on every tick. A failed
    fetch is logged and retried on the next tick.
    """

    mode = "poll"

    def __init__(
        self,
        stock_url: str,
        weather_url: str,
        *,
        poll_interval: float = 15.0,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the polling provider.

        Args:
            stock_url: Stock endpoint (returns the five stock categories).
            weather_url: Weather endpoint (returns {weather: [...], discord_invite}).
            poll_interval: Seconds between poll rounds.
            timeout: Per-request timeout in seconds.
            client: Optional pre-built client (tests pass one with a mock transport).
        """
        super().__init__()
        self._stock_url = stock_url
        self._weather_url = weather_url
        self._poll_interval = poll_interval
        self._client = client or httpx.AsyncClient(
            timeout=timeout, headers={"Accept": "application/json"}
        )

    async def fetch_stock(self) -> dict[str, Any]:
        """Fetch the current stock payload."""
        return await self._fetch_object(self._stock_url)

    async def fetch_weather(self) -> dict[str, Any]:
        """Fetch the current weather payload."""
        return await self._fetch_object(self._weather_url)

    async def _fetch_object(self, url: str) -> dict[str, Any]:
        data = await fetch_json(self._client, url)
        if not isinstance(data, dict):
            raise UpstreamFetchError(f"Unexpected payload type from {url}: {type(data).__name__}")
        return data

    async def stream(
        self, *, stop_event: asyncio.Event | None = None
    ) -> AsyncIterator[UpstreamUpdate]:
        """Poll both feeds until stopped.

        Yields:
            One UpstreamUpdate per successful fetch.
        """
        async for update in stream_by_polling(
            self,
            [(Feed.STOCK, self.fetch_stock), (Feed.WEATHER, self.fetch_weather)],
            self._poll_interval,
            stop_event=stop_event,
        ):
            yield update

    async def close(self) -> None:
        """Close the HTTP client."""
        self.streaming = False
        await self._client.aclose()
