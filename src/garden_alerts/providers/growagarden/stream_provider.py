"""Push client for the Grow A Garden WebSocket feed."""
import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import websockets
from websockets import ClientConnection
from websockets.exceptions import ConnectionClosed, WebSocketException

from garden_alerts.providers.core import (UpstreamProviderABC,
                                          sleep_unless_stopped)
from garden_alerts.providers.core.stream_helpers import should_continue
from garden_alerts.schemas import STOCK_CATEGORY_KEYS, Feed, UpstreamUpdate

logger = logging.getLogger(__name__)


def updates_from_message(data: Any) -> list[UpstreamUpdate]:
    """Split one push message into per-feed updates.

    A message may carry any subset of the stock categories and/or the weather
    list. Stock keys become a stock update, `weather` (plus `discord_invite`)
    becomes a weather update; anything else is ignored. Stock updates are
    partial here; the provider merges them into the full stock state.
    """
    if not isinstance(data, dict):
        return []
    updates: list[UpstreamUpdate] = []
    stock = {key: data[key] for key in STOCK_CATEGORY_KEYS if key in data}
    if stock:
        updates.append(UpstreamUpdate(feed=Feed.STOCK, payload=stock))
    if "weather" in data:
        weather = {"weather": data["weather"], "discord_invite": data.get("discord_invite")}
        updates.append(UpstreamUpdate(feed=Feed.WEATHER, payload=weather))
    return updates


class GrowAGardenStreamProvider(UpstreamProviderABC):
    """Upstream client holding a long-lived WebSocket connection.

    On disconnect or connection failure it waits `reconnect_delay` seconds and
    reconnects, until stopped. Idle connections are pinged. Every stock update
    it yields carries all categories seen so far, so a message touching only
    gear does not drop the seeds from the snapshot downstream.
    """

    mode = "stream"
    IDLE_PING_SECONDS = 30.0

    def __init__(
        self,
        url: str,
        *,
        reconnect_delay: float = 5.0,
        open_timeout: float = 15.0,
    ) -> None:
        """Initialize the streaming provider.

        Args:
            url: WebSocket URL of the push feed.
            reconnect_delay: Fixed backoff before reconnecting.
            open_timeout: Handshake timeout in seconds.
        """
        super().__init__()
        self._url = url
        self._reconnect_delay = reconnect_delay
        self._open_timeout = open_timeout
        self._ws: ClientConnection | None = None
        self._stock_state: dict[str, Any] = {}

    async def stream(
        self, *, stop_event: asyncio.Event | None = None
    ) -> AsyncIterator[UpstreamUpdate]:
        """Receive push messages and yield per-feed updates until stopped."""
        self.streaming = True
        try:
            while should_continue(self, stop_event):
                try:
                    async with websockets.connect(
                        self._url, open_timeout=self._open_timeout
                    ) as ws:
                        self._ws = ws
                        logger.info("Connected to upstream stream")
                        while should_continue(self, stop_event):
                            try:
                                raw = await asyncio.wait_for(
                                    ws.recv(), timeout=self.IDLE_PING_SECONDS
                                )
                            except asyncio.TimeoutError:
                                await ws.ping()
                                continue
                            for update in self._parse(raw):
                                yield update
                except ConnectionClosed as exc:
                    logger.warning("Upstream stream disconnected: %s", exc)
                except (WebSocketException, OSError, asyncio.TimeoutError) as exc:
                    logger.warning("Upstream stream connection failed: %s", exc)
                finally:
                    self._ws = None
                if should_continue(self, stop_event):
                    logger.info("Reconnecting to upstream stream in %ss", self._reconnect_delay)
                    await sleep_unless_stopped(self._reconnect_delay, stop_event)
        finally:
            self.streaming = False

    def _parse(self, raw: str | bytes) -> list[UpstreamUpdate]:
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring malformed upstream message")
            return []
        return [self._merge_stock(update) for update in updates_from_message(data)]

    def _merge_stock(self, update: UpstreamUpdate) -> UpstreamUpdate:
        """Fold a partial stock message into the last known state of every category."""
        if update.feed is not Feed.STOCK:
            return update
        self._stock_state.update(update.payload)
        return UpstreamUpdate(feed=Feed.STOCK, payload=dict(self._stock_state))

    async def refresh(self) -> None:
        """Close the WebSocket so the loop reconnects with a fresh connection."""
        if self._ws:
            await self._ws.close()
            self._ws = None

    async def close(self) -> None:
        """Stop the loop and close the WebSocket."""
        self.streaming = False
        if self._ws:
            await self._ws.close()
            self._ws = None
