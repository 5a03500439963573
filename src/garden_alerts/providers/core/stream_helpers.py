"""Shared loop helpers for upstream providers."""
import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from garden_alerts.exceptions import UpstreamFetchError
from garden_alerts.schemas import Feed, UpstreamUpdate

logger = logging.getLogger(__name__)

FeedFetcher = Callable[[], Awaitable[dict[str, Any]]]


def should_continue(provider: Any, stop_event: asyncio.Event | None) -> bool:
    """True while the provider is streaming and stop_event (if any) is unset."""
    if stop_event is not None and stop_event.is_set():
        return False
    return provider.streaming


async def sleep_unless_stopped(seconds: float, stop_event: asyncio.Event | None) -> None:
    """Sleep for `seconds`, returning early if stop_event gets set."""
    if stop_event is None:
        await asyncio.sleep(seconds)
        return
    with contextlib.suppress(asyncio.TimeoutError):
        await asyncio.wait_for(stop_event.wait(), timeout=seconds)


async def stream_by_polling(
    provider: Any,
    fetchers: list[tuple[Feed, FeedFetcher]],
    poll_interval_seconds: float,
    *,
    stop_event: asyncio.Event | None = None,
) -> AsyncIterator[UpstreamUpdate]:
    """Poll each feed at interval and yield its payload.

    A failing feed is logged and skipped until the next tick; it never ends
    the loop. Change detection is left to the consumer.

    Args:
        provider: Object exposing a mutable `streaming` flag.
        fetchers: (feed, async fetch callable) pairs, polled in order each tick.
        poll_interval_seconds: Seconds to sleep between poll rounds.
        stop_event: When set, the loop exits.
    """
    if not fetchers:
        return
    provider.streaming = True
    try:
        while should_continue(provider, stop_event):
            for feed, fetch in fetchers:
                try:
                    payload = await fetch()
                except UpstreamFetchError as exc:
                    logger.warning("Error polling %s API: %s", feed.value.capitalize(), exc)
                    continue
                yield UpstreamUpdate(feed=feed, payload=payload)
            await sleep_unless_stopped(poll_interval_seconds, stop_event)
    finally:
        provider.streaming = False
