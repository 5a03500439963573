"""Background loops: upstream ingestion and the pending-verification sweep.

Neither loop lets an exception escape; failures are logged and the loop
carries on until the stop event is set or the task is cancelled.
"""
import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from garden_alerts.providers.core import (UpstreamProviderABC,
                                          sleep_unless_stopped)
from garden_alerts.services.coordinator import AlertCoordinator

logger = logging.getLogger(__name__)

RESTART_DELAY_SECONDS = 5.0


async def run_ingestion(
    provider: UpstreamProviderABC,
    coordinator: AlertCoordinator,
    stop_event: asyncio.Event,
    *,
    restart_delay: float = RESTART_DELAY_SECONDS,
) -> None:
    """Feed every upstream update to the coordinator until stopped."""
    logger.info("Upstream ingestion started (%s mode)", provider.mode)
    while not stop_event.is_set():
        try:
            async for update in provider.stream(stop_event=stop_event):
                try:
                    await coordinator.handle(update)
                except Exception:  # pylint: disable=broad-except
                    logger.exception("Error handling %s update", update.feed.value)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Upstream ingestion failed; restarting in %ss", restart_delay)
        if not stop_event.is_set():
            await sleep_unless_stopped(restart_delay, stop_event)
    logger.info("Upstream ingestion stopped")


async def run_periodically(
    name: str,
    interval_seconds: float,
    func: Callable[[], Any | Awaitable[Any]],
    stop_event: asyncio.Event,
) -> None:
    """Call func every interval until stopped; the first call is after one interval."""
    while not stop_event.is_set():
        await sleep_unless_stopped(interval_seconds, stop_event)
        if stop_event.is_set():
            break
        try:
            result = func()
            if inspect.isawaitable(result):
                await result
        except Exception:  # pylint: disable=broad-except
            logger.exception("Periodic task %s failed", name)
