"""Change detection and notification fan-out.

AlertCoordinator is the single owner of the last-seen upstream snapshots.
Each handler runs without awaiting between reading the subscriber list and
dispatching, so it always fans out from one consistent view; sends themselves
happen in background tasks that re-check the subscription before sending.
"""
import asyncio
import logging
from datetime import datetime, timezone
from functools import partial
from typing import Any

from garden_alerts.mail import MailDispatcher
from garden_alerts.schemas import (Feed, SendResult, StockSnapshot,
                                   UpstreamUpdate, WeatherSnapshot)
from garden_alerts.services.catalog import ItemCatalog
from garden_alerts.services.change_detector import (WeatherTransition,
                                                    active_event, has_changed,
                                                    serialize_payload,
                                                    weather_transition)
from garden_alerts.services.composer import NotificationComposer
from garden_alerts.services.subscription_store import SubscriptionStore

logger = logging.getLogger(__name__)

SendTasks = list[asyncio.Task[SendResult]]


class AlertCoordinator:
    """Turns upstream updates into per-subscriber emails."""

    def __init__(
        self,
        store: SubscriptionStore,
        composer: NotificationComposer,
        dispatcher: MailDispatcher,
        catalog: ItemCatalog,
    ) -> None:
        self._store = store
        self._composer = composer
        self._dispatcher = dispatcher
        self._catalog = catalog
        self._catalog_task: asyncio.Task | None = None

        self._last_stock_json: str | None = None
        self._last_weather_json: str | None = None
        self.stock_snapshot: StockSnapshot | None = None
        self.weather_snapshot: WeatherSnapshot | None = None
        self.last_stock_change: datetime | None = None
        self.last_weather_change: datetime | None = None

    async def handle(self, update: UpstreamUpdate) -> SendTasks:
        """Route an update to the stock or weather handler."""
        if update.feed is Feed.STOCK:
            return self.handle_stock(update.payload)
        return self.handle_weather(update.payload)

    def handle_stock(self, payload: dict[str, Any]) -> SendTasks:
        """Fan out stock alerts when the payload differs from the last one seen."""
        serialized = serialize_payload(payload)
        if not has_changed(self._last_stock_json, serialized):
            logger.info("Polled Stock API: no changes detected.")
            return []

        logger.info("Stock data changed: checking subscriber selections...")
        snapshot = StockSnapshot.from_payload(payload)
        self._last_stock_json = serialized
        self.stock_snapshot = snapshot
        self.last_stock_change = datetime.now(timezone.utc)
        if not self._catalog.loaded:
            self._schedule_catalog_refresh()

        tasks: SendTasks = []
        subscribers = self._store.subscribers()
        for email, watch_set in subscribers:
            message = self._composer.compose_stock(snapshot, watch_set, email)
            if message is None:
                continue
            tasks.append(
                self._dispatcher.dispatch(
                    email, message, still_eligible=partial(self._store.is_subscribed, email)
                )
            )
        logger.info("Stock alerts queued for %d of %d subscribers", len(tasks), len(subscribers))
        return tasks

    def handle_weather(self, payload: dict[str, Any]) -> SendTasks:
        """Broadcast a weather alert when a new event becomes active."""
        serialized = serialize_payload(payload)
        if not has_changed(self._last_weather_json, serialized):
            logger.info("Polled Weather API: no changes detected.")
            return []

        logger.info("Weather data changed: checking for active events...")
        snapshot = WeatherSnapshot.from_payload(payload)
        previous = self.weather_snapshot
        transition = weather_transition(previous, snapshot)
        self._last_weather_json = serialized
        self.weather_snapshot = snapshot

        if transition is WeatherTransition.ENDED:
            logger.info("Weather event ended: %s", active_event(previous).label)
            return []
        if transition is not WeatherTransition.STARTED:
            logger.info("No new active weather event detected.")
            return []

        event = active_event(snapshot)
        self.last_weather_change = datetime.now(timezone.utc)
        logger.info("New active weather event: %s", event.label)
        invite = snapshot.invite_for(event)
        tasks: SendTasks = []
        for email, _ in self._store.subscribers():
            message = self._composer.compose_weather(event, invite, email)
            tasks.append(
                self._dispatcher.dispatch(
                    email, message, still_eligible=partial(self._store.is_subscribed, email)
                )
            )
        logger.info("Weather alerts queued for %d subscribers", len(tasks))
        return tasks

    def _schedule_catalog_refresh(self) -> None:
        if self._catalog_task is not None and not self._catalog_task.done():
            return
        self._catalog_task = asyncio.create_task(
            self._catalog.refresh(), name="catalog-refresh"
        )

    async def close(self) -> None:
        """Cancel a catalog refresh still in flight."""
        task, self._catalog_task = self._catalog_task, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
