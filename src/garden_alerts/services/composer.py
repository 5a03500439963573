"""Notification composition.

Stock alerts are personalized: only watched items with quantity > 0 are
listed, and nothing is sent when none match. Weather alerts are broadcast to
every subscriber regardless of their watch set.
"""
from collections.abc import Iterable
from datetime import timedelta
from typing import Any
from urllib.parse import urlencode

from jinja2 import Environment, PackageLoader, select_autoescape

from garden_alerts.schemas import (ComposedMessage, StockItem, StockSnapshot,
                                   WeatherEvent)
from garden_alerts.services.catalog import ItemCatalog

STOCK_SUBJECT = "🌱 Grow A Garden Stock Updated!"
WEATHER_SUBJECT = "🌦️ Grow A Garden Weather Event: {name}"
VERIFICATION_SUBJECT = "🌱 Verify Your Grow A Garden Subscription"
TEST_SUBJECT = "Test Email from Grow A Garden"


def default_environment() -> Environment:
    """Jinja environment over the packaged templates (HTML autoescaped)."""
    return Environment(
        loader=PackageLoader("garden_alerts", "templates"),
        autoescape=select_autoescape(["html"]),
        keep_trailing_newline=True,
    )


def matching_items(snapshot: StockSnapshot, watch_set: Iterable[str]) -> list[StockItem]:
    """Items present in the watch set with quantity > 0, across all categories."""
    wanted = set(watch_set)
    return [item for item in snapshot.all_items() if item.item_id in wanted and item.quantity > 0]


def format_duration(seconds: int | None) -> str:
    """Whole minutes (floor), or "Unknown" when absent."""
    if not seconds:
        return "Unknown"
    return f"{seconds // 60} minutes"


class NotificationComposer:
    """Builds subject and bodies for every outgoing email."""

    def __init__(
        self,
        catalog: ItemCatalog,
        public_base_url: str,
        *,
        environment: Environment | None = None,
    ) -> None:
        self._catalog = catalog
        self._base_url = public_base_url.rstrip("/")
        self._env = environment or default_environment()

    def unsubscribe_url(self, email: str) -> str:
        return f"{self._base_url}/unsub?{urlencode({'email': email})}"

    def verification_url(self, email: str, token: str) -> str:
        return f"{self._base_url}/verify?{urlencode({'email': email, 'token': token})}"

    def _render(self, name: str, subject: str, **context: Any) -> ComposedMessage:
        return ComposedMessage(
            subject=subject,
            html=self._env.get_template(f"{name}.html").render(**context),
            text=self._env.get_template(f"{name}.txt").render(**context),
        )

    def compose_stock(
        self, snapshot: StockSnapshot, watch_set: Iterable[str], recipient: str
    ) -> ComposedMessage | None:
        """Stock alert for one subscriber, or None when nothing they watch is in stock."""
        items = matching_items(snapshot, watch_set)
        if not items:
            return None
        rows = [
            {
                "item_id": item.item_id,
                "name": self._catalog.display_name(item.item_id, item.display_name),
                "icon_url": self._catalog.icon_url(item.item_id, item.icon),
                "quantity": item.quantity,
            }
            for item in items
        ]
        return self._render(
            "stock_alert",
            STOCK_SUBJECT,
            rows=rows,
            unsubscribe_url=self.unsubscribe_url(recipient),
        )

    def compose_weather(
        self, event: WeatherEvent, invite_url: str | None, recipient: str
    ) -> ComposedMessage:
        """Weather alert; identical for every subscriber apart from the unsubscribe link."""
        return self._render(
            "weather_alert",
            WEATHER_SUBJECT.format(name=event.label),
            event_name=event.label,
            duration=format_duration(event.duration_seconds),
            invite_url=invite_url,
            unsubscribe_url=self.unsubscribe_url(recipient),
        )

    def compose_verification(
        self, email: str, token: str, ttl: timedelta
    ) -> ComposedMessage:
        hours = ttl.total_seconds() / 3600
        return self._render(
            "verification",
            VERIFICATION_SUBJECT,
            verification_url=self.verification_url(email, token),
            ttl_hours=f"{hours:g}",
            unsubscribe_url=None,
        )

    def compose_test(self) -> ComposedMessage:
        return self._render("test_email", TEST_SUBJECT, unsubscribe_url=None)
