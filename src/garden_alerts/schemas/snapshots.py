"""Runtime models for upstream feeds. Rebuilt from upstream JSON; never persisted."""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class Feed(str, Enum):
    """Upstream data feeds."""

    STOCK = "stock"
    WEATHER = "weather"


class StockCategory(str, Enum):
    """Fixed set of stock categories in the upstream stock payload."""

    SEED = "seed_stock"
    GEAR = "gear_stock"
    EGG = "egg_stock"
    COSMETIC = "cosmetic_stock"
    EVENT = "event_stock"


STOCK_CATEGORY_KEYS: tuple[str, ...] = tuple(c.value for c in StockCategory)


class StockItem(BaseModel):
    """One stocked item within a category."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    item_id: str
    display_name: str | None = None
    quantity: int = Field(default=0, ge=0)
    icon: str | None = None


class StockSnapshot(BaseModel):
    """Last parsed stock payload: category -> ordered items."""

    categories: dict[StockCategory, list[StockItem]] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "StockSnapshot":
        """Parse an upstream stock payload, skipping malformed entries."""
        categories: dict[StockCategory, list[StockItem]] = {}
        for category in StockCategory:
            raw_items = payload.get(category.value)
            if not isinstance(raw_items, list):
                continue
            categories[category] = _parse_items(category, raw_items)
        return cls(categories=categories)

    def all_items(self) -> list[StockItem]:
        """Items across every category, flattened in category order."""
        return [item for category in StockCategory for item in self.categories.get(category, [])]


def _parse_items(category: StockCategory, raw_items: list[Any]) -> list[StockItem]:
    items: list[StockItem] = []
    for raw in raw_items:
        try:
            items.append(StockItem.model_validate(raw))
        except pydantic.ValidationError:
            logger.debug("Skipping malformed %s entry: %r", category.value, raw)
    return items


class WeatherEvent(BaseModel):
    """A weather event; at most one is expected to be active."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    weather_id: str
    weather_name: str | None = None
    active: bool = False
    duration_seconds: int | None = Field(default=None, alias="duration")
    discord_invite_url: str | None = Field(default=None, alias="discord_invite")

    @property
    def label(self) -> str:
        """Human-readable event name."""
        return self.weather_name or self.weather_id or "Unknown"


class WeatherSnapshot(BaseModel):
    """Last parsed weather payload."""

    events: list[WeatherEvent] = Field(default_factory=list)
    discord_invite: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "WeatherSnapshot":
        """Parse an upstream weather payload ({weather: [...], discord_invite})."""
        events: list[WeatherEvent] = []
        for raw in payload.get("weather") or []:
            try:
                events.append(WeatherEvent.model_validate(raw))
            except pydantic.ValidationError:
                logger.debug("Skipping malformed weather entry: %r", raw)
        invite = payload.get("discord_invite")
        return cls(events=events, discord_invite=invite if isinstance(invite, str) else None)

    def invite_for(self, event: WeatherEvent) -> str | None:
        """Community invite for an event: event-level link, else feed-level link."""
        return event.discord_invite_url or self.discord_invite


class CatalogEntry(BaseModel):
    """Descriptive metadata for an item, from the upstream info endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    item_id: str
    display_name: str | None = None
    icon: str | None = None


class UpstreamUpdate(BaseModel):
    """One payload received from the upstream client."""

    feed: Feed
    payload: dict[str, Any]
    received_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
