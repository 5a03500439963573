"""Grow A Garden upstream clients (polling, WebSocket push, item catalog)."""
from garden_alerts.providers.growagarden.catalog_client import (
    ItemCatalogClient, parse_catalog)
from garden_alerts.providers.growagarden.polling_provider import \
    GrowAGardenPollingProvider
from garden_alerts.providers.growagarden.stream_provider import (
    GrowAGardenStreamProvider, updates_from_message)

__all__ = [
    "GrowAGardenPollingProvider",
    "GrowAGardenStreamProvider",
    "ItemCatalogClient",
    "parse_catalog",
    "updates_from_message",
]
