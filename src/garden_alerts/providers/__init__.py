"""Upstream clients for the Grow A Garden game API.

- GrowAGardenPollingProvider: polls the stock and weather REST endpoints
- GrowAGardenStreamProvider: holds a WebSocket to the push feed and reconnects
- ItemCatalogClient: fetches item metadata used to enrich notifications

Both providers implement UpstreamProviderABC and yield UpstreamUpdate objects.

Example:
    async with GrowAGardenPollingProvider(stock_url, weather_url) as provider:
        async for update in provider.stream(stop_event=stop):
            print(update.feed, update.payload)
"""
from garden_alerts.providers.core import UpstreamProviderABC
from garden_alerts.providers.factory import (create_catalog_client,
                                             create_provider)
from garden_alerts.providers.growagarden import (GrowAGardenPollingProvider,
                                                 GrowAGardenStreamProvider,
                                                 ItemCatalogClient)

__all__ = [
    "UpstreamProviderABC",
    "GrowAGardenPollingProvider",
    "GrowAGardenStreamProvider",
    "ItemCatalogClient",
    "create_catalog_client",
    "create_provider",
]
