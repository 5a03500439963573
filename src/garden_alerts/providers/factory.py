"""Factory for the configured upstream client strategy."""
from garden_alerts.config import Settings
from garden_alerts.providers.core import UpstreamProviderABC
from garden_alerts.providers.growagarden import (GrowAGardenPollingProvider,
                                                 GrowAGardenStreamProvider,
                                                 ItemCatalogClient)


def create_provider(settings: Settings) -> UpstreamProviderABC:
    """Build the polling or streaming provider selected by UPSTREAM_MODE."""
    if settings.upstream_mode == "stream":
        return GrowAGardenStreamProvider(
            settings.stream_url,
            reconnect_delay=settings.reconnect_delay_seconds,
            open_timeout=settings.http_timeout_seconds,
        )
    return GrowAGardenPollingProvider(
        settings.stock_url,
        settings.weather_url,
        poll_interval=settings.poll_interval_seconds,
        timeout=settings.http_timeout_seconds,
    )


def create_catalog_client(settings: Settings) -> ItemCatalogClient:
    """Build the item-info client with the configured retry policy."""
    return ItemCatalogClient(
        settings.item_info_url,
        max_attempts=settings.catalog_max_attempts,
        backoff_seconds=settings.catalog_backoff_seconds,
        timeout=settings.http_timeout_seconds,
    )
