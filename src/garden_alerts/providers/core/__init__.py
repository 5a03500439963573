"""Core provider abstractions."""
from garden_alerts.providers.core.http import fetch_json
from garden_alerts.providers.core.stream_helpers import (sleep_unless_stopped,
                                                         stream_by_polling)
from garden_alerts.providers.core.upstream_provider_abc import \
    UpstreamProviderABC

__all__ = [
    "UpstreamProviderABC",
    "fetch_json",
    "sleep_unless_stopped",
    "stream_by_polling",
]
