"""Client for the upstream item-info endpoint."""
import logging
from typing import Any

import httpx
from tenacity import (AsyncRetrying, before_sleep_log, retry_if_exception_type,
                      stop_after_attempt, wait_exponential)

from garden_alerts.exceptions import UpstreamFetchError
from garden_alerts.providers.core import fetch_json
from garden_alerts.schemas import CatalogEntry

logger = logging.getLogger(__name__)


def parse_catalog(data: Any) -> list[CatalogEntry]:
    """Keep entries that carry a string item_id; accepts a mapping or a list."""
    if isinstance(data, dict):
        rows = list(data.values())
    elif isinstance(data, list):
        rows = data
    else:
        raise UpstreamFetchError("Unexpected item info payload")
    entries: list[CatalogEntry] = []
    for row in rows:
        if isinstance(row, dict) and isinstance(row.get("item_id"), str) and row["item_id"]:
            entries.append(CatalogEntry.model_validate(row))
    return entries


class ItemCatalogClient:
    """Fetches item metadata with bounded exponential-backoff retries."""

    def __init__(
        self,
        url: str,
        *,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._max_attempts = max_attempts
        self._backoff_seconds = backoff_seconds
        self._client = client or httpx.AsyncClient(
            timeout=timeout, headers={"Accept": "application/json"}
        )

    async def fetch(self) -> list[CatalogEntry]:
        """Fetch and parse the catalog.

        Raises:
            UpstreamFetchError: every attempt failed.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._backoff_seconds, max=30),
            retry=retry_if_exception_type(UpstreamFetchError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                data = await fetch_json(self._client, self._url)
                return parse_catalog(data)
        raise UpstreamFetchError("Item info fetch gave up")

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
