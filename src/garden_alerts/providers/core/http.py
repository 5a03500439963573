"""HTTP helper shared by upstream clients."""
from typing import Any

import httpx

from garden_alerts.exceptions import UpstreamFetchError


async def fetch_json(client: httpx.AsyncClient, url: str) -> Any:
    """GET url and return parsed JSON.

    Raises:
        UpstreamFetchError: network error, timeout, non-2xx status or invalid JSON.
    """
    try:
        response = await client.get(url)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as exc:
        raise UpstreamFetchError(
            f"HTTP error! Status: {exc.response.status_code}"
        ) from exc
    except httpx.HTTPError as exc:
        raise UpstreamFetchError(f"{type(exc).__name__}: {exc}") from exc
    except ValueError as exc:
        raise UpstreamFetchError(f"Invalid JSON from {url}") from exc
