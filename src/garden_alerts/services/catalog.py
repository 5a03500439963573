"""Item catalog used to enrich notification display."""
import asyncio
import logging

from garden_alerts.exceptions import UpstreamFetchError
from garden_alerts.providers.growagarden import ItemCatalogClient
from garden_alerts.schemas import CatalogEntry

logger = logging.getLogger(__name__)


class ItemCatalog:
    """item_id -> CatalogEntry, refreshed from the upstream info endpoint.

    Missing entries degrade gracefully: the display name falls back to the
    item id and the icon to `<icon_base_url>/<item_id>.png`.
    """

    def __init__(self, client: ItemCatalogClient, icon_base_url: str) -> None:
        self._client = client
        self._icon_base_url = icon_base_url.rstrip("/")
        self._entries: dict[str, CatalogEntry] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def loaded(self) -> bool:
        return bool(self._entries)

    def entries(self) -> list[CatalogEntry]:
        return list(self._entries.values())

    def get(self, item_id: str) -> CatalogEntry | None:
        return self._entries.get(item_id)

    def display_name(self, item_id: str, preferred: str | None = None) -> str:
        """preferred -> catalog display name -> item_id."""
        if preferred:
            return preferred
        entry = self._entries.get(item_id)
        return (entry.display_name if entry else None) or item_id or "Unknown"

    def icon_url(self, item_id: str, preferred: str | None = None) -> str:
        """preferred -> catalog icon -> deterministic URL built from item_id."""
        if preferred:
            return preferred
        entry = self._entries.get(item_id)
        if entry and entry.icon:
            return entry.icon
        return f"{self._icon_base_url}/{item_id}.png"

    async def refresh(self) -> list[CatalogEntry]:
        """Reload the catalog; leaves it empty when every attempt fails."""
        async with self._lock:
            try:
                entries = await self._client.fetch()
            except UpstreamFetchError as exc:
                logger.warning("Error fetching item info: %s", exc)
                self._entries = {}
                return []
            self._entries = {entry.item_id: entry for entry in entries}
            logger.info("Item info loaded: %d items", len(self._entries))
            return entries

    async def close(self) -> None:
        await self._client.close()
