"""Item catalog routes."""
from fastapi import APIRouter

from garden_alerts.deps import CatalogDep
from garden_alerts.schemas import CatalogEntry

router = APIRouter(tags=["items"])


@router.get("/get-items", response_model=list[CatalogEntry])
async def get_items(catalog: CatalogDep) -> list[CatalogEntry]:
    """Return the cached item catalog (may be empty)."""
    return catalog.entries()


@router.get("/refresh-items", response_model=list[CatalogEntry])
async def refresh_items(catalog: CatalogDep) -> list[CatalogEntry]:
    """Force a catalog refresh, then return it.

    Upstream failures leave the catalog empty rather than failing the request.
    """
    await catalog.refresh()
    return catalog.entries()
