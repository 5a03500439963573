import httpx
import pytest

from garden_alerts.exceptions import UpstreamFetchError
from garden_alerts.providers.growagarden.catalog_client import parse_catalog
from garden_alerts.services import ItemCatalog

from conftest import CATALOG_PAYLOAD, ICON_BASE, make_catalog_client


def test_parse_catalog_keeps_rows_with_item_id():
    entries = parse_catalog(CATALOG_PAYLOAD)

    assert [e.item_id for e in entries] == ["carrot", "watering_can"]
    assert [e.item_id for e in parse_catalog(list(CATALOG_PAYLOAD.values()))] == [
        "carrot",
        "watering_can",
    ]
    with pytest.raises(UpstreamFetchError):
        parse_catalog("nope")


async def test_fetch_retries_then_succeeds():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        if len(calls) < 3:
            return httpx.Response(502)
        return httpx.Response(200, json=CATALOG_PAYLOAD)

    client = make_catalog_client(handler, max_attempts=3)

    entries = await client.fetch()

    assert len(calls) == 3
    assert len(entries) == 2
    await client.close()


async def test_fetch_gives_up_after_max_attempts():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        return httpx.Response(500)

    client = make_catalog_client(handler, max_attempts=2)

    with pytest.raises(UpstreamFetchError, match="Status: 500"):
        await client.fetch()
    assert len(calls) == 2
    await client.close()


async def test_failed_refresh_leaves_catalog_empty_with_fallbacks():
    catalog = ItemCatalog(make_catalog_client(lambda r: httpx.Response(500), max_attempts=2), ICON_BASE)

    assert await catalog.refresh() == []

    assert not catalog.loaded
    assert catalog.display_name("carrot") == "carrot"
    assert catalog.icon_url("carrot") == f"{ICON_BASE}/carrot.png"
    await catalog.close()


async def test_refresh_populates_lookups(catalog):
    await catalog.refresh()

    assert len(catalog) == 2
    assert catalog.get("carrot").display_name == "Carrot"
    assert catalog.display_name("carrot") == "Carrot"
    assert catalog.display_name("carrot", "Override") == "Override"
    assert catalog.icon_url("carrot") == "https://img.test/custom/carrot.png"
    assert catalog.icon_url("watering_can") == f"{ICON_BASE}/watering_can.png"


async def test_failed_refresh_clears_previous_entries():
    responses = iter([httpx.Response(200, json=CATALOG_PAYLOAD), httpx.Response(500)])
    catalog = ItemCatalog(make_catalog_client(lambda r: next(responses)), ICON_BASE)

    await catalog.refresh()
    assert catalog.loaded
    await catalog.refresh()
    assert not catalog.loaded
