"""Shared fixtures: in-memory mailer, scripted provider, mocked catalog endpoint."""
import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from garden_alerts.config import Settings
from garden_alerts.exceptions import MailRelayError
from garden_alerts.mail import MailDispatcher, MailerABC
from garden_alerts.providers import ItemCatalogClient, UpstreamProviderABC
from garden_alerts.schemas import ComposedMessage, SendResult
from garden_alerts.services import (AlertCoordinator, ItemCatalog,
                                    NotificationComposer, SubscriptionService,
                                    SubscriptionStore)

CATALOG_URL = "https://info.test/items/"
ICON_BASE = "https://img.test"
BASE_URL = "https://alerts.test"

CATALOG_PAYLOAD = {
    "carrot": {"item_id": "carrot", "display_name": "Carrot", "icon": "https://img.test/custom/carrot.png"},
    "watering_can": {"item_id": "watering_can", "display_name": "Watering Can"},
    "broken": {"display_name": "No id"},
}


class FakeMailer(MailerABC):
    """Records sends; addresses in `failing` raise MailRelayError."""

    def __init__(self, failing: set[str] | None = None, verify_error: str | None = None) -> None:
        self.sent: list[tuple[str, ComposedMessage]] = []
        self.failing = failing or set()
        self.verify_error = verify_error
        self.closed = False

    async def send(self, recipient: str, message: ComposedMessage) -> SendResult:
        await asyncio.sleep(0)
        if recipient in self.failing:
            raise MailRelayError("550 mailbox unavailable")
        self.sent.append((recipient, message))
        return SendResult(recipient=recipient, success=True, detail="250 OK")

    async def verify(self) -> None:
        if self.verify_error:
            raise MailRelayError(self.verify_error)

    async def close(self) -> None:
        self.closed = True

    def sent_with_subject(self, fragment: str) -> list[tuple[str, ComposedMessage]]:
        return [(to, msg) for to, msg in self.sent if fragment in msg.subject]


class FakeProvider(UpstreamProviderABC):
    """Yields scripted updates, then idles until stopped."""

    mode = "fake"

    def __init__(self, updates=()) -> None:
        super().__init__()
        self._updates = list(updates)

    async def stream(self, *, stop_event: asyncio.Event | None = None):
        for update in self._updates:
            yield update
        self._updates = []
        if stop_event is not None:
            await stop_event.wait()


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_catalog_client(handler=None, *, max_attempts: int = 1) -> ItemCatalogClient:
    if handler is None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=CATALOG_PAYLOAD)
    return ItemCatalogClient(
        CATALOG_URL,
        max_attempts=max_attempts,
        backoff_seconds=0,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def stock_payload(**quantities: int) -> dict:
    """Seed-stock payload with one entry per keyword argument."""
    return {
        "seed_stock": [{"item_id": item_id, "quantity": qty} for item_id, qty in quantities.items()],
        "gear_stock": [],
    }


def weather_payload(*events: tuple[str, bool], duration: int = 300, invite: str | None = None) -> dict:
    return {
        "weather": [
            {"weather_id": wid, "weather_name": wid.title(), "active": active, "duration": duration}
            for wid, active in events
        ],
        "discord_invite": invite,
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(
        email_user="bot@mail.com",
        email_pass="secret",
        public_base_url=BASE_URL,
        icon_base_url=ICON_BASE,
        item_info_url=CATALOG_URL,
        log_level="DEBUG",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(clock: FakeClock) -> SubscriptionStore:
    return SubscriptionStore(verification_ttl=timedelta(hours=24), clock=clock)


@pytest.fixture
def catalog() -> ItemCatalog:
    return ItemCatalog(make_catalog_client(), ICON_BASE)


@pytest.fixture
def composer(catalog: ItemCatalog) -> NotificationComposer:
    return NotificationComposer(catalog, BASE_URL)


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def dispatcher(mailer: FakeMailer) -> MailDispatcher:
    return MailDispatcher(mailer)


@pytest.fixture
def coordinator(store, composer, dispatcher, catalog) -> AlertCoordinator:
    return AlertCoordinator(store, composer, dispatcher, catalog)


@pytest.fixture
def service(store, composer, dispatcher) -> SubscriptionService:
    return SubscriptionService(store, composer, dispatcher, require_verification=True)
