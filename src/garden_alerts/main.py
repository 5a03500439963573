"""Main module for the garden alerts service."""
import asyncio
import logging
import sys
import time
from contextlib import asynccontextmanager
from datetime import timedelta

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from garden_alerts.config import Settings, get_settings
from garden_alerts.exceptions import (ConfigurationError, GardenAlertsError,
                                      MailRelayError, error_mapper)
from garden_alerts.log_broadcast import LogBroadcaster, install, uninstall
from garden_alerts.mail import MailDispatcher, MailerABC, SmtpMailer
from garden_alerts.providers import (ItemCatalogClient, UpstreamProviderABC,
                                     create_catalog_client, create_provider)
from garden_alerts.routers import (items_router, logs_router,
                                   subscriptions_router, system_router)
from garden_alerts.schemas import ActionResult
from garden_alerts.services import (AlertCoordinator, ItemCatalog,
                                    NotificationComposer, SubscriptionService,
                                    SubscriptionStore)
from garden_alerts.services.tasks import run_ingestion, run_periodically

logger = logging.getLogger(__name__)


def _build_mailer(settings: Settings) -> SmtpMailer:
    return SmtpMailer(
        settings.smtp_host,
        settings.smtp_port,
        settings.email_user,
        settings.email_pass,
        settings.mail_sender,
        use_ssl=settings.smtp_use_ssl,
        timeout=settings.http_timeout_seconds,
    )


def create_app(
    settings: Settings | None = None,
    *,
    provider: UpstreamProviderABC | None = None,
    mailer: MailerABC | None = None,
    catalog_client: ItemCatalogClient | None = None,
) -> FastAPI:
    """Build the application. Collaborators default to the configured real ones."""

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        """Wire the composition root at startup; stop loops and drain sends on shutdown."""
        cfg = settings or get_settings()
        broadcaster = LogBroadcaster(backlog_size=cfg.log_backlog_size)
        install(broadcaster, cfg.log_level)

        relay = mailer or _build_mailer(cfg)
        try:
            await relay.verify()
        except MailRelayError as exc:
            logger.error("%s", exc)
            uninstall(broadcaster)
            raise ConfigurationError(f"Mail relay verification failed: {exc}") from exc
        logger.info("SMTP connection verified")

        catalog = ItemCatalog(catalog_client or create_catalog_client(cfg), cfg.icon_base_url)
        store = SubscriptionStore(verification_ttl=timedelta(hours=cfg.verification_ttl_hours))
        composer = NotificationComposer(catalog, cfg.public_base_url)
        dispatcher = MailDispatcher(relay)
        coordinator = AlertCoordinator(store, composer, dispatcher, catalog)
        subscription_service = SubscriptionService(
            store, composer, dispatcher, require_verification=cfg.require_verification
        )
        upstream = provider or create_provider(cfg)

        fastapi_app.state.settings = cfg
        fastapi_app.state.broadcaster = broadcaster
        fastapi_app.state.store = store
        fastapi_app.state.catalog = catalog
        fastapi_app.state.composer = composer
        fastapi_app.state.dispatcher = dispatcher
        fastapi_app.state.coordinator = coordinator
        fastapi_app.state.subscription_service = subscription_service
        fastapi_app.state.started_at = time.monotonic()

        stop_event = asyncio.Event()
        background = [
            asyncio.create_task(catalog.refresh(), name="catalog-refresh"),
            asyncio.create_task(
                run_ingestion(upstream, coordinator, stop_event), name="ingestion"
            ),
            asyncio.create_task(
                run_periodically(
                    "verification-sweep",
                    cfg.sweep_interval_seconds,
                    subscription_service.sweep_expired,
                    stop_event,
                ),
                name="verification-sweep",
            ),
        ]
        logger.info("Server running on port %s", cfg.port)

        yield

        stop_event.set()
        for task in background:
            task.cancel()
        await asyncio.gather(*background, return_exceptions=True)
        await coordinator.close()
        await dispatcher.drain()

        # Close resources (httpx clients, WebSocket)
        for resource in (upstream, catalog, relay):
            try:
                await resource.close()
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Error closing %s: %s", type(resource).__name__, exc)
        uninstall(broadcaster)

    fastapi_app = FastAPI(
        title="Grow A Garden Alerts",
        description="Email alerts for Grow A Garden stock and weather changes",
        version="0.1.0",
        lifespan=lifespan,
    )

    @fastapi_app.exception_handler(GardenAlertsError)
    async def handle_service_error(_: Request, exc: GardenAlertsError) -> JSONResponse:
        status_code, message = error_mapper.to_http(exc)
        return JSONResponse(
            status_code=status_code,
            content=ActionResult(success=False, message=message).model_dump(),
        )

    @fastapi_app.exception_handler(RequestValidationError)
    async def handle_bad_request(_: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected malformed request: %s", exc.errors())
        return JSONResponse(
            status_code=400,
            content=ActionResult(success=False, message="Invalid input").model_dump(),
        )

    fastapi_app.include_router(system_router)
    fastapi_app.include_router(subscriptions_router)
    fastapi_app.include_router(items_router)
    fastapi_app.include_router(logs_router)
    return fastapi_app


def run() -> None:
    """Run the server (uvicorn, app factory). Exits with status 1 on missing configuration."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        settings = get_settings()
    except ConfigurationError as exc:
        logger.error("ERROR: %s", exc)
        sys.exit(1)
    logging.getLogger().setLevel(settings.log_level)
    uvicorn.run(
        "garden_alerts.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
    )
