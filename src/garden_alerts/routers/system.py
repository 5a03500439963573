"""Page, health and diagnostics routes."""
import logging
import time
from pathlib import Path

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import FileResponse

from garden_alerts.deps import (CatalogDep, ComposerDep, CoordinatorDep,
                                DispatcherDep, SettingsDep, StoreDep)
from garden_alerts.schemas import ActionResult, HealthStatus
from garden_alerts.services.subscriptions import normalize_email

logger = logging.getLogger(__name__)
router = APIRouter(tags=["system"])

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"


@router.get("/", include_in_schema=False)
async def index() -> FileResponse:
    """Serve the subscriber / log-viewer page."""
    return FileResponse(STATIC_DIR / "index.html", media_type="text/html")


@router.get("/health", response_model=HealthStatus)
async def health(
    request: Request,
    settings: SettingsDep,
    store: StoreDep,
    catalog: CatalogDep,
    coordinator: CoordinatorDep,
    dispatcher: DispatcherDep,
) -> HealthStatus:
    """Process uptime and in-memory counts."""
    return HealthStatus(
        uptime_seconds=round(time.monotonic() - request.app.state.started_at, 3),
        upstream_mode=settings.upstream_mode,
        subscriptions=store.subscription_count,
        verified_emails=store.verified_count,
        pending_verifications=store.pending_count,
        catalog_items=len(catalog),
        in_flight_emails=dispatcher.in_flight,
        last_stock_change=coordinator.last_stock_change,
        last_weather_change=coordinator.last_weather_change,
    )


@router.get("/test-email", response_model=ActionResult)
async def test_email(
    settings: SettingsDep,
    composer: ComposerDep,
    dispatcher: DispatcherDep,
    email: str | None = Query(default=None),
) -> ActionResult:
    """Send a test message (only when ENABLE_TEST_EMAIL is set)."""
    if not settings.enable_test_email:
        raise HTTPException(status_code=404, detail="Not Found")
    recipient = normalize_email(email or settings.email_user)
    logger.info("Test email requested for %s", recipient)
    dispatcher.dispatch(recipient, composer.compose_test())
    return ActionResult(success=True, message=f"Test email sent to {recipient}")
