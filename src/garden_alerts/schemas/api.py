"""Request and response bodies for the HTTP surface."""
from datetime import datetime

from pydantic import BaseModel


class EmailRequest(BaseModel):
    """Body of POST /request-verification. Validated by the service, not here."""

    email: str | None = None


class SubscribeRequest(BaseModel):
    """Body of POST /subscribe. `items` may be a list or a single id."""

    email: str | None = None
    items: list[str] | str | None = None


class ActionResult(BaseModel):
    """Generic `{success, message}` response."""

    success: bool
    message: str


class VerificationStatus(BaseModel):
    """Response of GET /check-verification."""

    verified: bool
    message: str | None = None


class HealthStatus(BaseModel):
    """Process uptime and in-memory counts."""

    status: str = "ok"
    uptime_seconds: float
    upstream_mode: str
    subscriptions: int
    verified_emails: int
    pending_verifications: int
    catalog_items: int
    in_flight_emails: int
    last_stock_change: datetime | None = None
    last_weather_change: datetime | None = None
