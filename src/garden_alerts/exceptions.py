"""Error taxonomy and exception-to-HTTP mapping."""
import asyncio
from dataclasses import dataclass

import httpx


class GardenAlertsError(Exception):
    """Base class for errors raised by garden_alerts services."""


class UpstreamFetchError(GardenAlertsError):
    """Transient failure talking to the upstream game API. Retried on the next tick."""


class MailRelayError(GardenAlertsError):
    """The mail relay rejected a message or could not be reached."""


class ValidationError(GardenAlertsError):
    """User input is malformed (bad email, empty item list, missing token)."""


class NotFoundError(GardenAlertsError):
    """The requested subscription or verification does not exist."""


class ConfigurationError(GardenAlertsError):
    """Required configuration is missing. Fatal at startup only."""


@dataclass(frozen=True)
class ErrorMapper:
    """Maps service exceptions to HTTP (status_code, message).

    Routers use this so JSON and plain-text endpoints report the same
    status codes for the same failures.
    """

    api_name: str = "Upstream API"

    def to_http(self, exc: Exception) -> tuple[int, str]:
        """Map an exception to (status_code, message) for the HTTP caller.

        Args:
            exc: The exception raised by a service.

        Returns:
            (status_code, message) suitable for a `{success: false, message}` body.
        """
        if isinstance(exc, ValidationError):
            return (400, str(exc) or "Invalid input")
        if isinstance(exc, NotFoundError):
            return (404, str(exc) or "Not found")
        if isinstance(exc, MailRelayError):
            return (502, "Mail relay error")
        if isinstance(exc, UpstreamFetchError):
            if isinstance(
                exc.__cause__,
                (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException),
            ):
                return (504, f"Request to {self.api_name} timed out")
            return (502, f"{self.api_name} error")
        return (500, "Internal server error")


error_mapper = ErrorMapper()
