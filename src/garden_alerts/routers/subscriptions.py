"""Subscription and verification routes.

Thin HTTP handlers over SubscriptionService. JSON routes let service errors
reach the app-level handler (`{success: false, message}`); the link targets
opened from emails (/verify, /unsub) answer with plain text instead.
"""
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from garden_alerts.deps import SubscriptionServiceDep
from garden_alerts.exceptions import (GardenAlertsError, ValidationError,
                                      error_mapper)
from garden_alerts.schemas import (ActionResult, EmailRequest,
                                   SubscribeRequest, VerificationStatus)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["subscriptions"])


@router.get("/check-verification", response_model=VerificationStatus, response_model_exclude_none=True)
async def check_verification(
    service: SubscriptionServiceDep,
    email: str | None = Query(default=None),
):
    """Report whether an email has completed verification."""
    try:
        verified = service.check_verification(email)
    except ValidationError as exc:
        return JSONResponse(
            status_code=400,
            content=VerificationStatus(verified=False, message=str(exc)).model_dump(),
        )
    return VerificationStatus(verified=verified)


@router.post("/request-verification", response_model=ActionResult)
async def request_verification(
    body: EmailRequest,
    service: SubscriptionServiceDep,
) -> ActionResult:
    """Issue a verification token and email the link.

    400 when the email is missing, invalid or already subscribed.
    """
    service.request_verification(body.email)
    return ActionResult(success=True, message="Verification email sent. Please check your inbox.")


@router.get("/verify")
async def verify(
    service: SubscriptionServiceDep,
    email: str | None = Query(default=None),
    token: str | None = Query(default=None),
):
    """Consume a verification link; redirects to the page on success."""
    try:
        verified_email = service.verify(email, token)
    except GardenAlertsError as exc:
        status_code, message = error_mapper.to_http(exc)
        return PlainTextResponse(message, status_code=status_code)
    query = urlencode({"verified": "true", "email": verified_email})
    return RedirectResponse(f"/?{query}", status_code=302)


@router.post("/subscribe", response_model=ActionResult)
async def subscribe(
    body: SubscribeRequest,
    service: SubscriptionServiceDep,
) -> ActionResult:
    """Replace the caller's watch set. Requires prior verification unless disabled."""
    service.subscribe(body.email, body.items)
    return ActionResult(success=True, message="Subscription successful!")


@router.get("/unsub")
async def unsubscribe(
    service: SubscriptionServiceDep,
    email: str | None = Query(default=None),
):
    """Remove a subscription; target of the link in every alert email."""
    try:
        service.unsubscribe(email)
    except GardenAlertsError as exc:
        status_code, message = error_mapper.to_http(exc)
        return PlainTextResponse(message, status_code=status_code)
    return RedirectResponse("/?unsubscribed=true", status_code=302)
