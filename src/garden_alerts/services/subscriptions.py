"""Subscription and email-verification flow.

States per email: unknown -> pending_verification -> verified -> subscribed.
Unsubscribing removes the subscription and revokes verification, returning
the email to unknown; a later resubscribe needs a fresh verification.
"""
import asyncio
import logging
from collections.abc import Iterable

from email_validator import EmailNotValidError, validate_email

from garden_alerts.exceptions import NotFoundError, ValidationError
from garden_alerts.mail import MailDispatcher
from garden_alerts.schemas import SendResult
from garden_alerts.services.composer import NotificationComposer
from garden_alerts.services.subscription_store import SubscriptionStore

logger = logging.getLogger(__name__)


def normalize_email(raw: str | None) -> str:
    """Strip and validate an address; returns its normalized form.

    Raises:
        ValidationError: missing or malformed address.
    """
    email = (raw or "").strip()
    if not email:
        raise ValidationError("Email is required.")
    try:
        return validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError as exc:
        raise ValidationError(f"Invalid email address: {exc}") from exc


def normalize_items(raw: Iterable[str] | str | None) -> set[str]:
    """Accept a list or a single id; drop blanks."""
    if raw is None:
        return set()
    if isinstance(raw, str):
        raw = [raw]
    return {item.strip() for item in raw if isinstance(item, str) and item.strip()}


class SubscriptionService:
    """Operations behind the HTTP surface; mutates the SubscriptionStore."""

    def __init__(
        self,
        store: SubscriptionStore,
        composer: NotificationComposer,
        dispatcher: MailDispatcher,
        *,
        require_verification: bool = True,
    ) -> None:
        self._store = store
        self._composer = composer
        self._dispatcher = dispatcher
        self._require_verification = require_verification

    @property
    def require_verification(self) -> bool:
        return self._require_verification

    def check_verification(self, raw_email: str | None) -> bool:
        return self._store.is_verified(normalize_email(raw_email))

    def request_verification(self, raw_email: str | None) -> asyncio.Task[SendResult]:
        """Issue (or rotate) a token and send the verification email.

        Raises:
            ValidationError: invalid email, or email already subscribed.
        """
        try:
            email = normalize_email(raw_email)
        except ValidationError as exc:
            logger.info("Request-verification failed: %s", exc)
            raise
        if self._store.is_subscribed(email):
            logger.info("Request-verification failed: %s is already subscribed", email)
            raise ValidationError("Email is already subscribed.")

        logger.info("Processing verification request for %s", email)
        pending = self._store.issue_token(email)
        message = self._composer.compose_verification(
            email, pending.token, self._store.verification_ttl
        )
        return self._dispatcher.dispatch(
            email, message, still_eligible=lambda: self._store.pending_for(email) == pending
        )

    def verify(self, raw_email: str | None, token: str | None) -> str:
        """Consume the token and mark the email verified; returns the email.

        Raises:
            ValidationError: missing parameters, or no matching unexpired token.
        """
        if not (raw_email or "").strip() or not (token or "").strip():
            logger.info("Verify failed: Invalid verification link")
            raise ValidationError("Invalid verification link.")
        email = normalize_email(raw_email)
        if not self._store.confirm(email, token.strip()):
            logger.info("Verify failed for %s: Invalid or expired token", email)
            raise ValidationError("Invalid or expired verification link.")
        logger.info("Email verified: %s", email)
        return email

    def subscribe(
        self, raw_email: str | None, raw_items: Iterable[str] | str | None
    ) -> frozenset[str]:
        """Replace the watch set for a (verified) email.

        Raises:
            ValidationError: invalid email, empty item list, or not verified.
        """
        items = normalize_items(raw_items)
        if not (raw_email or "").strip() or not items:
            logger.info("Subscribe failed: Invalid input for %s", (raw_email or "").strip() or "no email")
            raise ValidationError("Invalid input")
        email = normalize_email(raw_email)
        if self._require_verification and not self._store.is_verified(email):
            logger.info("Subscribe failed: %s not verified", email)
            raise ValidationError("Email not verified")
        watch_set = self._store.set_subscription(email, items)
        logger.info("New subscription: %s for %d items", email, len(watch_set))
        return watch_set

    def unsubscribe(self, raw_email: str | None) -> str:
        """Remove the subscription and revoke verification.

        Raises:
            ValidationError: invalid email.
            NotFoundError: the email has no subscription (nothing is changed).
        """
        email = normalize_email(raw_email)
        if not self._store.remove_subscription(email):
            logger.info("Unsubscribe failed: %s not found in subscriptions", email)
            raise NotFoundError("Email not found in subscriptions.")
        self._store.revoke_verification(email)
        logger.info("Unsubscribed: %s", email)
        return email

    def sweep_expired(self) -> list[str]:
        """Drop expired pending verifications (run hourly)."""
        expired = self._store.purge_expired()
        for email in expired:
            logger.info("Removed expired verification token for %s", email)
        return expired
