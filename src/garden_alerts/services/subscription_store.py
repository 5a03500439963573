"""In-memory registry of subscriptions, verified emails and pending verifications.

All maps are volatile and owned by one SubscriptionStore instance. Methods do
not await, so each call is atomic on the event loop.
"""
import logging
import secrets
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def utcnow() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PendingVerification:
    """An issued, not yet confirmed email-ownership token."""

    token: str
    created_at: datetime


class SubscriptionStore:
    """Process-lifetime state for the subscription flow."""

    def __init__(
        self,
        *,
        verification_ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._ttl = verification_ttl
        self._clock = clock
        self._pending: dict[str, PendingVerification] = {}
        self._verified: dict[str, datetime] = {}
        self._subscriptions: dict[str, frozenset[str]] = {}

    @property
    def verification_ttl(self) -> timedelta:
        return self._ttl

    def now(self) -> datetime:
        return self._clock()

    # -- pending verifications -------------------------------------------------

    def issue_token(self, email: str) -> PendingVerification:
        """Create or rotate the pending verification for email."""
        pending = PendingVerification(token=secrets.token_hex(TOKEN_BYTES), created_at=self.now())
        self._pending[email] = pending
        return pending

    def pending_for(self, email: str) -> PendingVerification | None:
        return self._pending.get(email)

    def is_expired(self, pending: PendingVerification) -> bool:
        return self.now() - pending.created_at > self._ttl

    def confirm(self, email: str, token: str) -> bool:
        """Consume a matching, unexpired token and mark email verified.

        Returns False (and changes nothing, apart from discarding an expired
        entry) when there is no pending entry or the token does not match.
        """
        pending = self._pending.get(email)
        if pending is None:
            return False
        if self.is_expired(pending):
            del self._pending[email]
            return False
        if not secrets.compare_digest(pending.token, token):
            return False
        del self._pending[email]
        self._verified[email] = self.now()
        return True

    def purge_expired(self) -> list[str]:
        """Drop pending verifications older than the TTL; return affected emails."""
        expired = [email for email, pending in self._pending.items() if self.is_expired(pending)]
        for email in expired:
            del self._pending[email]
        return expired

    # -- verified emails -------------------------------------------------------

    def is_verified(self, email: str) -> bool:
        return email in self._verified

    def revoke_verification(self, email: str) -> bool:
        return self._verified.pop(email, None) is not None

    # -- subscriptions ---------------------------------------------------------

    def is_subscribed(self, email: str) -> bool:
        return email in self._subscriptions

    def watch_set(self, email: str) -> frozenset[str] | None:
        return self._subscriptions.get(email)

    def set_subscription(self, email: str, items: Iterable[str]) -> frozenset[str]:
        """Replace (never merge) the watch set for email."""
        watch_set = frozenset(items)
        self._subscriptions[email] = watch_set
        return watch_set

    def remove_subscription(self, email: str) -> bool:
        return self._subscriptions.pop(email, None) is not None

    def subscribers(self) -> list[tuple[str, frozenset[str]]]:
        """Copy of (email, watch set) pairs, safe to iterate across awaits."""
        return list(self._subscriptions.items())

    # -- counts ----------------------------------------------------------------

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    @property
    def verified_count(self) -> int:
        return len(self._verified)

    @property
    def pending_count(self) -> int:
        return len(self._pending)
