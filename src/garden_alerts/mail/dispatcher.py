"""Fire-and-forget delivery of composed messages."""
import asyncio
import logging
from collections.abc import Callable

from garden_alerts.exceptions import MailRelayError
from garden_alerts.mail.mailer_abc import MailerABC
from garden_alerts.schemas import ComposedMessage, SendResult

logger = logging.getLogger(__name__)


class MailDispatcher:
    """Schedules one task per send and logs the outcome.

    Sends are independent: a failure is logged with the relay's detail and
    never retried or re-queued. The returned task always resolves to a
    SendResult, so callers can observe the outcome without handling errors.
    """

    def __init__(self, mailer: MailerABC) -> None:
        self._mailer = mailer
        self._tasks: set[asyncio.Task[SendResult]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def dispatch(
        self,
        recipient: str,
        message: ComposedMessage,
        *,
        still_eligible: Callable[[], bool] | None = None,
    ) -> asyncio.Task[SendResult]:
        """Schedule a send. Must be called from the event loop.

        Args:
            recipient: Destination address.
            message: Rendered message.
            still_eligible: Re-checked when the task starts; the send is skipped
                if it returns False (e.g. the recipient unsubscribed meanwhile).
        """
        task = asyncio.create_task(
            self._deliver(recipient, message, still_eligible), name=f"mail:{recipient}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver(
        self,
        recipient: str,
        message: ComposedMessage,
        still_eligible: Callable[[], bool] | None,
    ) -> SendResult:
        if still_eligible is not None and not still_eligible():
            logger.info("Skipped email to %s: no longer eligible", recipient)
            return SendResult(recipient=recipient, success=False, detail="skipped")
        try:
            result = await self._mailer.send(recipient, message)
        except MailRelayError as exc:
            logger.error("Error sending email to %s: %s", recipient, exc)
            return SendResult(recipient=recipient, success=False, detail=str(exc))
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Unexpected error sending email to %s", recipient)
            return SendResult(recipient=recipient, success=False, detail=str(exc))
        logger.info("Email sent to %s: %s", recipient, result.detail)
        return result

    async def drain(self) -> None:
        """Wait for in-flight sends to finish (used on shutdown)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
