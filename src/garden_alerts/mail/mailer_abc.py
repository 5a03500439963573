"""Abstract base class for mail relays."""
from abc import ABC, abstractmethod

from garden_alerts.schemas import ComposedMessage, SendResult


class MailerABC(ABC):
    """Hands composed messages to an external mail relay."""

    @abstractmethod
    async def send(self, recipient: str, message: ComposedMessage) -> SendResult:
        """Send one message to one recipient.

        Raises:
            MailRelayError: the relay rejected the message or was unreachable.
        """

    @abstractmethod
    async def verify(self) -> None:
        """Check relay connectivity and credentials.

        Raises:
            MailRelayError: the relay cannot be used.
        """

    async def close(self) -> None:
        """Release resources. Override if needed."""
