"""Abstract base class for upstream game-state providers."""
import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from garden_alerts.schemas import UpstreamUpdate


class UpstreamProviderABC(ABC):
    """Base interface for upstream clients (polling or push).

    Each provider yields UpstreamUpdate objects carrying opaque parsed JSON for
    one feed (stock or weather). Transient failures are logged and skipped by
    the provider itself; stream() only ends when stop_event is set or close()
    is called.

    Subclasses call super().__init__() and flip `streaming` through the property;
    the poll and reconnect loops exit as soon as it turns False.
    """

    mode: str = "unknown"

    def __init__(self) -> None:
        """Start in the stopped state."""
        self._streaming = False

    @property
    def streaming(self) -> bool:
        """Flag used by the polling and reconnect loops to keep running."""
        return getattr(self, "_streaming", False)

    @streaming.setter
    def streaming(self, value: bool) -> None:
        self._streaming = value

    @abstractmethod
    async def stream(
        self, *, stop_event: asyncio.Event | None = None
    ) -> AsyncIterator[UpstreamUpdate]:
        """Yield updates until stop_event is set or the provider is closed.

        Args:
            stop_event: When set, the loop exits after the current step.

        Yields:
            UpstreamUpdate for each payload received from upstream.
        """
        # This yield is needed to make this an async generator in the ABC
        yield  # type: ignore[misc]

    async def refresh(self) -> None:
        """Force reconnect or drop cached state. No-op by default."""

    async def close(self) -> None:
        """Stop streaming. Providers holding clients or sockets close them too."""
        self.streaming = False

    async def __aenter__(self) -> "UpstreamProviderABC":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        """Async context manager exit - calls close()."""
        await self.close()
