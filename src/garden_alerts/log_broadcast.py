"""Live operational log channel.

LogBroadcaster is a logging.Handler: every record logged under the
`garden_alerts` logger becomes a `"[<ISO-8601>] message"` line that is kept in
a bounded backlog and pushed to each connected viewer's queue.
"""
import asyncio
import logging
import threading
from collections import deque
from datetime import datetime, timezone

PACKAGE_LOGGER = "garden_alerts"
VIEWER_QUEUE_SIZE = 500


def format_line(message: str, when: datetime | None = None) -> str:
    """Format a log line as "[<ISO-8601 UTC>] message"."""
    when = when or datetime.now(timezone.utc)
    return f"[{when.isoformat(timespec='milliseconds').replace('+00:00', 'Z')}] {message}"


class LogBroadcaster(logging.Handler):
    """Fans log lines out to subscribed asyncio queues.

    Viewers that fall behind lose lines rather than slowing producers. Records
    emitted off the loop thread are handed to the loop with call_soon_threadsafe.
    """

    def __init__(self, backlog_size: int = 200, level: int = logging.INFO) -> None:
        super().__init__(level=level)
        self._backlog: deque[str] = deque(maxlen=backlog_size)
        self._viewers: set[asyncio.Queue[str]] = set()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._loop_thread: int | None = None

    @property
    def viewer_count(self) -> int:
        return len(self._viewers)

    def recent(self) -> list[str]:
        return list(self._backlog)

    def subscribe(self) -> asyncio.Queue[str]:
        """Register a viewer; must be called from the event loop."""
        self._loop = asyncio.get_running_loop()
        self._loop_thread = threading.get_ident()
        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=VIEWER_QUEUE_SIZE)
        self._viewers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[str]) -> None:
        self._viewers.discard(queue)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = format_line(
                record.getMessage(), datetime.fromtimestamp(record.created, timezone.utc)
            )
        except Exception:  # pylint: disable=broad-except
            self.handleError(record)
            return
        if self._loop is not None and threading.get_ident() != self._loop_thread:
            if not self._loop.is_closed():
                self._loop.call_soon_threadsafe(self._publish, line)
            return
        self._publish(line)

    def _publish(self, line: str) -> None:
        self._backlog.append(line)
        for queue in list(self._viewers):
            try:
                queue.put_nowait(line)
            except asyncio.QueueFull:
                pass


def install(broadcaster: LogBroadcaster, level: str | int = logging.INFO) -> None:
    """Attach the broadcaster to the package logger (idempotent per instance)."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)
    if broadcaster not in logger.handlers:
        logger.addHandler(broadcaster)


def uninstall(broadcaster: LogBroadcaster) -> None:
    logging.getLogger(PACKAGE_LOGGER).removeHandler(broadcaster)
