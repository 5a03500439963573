"""Live log channel: WebSocket push of operational log lines."""
import asyncio
import logging

from fastapi import APIRouter, WebSocket

from garden_alerts.deps import BroadcasterDep, BroadcasterWs

logger = logging.getLogger(__name__)
router = APIRouter(tags=["logs"])


@router.get("/logs/recent", response_model=list[str])
async def recent_logs(broadcaster: BroadcasterDep) -> list[str]:
    """Backlog of recent log lines, oldest first."""
    return broadcaster.recent()


async def _push_lines(websocket: WebSocket, backlog: list[str], queue: asyncio.Queue[str]) -> None:
    try:
        for line in backlog:
            await websocket.send_text(line)
        while True:
            await websocket.send_text(await queue.get())
    except (RuntimeError, OSError) as exc:
        logger.debug("Log viewer connection closed: %s", exc)


@router.websocket("/logs")
async def stream_logs(websocket: WebSocket, broadcaster: BroadcasterWs) -> None:
    """Push each log line as a text frame; the backlog is sent first.

    Notification-only: frames sent by the client are read and discarded so
    a disconnect is noticed even while no lines are flowing.
    """
    await websocket.accept()
    queue = broadcaster.subscribe()
    backlog = broadcaster.recent()
    pusher = asyncio.create_task(_push_lines(websocket, backlog, queue))
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.debug("Log viewer disconnected")
                break
    finally:
        pusher.cancel()
        await asyncio.gather(pusher, return_exceptions=True)
        broadcaster.unsubscribe(queue)
