"""
Stream events.

Every open stream gets ``connection`` and ``capabilities`` on connect, then
``ping`` on an interval and ``tools_changed`` whenever the tool manager
reports that the visible tool set changed.
"""

import asyncio
import logging
from typing import Any, AsyncIterator

from toolgate.core.timestamps import utc_now_iso
from toolgate.core.tool_manager import ToolManager

logger = logging.getLogger(__name__)


class ToolsChangedBroadcaster:
    """Fan-out of events to the queues of connected streams."""

    def __init__(self, queue_size: int = 16):
        self._queue_size = queue_size
        self._subscribers: set[asyncio.Queue] = set()

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: dict[str, Any]) -> None:
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.debug(f"Dropping {event.get('type')} event for a slow stream client")

    def publish_tools_changed(self) -> None:
        """Zero-argument form, registered as the tool manager callback."""
        self.publish({"type": "tools_changed", "timestamp": utc_now_iso()})


async def stream_events(
    manager: ToolManager,
    broadcaster: ToolsChangedBroadcaster,
    client_id: str,
    ping_interval: float,
) -> AsyncIterator[dict[str, Any]]:
    """Events for one stream connection. Runs until the client goes away."""
    queue = broadcaster.subscribe()
    logger.info(f"Client {client_id} connected to stream")
    try:
        yield {
            "type": "connection",
            "clientId": client_id,
            "message": "Connected to toolgate stream",
        }
        yield {
            "type": "capabilities",
            "capabilities": manager.get_capabilities().model_dump(),
        }

        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=ping_interval)
            except asyncio.TimeoutError:
                event = {"type": "ping", "timestamp": utc_now_iso()}
            yield event
    finally:
        broadcaster.unsubscribe(queue)
        logger.info(f"Client {client_id} disconnected from stream")


__all__ = ["ToolsChangedBroadcaster", "stream_events"]
