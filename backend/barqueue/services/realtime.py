"""Realtime order change notification.

``OrderEventBus`` is an in-process publish/subscribe channel for row-level
order changes (``INSERT`` / ``UPDATE``). Services publish after commit;
read-model feeds subscribe. Publishing is thread-safe because sync routes
run in Starlette's threadpool while subscribers live on the event loop.

``ConnectionManager`` tracks open WebSocket connections per channel.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from fastapi import WebSocket, status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderEvent:
    """A row-level change: ``event`` is "INSERT" or "UPDATE"."""

    event: str
    row: Dict[str, Any]


class OrderEventBus:
    """Fan out order change events to every subscriber queue."""

    def __init__(self, max_queue_size: int = 1000):
        self.max_queue_size = max_queue_size
        self._subscribers: Set[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = set()

    def subscribe(self) -> asyncio.Queue:
        """Register a queue on the running loop. Pair with ``unsubscribe``."""
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers.add((loop, queue))
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        for entry in list(self._subscribers):
            if entry[1] is queue:
                self._subscribers.discard(entry)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: str, row: Dict[str, Any]) -> None:
        """Deliver an event to all subscribers; safe to call from any thread."""
        message = OrderEvent(event=event, row=row)
        for loop, queue in list(self._subscribers):
            if loop.is_closed():
                self._subscribers.discard((loop, queue))
                continue
            try:
                loop.call_soon_threadsafe(self._offer, queue, message)
            except RuntimeError:
                # Loop shut down between the check and the call
                self._subscribers.discard((loop, queue))

    @staticmethod
    def _offer(queue: asyncio.Queue, message: OrderEvent) -> None:
        try:
            queue.put_nowait(message)
        except asyncio.QueueFull:
            # Subscriber is behind; its next poll refresh resynchronizes it
            logger.warning(f"Order event queue full, dropping {message.event} for order {message.row.get('id')}")


class ConnectionManager:
    """Manages WebSocket connections for realtime order views."""

    MAX_CONNECTIONS_PER_CHANNEL = 500

    def __init__(self):
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, channel: str = "default") -> bool:
        """Accept a WebSocket on a channel. Returns False if rejected."""
        if len(self.active_connections.get(channel, [])) >= self.MAX_CONNECTIONS_PER_CHANNEL:
            logger.warning(f"WebSocket connection rejected: channel '{channel}' at capacity")
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return False

        await websocket.accept()
        self.active_connections.setdefault(channel, []).append(websocket)
        logger.debug(f"WebSocket connected to channel '{channel}'")
        return True

    def disconnect(self, websocket: WebSocket, channel: str = "default"):
        """Disconnect a WebSocket from a channel."""
        if channel in self.active_connections and websocket in self.active_connections[channel]:
            self.active_connections[channel].remove(websocket)
        logger.debug(f"WebSocket disconnected from channel '{channel}'")

    def get_connection_count(self, channel: Optional[str] = None) -> int:
        """Get the number of active connections."""
        if channel:
            return len(self.active_connections.get(channel, []))
        return sum(len(conns) for conns in self.active_connections.values())


# Global instances
order_events = OrderEventBus()
ws_manager = ConnectionManager()
