import asyncio
from typing import Dict, Optional

from logging_config import get_logger

logger = get_logger(__name__)


class ConnectionHub:
    """Outbound channels for open connections.

    Each connection gets its own FIFO queue, drained onto its socket by a
    writer task, so messages to one destination keep the order in which
    they were enqueued. ``deliver`` never blocks.
    """

    def __init__(self):
        self._outboxes: Dict[str, asyncio.Queue] = {}

    def open(self, connection_id: str) -> asyncio.Queue:
        queue = asyncio.Queue()
        self._outboxes[connection_id] = queue
        logger.debug(f"Opened outbox for connection {connection_id}")
        return queue

    def close(self, connection_id: str):
        queue = self._outboxes.pop(connection_id, None)
        if queue is not None:
            # Wake the writer so it can exit
            queue.put_nowait(None)
            logger.debug(f"Closed outbox for connection {connection_id}")

    def is_open(self, connection_id: str) -> bool:
        return connection_id in self._outboxes

    def deliver(self, connection_id: str, message: dict) -> bool:
        """Enqueue a message for a connection. Returns False if it is gone."""
        queue: Optional[asyncio.Queue] = self._outboxes.get(connection_id)
        if queue is None:
            logger.debug(f"Dropping {message.get('type')} for closed connection {connection_id}")
            return False
        queue.put_nowait(message)
        return True

    def __len__(self):
        return len(self._outboxes)


async def pump_outbox(websocket, queue: asyncio.Queue, connection_id: str):
    """Drain a connection's outbox onto its socket until the outbox is closed.

    A failed send closes the socket; the receive loop then sees the closure
    and runs the usual disconnect cleanup.
    """
    while True:
        message = await queue.get()
        if message is None:
            break
        try:
            await websocket.send_json(message)
        except Exception as e:
            logger.warning(f"Send to connection {connection_id} failed, closing: {e}")
            try:
                await websocket.close()
            except Exception as close_error:
                logger.debug(f"Error closing WebSocket for {connection_id}: {close_error}")
            break
