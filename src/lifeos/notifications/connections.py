"""
Transport handles for live notification connections.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional
from uuid import uuid4

from fastapi import WebSocket

DEFAULT_QUEUE_SIZE = 1000


def new_connection_id() -> str:
    return str(uuid4())


class Connection(ABC):
    """A live, push-capable connection.

    Subclasses implement ``send``; everything above the transport only ever
    sees ``connection_id`` and ``send``.
    """

    def __init__(self, connection_id: Optional[str] = None):
        self.connection_id = connection_id or new_connection_id()
        self.connected_at = datetime.now(timezone.utc)
        self.closed = False

    @abstractmethod
    async def send(self, event: str, data: Dict[str, Any]) -> None:
        """Deliver one ``{"type": event, "data": data}`` frame."""

    async def close(self, code: int = 1000) -> None:
        self.closed = True

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.connection_id!r})"


class WebSocketConnection(Connection):
    """Connection backed by a FastAPI WebSocket."""

    def __init__(self, websocket: WebSocket, connection_id: Optional[str] = None):
        super().__init__(connection_id)
        self.websocket = websocket

    async def send(self, event: str, data: Dict[str, Any]) -> None:
        await self.websocket.send_json({"type": event, "data": data})

    async def close(self, code: int = 1000) -> None:
        if not self.closed:
            self.closed = True
            await self.websocket.close(code=code)


class QueueConnection(Connection):
    """In-process connection that buffers pushed notifications in a queue.

    Only ``notification`` events are queued; acknowledgements and other
    control frames have no meaning for an in-process consumer. The queue is
    bounded: once ``maxsize`` items are waiting, further sends raise
    ``asyncio.QueueFull`` and the push counts as failed.
    """

    def __init__(self, connection_id: Optional[str] = None, maxsize: int = DEFAULT_QUEUE_SIZE):
        super().__init__(connection_id)
        self.queue: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue(maxsize=maxsize)

    async def send(self, event: str, data: Dict[str, Any]) -> None:
        if self.closed:
            raise RuntimeError(f"Connection {self.connection_id} is closed")
        if event == "notification":
            self.queue.put_nowait(data)

    async def get(self) -> Dict[str, Any]:
        """Wait for the next pushed notification."""
        return await self.queue.get()

    def get_nowait(self) -> Dict[str, Any]:
        return self.queue.get_nowait()

    def pending(self) -> int:
        return self.queue.qsize()

    def __aiter__(self) -> AsyncIterator[Dict[str, Any]]:
        return self

    async def __anext__(self) -> Dict[str, Any]:
        if self.closed and self.queue.empty():
            raise StopAsyncIteration
        return await self.queue.get()
