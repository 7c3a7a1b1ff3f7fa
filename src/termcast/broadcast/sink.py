"""Abstract output sink for connected viewers.

Each registered viewer owns exactly one sink. The broadcast registry only
ever talks to this interface, so WebSocket connections and in-memory test
doubles are interchangeable.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ClientSink(ABC):
    """Destination for lines delivered to a single viewer.

    Example usage::

        sink = WebSocketSink(websocket)
        await sink.send("hello")
        await sink.close()
    """

    @abstractmethod
    async def send(self, line: str) -> None:
        """Deliver one line to the viewer as a single message.

        Args:
            line: The text line, without a trailing newline.

        Raises:
            Exception: Any failure means the viewer is gone. Callers
                treat every exception the same way and drop the client.
        """
        ...

    async def close(self) -> None:
        """Disconnect the viewer after it has been dropped.

        Called by the registry once the sink has been removed. Must not
        raise. The default does nothing.
        """


class WebSocketSink(ClientSink):
    """Sends each line as one WebSocket text message."""

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._closed = asyncio.Event()

    @property
    def is_closed(self) -> bool:
        return self._closed.is_set()

    async def send(self, line: str) -> None:
        await self._websocket.send_text(line)

    async def close(self) -> None:
        """Mark the sink dropped and close the socket, best effort.

        The connection handler waits on ``wait_closed()``, so it tears
        down even when the close frame itself cannot be delivered.
        """
        if self._closed.is_set():
            return
        self._closed.set()
        try:
            await self._websocket.close()
        except Exception as e:
            logger.debug("Closing dropped WebSocket failed: %s", e)

    async def wait_closed(self) -> None:
        await self._closed.wait()


class ClientSendError(Exception):
    """Raised when a line cannot be delivered to a viewer."""

    def __init__(self, message: str, client_id: str = "") -> None:
        super().__init__(message)
        self.client_id = client_id
