"""Per-viewer WebSocket connection lifecycle."""

from __future__ import annotations

import asyncio
import logging
import uuid

from fastapi import WebSocket

from termcast.broadcast.registry import BroadcastRegistry
from termcast.broadcast.sink import ClientSendError, WebSocketSink
from termcast.domain.models import ConnectionState

logger = logging.getLogger(__name__)


class ConnectionHandler:
    """Drives one viewer from handshake to teardown.

    The handler accepts the WebSocket, replays the history and registers
    the viewer in one atomic step, then only listens for the viewer going
    away. Inbound messages carry no meaning and are discarded.
    """

    def __init__(
        self,
        websocket: WebSocket,
        registry: BroadcastRegistry,
        client_id: str | None = None,
    ) -> None:
        self._websocket = websocket
        self._registry = registry
        self._client_id = client_id or uuid.uuid4().hex
        self._state = ConnectionState.CONNECTING

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def peer(self) -> str:
        client = self._websocket.client
        if client is None:
            return "unknown"
        return f"{client.host}:{client.port}"

    async def run(self) -> None:
        """Serve the connection until the viewer disconnects."""
        logger.info("New client connection from %s", self.peer)
        try:
            await self._websocket.accept()
        except Exception as e:
            logger.warning("WebSocket handshake with %s failed: %s", self.peer, e)
            self._state = ConnectionState.CLOSED
            return

        self._state = ConnectionState.REPLAYING
        sink = WebSocketSink(self._websocket)
        try:
            await self._registry.join(self._client_id, sink)
        except ClientSendError as e:
            logger.info("Dropping %s before registration: %s", self.peer, e)
            self._state = ConnectionState.CLOSED
            return

        self._state = ConnectionState.REGISTERED
        try:
            await self._wait_for_disconnect(sink)
        finally:
            self._state = ConnectionState.CLOSING
            await self._registry.unregister(self._client_id)
            self._state = ConnectionState.CLOSED
            logger.info("Client %s (%s) disconnected", self._client_id, self.peer)

    async def _wait_for_disconnect(self, sink: WebSocketSink) -> None:
        """Return when the viewer leaves or the registry drops its sink."""
        reader = asyncio.create_task(self._receive_until_closed())
        dropped = asyncio.create_task(sink.wait_closed())
        try:
            done, _ = await asyncio.wait({reader, dropped}, return_when=asyncio.FIRST_COMPLETED)
            if dropped in done:
                logger.info("Client %s dropped by broadcaster", self._client_id)
        finally:
            for task in (reader, dropped):
                task.cancel()
            await asyncio.gather(reader, dropped, return_exceptions=True)

    async def _receive_until_closed(self) -> None:
        while True:
            try:
                message = await self._websocket.receive()
            except Exception as e:
                logger.debug("Read from %s failed: %s", self.peer, e)
                return
            if message.get("type") == "websocket.disconnect":
                return
