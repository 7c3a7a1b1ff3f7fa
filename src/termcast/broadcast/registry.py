"""Owner of the output history and the set of live viewers.

The registry is a monitor: the history buffer and the client mapping are
only touched while holding a single asyncio.Lock. Two compound operations
rely on that:

* ``broadcast``: append to history + fan out to every client.
* ``join``: snapshot history + replay it to the new client + register.

Because each runs as one critical section, a viewer that joins sees every
line from the join onward exactly once: a line is either already in the
replayed snapshot or is broadcast after registration, never both.
"""

from __future__ import annotations

import asyncio
import logging

from termcast.broadcast.history import DEFAULT_CAPACITY, HistoryBuffer
from termcast.broadcast.sink import ClientSendError, ClientSink
from termcast.domain.models import CONTROL_LINE

logger = logging.getLogger(__name__)


class BroadcastRegistry:
    """Fans out output lines to registered viewer sinks."""

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        send_timeout: float | None = None,
    ) -> None:
        """
        Args:
            capacity: Maximum number of history lines kept for replay.
            send_timeout: Seconds a single send may take before the client
                is treated as failed. None waits indefinitely.
        """
        self._history = HistoryBuffer(capacity)
        self._clients: dict[str, ClientSink] = {}
        self._lock = asyncio.Lock()
        self._send_timeout = send_timeout

    @property
    def history(self) -> HistoryBuffer:
        return self._history

    @property
    def client_count(self) -> int:
        return len(self._clients)

    @property
    def client_ids(self) -> list[str]:
        return list(self._clients)

    async def broadcast(self, line: str) -> None:
        """Record ``line`` in history and deliver it to every viewer."""
        async with self._lock:
            dropped = await self._broadcast_locked(line)
        await self._close_dropped(dropped)

    async def clear_history(self) -> None:
        """Empty the history and tell viewers to reset their display."""
        async with self._lock:
            self._history.clear()
            dropped = await self._broadcast_locked(CONTROL_LINE)
        logger.info("History cleared, reset signal sent to %d client(s)", len(self._clients))
        await self._close_dropped(dropped)

    async def register(self, client_id: str, sink: ClientSink) -> None:
        async with self._lock:
            self._clients[client_id] = sink
            logger.info("Client %s registered, %d connected", client_id, len(self._clients))

    async def unregister(self, client_id: str) -> bool:
        """Remove a client. Safe to call for unknown or already removed ids."""
        async with self._lock:
            removed = self._clients.pop(client_id, None) is not None
            if removed:
                logger.info("Client %s unregistered, %d connected", client_id, len(self._clients))
            return removed

    async def join(self, client_id: str, sink: ClientSink) -> int:
        """Replay history to ``sink`` and register it, atomically.

        Returns:
            The number of history lines replayed.

        Raises:
            ClientSendError: If any replay send fails. The client is not
                registered in that case.
        """
        async with self._lock:
            lines = self._history.snapshot()
            for line in lines:
                try:
                    await self._send(sink, line)
                except Exception as e:
                    raise ClientSendError(
                        f"Replay to client {client_id} failed: {e}", client_id=client_id
                    ) from e
            self._clients[client_id] = sink
            logger.info(
                "Client %s joined after %d replayed line(s), %d connected",
                client_id, len(lines), len(self._clients),
            )
            return len(lines)

    async def snapshot(self) -> list[str]:
        async with self._lock:
            return self._history.snapshot()

    async def _broadcast_locked(self, line: str) -> list[ClientSink]:
        """Append and fan out. Returns the sinks removed for failing."""
        self._history.add_line(line)

        failed: list[str] = []
        for client_id, sink in self._clients.items():
            try:
                await self._send(sink, line)
            except Exception as e:
                logger.info("Send to client %s failed: %s", client_id, e)
                failed.append(client_id)

        # Only mutate the mapping once the pass is complete
        dropped: list[ClientSink] = []
        for client_id in failed:
            dropped.append(self._clients.pop(client_id))
            logger.info("Removed disconnected client %s", client_id)
        return dropped

    async def _close_dropped(self, sinks: list[ClientSink]) -> None:
        # Runs outside the lock so a stuck close cannot delay other broadcasts
        for sink in sinks:
            try:
                if self._send_timeout is None:
                    await sink.close()
                else:
                    await asyncio.wait_for(sink.close(), timeout=self._send_timeout)
            except Exception as e:
                logger.debug("Closing dropped client failed: %s", e)

    async def _send(self, sink: ClientSink, line: str) -> None:
        if self._send_timeout is None:
            await sink.send(line)
        else:
            await asyncio.wait_for(sink.send(line), timeout=self._send_timeout)
