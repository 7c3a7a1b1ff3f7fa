"""Output history and viewer fan-out for termcast.

Public API:
    HistoryBuffer -- Bounded FIFO of recent lines
    BroadcastRegistry -- Lock-guarded history + client set
    ClientSink -- Abstract per-viewer output
    WebSocketSink -- ClientSink backed by a WebSocket
"""

from termcast.broadcast.history import HistoryBuffer
from termcast.broadcast.registry import BroadcastRegistry
from termcast.broadcast.sink import ClientSendError, ClientSink, WebSocketSink

__all__ = [
    "BroadcastRegistry",
    "ClientSendError",
    "ClientSink",
    "HistoryBuffer",
    "WebSocketSink",
]
