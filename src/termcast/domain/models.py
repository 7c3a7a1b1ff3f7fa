"""Core domain enumerations and value objects for termcast.

These types describe the lifecycle of the watched process and of each
connected viewer. They are shared by the supervisor, the endpoint and
the health reporting routes.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, Field

# Terminal "clear screen + cursor home" sequence sent to every viewer
# whenever the watched command is restarted.
CONTROL_LINE = "\x1b[2J\x1b[H"


class SupervisorState(str, enum.Enum):
    """Lifecycle phases of the process supervisor."""

    IDLE = "idle"
    SPAWNING = "spawning"
    RUNNING = "running"
    EXITED = "exited"
    BACKOFF = "backoff"
    STOPPED = "stopped"


class ConnectionState(str, enum.Enum):
    """Lifecycle phases of a single viewer connection.

    Transitions only move forward::

        CONNECTING -> REPLAYING -> REGISTERED -> CLOSING -> CLOSED

    Any phase may jump straight to CLOSED on failure before the client
    has been registered.
    """

    CONNECTING = "connecting"
    REPLAYING = "replaying"
    REGISTERED = "registered"
    CLOSING = "closing"
    CLOSED = "closed"


class HealthStatus(BaseModel):
    """Snapshot of server state reported by ``GET /health``."""

    status: str = "ok"
    clients: int = Field(default=0, ge=0)
    history_lines: int = Field(default=0, ge=0)
    process_state: SupervisorState = SupervisorState.IDLE
    restarts: int = Field(default=0, ge=0)
    pid: int | None = None
