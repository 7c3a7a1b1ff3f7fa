"""Domain models for termcast.

Shared enumerations and value objects used by the supervisor, the
broadcast registry and the WebSocket endpoint.
"""

from termcast.domain.models import (
    CONTROL_LINE,
    ConnectionState,
    HealthStatus,
    SupervisorState,
)

__all__ = [
    "CONTROL_LINE",
    "ConnectionState",
    "HealthStatus",
    "SupervisorState",
]
