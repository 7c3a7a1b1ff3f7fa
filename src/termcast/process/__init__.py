"""Watched-process supervision for termcast.

Public API:
    LineReader -- Decodes a process output stream into lines
    ProcessSupervisor -- Restarting loop around the watched command
    SpawnError -- Raised when the command cannot be started (fatal mode)
"""

from termcast.process.reader import LineReader
from termcast.process.supervisor import ProcessSupervisor, SpawnError

__all__ = ["LineReader", "ProcessSupervisor", "SpawnError"]
