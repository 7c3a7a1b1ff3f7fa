"""Bounded FIFO of recently produced output lines."""

from __future__ import annotations

from collections import deque

DEFAULT_CAPACITY = 1000


class HistoryBuffer:
    """Keeps the most recent ``capacity`` lines, oldest first.

    Not synchronized on its own: the owning BroadcastRegistry serializes
    every access under its lock.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"History capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._lines: deque[str] = deque()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._lines)

    def add_line(self, line: str) -> None:
        """Append a line, dropping the oldest one first when full."""
        if len(self._lines) >= self._capacity:
            self._lines.popleft()
        self._lines.append(line)

    def clear(self) -> None:
        self._lines.clear()

    def snapshot(self) -> list[str]:
        """Return an ordered copy of the buffered lines."""
        return list(self._lines)
