"""Shared test fixtures for the termcast test suite.

Provides in-memory sinks, a small registry, and a fake child process
whose output streams are fed by the test.
"""

from __future__ import annotations

import asyncio

import pytest

from termcast.broadcast.registry import BroadcastRegistry
from termcast.broadcast.sink import ClientSink


# ---------------------------------------------------------------------------
# Sinks
# ---------------------------------------------------------------------------


class RecordingSink(ClientSink):
    """Collects every line it is sent."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.close_count = 0

    async def send(self, line: str) -> None:
        self.lines.append(line)

    async def close(self) -> None:
        self.close_count += 1


class FailingSink(ClientSink):
    """Accepts ``fail_after`` lines, then raises on every send."""

    def __init__(self, fail_after: int = 0) -> None:
        self.fail_after = fail_after
        self.lines: list[str] = []
        self.close_count = 0

    async def send(self, line: str) -> None:
        if len(self.lines) >= self.fail_after:
            raise ConnectionError("viewer went away")
        self.lines.append(line)

    async def close(self) -> None:
        self.close_count += 1


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def registry() -> BroadcastRegistry:
    """A registry with a small history, as in the capacity-3 scenarios."""
    return BroadcastRegistry(capacity=3)


# ---------------------------------------------------------------------------
# Processes
# ---------------------------------------------------------------------------


class FakeProcess:
    """Stands in for asyncio.subprocess.Process.

    Output is fed with ``write_stdout``/``write_stderr``; ``kill()`` closes
    both streams the way a real process exit would.
    """

    def __init__(self, pid: int = 4242) -> None:
        self.pid = pid
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        self.returncode: int | None = None
        self.kill_count = 0

    def write_stdout(self, data: bytes) -> None:
        self.stdout.feed_data(data)

    def write_stderr(self, data: bytes) -> None:
        self.stderr.feed_data(data)

    def exit(self, code: int = 0) -> None:
        self.stdout.feed_eof()
        self.stderr.feed_eof()
        self.returncode = code

    def kill(self) -> None:
        self.kill_count += 1
        if not self.stdout.at_eof():
            self.stdout.feed_eof()
        if not self.stderr.at_eof():
            self.stderr.feed_eof()
        self.returncode = -9

    async def wait(self) -> int:
        return self.returncode if self.returncode is not None else 0
