"""Keeps the watched shell command running and feeds its output onward.

One generation of the supervisor loop walks through these states::

    SPAWNING -> RUNNING -> EXITED -> BACKOFF -> (clear history) -> SPAWNING ...

The command is restarted after a fixed delay no matter how it ended.
Spawning and sleeping are injectable so tests can drive the loop with
fake processes and without real delays.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from termcast.broadcast.registry import BroadcastRegistry
from termcast.domain.models import SupervisorState
from termcast.process.reader import LineReader

logger = logging.getLogger(__name__)

DEFAULT_RESTART_DELAY = 10.0
DEFAULT_DRAIN_TIMEOUT = 1.0
DEFAULT_STDERR_PREFIX = "ERROR: "
# Longest single output line accepted before it is skipped
STREAM_LIMIT = 1024 * 1024

Spawner = Callable[[str], Awaitable[Any]]
Sleeper = Callable[[float], Awaitable[None]]


async def spawn_shell(command: str) -> asyncio.subprocess.Process:
    """Start ``sh -c command`` with piped stdout and stderr."""
    return await asyncio.create_subprocess_shell(
        command,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        limit=STREAM_LIMIT,
    )


class ProcessSupervisor:
    """Runs one instance of a shell command at a time, forever.

    Both output streams are decoded by a LineReader and every line is
    passed to ``registry.broadcast``. When either stream ends the process
    is killed, the supervisor waits ``restart_delay`` seconds, clears the
    registry history (which also resets every viewer) and starts again.
    """

    def __init__(
        self,
        command: str,
        registry: BroadcastRegistry,
        restart_delay: float = DEFAULT_RESTART_DELAY,
        stderr_prefix: str = DEFAULT_STDERR_PREFIX,
        spawn_failure_fatal: bool = False,
        echo_output: bool = False,
        drain_timeout: float = DEFAULT_DRAIN_TIMEOUT,
        spawner: Spawner | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        self._command = command
        self._registry = registry
        self._restart_delay = restart_delay
        self._stderr_prefix = stderr_prefix
        self._spawn_failure_fatal = spawn_failure_fatal
        self._echo_output = echo_output
        self._drain_timeout = drain_timeout
        self._spawner = spawner or spawn_shell
        self._sleep = sleep or asyncio.sleep
        self._state = SupervisorState.IDLE
        self._process: Any = None
        self._restarts = 0
        self._stopped = False

    @property
    def command(self) -> str:
        return self._command

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def restarts(self) -> int:
        """Number of completed process generations."""
        return self._restarts

    @property
    def pid(self) -> int | None:
        if self._process is None or self._state != SupervisorState.RUNNING:
            return None
        return self._process.pid

    def stop(self) -> None:
        """Signal the supervisor loop to stop and kill the running process."""
        self._stopped = True
        if self._process is not None:
            self._terminate(self._process)

    async def run(self) -> None:
        """Run generations until stopped or cancelled.

        Raises:
            SpawnError: If the command cannot be started and
                ``spawn_failure_fatal`` is enabled.
        """
        logger.info("Supervising command: %s", self._command)
        try:
            while not self._stopped:
                await self.run_once()
        finally:
            self._state = SupervisorState.STOPPED
            if self._process is not None:
                self._terminate(self._process)
            logger.info("Supervisor stopped after %d restart(s)", self._restarts)

    async def run_once(self) -> None:
        """Run a single generation: spawn, stream, kill, back off, reset."""
        self._state = SupervisorState.SPAWNING
        try:
            process = await self._spawner(self._command)
        except OSError as e:
            if self._spawn_failure_fatal:
                raise SpawnError(f"Cannot start command {self._command!r}: {e}", self._command) from e
            logger.error("Cannot start command %r: %s", self._command, e)
        else:
            self._process = process
            self._state = SupervisorState.RUNNING
            logger.info("Started command (pid=%s): %s", process.pid, self._command)
            try:
                await self._stream_output(process)
            finally:
                self._terminate(process)
                returncode = await process.wait()
                self._process = None
            self._state = SupervisorState.EXITED
            logger.info("Command exited with code %s", returncode)

        if self._stopped:
            return

        self._state = SupervisorState.BACKOFF
        logger.info("Restarting in %.1fs", self._restart_delay)
        await self._sleep(self._restart_delay)
        await self._registry.clear_history()
        self._restarts += 1

    async def _stream_output(self, process: Any) -> None:
        """Pump both streams until either one of them ends."""
        readers = [
            LineReader(process.stdout, name="stdout", echo=self._echo_output),
            LineReader(
                process.stderr, prefix=self._stderr_prefix, name="stderr", echo=self._echo_output
            ),
        ]
        tasks = [
            asyncio.create_task(reader.pump(self._registry.broadcast), name=f"reader-{reader.name}")
            for reader in readers
        ]
        try:
            done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                exc = task.exception()
                if exc is not None:
                    logger.warning("Output reader %s failed: %s", task.get_name(), exc)

            # Either stream ending means the process is gone or going
            self._terminate(process)
            if pending:
                _, pending = await asyncio.wait(pending, timeout=self._drain_timeout)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    @staticmethod
    def _terminate(process: Any) -> None:
        if process.returncode is not None:
            return
        try:
            process.kill()
        except ProcessLookupError:
            pass


class SpawnError(Exception):
    """Raised when the watched command cannot be started."""

    def __init__(self, message: str, command: str = "") -> None:
        super().__init__(message)
        self.command = command
