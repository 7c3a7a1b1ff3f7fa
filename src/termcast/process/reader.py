"""Decoding of a child process output stream into text lines."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable

logger = logging.getLogger(__name__)

LineCallback = Callable[[str], Awaitable[None]]


class LineReader:
    """Turns one byte stream into a lazy sequence of text lines.

    Lines are split on ``\\n``, stripped of their line terminator and
    decoded as UTF-8 (invalid bytes are replaced). Every line is prefixed
    with ``prefix``, which is how stderr output is marked.

    Example usage::

        reader = LineReader(process.stderr, prefix="ERROR: ")
        await reader.pump(registry.broadcast)
    """

    def __init__(
        self,
        stream: asyncio.StreamReader,
        prefix: str = "",
        name: str = "stdout",
        echo: bool = False,
    ) -> None:
        self._stream = stream
        self._prefix = prefix
        self._name = name
        self._echo = echo

    @property
    def name(self) -> str:
        return self._name

    async def lines(self) -> AsyncIterator[str]:
        """Yield decoded lines until the stream closes or fails.

        A line longer than the stream limit is skipped with a warning. An
        I/O error ends the sequence exactly like end-of-input.
        """
        while True:
            try:
                raw = await self._stream.readline()
            except ValueError as e:
                # StreamReader already discarded the oversized chunk
                logger.warning("Skipping oversized line on %s: %s", self._name, e)
                continue
            except OSError as e:
                logger.warning("Error reading %s, treating as end of stream: %s", self._name, e)
                return
            if not raw:
                return
            text = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            yield f"{self._prefix}{text}"

    async def pump(self, callback: LineCallback) -> int:
        """Forward every line to ``callback``.

        Returns:
            The number of lines forwarded before the stream ended.
        """
        count = 0
        async for line in self.lines():
            if self._echo:
                print(line, flush=True)
            await callback(line)
            count += 1
        logger.debug("%s closed after %d line(s)", self._name, count)
        return count
