"""Tests for the WebSocket-backed sink."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from termcast.broadcast.sink import ClientSink, WebSocketSink


class TestWebSocketSink:
    def test_is_client_sink(self) -> None:
        assert isinstance(WebSocketSink(AsyncMock()), ClientSink)

    @pytest.mark.asyncio
    async def test_send_text(self) -> None:
        ws = AsyncMock()
        await WebSocketSink(ws).send("hello")
        ws.send_text.assert_awaited_once_with("hello")

    @pytest.mark.asyncio
    async def test_send_error_propagates(self) -> None:
        ws = AsyncMock()
        ws.send_text.side_effect = RuntimeError("closed")
        with pytest.raises(RuntimeError, match="closed"):
            await WebSocketSink(ws).send("hello")

    @pytest.mark.asyncio
    async def test_close_closes_socket_once(self) -> None:
        ws = AsyncMock()
        sink = WebSocketSink(ws)
        assert not sink.is_closed
        await sink.close()
        await sink.close()
        assert sink.is_closed
        ws.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_error_is_swallowed(self) -> None:
        ws = AsyncMock()
        ws.close.side_effect = RuntimeError("already closed")
        sink = WebSocketSink(ws)
        await sink.close()
        assert sink.is_closed

    @pytest.mark.asyncio
    async def test_wait_closed_released_by_close(self) -> None:
        sink = WebSocketSink(AsyncMock())
        waiter = asyncio.create_task(sink.wait_closed())
        await asyncio.sleep(0)
        assert not waiter.done()
        await sink.close()
        await asyncio.wait_for(waiter, timeout=1)
