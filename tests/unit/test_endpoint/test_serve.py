"""Tests for the service entry point wiring server and supervisor."""

from __future__ import annotations

import asyncio
from typing import Iterator
from unittest.mock import AsyncMock, patch

import pytest

from termcast.config.settings import ServerConfig, Settings
from termcast.process.supervisor import SpawnError


class FakeServer:
    """Stands in for uvicorn.Server; runs until asked to exit."""

    instances: list["FakeServer"] = []

    def __init__(self, config: object) -> None:
        self.config = config
        self.should_exit = False
        FakeServer.instances.append(self)

    async def serve(self) -> None:
        while not self.should_exit:
            await asyncio.sleep(0.01)


@pytest.fixture(autouse=True)
def fake_server() -> Iterator[None]:
    FakeServer.instances.clear()
    with patch("termcast.endpoint.server.uvicorn.Server", FakeServer):
        yield


class TestServe:
    @pytest.mark.asyncio
    async def test_stop_event_shuts_everything_down(self) -> None:
        from termcast.endpoint.server import serve

        settings = Settings(server=ServerConfig(command="sleep 30", echo_output=False))
        stop = asyncio.Event()
        with patch(
            "termcast.process.supervisor.spawn_shell", AsyncMock(side_effect=OSError("no"))
        ):
            task = asyncio.create_task(serve(settings, stop_event=stop))
            await asyncio.sleep(0.05)
            stop.set()
            await asyncio.wait_for(task, timeout=2)

        assert FakeServer.instances[0].should_exit is True

    @pytest.mark.asyncio
    async def test_fatal_spawn_error_propagates(self) -> None:
        from termcast.endpoint.server import serve

        settings = Settings(server=ServerConfig(command="nope", spawn_failure_fatal=True))
        with patch(
            "termcast.process.supervisor.spawn_shell", AsyncMock(side_effect=OSError("no"))
        ):
            with pytest.raises(SpawnError):
                await asyncio.wait_for(serve(settings), timeout=2)

        assert FakeServer.instances[0].should_exit is True
