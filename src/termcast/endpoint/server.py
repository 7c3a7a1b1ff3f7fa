"""FastAPI server streaming the watched command's output to viewers.

Routes:

    WS  /ws        -> history replay, then one text message per new line
    WS  /          -> same as /ws
    GET /health    -> {"status": "ok", "clients": 2, ...}
    GET /history   -> ["line 1", "line 2", ...]

``serve()`` is the service entry point: it runs the uvicorn server and the
process supervisor side by side until asked to stop.
"""

from __future__ import annotations

import asyncio
import logging

import uvicorn
from fastapi import FastAPI, WebSocket

from termcast.broadcast.registry import BroadcastRegistry
from termcast.config.settings import Settings
from termcast.domain.models import HealthStatus, SupervisorState
from termcast.endpoint.connection import ConnectionHandler
from termcast.process.supervisor import ProcessSupervisor

logger = logging.getLogger(__name__)


def create_app(
    registry: BroadcastRegistry,
    supervisor: ProcessSupervisor | None = None,
) -> FastAPI:
    """Create the viewer-facing application.

    Args:
        registry: Shared history + client registry viewers join.
        supervisor: The process supervisor, used for health reporting only.
    """
    app = FastAPI(
        title="termcast",
        description="Streams a supervised shell command's output over WebSocket",
        version="0.1.0",
    )

    app.state.registry = registry
    app.state.supervisor = supervisor

    @app.get("/health")
    async def health_check() -> HealthStatus:
        sup: ProcessSupervisor | None = app.state.supervisor
        reg: BroadcastRegistry = app.state.registry
        return HealthStatus(
            status="ok",
            clients=reg.client_count,
            history_lines=len(reg.history),
            process_state=sup.state if sup else SupervisorState.IDLE,
            restarts=sup.restarts if sup else 0,
            pid=sup.pid if sup else None,
        )

    @app.get("/history")
    async def get_history() -> list[str]:
        return await app.state.registry.snapshot()

    @app.websocket("/ws")
    async def stream_output(websocket: WebSocket) -> None:
        await ConnectionHandler(websocket, app.state.registry).run()

    app.add_api_websocket_route("/", stream_output)

    return app


async def serve(settings: Settings, stop_event: asyncio.Event | None = None) -> None:
    """Run the WebSocket server and the supervised command together.

    Returns when ``stop_event`` is set or the server exits on its own.

    Raises:
        SpawnError: If the command cannot be started and spawn failures
            are configured to be fatal. The server is shut down first.
    """
    cfg = settings.server
    registry = BroadcastRegistry(capacity=cfg.history_lines, send_timeout=cfg.send_timeout)
    supervisor = ProcessSupervisor(
        command=cfg.command,
        registry=registry,
        restart_delay=cfg.restart_delay,
        stderr_prefix=cfg.stderr_prefix,
        spawn_failure_fatal=cfg.spawn_failure_fatal,
        echo_output=cfg.echo_output,
    )
    app = create_app(registry, supervisor=supervisor)
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=cfg.host,
            port=cfg.port,
            log_level=settings.logging.level.lower(),
            # Logging is already configured by setup_logging
            log_config=None,
        )
    )

    logger.info("WebSocket server running at %s", cfg.addr)
    logger.info("Executing command: %s", cfg.command)

    server_task = asyncio.create_task(server.serve(), name="server")
    supervisor_task = asyncio.create_task(supervisor.run(), name="supervisor")
    waiters = {server_task, supervisor_task}
    stop_task: asyncio.Task[bool] | None = None
    if stop_event is not None:
        stop_task = asyncio.create_task(stop_event.wait(), name="stop")
        waiters.add(stop_task)

    try:
        await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
    finally:
        supervisor.stop()
        supervisor_task.cancel()
        server.should_exit = True
        if stop_task is not None:
            stop_task.cancel()
        await asyncio.gather(server_task, return_exceptions=True)
        results = await asyncio.gather(supervisor_task, return_exceptions=True)
        logger.info("Server stopped")

    supervisor_error = results[0]
    if isinstance(supervisor_error, Exception):
        logger.critical("Supervisor failed: %s", supervisor_error)
        raise supervisor_error
