"""Logging setup for termcast.

The service has two sources of log records: the ``termcast`` package and
the uvicorn server that carries the WebSocket viewers. Both are routed
through the same handlers so the console shows one consistent stream.
"""

from __future__ import annotations

import logging
import sys

from termcast.config.settings import LoggingConfig

# Loggers configured by setup_logging; uvicorn.access propagates into uvicorn
MANAGED_LOGGERS = ("termcast", "uvicorn")

_OWNED_FLAG = "_termcast_owned"


def _make_handlers(config: LoggingConfig) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        handlers.append(logging.FileHandler(config.file, encoding="utf-8"))

    formatter = logging.Formatter(config.format)
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _OWNED_FLAG, True)
    return handlers


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the termcast and uvicorn loggers.

    Handlers installed by an earlier call are closed and replaced, so the
    function can run again after the configuration changes (``-v`` on the
    command line). Handlers added by anyone else are left alone.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
    """
    if config is None:
        config = LoggingConfig()
    level = getattr(logging, config.level.upper(), logging.INFO)
    handlers = _make_handlers(config)

    for name in MANAGED_LOGGERS:
        target = logging.getLogger(name)
        for old in [h for h in target.handlers if getattr(h, _OWNED_FLAG, False)]:
            target.removeHandler(old)
            old.close()
        target.setLevel(level)
        target.propagate = False
        for handler in handlers:
            target.addHandler(handler)

    logging.getLogger("termcast").info(
        "Logging initialized at %s level%s",
        config.level,
        f", writing to {config.file}" if config.file else "",
    )
