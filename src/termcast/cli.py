"""Command-line interface for termcast.

Runs a shell command under supervision and streams its output to
WebSocket viewers.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="termcast",
        description="Stream a continuously restarted shell command to WebSocket viewers",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/termcast.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--command",
        type=str,
        default=None,
        help="Command to execute (default: top -b)",
    )
    parser.add_argument(
        "-a", "--addr",
        type=str,
        default=None,
        help="WebSocket server address as host:port (default: 127.0.0.1:8080)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the termcast CLI."""
    args = parse_args(argv)

    from pydantic import ValidationError

    from termcast.config.settings import ServerConfig, load_settings
    from termcast.endpoint.server import serve
    from termcast.process.supervisor import SpawnError
    from termcast.utils.logging import setup_logging

    settings = load_settings(args.config)

    overrides = {}
    if args.command is not None:
        overrides["command"] = args.command
    if args.addr is not None:
        overrides["addr"] = args.addr
    if overrides:
        try:
            settings.server = ServerConfig(**{**settings.server.model_dump(), **overrides})
        except ValidationError as e:
            print(f"Invalid arguments: {e}", file=sys.stderr)
            sys.exit(2)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    try:
        asyncio.run(serve(settings))
    except SpawnError as e:
        logger.critical("%s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
