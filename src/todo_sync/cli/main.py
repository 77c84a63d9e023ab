# src/todo_sync/cli/main.py

"""
CLI entrypoint.

Initializes logging, then either:
- serves the REST API (`todo-sync serve`), or
- runs the interactive console client over the sync layer (`todo-sync console`).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import replace

from .. import __version__
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..server.app import run_server
from .bootstrap import create_initial_state

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="todo-sync", description="Todo tracker server and console client.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the REST API.")
    serve.add_argument("--host", default=None, help="Bind address (default: TODO_HOST or 127.0.0.1).")
    serve.add_argument("--port", type=int, default=None, help="Port (default: TODO_PORT or 5000).")

    console = sub.add_parser("console", help="Run the interactive console client.")
    console.add_argument("--local", action="store_true", help="Use the local storage backend for this run.")
    return parser


async def _run_console(settings) -> None:
    state = create_initial_state(settings=settings)
    try:
        await run_console_loop(state)
    finally:
        await state.sync.aclose()
        await state.backend.aclose()


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    command = args.command or "console"
    # The console shares the terminal with the prompt, so keep it to warnings there.
    if command == "console":
        console_level = max(console_level, logging.WARNING)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s (%s)...", settings.app_name, command)

    if command == "serve":
        run_server(host=args.host, port=args.port, settings=settings)
        return

    if getattr(args, "local", False) and not settings.use_local_storage:
        settings = replace(settings, use_local_storage=True)

    try:
        asyncio.run(_run_console(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
