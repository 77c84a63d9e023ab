# src/todo_sync/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import format_task_list
from ..cli.commands import registry as command_registry
from ..client.sync_state import SyncState
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class _BackgroundReporter:
    """
    Print state changes that happen outside a command (delete commits resolving
    after the undo window), so failures are not silent while the prompt waits.
    """

    def __init__(self) -> None:
        self.foreground = False
        self._last_error = ""
        self._last_notice: str | None = None

    def __call__(self, state: SyncState) -> None:
        if not self.foreground:
            if state.error and state.error != self._last_error:
                _print_ts(f"[error] {state.error}")
            elif self._last_notice and state.notice is None and not state.error:
                _print_ts("[notice] Delete committed.")
        self._last_error = state.error
        self._last_notice = state.notice


async def _read_line(prompt: str) -> str:
    # input() runs in a worker thread so the loop keeps firing delete timers meanwhile.
    return await asyncio.to_thread(input, prompt)


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type a todo title to add it. Use /help for commands. Use /exit to quit.\n")

    reporter = _BackgroundReporter()
    unsubscribe = state.sync.subscribe(reporter)

    reporter.foreground = True
    await state.sync.load()
    print(format_task_list(state.sync.state), flush=True)
    reporter.foreground = False

    try:
        while True:
            try:
                user_input = (await _read_line(">>> ")).strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            line = user_input if user_input.startswith("/") else f"/add {user_input}"

            reporter.foreground = True
            try:
                response = await command_registry.handle(state, line)
            except Exception:
                logger.exception("Command handler crashed.")
                response = "Internal error while handling a command."
            finally:
                reporter.foreground = False

            if response:
                print(f"[{_ts_local()}] {response}", flush=True)

        # Leaving inside the undo window still means "delete it".
        await state.sync.flush_pending_delete()
    finally:
        unsubscribe()

    logger.info("Console connector finished.")
