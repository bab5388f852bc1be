# src/lockin/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..util.timefmt import determine_greeting

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def greeting_line(state: AppState) -> str:
    pending = len(state.tasks.pending_tasks)
    noun = "task" if pending == 1 else "tasks"
    return f"Good {determine_greeting()}, {state.profile.username}. You have {pending} pending {noun}."


async def run_console_loop(state: AppState) -> None:
    """
    Interactive REPL.

    Input is read in a worker thread; commands and the reminder loop both run on
    the event loop thread, so they never touch the task list concurrently.
    """
    logger.info("Console connector started.")
    scheduler = state.scheduler
    scheduler.start()

    _print_ts(greeting_line(state))
    _print_ts("Use /help for commands, /add <text> to add a task, /exit to quit.\n")

    def emit(text: str) -> None:
        _print_ts(text)

    try:
        while True:
            try:
                user_input = (await asyncio.to_thread(input, ">>> ")).strip()
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

            if not user_input.startswith("/"):
                # Bare text is a shortcut for /add.
                user_input = f"/add {user_input}"

            try:
                reply = await command_registry.handle(state, user_input, emit=emit)
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."

            if reply is not None:
                _print_ts(reply)
    finally:
        await scheduler.stop()
        logger.info("Console connector finished.")
