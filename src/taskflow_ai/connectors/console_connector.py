# src/taskflow_ai/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..ai.errors import AIError
from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def friendly_ai_error_message(err: AIError) -> str:
    msg = str(err)
    if err.should_reconfigure:
        return f"{msg} Use /key <provider> <api-key> to set it."
    return msg


def enhance_line(state: AppState, text: str) -> str:
    """Run one enhancement with the current mode and render the reply."""
    mode = state.ai.current_mode
    if mode is None:
        return "No mode selected. Use /modes and /mode to pick one."

    try:
        result = asyncio.run(state.ai.enhance(text, mode))
    except AIError as e:
        logger.info("Enhancement failed (%s): %s", e.kind, e)
        return f"[AI] {friendly_ai_error_message(e)}"

    meta = f"{result.provider}, {result.processing_time:.1f}s"
    if result.tokens_used is not None:
        meta += f", {result.tokens_used} tokens"
    return f"<<< {result.mode_name} ({meta}):\n{result.enhanced_text}"


def run_console_loop(state: AppState) -> None:
    logger.info("Console started (mode=%s).", state.ai.current_mode.name if state.ai.current_mode else None)
    _print_ts("[CONSOLE] Type text to enhance it. Use /help for commands. Use /exit to quit.\n")

    if not state.ai.has_any_provider_configured:
        _print_ts("No AI provider configured. Use /key gemini <api-key> or /key zai <api-key>.")

    def emit(text: str) -> None:
        _print_ts(text)

    while True:
        current = state.ai.current_mode
        prompt = f"[{current.name}] >>> " if current else ">>> "
        try:
            user_input = input(prompt).strip()
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

        try:
            reply = command_registry.handle(state, user_input, emit=emit)
            if reply is None:
                reply = enhance_line(state, user_input)
        except Exception:
            logger.exception("Console handler crashed.")
            reply = "Internal error while handling input."

        _print_ts(reply)

    logger.info("Console finished.")
