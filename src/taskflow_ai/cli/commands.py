# src/taskflow_ai/cli/commands.py

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from ..ai.credentials import CredentialError
from ..ai.errors import AIError
from ..ai.models import Mode, ProviderType
from ..core.state import AppState

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /mode, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, parts[1:], emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _parse_provider(raw: str) -> ProviderType | None:
    try:
        return ProviderType.parse(raw)
    except ValueError:
        return None


def _providers_hint() -> str:
    return "|".join(p.value for p in ProviderType)


def _format_mode(index: int, mode: Mode, current: Mode | None) -> str:
    marker = "*" if current is not None and current.id == mode.id else " "
    model = mode.model_name or "default model"
    return f" {marker} {index}. {mode.name} [{mode.provider.display_name}, {model}]"


def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    ai = state.ai
    mode = ai.current_mode.name if ai.current_mode else "(none)"
    lines = ["Status:", f"  Mode: {mode}"]
    for p in ProviderType:
        configured = "configured" if ai.is_configured(p) else "not configured"
        lines.append(f"  {p.display_name}: {configured}")
    if ai.last_error is not None:
        lines.append(f"  Last error: {ai.last_error}")
    return "\n".join(lines)


def cmd_modes(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    modes = state.modes.list_modes()
    if not modes:
        return "No modes defined. Use /addmode to create one."
    lines = ["Modes:"]
    for i, mode in enumerate(modes, start=1):
        lines.append(_format_mode(i, mode, state.ai.current_mode))
    return "\n".join(lines)


def cmd_mode(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /mode          -> show current mode
    /mode 2        -> select by position in /modes
    /mode Explain  -> select by name
    """
    if not args:
        current = state.ai.current_mode
        return f"Current mode: {current.name if current else '(none)'}"

    modes = state.modes.list_modes()
    query = " ".join(args).strip()

    chosen: Mode | None = None
    if query.isdigit():
        idx = int(query)
        if 1 <= idx <= len(modes):
            chosen = modes[idx - 1]
    else:
        chosen = next((m for m in modes if m.name.lower() == query.lower()), None)

    if chosen is None:
        return f"No such mode: {query}. Use /modes to list them."

    state.ai.set_mode(chosen)
    return f"Mode set to: {chosen.name}"


def cmd_next(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    state.ai.cycle_mode(state.modes.list_modes())
    current = state.ai.current_mode
    return f"Mode: {current.name}" if current else "No modes defined."


def cmd_key(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(args) < 2:
        return f"Usage: /key <{_providers_hint()}> <api-key>"

    provider = _parse_provider(args[0])
    if provider is None:
        return f"Unknown provider: {args[0]}. Use one of: {_providers_hint()}"

    try:
        state.credentials.save(args[1], provider.credential_key)
    except CredentialError as e:
        logger.warning("Saving API key failed: %s", e)
        return f"Could not save API key: {e}"
    return f"{provider.display_name} API key saved."


def cmd_forget(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    provider = _parse_provider(args[0]) if args else None
    if provider is None:
        return f"Usage: /forget <{_providers_hint()}>"

    state.credentials.delete(provider.credential_key)
    return f"{provider.display_name} API key removed."


def cmd_test(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    provider = _parse_provider(args[0]) if args else None
    if provider is None:
        return f"Usage: /test <{_providers_hint()}>"

    if emit:
        with contextlib.suppress(Exception):
            emit(f"Testing {provider.display_name}...")

    try:
        asyncio.run(state.ai.test_provider(provider))
    except AIError as e:
        return f"{provider.display_name}: connection failed. {e}"
    return f"{provider.display_name}: connection OK."


def cmd_addmode(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /addmode <provider> <name> | <system prompt>
    """
    usage = f"Usage: /addmode <{_providers_hint()}> <name> | <system prompt>"
    if len(args) < 2:
        return usage

    provider = _parse_provider(args[0])
    if provider is None:
        return f"Unknown provider: {args[0]}. Use one of: {_providers_hint()}"

    rest = " ".join(args[1:])
    name, sep, prompt = rest.partition("|")
    if not sep:
        return usage

    try:
        mode_id = state.modes.add_mode(name=name, system_prompt=prompt, provider=provider)
    except ValueError as e:
        return f"Could not add mode: {e}"
    return f"Mode added (id={mode_id}): {name.strip()}"


def cmd_delmode(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args or not args[0].isdigit():
        return "Usage: /delmode <number from /modes>"

    modes = state.modes.list_modes()
    idx = int(args[0])
    if not 1 <= idx <= len(modes):
        return f"No such mode: {idx}. Use /modes to list them."

    mode = modes[idx - 1]
    if mode.is_built_in:
        return f"{mode.name} is built in and cannot be deleted."

    if mode.id is None:
        return f"{mode.name} has no id and cannot be deleted."
    state.modes.delete_mode(mode.id)
    current = state.ai.current_mode
    if current is not None and current.id == mode.id:
        remaining = state.modes.list_modes()
        if remaining:
            state.ai.set_mode(remaining[0])
    return f"Mode deleted: {mode.name}"


registry.register("help", cmd_help, "show this help", aliases=["h", "?"])
registry.register("status", cmd_status, "show current mode and provider setup")
registry.register("modes", cmd_modes, "list enhancement modes")
registry.register("mode", cmd_mode, "show or select the current mode (/mode 2, /mode Explain)")
registry.register("next", cmd_next, "switch to the next mode", aliases=["cycle"])
registry.register("key", cmd_key, "save an API key (/key gemini <key>)")
registry.register("forget", cmd_forget, "remove a saved API key (/forget zai)")
registry.register("test", cmd_test, "check that a provider accepts the saved key (/test gemini)")
registry.register("addmode", cmd_addmode, "add a mode (/addmode zai Name | system prompt)")
registry.register("delmode", cmd_delmode, "delete a custom mode (/delmode 4)")
