# tests/test_commands.py

from __future__ import annotations

from taskflow_ai.ai.errors import InvalidAPIKeyError, ProviderError
from taskflow_ai.ai.models import CredentialKey
from taskflow_ai.cli.commands import CommandRegistry, registry
from taskflow_ai.connectors.console_connector import enhance_line


def test_command_registry_routes_and_aliases(state) -> None:
    reg = CommandRegistry()
    called: list[list[str]] = []

    def handler(state, args, emit):
        called.append(args)
        if emit is not None:
            emit("note")
        return "done"

    reg.register("a", handler, "a", aliases=["alpha"])

    assert reg.handle(state, "/a x y") == "done"
    assert reg.handle(state, "/ALPHA", emit=lambda _: None) == "done"
    assert called == [["x", "y"], []]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_next_cycles_through_stored_modes(state) -> None:
    names = [m.name for m in state.modes.list_modes()]
    assert state.ai.current_mode.name == names[0]

    for expected in names[1:] + names[:1]:
        assert registry.handle(state, "/next") == f"Mode: {expected}"


def test_mode_select_by_number_and_name(state) -> None:
    assert registry.handle(state, "/mode 2").startswith("Mode set to:")
    assert state.ai.current_mode.name == state.modes.list_modes()[1].name

    assert registry.handle(state, "/mode explain") == "Mode set to: Explain"
    assert "No such mode" in registry.handle(state, "/mode 99")


def test_key_and_forget(state) -> None:
    assert registry.handle(state, "/key gemini abc123") == "Google Gemini API key saved."
    assert state.credentials.get(CredentialKey.GEMINI_API_KEY) == "abc123"

    assert "Unknown provider" in registry.handle(state, "/key openai abc")
    assert registry.handle(state, "/forget gemini") == "Google Gemini API key removed."
    assert state.credentials.get(CredentialKey.GEMINI_API_KEY) is None


def test_test_command_reports_failure(state, zai) -> None:
    assert registry.handle(state, "/test zai") == "Z.ai: connection OK."

    zai.next_error = InvalidAPIKeyError()
    reply = registry.handle(state, "/test zai")
    assert reply.startswith("Z.ai: connection failed.")
    assert "Invalid API key" in reply


def test_addmode_and_delmode(state) -> None:
    before = state.modes.count_modes()

    reply = registry.handle(state, "/addmode zai Haiku | Rewrite the text as a haiku.")
    assert reply.startswith("Mode added")
    assert state.modes.count_modes() == before + 1

    assert "built in" in registry.handle(state, "/delmode 1")
    assert registry.handle(state, f"/delmode {before + 1}") == "Mode deleted: Haiku"
    assert state.modes.count_modes() == before


def test_enhance_line_renders_result(state, gemini) -> None:
    registry.handle(state, "/mode Explain")
    gemini.next_text = " Energy equals mass times speed of light squared.\n"

    reply = enhance_line(state, "E=mc^2")

    assert reply.startswith("<<< Explain (Google Gemini (fake-model)")
    assert reply.endswith("\nEnergy equals mass times speed of light squared.")


def test_enhance_line_renders_errors(state, gemini) -> None:
    registry.handle(state, "/mode Explain")

    gemini.configured = False
    assert "/key" in enhance_line(state, "x")

    gemini.configured = True
    gemini.next_error = ProviderError("Content blocked: SAFETY")
    assert enhance_line(state, "x") == "[AI] Content blocked: SAFETY"
    assert state.ai.is_processing is False
