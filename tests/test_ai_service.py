# tests/test_ai_service.py

from __future__ import annotations

import asyncio

import pytest

from taskflow_ai.ai.errors import (
    InvalidAPIKeyError,
    NetworkError,
    NotConfiguredError,
    ProviderError,
)
from taskflow_ai.ai.models import Mode, ProviderType
from taskflow_ai.ai.providers.gemini import GeminiProvider
from taskflow_ai.ai.service import AIService

from .fakes import BrokenCredentialStore, FakeProvider


def _modes(n: int) -> list[Mode]:
    return [
        Mode(id=i + 1, name=f"m{i + 1}", system_prompt="p", provider=ProviderType.GEMINI, sort_order=i)
        for i in range(n)
    ]


@pytest.mark.asyncio
async def test_enhance_explain_scenario(service: AIService, gemini: FakeProvider, explain_mode: Mode) -> None:
    gemini.next_text = " Energy equals mass times speed of light squared.\n"

    result = await service.enhance("E=mc^2", explain_mode)

    assert result.enhanced_text == "Energy equals mass times speed of light squared."
    assert result.mode_name == "Explain"
    assert result.original_text == "E=mc^2"
    assert service.is_processing is False
    assert service.last_error is None

    text, mode_data = gemini.calls[0]
    assert text == "E=mc^2"
    assert mode_data.system_prompt == "Explain simply."
    assert mode_data.provider is ProviderType.GEMINI


@pytest.mark.asyncio
async def test_enhance_routes_by_mode_provider(service: AIService, gemini: FakeProvider, zai: FakeProvider) -> None:
    mode = Mode(name="Pro", system_prompt="Be professional.", provider=ProviderType.ZAI)

    await service.enhance("hi", mode)

    assert len(zai.calls) == 1
    assert gemini.calls == []


@pytest.mark.asyncio
async def test_enhance_not_configured_never_starts_processing(
    service: AIService, gemini: FakeProvider, explain_mode: Mode
) -> None:
    gemini.configured = False
    seen: list[bool] = []

    original = gemini.enhance

    async def spy(text, mode):
        seen.append(service.is_processing)
        return await original(text, mode)

    gemini.enhance = spy  # type: ignore[method-assign]

    with pytest.raises(NotConfiguredError):
        await service.enhance("E=mc^2", explain_mode)

    assert seen == []
    assert gemini.calls == []
    assert service.is_processing is False
    assert service.last_error == NotConfiguredError()


@pytest.mark.asyncio
async def test_enhance_provider_error_is_recorded_and_reraised(
    service: AIService, gemini: FakeProvider, explain_mode: Mode
) -> None:
    gemini.next_error = ProviderError("Content blocked: SAFETY")

    with pytest.raises(ProviderError) as exc_info:
        await service.enhance("something", explain_mode)

    assert "SAFETY" in str(exc_info.value)
    assert service.is_processing is False
    assert service.last_error == ProviderError("Content blocked: SAFETY")


@pytest.mark.asyncio
async def test_enhance_wraps_unexpected_errors_as_network_error(
    service: AIService, gemini: FakeProvider, explain_mode: Mode
) -> None:
    gemini.next_error = RuntimeError("socket closed")

    with pytest.raises(NetworkError) as exc_info:
        await service.enhance("x", explain_mode)

    assert "socket closed" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert service.last_error == NetworkError("socket closed")
    assert service.is_processing is False


@pytest.mark.asyncio
async def test_success_clears_previous_error(service: AIService, gemini: FakeProvider, explain_mode: Mode) -> None:
    gemini.next_error = InvalidAPIKeyError()
    with pytest.raises(InvalidAPIKeyError):
        await service.enhance("x", explain_mode)
    assert service.last_error == InvalidAPIKeyError()

    gemini.next_error = None
    await service.enhance("x", explain_mode)
    assert service.last_error is None


@pytest.mark.asyncio
async def test_is_processing_true_only_while_in_flight(
    service: AIService, gemini: FakeProvider, explain_mode: Mode
) -> None:
    gemini.gate = asyncio.Event()

    task = asyncio.create_task(service.enhance("x", explain_mode))
    await asyncio.sleep(0)
    assert service.is_processing is True

    gemini.gate.set()
    await task
    assert service.is_processing is False


@pytest.mark.asyncio
async def test_cancelled_request_restores_idle(service: AIService, gemini: FakeProvider, explain_mode: Mode) -> None:
    gemini.gate = asyncio.Event()

    task = asyncio.create_task(service.enhance("x", explain_mode))
    await asyncio.sleep(0)
    assert service.is_processing is True

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert service.is_processing is False


def test_cycle_mode_is_cyclic_with_period_n(service: AIService) -> None:
    modes = _modes(3)

    visited = []
    for _ in range(3):
        service.cycle_mode(modes)
        visited.append(service.current_mode.name)

    assert visited == ["m1", "m2", "m3"]

    service.cycle_mode(modes)
    assert service.current_mode.name == "m1"


def test_cycle_mode_empty_list_keeps_current(service: AIService) -> None:
    service.cycle_mode([])
    assert service.current_mode is None

    modes = _modes(2)
    service.set_mode(modes[1])
    service.cycle_mode([])
    assert service.current_mode is modes[1]


def test_cycle_mode_unknown_current_selects_first(service: AIService) -> None:
    service.set_mode(Mode(id=99, name="gone", system_prompt="p", provider=ProviderType.ZAI))
    modes = _modes(2)

    service.cycle_mode(modes)

    assert service.current_mode is modes[0]


def test_cycle_mode_matches_by_name_without_ids(service: AIService) -> None:
    modes = [Mode(name=n, system_prompt="p", provider=ProviderType.GEMINI) for n in ("a", "b")]
    service.set_mode(Mode(name="a", system_prompt="p", provider=ProviderType.GEMINI))

    service.cycle_mode(modes)

    assert service.current_mode is modes[1]


def test_load_default_mode_only_when_unset(service: AIService) -> None:
    modes = _modes(2)
    service.load_default_mode(modes)
    assert service.current_mode is modes[0]

    service.set_mode(modes[1])
    service.load_default_mode(modes)
    assert service.current_mode is modes[1]


def test_configuration_queries(service: AIService, gemini: FakeProvider, zai: FakeProvider) -> None:
    gemini.configured = False
    zai.configured = False
    assert service.has_any_provider_configured is False
    assert service.is_configured(ProviderType.GEMINI) is False

    zai.configured = True
    assert service.has_any_provider_configured is True
    assert service.is_configured(ProviderType.ZAI) is True


@pytest.mark.asyncio
async def test_test_provider_delegates(service: AIService, zai: FakeProvider) -> None:
    assert await service.test_provider(ProviderType.ZAI) is True
    assert zai.test_calls == 1


def test_provider_for_unregistered_type_raises() -> None:
    service = AIService({})
    with pytest.raises(KeyError):
        service.provider_for(ProviderType.GEMINI)


@pytest.mark.asyncio
@pytest.mark.parametrize("fail_has_key", [False, True])
async def test_credential_store_failure_is_recorded_as_network_error(fail_has_key: bool, explain_mode: Mode) -> None:
    provider = GeminiProvider(BrokenCredentialStore(fail_has_key=fail_has_key))
    service = AIService({ProviderType.GEMINI: provider})

    with pytest.raises(NetworkError, match="keychain locked"):
        await service.enhance("E=mc^2", explain_mode)

    assert isinstance(service.last_error, NetworkError)
    assert "keychain locked" in str(service.last_error)
    assert service.is_processing is False
