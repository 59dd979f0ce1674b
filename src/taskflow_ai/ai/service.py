# src/taskflow_ai/ai/service.py

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from ..core.ports import AIProvider
from .errors import AIError, NetworkError, NotConfiguredError
from .models import EnhancementResult, Mode, ModeData, ProviderType

logger = logging.getLogger(__name__)


class AIService:
    """
    Enhancement orchestrator.

    Holds the current mode and the in-flight state, routes each request to the
    adapter registered for the mode's provider, and keeps last_error.

    Build one instance in the composition root and pass it around. There is
    no request lock: two overlapping enhance() calls both flip is_processing,
    and whichever finishes last decides last_error. Callers are expected to
    disable their trigger while is_processing is true.
    """

    def __init__(self, providers: Mapping[ProviderType, AIProvider]) -> None:
        self._providers: dict[ProviderType, AIProvider] = dict(providers)
        self._current_mode: Mode | None = None
        self._is_processing = False
        self._last_error: AIError | None = None

    # ---- observable state ----

    @property
    def current_mode(self) -> Mode | None:
        return self._current_mode

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    @property
    def last_error(self) -> AIError | None:
        return self._last_error

    # ---- providers ----

    def provider_for(self, provider_type: ProviderType) -> AIProvider:
        try:
            return self._providers[provider_type]
        except KeyError:
            raise KeyError(f"No AI provider registered for {provider_type!r}") from None

    def is_configured(self, provider_type: ProviderType) -> bool:
        return self.provider_for(provider_type).is_configured

    @property
    def has_any_provider_configured(self) -> bool:
        return any(p.is_configured for p in self._providers.values())

    # ---- modes ----

    def set_mode(self, mode: Mode) -> None:
        self._current_mode = mode

    def cycle_mode(self, modes: Sequence[Mode]) -> None:
        """Advance to the mode after the current one (wraps). Empty list: no-op."""
        if not modes:
            return

        current = self._current_mode
        index = _index_of(modes, current) if current is not None else None
        if index is None:
            self._current_mode = modes[0]
        else:
            self._current_mode = modes[(index + 1) % len(modes)]
        logger.debug("AI mode -> %s", self._current_mode.name)

    def load_default_mode(self, modes: Sequence[Mode]) -> None:
        if self._current_mode is None and modes:
            self._current_mode = modes[0]

    # ---- requests ----

    async def enhance(self, text: str, mode: Mode) -> EnhancementResult:
        mode_data = ModeData.from_mode(mode)
        provider = self.provider_for(mode_data.provider)

        try:
            configured = provider.is_configured
        except Exception as e:
            logger.exception("Could not check configuration of %s", provider.name)
            wrapped = NetworkError(str(e) or e.__class__.__name__)
            self._last_error = wrapped
            raise wrapped from e

        if not configured:
            self._last_error = NotConfiguredError()
            raise self._last_error

        self._is_processing = True
        self._last_error = None
        try:
            return await provider.enhance(text, mode_data)
        except AIError as e:
            self._last_error = e
            raise
        except Exception as e:
            logger.exception("Unexpected error from %s", provider.name)
            wrapped = NetworkError(str(e) or e.__class__.__name__)
            self._last_error = wrapped
            raise wrapped from e
        finally:
            self._is_processing = False

    async def test_provider(self, provider_type: ProviderType) -> bool:
        return await self.provider_for(provider_type).test_connection()


def _index_of(modes: Sequence[Mode], mode: Mode) -> int | None:
    for i, m in enumerate(modes):
        if mode.id is not None and m.id is not None:
            if m.id == mode.id:
                return i
        elif m.name == mode.name:
            return i
    return None
