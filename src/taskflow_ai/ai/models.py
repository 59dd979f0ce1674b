# src/taskflow_ai/ai/models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class CredentialKey(StrEnum):
    GEMINI_API_KEY = "gemini-api-key"
    ZAI_API_KEY = "zai-api-key"


class ProviderType(StrEnum):
    GEMINI = "gemini"
    ZAI = "zai"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def credential_key(self) -> CredentialKey:
        return _CREDENTIAL_KEYS[self]

    @classmethod
    def parse(cls, raw: str) -> ProviderType:
        """Accept the stored value ("gemini") or a loose user spelling ("Z.ai", "GEMINI")."""
        s = (raw or "").strip().lower().replace(".", "")
        try:
            return cls(s)
        except ValueError:
            raise ValueError(f"Unknown AI provider: {raw!r}") from None


_DISPLAY_NAMES = {
    ProviderType.GEMINI: "Google Gemini",
    ProviderType.ZAI: "Z.ai",
}

_CREDENTIAL_KEYS = {
    ProviderType.GEMINI: CredentialKey.GEMINI_API_KEY,
    ProviderType.ZAI: CredentialKey.ZAI_API_KEY,
}


@dataclass(slots=True)
class Mode:
    """A stored enhancement style (row of the modes table)."""

    name: str
    system_prompt: str
    provider: ProviderType
    model_name: str = ""
    is_built_in: bool = False
    sort_order: int = 0
    id: int | None = None


@dataclass(frozen=True, slots=True)
class ModeData:
    """Immutable snapshot of a Mode handed to provider adapters."""

    name: str
    system_prompt: str
    provider: ProviderType
    model_name: str

    @classmethod
    def from_mode(cls, mode: Mode) -> ModeData:
        return cls(
            name=mode.name,
            system_prompt=mode.system_prompt,
            provider=mode.provider,
            model_name=mode.model_name or "",
        )


@dataclass(frozen=True, slots=True)
class EnhancementResult:
    original_text: str
    enhanced_text: str
    mode_name: str
    provider: str
    tokens_used: int | None
    processing_time: float
