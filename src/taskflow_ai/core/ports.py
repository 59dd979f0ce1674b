# src/taskflow_ai/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

AIService depends on Protocols instead of concrete implementations, so
providers and the secret store stay swappable and easy to fake in tests.
"""

from typing import Protocol

from ..ai.models import CredentialKey, EnhancementResult, ModeData


class CredentialStore(Protocol):
    """Named-secret capability (keychain-like)."""

    def get(self, key: CredentialKey) -> str | None: ...
    def save(self, value: str, key: CredentialKey) -> None: ...
    def delete(self, key: CredentialKey) -> None: ...
    def has_key(self, key: CredentialKey) -> bool: ...


class AIProvider(Protocol):
    """
    Uniform enhancement capability over one AI HTTP API.

    enhance()/test_connection() raise only ai.errors.AIError subclasses.
    """

    @property
    def name(self) -> str: ...

    @property
    def is_configured(self) -> bool: ...

    async def enhance(self, text: str, mode: ModeData) -> EnhancementResult: ...

    async def test_connection(self) -> bool: ...
