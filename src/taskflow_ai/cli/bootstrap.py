# src/taskflow_ai/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the credential store, mode registry, providers and AIService into AppState.
"""

from __future__ import annotations

import logging

from ..ai.credentials import SQLiteCredentialStore, seed_from_env
from ..ai.models import CredentialKey, ProviderType
from ..ai.modes import ModeStore
from ..ai.providers.gemini import GeminiProvider
from ..ai.providers.zai import ZAIProvider
from ..ai.service import AIService
from ..config import Settings, get_settings
from ..core.ports import AIProvider, CredentialStore
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.modes_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.credentials_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_providers(settings: Settings, credentials: CredentialStore) -> dict[ProviderType, AIProvider]:
    return {
        ProviderType.GEMINI: GeminiProvider(
            credentials,
            base_url=settings.gemini_base_url,
            default_model=settings.gemini_default_model,
            timeout_seconds=settings.gemini_timeout_seconds,
        ),
        ProviderType.ZAI: ZAIProvider(
            credentials,
            base_url=settings.zai_base_url,
            default_model=settings.zai_default_model,
            timeout_seconds=settings.zai_timeout_seconds,
        ),
    }


def create_initial_state(*, settings: Settings | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    credentials = SQLiteCredentialStore(settings.credentials_db_path)
    seeded = seed_from_env(
        credentials,
        {
            CredentialKey.GEMINI_API_KEY: settings.gemini_api_key,
            CredentialKey.ZAI_API_KEY: settings.zai_api_key,
        },
    )
    if seeded:
        logger.info("Imported API keys from environment: %s", ", ".join(k.value for k in seeded))

    modes = ModeStore(settings.modes_db_path)
    modes.seed_defaults()

    ai = AIService(build_providers(settings, credentials))
    ai.load_default_mode(modes.list_modes())

    if not ai.has_any_provider_configured:
        logger.info("No AI provider configured yet.")

    return AppState(settings=settings, credentials=credentials, modes=modes, ai=ai)
