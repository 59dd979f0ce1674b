# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskflow_ai.ai.models import Mode, ProviderType
from taskflow_ai.ai.modes import ModeStore
from taskflow_ai.ai.service import AIService
from taskflow_ai.core.state import AppState

from .fakes import FakeProvider, InMemoryCredentialStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and AppState.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment and .env.
    """
    return SimpleNamespace(
        app_name="taskflow-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        modes_db_path=tmp_path / "modes.sqlite3",
        credentials_db_path=tmp_path / "credentials.sqlite3",
        gemini_api_key=None,
        zai_api_key=None,
        gemini_base_url="https://generativelanguage.googleapis.com/v1beta",
        gemini_default_model="gemini-flash-lite-latest",
        gemini_timeout_seconds=60.0,
        zai_base_url="https://api.z.ai/api/paas/v4",
        zai_default_model="glm-4.5-flash",
        zai_timeout_seconds=30.0,
    )


@pytest.fixture()
def gemini() -> FakeProvider:
    return FakeProvider("Google Gemini")


@pytest.fixture()
def zai() -> FakeProvider:
    return FakeProvider("Z.ai")


@pytest.fixture()
def service(gemini: FakeProvider, zai: FakeProvider) -> AIService:
    return AIService({ProviderType.GEMINI: gemini, ProviderType.ZAI: zai})


@pytest.fixture()
def explain_mode() -> Mode:
    return Mode(
        id=1,
        name="Explain",
        system_prompt="Explain simply.",
        provider=ProviderType.GEMINI,
        model_name="",
    )


@pytest.fixture()
def state(settings: SimpleNamespace, service: AIService) -> AppState:
    """
    AppState wired with fake providers.

    NOTE: We keep a real SQLite ModeStore here because its ordering and seeding
    are part of what the command tests exercise.
    """
    modes = ModeStore(settings.modes_db_path)
    modes.seed_defaults()
    service.load_default_mode(modes.list_modes())
    return AppState(
        settings=settings,
        credentials=InMemoryCredentialStore(),
        modes=modes,
        ai=service,
    )
