# src/taskflow_ai/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..ai.modes import ModeStore
from ..ai.service import AIService
from .ports import CredentialStore


@dataclass
class AppState:
    """Everything the front end needs, wired once by cli.bootstrap."""

    settings: Any
    credentials: CredentialStore
    modes: ModeStore
    ai: AIService
