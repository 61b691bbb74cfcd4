"""Shared pytest fixtures for the nod test suite.

Provides reusable fixtures for:
- Temporary home and working directories wrapped in ``Settings``
- A ``PresetStore`` with a deterministic clock
- A scripted ``Prompter`` that records every question it is asked
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

import pytest

from nod.config import Settings
from nod.models import ProjectConfig
from nod.presets.store import PresetStore


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Interactive, non-CI settings rooted in a temporary directory."""
    home = tmp_path / "home"
    cwd = tmp_path / "work"
    home.mkdir()
    cwd.mkdir()
    return Settings(home=home, cwd=cwd, ci=False, interactive=True)


@pytest.fixture
def ci_settings(settings: Settings) -> Settings:
    """Same directories as ``settings`` but running on CI."""
    return settings.model_copy(update={"ci": True, "interactive": False})


# ---------------------------------------------------------------------------
# Preset store
# ---------------------------------------------------------------------------

class StepClock:
    """Clock that advances one second on every call."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def store(settings: Settings, clock: StepClock) -> PresetStore:
    """Preset store writing to ``<tmp>/home/.nod-cli/presets.json``."""
    return PresetStore(settings, clock=clock)


# ---------------------------------------------------------------------------
# Prompter
# ---------------------------------------------------------------------------

class FakePrompter:
    """Scripted ``Prompter``.

    ``project_answers`` is returned from ``ask_project``; ``preset_choice`` from
    ``ask_preset`` (``None`` picks the offered default). Every call is recorded
    in ``calls``.
    """

    def __init__(
        self,
        project_answers: Optional[dict[str, Any]] = None,
        preset_choice: Optional[str] = None,
        preset_config: Optional[dict[str, Any]] = None,
        description: Optional[str] = None,
        confirm_answer: bool = True,
    ) -> None:
        self.project_answers = project_answers or {}
        self.preset_choice = preset_choice
        self.preset_config = preset_config or {"database": "mysql"}
        self.description = description
        self.confirm_answer = confirm_answer
        self.calls: list[tuple[str, Any]] = []

    def ask_preset(self, choices: list[str], default: str) -> str:
        self.calls.append(("ask_preset", (list(choices), default)))
        return self.preset_choice or default

    def ask_project(self, defaults: ProjectConfig, supplied: frozenset[str]) -> dict[str, Any]:
        self.calls.append(("ask_project", (defaults, supplied)))
        return dict(self.project_answers)

    def ask_preset_config(self, defaults: ProjectConfig) -> tuple[dict[str, Any], Optional[str]]:
        self.calls.append(("ask_preset_config", defaults))
        return dict(self.preset_config), self.description

    def confirm(self, message: str, default: bool = False) -> bool:
        self.calls.append(("confirm", message))
        return self.confirm_answer

    def asked(self, method: str) -> bool:
        return any(name == method for name, _ in self.calls)


@pytest.fixture
def prompter() -> FakePrompter:
    return FakePrompter()


@pytest.fixture
def make_prompter():
    """Factory for ``FakePrompter`` with custom answers."""
    return FakePrompter
