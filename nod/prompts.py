"""Interactive prompts.

``Prompter`` is the seam between resolution and the terminal. The CLI uses
``RichPrompter``; tests substitute a scripted implementation.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from rich.console import Console
from rich.prompt import Confirm, Prompt

from nod.models import (
    Auth,
    CronLock,
    Database,
    Framework,
    ORM,
    ProjectConfig,
    Queue,
)
from nod.utils import sanitize_name


class Prompter(Protocol):
    """Collects answers from the user."""

    def ask_preset(self, choices: list[str], default: str) -> str:
        """Pick the preset to start from."""
        ...

    def ask_project(self, defaults: ProjectConfig, supplied: frozenset[str]) -> dict[str, Any]:
        """Ask for project fields not in *supplied*; return a partial config."""
        ...

    def ask_preset_config(self, defaults: ProjectConfig) -> tuple[dict[str, Any], Optional[str]]:
        """Ask for a custom preset's contents; return ``(config, description)``."""
        ...

    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask a yes/no question."""
        ...


def _values(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


class RichPrompter:
    """``Prompter`` backed by ``rich.prompt``."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def _choice(self, message: str, choices: list[str], default: str) -> str:
        return Prompt.ask(message, choices=choices, default=default, console=self.console)

    def _yes(self, message: str, default: bool) -> bool:
        return Confirm.ask(message, default=default, console=self.console)

    def ask_preset(self, choices: list[str], default: str) -> str:
        return self._choice("Preset", choices, default)

    def ask_project(self, defaults: ProjectConfig, supplied: frozenset[str]) -> dict[str, Any]:
        answers: dict[str, Any] = {}
        features: dict[str, Any] = {}

        if "name" not in supplied:
            answer = Prompt.ask("Project name", default=defaults.name, console=self.console)
            answers["name"] = sanitize_name(answer) or defaults.name
        if "framework" not in supplied:
            answers["framework"] = self._choice(
                "Framework", _values(Framework), defaults.framework.value
            )
        if "typescript" not in supplied:
            answers["typescript"] = self._yes("Use TypeScript?", defaults.typescript)
        if "database" not in supplied:
            answers["database"] = self._choice(
                "Database", _values(Database), defaults.database.value
            )
        if "auth" not in supplied:
            answers["auth"] = self._choice("Authentication", _values(Auth), defaults.auth.value)

        features["cron"] = self._yes("Include cron jobs support?", defaults.features.cron)
        if features["cron"]:
            features["cronLock"] = self._choice(
                "Cron lock backend",
                _values(CronLock),
                defaults.features.cron_lock.value,
            )
        if "queue" not in supplied:
            answers["queue"] = self._choice("Job queue", _values(Queue), defaults.queue.value)
        features["docker"] = self._yes("Include Docker configuration?", defaults.features.docker)
        features["pm2"] = self._yes("Include PM2 configuration?", defaults.features.pm2)

        answers["features"] = features
        return answers

    def ask_preset_config(self, defaults: ProjectConfig) -> tuple[dict[str, Any], Optional[str]]:
        description = Prompt.ask("Description (optional)", default="", console=self.console)
        database = self._choice("Database", _values(Database), defaults.database.value)
        orm = defaults.orm.value
        if database in ("pg", "supabase"):
            orm = self._choice("ORM", _values(ORM), defaults.orm.value)
        auth = self._choice("Authentication", _values(Auth), defaults.auth.value)

        f = defaults.features
        cron = self._yes("Include cron jobs support?", f.cron)
        environments = self._yes("Include environment config (staging/production)?", f.environments)
        source_config = self._yes("Include source config (domain-based routing)?", f.source_config)
        api_audit = self._yes("Include API audit logging?", f.api_audit)
        langfuse = self._yes("Include Langfuse for LLM observability?", defaults.ai.langfuse)
        vercel_cron = self._yes("Include Vercel cron configuration?", defaults.deployment.vercel_cron)
        github = self._yes("Include GitHub workflow?", defaults.deployment.github_workflow)
        docker = self._yes("Include Docker configuration?", f.docker)
        pm2 = self._yes("Include PM2 configuration?", f.pm2)
        testing = self._yes("Include testing setup?", f.testing)

        config: dict[str, Any] = {
            "database": database,
            "auth": auth,
            "queue": "none",
            "orm": orm,
            "features": {
                "cron": cron,
                "cronLock": "supabase" if database == "supabase" else "file",
                "logging": True,
                "testing": testing,
                "docker": docker,
                "pm2": pm2,
                "environments": environments,
                "sourceConfig": source_config,
                "modelConfig": False,
                "apiAudit": api_audit,
            },
            "ai": {
                "rag": False,
                "chat": False,
                "langfuse": langfuse,
                "embeddings": "none",
            },
            "deployment": {
                "vercel": vercel_cron,
                "vercelCron": vercel_cron,
                "githubWorkflow": github,
            },
        }
        return config, description.strip() or None

    def confirm(self, message: str, default: bool = False) -> bool:
        return self._yes(message, default)
