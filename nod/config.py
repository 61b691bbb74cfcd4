"""nod runtime settings.

Centralised, typed description of the environment the CLI runs in. Nothing in
the library reads ``os.environ``, the working directory or the home directory
directly: a ``Settings`` instance is built once by the CLI entry point and
passed to ``PresetStore``, ``ConfigResolver`` and ``ProjectGenerator``.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field


# Environment variables that indicate a CI runner.
CI_ENV_VARS: tuple[str, ...] = (
    "CI",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "BUILDKITE",
    "CIRCLECI",
    "JENKINS_URL",
)

_FALSY = {"", "0", "false", "no", "off"}

DEFAULT_LOG_LEVEL = "WARNING"

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """Explicit execution context for a single CLI invocation.

    Attributes:
        home: Directory under which the per-user config directory lives.
        cwd: Directory in which new projects are generated.
        ci: Whether the process runs on a CI runner.
        interactive: Whether prompts may be shown to the user.
    """

    home: Path = Field(default_factory=Path.home)
    cwd: Path = Field(default_factory=Path.cwd)
    config_dir_name: str = Field(default=".nod-cli")
    presets_file_name: str = Field(default="presets.json")
    ci: bool = Field(default=False)
    interactive: bool = Field(default=True)
    log_level: str = Field(default=DEFAULT_LOG_LEVEL)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def config_dir(self) -> Path:
        """Per-user configuration directory (``~/.nod-cli``)."""
        return self.home / self.config_dir_name

    @property
    def presets_path(self) -> Path:
        """Path to the persisted ``presets.json`` document."""
        return self.config_dir / self.presets_file_name

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        stdin_isatty: bool | None = None,
    ) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            NOD_HOME, NOD_LOG_LEVEL, and the CI markers in ``CI_ENV_VARS``.

        Args:
            environ: Mapping to read instead of ``os.environ``.
            stdin_isatty: Override for terminal detection (tests).
        """
        env = os.environ if environ is None else environ
        ci = detect_ci(env)
        if stdin_isatty is None:
            stdin_isatty = sys.stdin is not None and sys.stdin.isatty()

        kwargs: dict[str, object] = {
            "ci": ci,
            "interactive": bool(stdin_isatty) and not ci,
        }
        if env.get("NOD_HOME"):
            kwargs["home"] = Path(env["NOD_HOME"]).expanduser()
        if env.get("NOD_LOG_LEVEL"):
            kwargs["log_level"] = normalize_log_level(env["NOD_LOG_LEVEL"])
        return cls(**kwargs)

    def ensure_directories(self) -> None:
        """Create the per-user configuration directory."""
        self.config_dir.mkdir(parents=True, exist_ok=True)


def detect_ci(environ: Mapping[str, str]) -> bool:
    """Return ``True`` if any known CI marker is set to a truthy value."""
    for name in CI_ENV_VARS:
        value = environ.get(name)
        if value is not None and value.strip().lower() not in _FALSY:
            return True
    return False


def normalize_log_level(value: str) -> str:
    """Upper-case a logging level name, falling back to ``WARNING`` if unknown."""
    name = value.strip().upper()
    if isinstance(logging.getLevelName(name), int):
        return name
    logger.warning("Unknown log level %r, using %s", value, DEFAULT_LOG_LEVEL)
    return DEFAULT_LOG_LEVEL
