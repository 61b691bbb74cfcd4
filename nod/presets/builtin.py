"""Built-in presets and hardcoded global defaults.

Built-in presets are immutable partial configurations. Their ids are
reserved: custom presets may not be created, overwritten or deleted under
any of them (compared case-insensitively).
"""

from __future__ import annotations

import copy
from typing import Any

from nod.models import ProjectConfig


DEFAULT_PROJECT_NAME = "my-backend"

# Used when no preset id is given and no default preset is stored.
DEFAULT_PRESET_ID = "custom"

# Substituted for unknown preset ids.
FALLBACK_PRESET_ID = "api"


_FULL: dict[str, Any] = {
    "database": "supabase",
    "auth": "supabase",
    "orm": "drizzle",
    "queue": "none",
    "features": {
        "cron": True,
        "cronLock": "supabase",
        "logging": True,
        "testing": True,
        "environments": True,
        "sourceConfig": True,
        "apiAudit": True,
    },
    "deployment": {
        "vercel": True,
        "vercelCron": True,
        "githubWorkflow": True,
    },
    "supabase": {"usePooler": True},
}

BUILTIN_PRESETS: dict[str, dict[str, Any]] = {
    "minimal": {
        "database": "none",
        "auth": "none",
        "orm": "none",
        "queue": "none",
        "features": {
            "cron": False,
            "docker": False,
            "pm2": False,
        },
    },
    "api": {
        "database": "pg",
        "auth": "jwt",
        "orm": "raw",
        "queue": "none",
        "features": {
            "logging": True,
            "testing": True,
            "docker": True,
            "pm2": True,
        },
    },
    "full": _FULL,
    "ai": {
        **_FULL,
        "features": {**_FULL["features"], "modelConfig": True},
        "ai": {
            "rag": True,
            "chat": True,
            "langfuse": True,
            "embeddings": "openai",
            "vectorStore": "supabase",
            "llmProvider": "openai",
            "chatDatabase": "supabase",
        },
    },
    "custom": {},
    "1": {
        "database": "supabase",
        "auth": "supabase",
        "orm": "drizzle",
        "queue": "none",
        "features": {
            "cron": False,
            "cronLock": "supabase",
            "environments": True,
            "sourceConfig": True,
            "apiAudit": True,
            "docker": False,
            "pm2": False,
        },
        "ai": {"langfuse": True},
        "deployment": {"githubWorkflow": True},
    },
}

RESERVED_PRESET_NAMES: frozenset[str] = frozenset(BUILTIN_PRESETS)


def is_builtin(name: str) -> bool:
    """Return ``True`` if *name* is a reserved built-in preset id."""
    return name.lower() in RESERVED_PRESET_NAMES


def builtin_names() -> list[str]:
    """Built-in preset ids in display order."""
    return list(BUILTIN_PRESETS)


def get_builtin(name: str) -> dict[str, Any] | None:
    """Return a copy of a built-in preset's partial config, or ``None``."""
    preset = BUILTIN_PRESETS.get(name.lower())
    if preset is None:
        return None
    return copy.deepcopy(preset)


def global_defaults() -> dict[str, Any]:
    """The lowest resolution layer: every field with its hardcoded default."""
    return ProjectConfig(name=DEFAULT_PROJECT_NAME, preset=DEFAULT_PRESET_ID).to_json_dict()
