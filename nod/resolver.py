"""Configuration resolution.

Turns a preset id, CLI flags and interactive answers into one concrete
``ProjectConfig``. For every field the precedence is, highest first:

1. explicit interactive answer
2. explicit CLI flag
3. the preset's value
4. the hardcoded global default

The structured sections (``features``, ``ai``, ``deployment``, ``supabase``)
are merged one level deep: each sub-field resolves independently under the
same rule, and values inside a sub-field are never merged further.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from nod.config import Settings
from nod.models import (
    NESTED_SECTIONS,
    AIFeatures,
    CliFlags,
    DeploymentFeatures,
    Features,
    ProjectConfig,
    SupabaseOptions,
)
from nod.presets.builtin import (
    DEFAULT_PRESET_ID,
    FALLBACK_PRESET_ID,
    builtin_names,
    get_builtin,
    global_defaults,
    is_builtin,
)
from nod.presets.store import PresetStore
from nod.prompts import Prompter
from nod.utils import sanitize_name

logger = logging.getLogger(__name__)


class ResolutionError(Exception):
    """Raised when a configuration cannot be resolved."""


# ---------------------------------------------------------------------------
# Layer helpers
# ---------------------------------------------------------------------------


def _alias_map(model: type[BaseModel]) -> dict[str, str]:
    return {name: field.alias or name for name, field in model.model_fields.items()}


_TOP_ALIASES = _alias_map(ProjectConfig)
_SECTION_ALIASES: dict[str, dict[str, str]] = {
    "features": _alias_map(Features),
    "ai": _alias_map(AIFeatures),
    "deployment": _alias_map(DeploymentFeatures),
    "supabase": _alias_map(SupabaseOptions),
}


def normalize_layer(layer: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Return *layer* with camelCase keys and ``None`` values removed.

    Keys are normalised at the top level and inside the nested sections so
    that ``cron_lock`` and ``cronLock`` address the same field. Unknown keys
    pass through unchanged.
    """
    if not layer:
        return {}
    result: dict[str, Any] = {}
    for key, value in layer.items():
        if value is None:
            continue
        key = _TOP_ALIASES.get(key, key)
        if key in NESTED_SECTIONS and isinstance(value, Mapping):
            aliases = _SECTION_ALIASES[key]
            value = {aliases.get(k, k): v for k, v in value.items() if v is not None}
        result[key] = value
    return result


def merge_layers(*layers: Mapping[str, Any]) -> dict[str, Any]:
    """Merge normalised layers, lowest precedence first, one level deep."""
    merged: dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            if key in NESTED_SECTIONS and isinstance(value, Mapping):
                section = dict(merged.get(key) or {})
                section.update(value)
                merged[key] = section
            else:
                merged[key] = value
    return merged


async def lookup_preset(
    preset_id: str, store: PresetStore
) -> tuple[str, dict[str, Any]]:
    """Return ``(applied_id, partial_config)`` for *preset_id*.

    Built-in ids win over custom presets. Unknown ids do not fail: the
    ``api`` preset is substituted.
    """
    if is_builtin(preset_id):
        return preset_id.lower(), get_builtin(preset_id) or {}
    custom = await store.get(preset_id)
    if custom is not None:
        return custom.name, dict(custom.config)
    logger.info("Unknown preset '%s', using '%s'", preset_id, FALLBACK_PRESET_ID)
    return FALLBACK_PRESET_ID, get_builtin(FALLBACK_PRESET_ID) or {}


async def select_preset_id(preset_id: Optional[str], store: PresetStore) -> str:
    """Explicit id, else the stored default pointer, else ``custom``."""
    if preset_id:
        return preset_id
    return await store.get_default() or DEFAULT_PRESET_ID


def _checked_name(name: str, applied_id: str) -> str:
    # The name becomes a single directory under the output directory.
    clean = sanitize_name(name)
    if not clean:
        raise ResolutionError(f"Invalid project name '{name}' from preset '{applied_id}'")
    if clean != name:
        logger.warning("Project name '%s' sanitised to '%s'", name, clean)
    return clean


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


async def resolve(
    preset_id: Optional[str],
    cli_flags: Optional[CliFlags],
    interactive_answers: Optional[Mapping[str, Any]],
    store: PresetStore,
) -> ProjectConfig:
    """Resolve the final project configuration.

    Args:
        preset_id: Requested preset; ``None`` falls back to ``cli_flags.preset``,
            then to the store's default preset, then to ``custom``.
        cli_flags: Explicitly supplied flags.
        interactive_answers: Partial config collected from prompts.
        store: Source of custom presets and the default pointer.

    Raises:
        ResolutionError: the merged values do not form a valid configuration.
    """
    flags = cli_flags or CliFlags()
    requested = await select_preset_id(preset_id or flags.preset, store)
    applied_id, preset_config = await lookup_preset(requested, store)

    layers = [
        normalize_layer(global_defaults()),
        normalize_layer(preset_config),
        normalize_layer(flags.overrides()),
        normalize_layer(interactive_answers),
    ]
    for layer in layers:
        layer.pop("preset", None)

    merged = merge_layers(*layers)
    merged["preset"] = applied_id
    if isinstance(merged.get("name"), str):
        merged["name"] = _checked_name(merged["name"], applied_id)

    try:
        return ProjectConfig.model_validate(merged)
    except ValidationError as exc:
        raise ResolutionError(f"Invalid configuration for preset '{applied_id}': {exc}") from exc


def can_skip_prompts(flags: CliFlags, settings: Settings) -> bool:
    """Return ``True`` when resolution must not prompt.

    ``--yes`` always skips prompting. Otherwise name, preset and framework
    must all be supplied, and the session must be interactive (on CI only
    ``--yes`` skips).
    """
    if flags.yes:
        return True
    if settings.ci or not settings.interactive:
        return False
    return bool(flags.name and flags.preset and flags.framework)


class ConfigResolver:
    """Drives ``resolve`` for ``nod init``, prompting only when needed."""

    def __init__(
        self,
        store: PresetStore,
        settings: Settings,
        prompter: Optional[Prompter] = None,
    ) -> None:
        self.store = store
        self.settings = settings
        self.prompter = prompter

    async def run(self, flags: CliFlags) -> ProjectConfig:
        """Resolve a configuration for *flags*.

        Raises:
            ResolutionError: prompting is required but not possible.
        """
        if can_skip_prompts(flags, self.settings):
            return await resolve(flags.preset, flags, None, self.store)

        if self.prompter is None or not self.settings.interactive:
            raise ResolutionError(
                "Missing options in a non-interactive session; "
                "pass --yes to use preset and default values"
            )

        preset_id = flags.preset
        if not preset_id:
            custom = [p.name for p in await self.store.list()]
            default = await select_preset_id(None, self.store)
            preset_id = self.prompter.ask_preset(builtin_names() + custom, default)

        # Preset + flags resolved first so prompts show effective defaults.
        defaults = await resolve(preset_id, flags, None, self.store)
        supplied = frozenset(flags.overrides())
        answers = self.prompter.ask_project(defaults, supplied)
        return await resolve(preset_id, flags, answers, self.store)
