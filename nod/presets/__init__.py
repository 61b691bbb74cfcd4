"""Preset management: built-in presets and the persistent custom preset store."""

from nod.presets.builtin import (
    BUILTIN_PRESETS,
    RESERVED_PRESET_NAMES,
    builtin_names,
    get_builtin,
    global_defaults,
    is_builtin,
)
from nod.presets.store import (
    PresetError,
    PresetExistsError,
    PresetNotFoundError,
    PresetStore,
    ReservedPresetError,
)

__all__ = [
    "BUILTIN_PRESETS",
    "PresetError",
    "PresetExistsError",
    "PresetNotFoundError",
    "PresetStore",
    "RESERVED_PRESET_NAMES",
    "ReservedPresetError",
    "builtin_names",
    "get_builtin",
    "global_defaults",
    "is_builtin",
]
