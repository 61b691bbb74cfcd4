"""Persistent store for custom presets.

All presets live in a single JSON document (``~/.nod-cli/presets.json``)::

    {
      "defaultPreset": "mystack",
      "presets": {
        "mystack": {
          "name": "mystack",
          "description": "...",
          "config": {...partial project config...},
          "createdAt": "2026-01-01T00:00:00.000Z",
          "updatedAt": "2026-01-01T00:00:00.000Z"
        }
      }
    }

Every mutating call is a read-modify-write of the whole document. Writes go
through a temporary file and an atomic rename, so readers never observe a
half-written document; there is no cross-process lock and concurrent writers
are last-writer-wins.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import ValidationError

from nod.config import Settings
from nod.models import CustomPreset, PresetsConfig

from .builtin import is_builtin

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PresetError(Exception):
    """Base class for preset store errors."""

    def __init__(self, message: str, name: str = "") -> None:
        self.name = name
        super().__init__(message)


class ReservedPresetError(PresetError):
    """Raised when a mutating call targets a built-in preset id."""


class PresetNotFoundError(PresetError):
    """Raised when a preset referenced by name does not exist."""


class PresetExistsError(PresetError):
    """Raised by ``create`` when a custom preset of that name already exists."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Format *moment* as ISO-8601 UTC with millisecond precision and ``Z``."""
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def validate_preset_name(name: str, action: str = "create") -> None:
    """Reject reserved and syntactically invalid custom preset names."""
    if is_builtin(name):
        raise ReservedPresetError(f"Cannot {action} built-in preset: {name}", name)
    if not _NAME_RE.match(name):
        raise PresetError(
            f"Invalid preset name '{name}': only letters, numbers, hyphens "
            "and underscores are allowed",
            name,
        )


def _write_atomic(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


# ---------------------------------------------------------------------------
# PresetStore
# ---------------------------------------------------------------------------


class PresetStore:
    """Named configuration bundles backed by one JSON file.

    Args:
        settings: Execution context; ``settings.presets_path`` is the backing file.
        clock: Returns the current time; used for ``createdAt``/``updatedAt``.
    """

    def __init__(
        self,
        settings: Settings,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.settings = settings
        self.path = settings.presets_path
        self._clock = clock

    # -- Persistence -------------------------------------------------------

    async def load(self) -> PresetsConfig:
        """Read the store, treating a missing or corrupt file as empty."""
        return await asyncio.to_thread(self._load_sync)

    def _load_sync(self) -> PresetsConfig:
        if not self.path.exists():
            return PresetsConfig()
        try:
            raw = self.path.read_text(encoding="utf-8")
            return PresetsConfig.model_validate(json.loads(raw))
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("Ignoring unreadable preset store %s: %s", self.path, exc)
            return PresetsConfig()

    async def _save(self, data: PresetsConfig) -> None:
        content = json.dumps(data.to_json_dict(), indent=2, ensure_ascii=False) + "\n"
        await asyncio.to_thread(_write_atomic, self.path, content)

    # -- Queries -----------------------------------------------------------

    async def get(self, name: str) -> Optional[CustomPreset]:
        """Return the custom preset called *name*, or ``None``."""
        data = await self.load()
        return data.presets.get(name)

    async def list(self) -> list[CustomPreset]:
        """Return every custom preset in insertion order."""
        data = await self.load()
        return list(data.presets.values())

    async def get_default(self) -> Optional[str]:
        """Return the default preset pointer, if set."""
        data = await self.load()
        return data.default_preset or None

    # -- Mutations ---------------------------------------------------------

    async def create(
        self,
        name: str,
        config: dict[str, Any],
        description: Optional[str] = None,
    ) -> CustomPreset:
        """Create a new custom preset.

        Raises:
            ReservedPresetError: *name* is a built-in id.
            PresetExistsError: a custom preset called *name* already exists.
        """
        validate_preset_name(name, "create")
        data = await self.load()
        if name in data.presets:
            raise PresetExistsError(f"Preset already exists: {name}", name)
        preset = self._upsert(data, name, config, description)
        await self._save(data)
        return preset

    async def save(
        self,
        name: str,
        config: dict[str, Any],
        description: Optional[str] = None,
    ) -> CustomPreset:
        """Create or replace a custom preset, preserving its ``createdAt``.

        Raises:
            ReservedPresetError: *name* is a built-in id.
        """
        validate_preset_name(name, "overwrite")
        data = await self.load()
        preset = self._upsert(data, name, config, description)
        await self._save(data)
        return preset

    async def delete(self, name: str) -> bool:
        """Delete a custom preset.

        Returns ``False`` if no such preset exists. Clears the default pointer
        when it named the deleted preset.

        Raises:
            ReservedPresetError: *name* is a built-in id.
        """
        if is_builtin(name):
            raise ReservedPresetError(f"Cannot delete built-in preset: {name}", name)
        data = await self.load()
        if name not in data.presets:
            return False
        del data.presets[name]
        if data.default_preset == name:
            data.default_preset = None
        await self._save(data)
        return True

    async def set_default(self, name: Optional[str]) -> None:
        """Set (or, with ``None``, clear) the default preset pointer.

        Raises:
            PresetNotFoundError: *name* is neither built-in nor a stored preset.
        """
        data = await self.load()
        if name is None:
            data.default_preset = None
        else:
            if not is_builtin(name) and name not in data.presets:
                raise PresetNotFoundError(f"Preset not found: {name}", name)
            data.default_preset = name
        await self._save(data)

    # -- Internal ----------------------------------------------------------

    def _upsert(
        self,
        data: PresetsConfig,
        name: str,
        config: dict[str, Any],
        description: Optional[str],
    ) -> CustomPreset:
        now = format_timestamp(self._clock())
        previous = data.presets.get(name)
        preset = CustomPreset(
            name=name,
            description=description,
            config=dict(config),
            created_at=previous.created_at if previous else now,
            updated_at=now,
        )
        data.presets[name] = preset
        return preset
