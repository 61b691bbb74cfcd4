"""Project scaffolding orchestrator.

Takes a resolved ``ProjectConfig`` and writes the project skeleton: the
directory layout, the declarative route file with its router configuration
and route-builder helper, and a ``nod.config.json`` snapshot of the
configuration it was generated from.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from nod.config import Settings
from nod.models import ProjectConfig

from .context import build_template_context, default_middlewares, plan_directories
from .templates import TemplateRenderer, dump_json, write_file

logger = logging.getLogger(__name__)

CONFIG_SNAPSHOT = "nod.config.json"


# Import statement for each middleware a generated router can register.
MIDDLEWARE_IMPORTS: dict[str, dict[str, str]] = {
    "jwtAuth": {
        "binding": "jwtAuth",
        "module": "../middleware/jwtAuth.middleware.js",
    },
    "auditLogger": {
        "binding": "{ auditLogger }",
        "module": "../middleware/auditLog.middleware.js",
    },
    "sourceSelection": {
        "binding": "{ sourceSelection }",
        "module": "../middleware/sourceSelection.middleware.js",
    },
}

# Example routes written into src/routes/index.<ext>.
EXAMPLE_ROUTES: list[dict[str, Any]] = [
    {"method": "GET", "path": "/example", "handler": "getExample"},
    {
        "method": "GET",
        "path": "/public",
        "handler": "getPublic",
        "disabled": ["jwtAuth", "auditLogger"],
    },
    {
        "method": "POST",
        "path": "/admin",
        "handler": "adminAction",
        "roles": ["admin", "superAdmin"],
    },
]


class ScaffoldError(Exception):
    """Raised when the project cannot be generated."""


class ProjectGenerator:
    """Generates the project skeleton for a resolved configuration."""

    def __init__(
        self,
        config: ProjectConfig,
        settings: Optional[Settings] = None,
        renderer: Optional[TemplateRenderer] = None,
    ) -> None:
        self.config = config
        self.settings = settings or Settings()
        self.renderer = renderer or TemplateRenderer()
        self.written: list[Path] = []

    # -- Public API --------------------------------------------------------

    async def generate(self, output_dir: str | Path | None = None) -> Path:
        """Generate the project.

        Args:
            output_dir: Parent directory; defaults to ``settings.cwd``. The
                project is created in ``<output_dir>/<config.name>``.

        Returns:
            Path to the generated project root.

        Raises:
            ScaffoldError: the target exists and is not an empty directory, or
                the project name resolves outside *output_dir*.
        """
        parent = Path(output_dir) if output_dir is not None else self.settings.cwd
        project_root = parent / self.config.name
        if not project_root.resolve().is_relative_to(parent.resolve()):
            raise ScaffoldError(f"Project name escapes the output directory: {self.config.name}")
        await asyncio.to_thread(_ensure_empty_dir, project_root)

        context = self.build_context()
        ext = context["file_ext"]

        # 1. Directory skeleton
        await self._create_directory_structure(project_root)

        # 2. Declarative routing files
        await self._render(
            "controllers/example.j2", project_root / f"src/controllers/example.{ext}", context
        )
        await self._render(
            "helpers/route-builder.j2", project_root / f"src/helpers/route-builder.{ext}", context
        )
        await self._render(
            "config/router.j2", project_root / f"src/config/router.{ext}", context
        )
        await self._render(
            "routes/index.j2", project_root / f"src/routes/index.{ext}", context
        )

        # 3. Configuration snapshot
        snapshot = project_root / CONFIG_SNAPSHOT
        await asyncio.to_thread(write_file, snapshot, dump_json(self.config.to_json_dict()))
        self.written.append(snapshot)

        logger.info("Generated %s (%d files)", project_root, len(self.written))
        return project_root

    def build_context(self) -> dict[str, Any]:
        """Template context: config flags plus the routing literals."""
        ctx = build_template_context(self.config)
        middlewares = default_middlewares(ctx)
        return {
            **ctx.as_dict(),
            "default_middlewares": middlewares,
            "default_roles": [],
            "routes": [_route_context(r) for r in EXAMPLE_ROUTES],
            "middleware_imports": [
                {"name": name, **MIDDLEWARE_IMPORTS[name]}
                for name in middlewares
                if name in MIDDLEWARE_IMPORTS
            ],
        }

    # -- Internal ----------------------------------------------------------

    async def _create_directory_structure(self, root: Path) -> None:
        async def _mkdir(d: str) -> None:
            await asyncio.to_thread((root / d).mkdir, parents=True, exist_ok=True)

        await asyncio.gather(*[_mkdir(d) for d in plan_directories(self.config)])

    async def _render(self, template: str, output: Path, context: dict[str, Any]) -> None:
        path = await self.renderer.render_to_file(template, output, context)
        self.written.append(path)


def _route_context(route: dict[str, Any]) -> dict[str, Any]:
    return {
        "method": route["method"],
        "path": route["path"],
        "handler": route["handler"],
        "disabled": route.get("disabled", []),
        "enabled": route.get("enabled", []),
        "roles": route.get("roles"),
        "exclude_roles": route.get("excludeRoles", []),
    }


def _ensure_empty_dir(path: Path) -> None:
    if path.exists():
        if not path.is_dir():
            raise ScaffoldError(f"Target exists and is not a directory: {path}")
        if any(path.iterdir()):
            raise ScaffoldError(f"Target directory is not empty: {path}")
    path.mkdir(parents=True, exist_ok=True)
