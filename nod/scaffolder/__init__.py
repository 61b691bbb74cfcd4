"""nod scaffolder -- writes a project skeleton for a resolved configuration.

Quick usage::

    from nod.scaffolder import ProjectGenerator

    generator = ProjectGenerator(config, settings)
    project_path = await generator.generate("/tmp/output")
"""

from nod.scaffolder.context import (
    TemplateContext,
    build_template_context,
    default_middlewares,
    plan_directories,
)
from nod.scaffolder.generator import ProjectGenerator, ScaffoldError
from nod.scaffolder.templates import TemplateRenderer

__all__ = [
    "ProjectGenerator",
    "ScaffoldError",
    "TemplateContext",
    "TemplateRenderer",
    "build_template_context",
    "default_middlewares",
    "plan_directories",
]
