"""Derived values the generator needs from a resolved ``ProjectConfig``.

Everything here is a pure function of the configuration: the boolean template
context, the default middleware list written into the route file, and the
directory skeleton.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from nod.models import ORM, Auth, Database, ProjectConfig, Queue


class TemplateContext(BaseModel):
    """Flags consumed by the Jinja2 templates."""

    project_name: str
    framework: str
    use_ts: bool
    file_ext: str
    has_auth: bool
    has_jwks: bool
    has_supabase_auth: bool
    has_database: bool
    database_type: str
    has_queue: bool
    has_cron: bool
    has_logging: bool
    has_environments: bool
    has_source_config: bool
    has_model_config: bool
    has_rag: bool
    has_chat: bool
    has_langfuse: bool
    has_vercel: bool
    has_vercel_cron: bool
    has_github_workflow: bool
    has_drizzle: bool
    has_supabase: bool
    has_api_audit: bool

    def as_dict(self) -> dict[str, Any]:
        return self.model_dump()


def build_template_context(config: ProjectConfig) -> TemplateContext:
    """Compute template flags for *config*."""
    features = config.features
    return TemplateContext(
        project_name=config.name,
        framework=config.framework.value,
        use_ts=config.typescript,
        file_ext="ts" if config.typescript else "js",
        has_auth=config.auth is not Auth.NONE,
        has_jwks=config.auth is Auth.JWKS,
        has_supabase_auth=config.auth is Auth.SUPABASE,
        has_database=config.database is not Database.NONE,
        database_type=config.database.value,
        has_queue=config.queue is not Queue.NONE,
        has_cron=features.cron,
        has_logging=features.logging,
        has_environments=features.environments,
        has_source_config=features.source_config,
        has_model_config=features.use_model_config,
        has_rag=config.ai.rag,
        has_chat=config.ai.chat,
        has_langfuse=config.ai.langfuse,
        has_vercel=config.deployment.vercel,
        has_vercel_cron=config.deployment.vercel_cron,
        has_github_workflow=config.deployment.github_workflow,
        has_drizzle=config.orm is ORM.DRIZZLE,
        has_supabase=config.database is Database.SUPABASE or config.auth is Auth.SUPABASE,
        has_api_audit=features.api_audit,
    )


def default_middlewares(ctx: TemplateContext) -> list[str]:
    """Router-wide default middleware names, in execution order."""
    names: list[str] = []
    if ctx.has_supabase_auth:
        names.append("jwtAuth")
    if ctx.has_supabase_auth and ctx.has_api_audit:
        names.append("auditLogger")
    if ctx.has_source_config:
        names.append("sourceSelection")
    return names


BASE_DIRECTORIES: tuple[str, ...] = (
    "src/routes",
    "src/controllers",
    "src/services",
    "src/config",
    "src/helpers",
    "src/utils",
    "docs",
    "temp",
)


def plan_directories(config: ProjectConfig) -> list[str]:
    """Relative directories to create for *config*, in creation order."""
    dirs = list(BASE_DIRECTORIES)

    if config.preset != "minimal":
        dirs.append("src/middleware")
        # Supabase auth lives under src/middleware.
        if config.auth not in (Auth.NONE, Auth.SUPABASE):
            dirs.append("src/auth")
        if config.database is not Database.NONE or config.orm is ORM.DRIZZLE:
            dirs.append("src/db")

    if config.preset in ("full", "ai") or config.features.cron:
        dirs.extend(["src/cron", "src/cron/jobs"])

    if config.preset == "full" and config.queue is not Queue.NONE:
        dirs.append("src/queue")

    if config.features.environments:
        dirs.append("src/environments")

    if config.typescript:
        dirs.append("src/types")

    return dirs
