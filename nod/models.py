"""Pydantic v2 models for nod project configuration and presets.

Attribute names are snake_case; every model also accepts and emits the
camelCase keys used by ``presets.json`` and by the generated projects.
Default values on ``ProjectConfig`` and its sections are the hardcoded global
defaults, the lowest layer of configuration resolution.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Framework(str, Enum):
    """Web framework of the generated project."""
    EXPRESS = "express"
    HONO = "hono"


class Database(str, Enum):
    """Database driver."""
    PG = "pg"
    MYSQL = "mysql"
    SUPABASE = "supabase"
    DRIZZLE = "drizzle"
    NONE = "none"


class Auth(str, Enum):
    """Authentication strategy."""
    JWT = "jwt"
    JWKS = "jwks"
    SUPABASE = "supabase"
    NONE = "none"


class Queue(str, Enum):
    """Background job queue."""
    BULL = "bull"
    NONE = "none"


class ORM(str, Enum):
    """Data access layer."""
    DRIZZLE = "drizzle"
    RAW = "raw"
    NONE = "none"


class CronLock(str, Enum):
    """Lock backend used by cron jobs in cluster mode."""
    PG = "pg"
    MYSQL = "mysql"
    REDIS = "redis"
    FILE = "file"
    SUPABASE = "supabase"


class Embeddings(str, Enum):
    """Embedding provider for RAG."""
    OPENAI = "openai"
    GEMINI = "gemini"
    COHERE = "cohere"
    NONE = "none"


class VectorStore(str, Enum):
    """Vector store backing RAG retrieval."""
    SUPABASE = "supabase"
    PINECONE = "pinecone"
    CHROMA = "chroma"
    WEAVIATE = "weaviate"


class LLMProvider(str, Enum):
    """LLM provider used by the chat service."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


class ChatDatabase(str, Enum):
    """Storage for chat conversations."""
    SUPABASE = "supabase"
    PG = "pg"
    MYSQL = "mysql"


# ---------------------------------------------------------------------------
# Base model
# ---------------------------------------------------------------------------

class CamelModel(BaseModel):
    """Base model accepting snake_case or camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys and JSON-compatible values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Project configuration
# ---------------------------------------------------------------------------

class Features(CamelModel):
    """Optional project features."""
    cron: bool = False
    cron_lock: CronLock = CronLock.FILE
    logging: bool = True
    testing: bool = True
    docker: bool = True
    pm2: bool = True
    environments: bool = False
    source_config: bool = False
    # ``model_config`` is reserved by pydantic, hence the explicit alias.
    use_model_config: bool = Field(default=False, alias="modelConfig")
    api_audit: bool = False


class AIFeatures(CamelModel):
    """AI feature switches and provider choices."""
    rag: bool = False
    chat: bool = False
    langfuse: bool = False
    embeddings: Embeddings = Embeddings.NONE
    vector_store: VectorStore = VectorStore.SUPABASE
    llm_provider: LLMProvider = LLMProvider.OPENAI
    chat_database: ChatDatabase = ChatDatabase.SUPABASE


class DeploymentFeatures(CamelModel):
    """Deployment targets."""
    vercel: bool = False
    vercel_cron: bool = False
    github_workflow: bool = False


class SupabaseOptions(CamelModel):
    """Supabase connection options."""
    use_pooler: bool = False


class ProjectConfig(CamelModel):
    """Fully resolved configuration of a project to generate."""

    name: str = Field(..., min_length=1, description="Project directory/package name")
    framework: Framework = Framework.EXPRESS
    typescript: bool = True
    database: Database = Database.PG
    auth: Auth = Auth.JWT
    queue: Queue = Queue.NONE
    orm: ORM = ORM.RAW
    preset: str = Field(default="custom", description="Preset whose defaults were applied")
    features: Features = Field(default_factory=Features)
    ai: AIFeatures = Field(default_factory=AIFeatures)
    deployment: DeploymentFeatures = Field(default_factory=DeploymentFeatures)
    supabase: SupabaseOptions = Field(default_factory=SupabaseOptions)


# Structured sections merged one level deep during resolution.
NESTED_SECTIONS: tuple[str, ...] = ("features", "ai", "deployment", "supabase")


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

class CustomPreset(CamelModel):
    """A user-defined, persisted preset."""
    name: str
    description: Optional[str] = None
    config: dict[str, Any] = Field(
        default_factory=dict,
        description="Partial ProjectConfig (camelCase keys)",
    )
    created_at: str
    updated_at: str


class PresetsConfig(CamelModel):
    """The whole ``presets.json`` document."""
    default_preset: Optional[str] = None
    presets: dict[str, CustomPreset] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# CLI input
# ---------------------------------------------------------------------------

class CliFlags(CamelModel):
    """Flags given to ``nod init``. ``None`` means "not supplied"."""
    name: Optional[str] = None
    preset: Optional[str] = None
    framework: Optional[Framework] = None
    database: Optional[Database] = None
    auth: Optional[Auth] = None
    queue: Optional[Queue] = None
    typescript: Optional[bool] = None
    yes: bool = False

    def overrides(self) -> dict[str, Any]:
        """Return the explicitly supplied config fields as a partial config."""
        data = self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={"preset", "yes"},
        )
        return data
