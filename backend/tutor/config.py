"""Application configuration loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

THIRTY_DAYS_SECONDS = 30 * 24 * 60 * 60


class Settings(BaseSettings):
    """Runtime settings for providers, cache, vector search, and storage."""

    _PROJECT_ROOT = Path(__file__).resolve().parents[2]

    model_config = SettingsConfigDict(
        env_file=(_PROJECT_ROOT / ".env", _PROJECT_ROOT / "backend" / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    app_env: Literal["development", "staging", "production", "test"] = Field(
        default="development", validation_alias="APP_ENV"
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    embedding_provider: Literal["openai", "gemini", "ollama"] = Field(
        default="openai", validation_alias="EMBEDDING_PROVIDER"
    )
    generation_provider: Literal["gemini", "openai", "ollama"] = Field(
        default="gemini", validation_alias="GENERATION_PROVIDER"
    )
    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
    openai_embedding_model: str = Field(
        default="text-embedding-3-small", validation_alias="OPENAI_EMBEDDING_MODEL"
    )
    openai_model_name: str = Field(default="gpt-4o-mini", validation_alias="OPENAI_MODEL_NAME")
    gemini_model_name: str = Field(default="gemini-2.0-flash", validation_alias="GEMINI_MODEL_NAME")
    gemini_embedding_model: str = Field(
        default="models/text-embedding-004", validation_alias="GEMINI_EMBEDDING_MODEL"
    )
    ollama_endpoint: str = Field(default="http://localhost:11434", validation_alias="OLLAMA_ENDPOINT")
    ollama_model_name: str = Field(default="llama3.1", validation_alias="OLLAMA_MODEL_NAME")
    ollama_embedding_model: str = Field(
        default="nomic-embed-text", validation_alias="OLLAMA_EMBEDDING_MODEL"
    )

    qdrant_url: str = Field(default="in-memory", validation_alias="QDRANT_URL")
    qdrant_collection_name: str = Field(
        default="course_chunks", validation_alias="QDRANT_COLLECTION_NAME"
    )
    match_threshold: float = Field(default=0.7, ge=0.0, le=1.0, validation_alias="MATCH_THRESHOLD")
    match_count: int = Field(default=5, ge=1, le=50, validation_alias="MATCH_COUNT")

    redis_url: str | None = Field(default=None, validation_alias="REDIS_URL")
    cache_ttl_seconds: int = Field(
        default=THIRTY_DAYS_SECONDS, ge=1, validation_alias="CACHE_TTL_SECONDS"
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./course_tutor.db", validation_alias="DATABASE_URL"
    )
    queue_workers: int = Field(default=2, ge=1, validation_alias="QUEUE_WORKERS")

    provider_timeout_seconds: float = Field(
        default=30.0, gt=0, validation_alias="PROVIDER_TIMEOUT_SECONDS"
    )
    cache_timeout_seconds: float = Field(default=2.0, gt=0, validation_alias="CACHE_TIMEOUT_SECONDS")
    read_retries: int = Field(default=1, ge=0, le=3, validation_alias="READ_RETRIES")
    source_preview_chars: int = Field(default=150, ge=1, validation_alias="SOURCE_PREVIEW_CHARS")

    @field_validator("openai_api_key", "gemini_api_key", "redis_url", mode="before")
    @classmethod
    def _normalize_optional_strings(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None

    @property
    def is_qdrant_in_memory(self) -> bool:
        """Whether the app should use in-memory vector storage."""
        return self.qdrant_url.lower() in {"in-memory", "memory", ":memory:"}

    @property
    def cache_enabled(self) -> bool:
        return self.redis_url is not None

    @property
    def is_cache_in_memory(self) -> bool:
        """Whether answers are cached in process memory instead of Redis."""
        return (self.redis_url or "").lower() in {"in-memory", "memory", ":memory:"}

    def _provider_configured(self, provider: str) -> bool:
        if provider == "openai":
            return self.openai_api_key is not None
        if provider == "gemini":
            return self.gemini_api_key is not None
        return True

    @property
    def embedding_configured(self) -> bool:
        return self._provider_configured(self.embedding_provider)

    @property
    def generation_configured(self) -> bool:
        return self._provider_configured(self.generation_provider)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load and cache validated settings for dependency injection."""
    return Settings()
