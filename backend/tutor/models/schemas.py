"""Pydantic schemas and internal contracts for the answer pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class Chunk(BaseModel):
    """Ingested course material returned by similarity search."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    page_number: int | None = None
    similarity: float = Field(ge=0.0, le=1.0)
    course_id: str | None = None


class Source(BaseModel):
    """Citation metadata; `index` matches the [n] markers in the answer."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=1)
    preview: str
    page: int | None = None
    similarity: float


class CacheEntry(BaseModel):
    """Cached answer payload stored under a derived cache key."""

    answer: str
    sources: list[Source] = Field(default_factory=list)


class AnswerResult(BaseModel):
    """Response shape for one answered question."""

    answer: str
    sources: list[Source] = Field(default_factory=list)
    cached: bool = False


class AnalyticsPayload(BaseModel):
    """Event data recorded for each generated answer."""

    question: str
    course_id: str | None = None
    sources_used: int = 0
    cached: bool = False


class AnalyticsEvent(BaseModel):
    """Write-once analytics event handed to the background queue."""

    type: Literal["question_asked"] = "question_asked"
    payload: AnalyticsPayload
    timestamp: datetime = Field(default_factory=_utcnow)


class CourseQuestionStats(BaseModel):
    """Aggregated question metrics for one course."""

    course_id: str | None
    questions: int
    avg_sources_used: float


class HealthResponse(BaseModel):
    """Response schema for health check endpoints."""

    status: str
    environment: str
    embedding_provider: str
    generation_provider: str
    embedding_configured: bool
    generation_configured: bool
    cache_backend: str
    queue_backend: str
    queue_workers: int
    queue_pending_jobs: int
    database_ready: bool


class QueueJob(BaseModel):
    """Serialized queue job payload contract."""

    id: str
    name: str
    payload: dict[str, Any]
    queued_at: datetime = Field(default_factory=_utcnow)
