"""Cache-checked retrieval + generation workflow for course questions."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
import logging
from typing import TypeVar

from tutor.config import Settings
from tutor.models.schemas import AnalyticsEvent, AnalyticsPayload, AnswerResult, CacheEntry, Chunk
from tutor.services.analytics_service import AnalyticsRecorder
from tutor.services.cache_key import derive_cache_key
from tutor.services.cache_service import CacheStore
from tutor.services.course_catalog import DEFAULT_COURSE_NAME, CourseCatalog
from tutor.services.errors import ConfigurationError, QuestionValidationError, UpstreamProviderError
from tutor.services.grounding import FALLBACK_ANSWER, assemble_context, build_prompt, format_sources
from tutor.services.llm_service import PROVIDER_LABELS, LLMProvider
from tutor.services.task_queue import InMemoryTaskQueue
from tutor.services.vector_service import VectorService

logger = logging.getLogger(__name__)

T = TypeVar("T")

WRITE_CACHE_JOB = "write_cache"
RECORD_ANALYTICS_JOB = "record_analytics"


async def call_with_timeout(
    stage: str,
    factory: Callable[[], Awaitable[T]],
    timeout: float,
    retries: int = 0,
) -> T:
    """Await `factory()` under a timeout, retrying up to `retries` extra times."""
    attempt = 0
    while True:
        try:
            return await asyncio.wait_for(factory(), timeout=timeout)
        except Exception as exc:
            if attempt >= retries:
                raise
            attempt += 1
            logger.warning(
                "Stage %s failed (%s); retry %s of %s.",
                stage,
                type(exc).__name__,
                attempt,
                retries,
            )


@dataclass(slots=True)
class RAGService:
    """Answer student questions from ingested course material.

    Sequence per request: validate, check provider configuration, look up the
    cache, embed, retrieve, then assemble context, resolve the course name and
    generate. Cache writes and analytics are handed to the task queue and never
    awaited by the caller.
    """

    settings: Settings
    embedder: LLMProvider | None
    generator: LLMProvider | None
    vector_service: VectorService
    course_catalog: CourseCatalog
    task_queue: InMemoryTaskQueue
    cache_store: CacheStore | None = None
    analytics: AnalyticsRecorder | None = None

    def register_jobs(self) -> None:
        """Attach background handlers to the task queue."""
        self.task_queue.register_handler(WRITE_CACHE_JOB, self._write_cache_job)
        self.task_queue.register_handler(RECORD_ANALYTICS_JOB, self._record_analytics_job)

    async def close_providers(self) -> None:
        """Release the embedding and generation clients."""
        providers = [self.embedder, self.generator]
        for index, provider in enumerate(providers):
            if provider is None or provider in providers[:index]:
                continue
            await provider.close()

    async def answer_question(self, question: str | None, course_id: str | None = None) -> AnswerResult:
        """Return a grounded answer with citations for one question."""
        question = self._validate(question)
        course_id = course_id.strip() if course_id and course_id.strip() else None
        embedder, generator = self._require_providers()

        cache_key = derive_cache_key(question, course_id)
        cached = await self._cache_get(cache_key)
        if cached is not None:
            logger.info("Cache hit for key=%s", cache_key)
            return AnswerResult(answer=cached.answer, sources=cached.sources, cached=True)

        embedding = await self._provider_call(
            "embed", lambda: embedder.embed_text(question), retries=self.settings.read_retries
        )
        chunks = await self._retrieve(embedding, course_id)
        if not chunks:
            logger.info("No relevant chunks for course=%s; returning fallback answer.", course_id)
            return AnswerResult(answer=FALLBACK_ANSWER, sources=[], cached=False)

        context = assemble_context(chunks)
        course_name = await self._resolve_course_name(course_id)
        prompt = build_prompt(course_name, context, question)
        answer = await self._provider_call("generate", lambda: generator.generate(prompt))

        sources = format_sources(chunks, self.settings.source_preview_chars)
        self._dispatch_cache_write(cache_key, CacheEntry(answer=answer, sources=sources))
        self._dispatch_analytics(question, course_id, len(chunks))
        return AnswerResult(answer=answer, sources=sources, cached=False)

    @staticmethod
    def _validate(question: str | None) -> str:
        if question is None:
            raise QuestionValidationError("Question is required.")
        if not isinstance(question, str):
            raise QuestionValidationError("Question must be a string.")
        if not question.strip():
            raise QuestionValidationError("Question must not be empty.")
        return question

    def _require_providers(self) -> tuple[LLMProvider, LLMProvider]:
        if self.embedder is None:
            raise ConfigurationError(PROVIDER_LABELS[self.settings.embedding_provider])
        if self.generator is None:
            raise ConfigurationError(PROVIDER_LABELS[self.settings.generation_provider])
        return self.embedder, self.generator

    async def _provider_call(
        self,
        stage: str,
        factory: Callable[[], Awaitable[T]],
        retries: int = 0,
    ) -> T:
        try:
            return await call_with_timeout(
                stage, factory, self.settings.provider_timeout_seconds, retries=retries
            )
        except Exception as exc:
            logger.exception("Stage %s failed; aborting request.", stage)
            raise UpstreamProviderError(stage) from exc

    async def _cache_get(self, key: str) -> CacheEntry | None:
        if self.cache_store is None:
            return None
        try:
            return await call_with_timeout(
                "cache_get", lambda: self.cache_store.get(key), self.settings.cache_timeout_seconds
            )
        except Exception:
            logger.warning("Stage cache_get failed for key=%s; treating as miss.", key, exc_info=True)
            return None

    async def _retrieve(self, embedding: list[float], course_id: str | None) -> list[Chunk]:
        try:
            return await call_with_timeout(
                "retrieve",
                lambda: self.vector_service.search(
                    embedding,
                    threshold=self.settings.match_threshold,
                    limit=self.settings.match_count,
                    course_id=course_id,
                ),
                self.settings.provider_timeout_seconds,
                retries=self.settings.read_retries,
            )
        except Exception:
            logger.exception("Stage retrieve failed; continuing with no chunks.")
            return []

    async def _resolve_course_name(self, course_id: str | None) -> str:
        if not course_id:
            return DEFAULT_COURSE_NAME
        try:
            return await call_with_timeout(
                "course_lookup",
                lambda: self.course_catalog.resolve_course_name(course_id),
                self.settings.provider_timeout_seconds,
                retries=self.settings.read_retries,
            )
        except Exception:
            logger.warning("Stage course_lookup failed for course=%s.", course_id, exc_info=True)
            return DEFAULT_COURSE_NAME

    def _dispatch_cache_write(self, key: str, entry: CacheEntry) -> None:
        if self.cache_store is None:
            return
        self.task_queue.enqueue(WRITE_CACHE_JOB, {"key": key, "entry": entry.model_dump(mode="json")})

    def _dispatch_analytics(self, question: str, course_id: str | None, sources_used: int) -> None:
        if self.analytics is None:
            return
        event = AnalyticsEvent(
            payload=AnalyticsPayload(
                question=question,
                course_id=course_id,
                sources_used=sources_used,
                cached=False,
            )
        )
        self.task_queue.enqueue(RECORD_ANALYTICS_JOB, event.model_dump(mode="json"))

    async def _write_cache_job(self, payload: dict) -> None:
        if self.cache_store is None:
            return
        key = payload["key"]
        entry = CacheEntry.model_validate(payload["entry"])
        try:
            await call_with_timeout(
                "cache_set",
                lambda: self.cache_store.set(key, entry, self.settings.cache_ttl_seconds),
                self.settings.cache_timeout_seconds,
            )
        except Exception:
            logger.warning("Stage cache_set failed for key=%s; answer not cached.", key, exc_info=True)

    async def _record_analytics_job(self, payload: dict) -> None:
        if self.analytics is None:
            return
        event = AnalyticsEvent.model_validate(payload)
        try:
            await call_with_timeout(
                "analytics", lambda: self.analytics.record(event), self.settings.provider_timeout_seconds
            )
        except Exception:
            logger.warning("Stage analytics failed; event dropped.", exc_info=True)
