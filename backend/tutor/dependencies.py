"""Construction of the answer pipeline and its FastAPI dependencies."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tutor.config import Settings
from tutor.services.analytics_service import AnalyticsRecorder
from tutor.services.cache_service import build_cache_store
from tutor.services.course_catalog import CourseCatalog
from tutor.services.llm_service import build_embedding_provider, build_generation_provider
from tutor.services.rag_service import RAGService
from tutor.services.task_queue import InMemoryTaskQueue
from tutor.services.vector_service import VectorService

logger = logging.getLogger(__name__)


def build_rag_service(
    settings: Settings,
    task_queue: InMemoryTaskQueue,
    session_factory: async_sessionmaker[AsyncSession],
) -> RAGService:
    """Create every provider client once and wire them into the orchestrator."""
    cache_store = build_cache_store(settings)
    embedder = build_embedding_provider(settings)
    generator = build_generation_provider(settings)
    vector_service = VectorService(settings=settings)
    course_catalog = CourseCatalog(session_factory=session_factory)
    analytics = AnalyticsRecorder(session_factory=session_factory)

    service = RAGService(
        settings=settings,
        embedder=embedder,
        generator=generator,
        vector_service=vector_service,
        course_catalog=course_catalog,
        task_queue=task_queue,
        cache_store=cache_store,
        analytics=analytics,
    )
    service.register_jobs()
    logger.info(
        "Answer pipeline ready: embedding=%s generation=%s cache=%s",
        settings.embedding_provider,
        settings.generation_provider,
        cache_store.backend if cache_store is not None else "disabled",
    )
    return service


def get_rag_service(request: Request) -> RAGService:
    service = getattr(request.app.state, "rag_service", None)
    if service is None:
        raise HTTPException(status_code=500, detail="Answer pipeline is not configured")
    return service


def get_analytics_recorder(request: Request) -> AnalyticsRecorder:
    service = get_rag_service(request)
    if service.analytics is None:
        raise HTTPException(status_code=500, detail="Analytics is not configured")
    return service.analytics
