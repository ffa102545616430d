"""FastAPI entry point for the course tutor backend."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI, Request
from sqlalchemy.exc import SQLAlchemyError

from tutor.config import Settings, get_settings
from tutor.dependencies import build_rag_service
from tutor.models.database import configure_database, dispose_db, get_session_factory, init_db
from tutor.models.schemas import HealthResponse
from tutor.routers.chat import router as chat_router
from tutor.routers.reports import router as reports_router
from tutor.services.task_queue import InMemoryTaskQueue

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize shared resources before serving requests."""
    settings = get_settings()
    session_factory = configure_database(settings.database_url)
    await init_db()

    queue = InMemoryTaskQueue(workers=settings.queue_workers)
    rag_service = build_rag_service(settings, queue, session_factory)
    await queue.start()

    app.state.task_queue = queue
    app.state.rag_service = rag_service

    logger.info(
        "Course tutor API started with embedding=%s generation=%s",
        settings.embedding_provider,
        settings.generation_provider,
    )
    yield
    await queue.stop()
    if rag_service.cache_store is not None:
        await rag_service.cache_store.close()
    await rag_service.vector_service.close()
    await rag_service.close_providers()
    await dispose_db()
    logger.info("Course tutor API shutdown complete")


app = FastAPI(
    title="Course Tutor Backend",
    description="Answers student questions grounded in ingested course materials",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(chat_router, prefix="/chat", tags=["chat"])
app.include_router(reports_router, prefix="/reports", tags=["reports"])


@app.get("/health", summary="Health check", response_model=HealthResponse)
async def health_check(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """Return service health, provider configuration, and queue status."""
    queue = getattr(request.app.state, "task_queue", None)
    queue_stats = queue.stats() if queue else None
    rag_service = getattr(request.app.state, "rag_service", None)
    cache_store = rag_service.cache_store if rag_service is not None else None

    db_ready = True
    try:
        get_session_factory()
    except (RuntimeError, SQLAlchemyError):
        db_ready = False

    return HealthResponse(
        status="ok",
        environment=settings.app_env,
        embedding_provider=settings.embedding_provider,
        generation_provider=settings.generation_provider,
        embedding_configured=settings.embedding_configured,
        generation_configured=settings.generation_configured,
        cache_backend=cache_store.backend if cache_store is not None else "disabled",
        queue_backend=queue_stats.backend if queue_stats else "uninitialized",
        queue_workers=queue_stats.workers if queue_stats else 0,
        queue_pending_jobs=queue_stats.pending_jobs if queue_stats else 0,
        database_ready=db_ready,
    )
