"""Chat endpoints for course-grounded Q&A."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import AliasChoices, BaseModel, Field

from tutor.dependencies import get_rag_service
from tutor.models.schemas import AnswerResult
from tutor.services.errors import ConfigurationError, QuestionValidationError, UpstreamProviderError
from tutor.services.rag_service import RAGService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/ping")
async def chat_ping() -> dict[str, str]:
    """Basic chat router health endpoint."""
    return {"status": "chat-router-ready"}


class ChatRequest(BaseModel):
    """Question payload, optionally scoped to one course."""

    question: str | None = Field(default=None, max_length=5000)
    course_id: str | None = Field(
        default=None,
        max_length=64,
        validation_alias=AliasChoices("course_id", "courseId"),
    )


@router.post("/ask", response_model=AnswerResult)
async def ask_question(
    body: ChatRequest,
    rag: RAGService = Depends(get_rag_service),
) -> AnswerResult:
    """Answer a course question from ingested materials."""
    try:
        return await rag.answer_question(question=body.question, course_id=body.course_id)
    except QuestionValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ConfigurationError as exc:
        logger.error("Chat request rejected: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    except UpstreamProviderError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    except Exception as exc:
        logger.exception("Unexpected chat pipeline failure.")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate answer",
        ) from exc
