"""Reporting endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from tutor.dependencies import get_analytics_recorder
from tutor.services.analytics_service import AnalyticsRecorder

router = APIRouter()


@router.get("/questions")
async def question_activity(
    course_id: str | None = Query(default=None),
    days: int = Query(default=30, ge=1, le=365),
    analytics: AnalyticsRecorder = Depends(get_analytics_recorder),
) -> dict:
    """Return question volume and sources used per course over a time window."""
    stats = await analytics.summarize(days=days, course_id=course_id)
    return {
        "days": days,
        "course_id": course_id,
        "total_questions": sum(item.questions for item in stats),
        "results": [item.model_dump() for item in stats],
    }
