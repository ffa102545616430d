"""Analytics event sink and reporting queries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tutor.models.database import AnalyticsEventRecord
from tutor.models.schemas import AnalyticsEvent, CourseQuestionStats

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AnalyticsRecorder:
    """Persist analytics events to the `analytics_events` table."""

    session_factory: async_sessionmaker[AsyncSession]

    async def record(self, event: AnalyticsEvent) -> None:
        """Append one event row."""
        async with self.session_factory() as session:
            session.add(
                AnalyticsEventRecord(
                    event_type=event.type,
                    course_id=event.payload.course_id,
                    event_data=event.payload.model_dump(mode="json"),
                    created_at=event.timestamp,
                )
            )
            await session.commit()
        logger.debug("Recorded analytics event type=%s course=%s", event.type, event.payload.course_id)

    async def summarize(
        self,
        days: int = 30,
        course_id: str | None = None,
    ) -> list[CourseQuestionStats]:
        """Aggregate question events per course over the last `days` days."""
        since = datetime.now(tz=timezone.utc) - timedelta(days=days)

        query = select(AnalyticsEventRecord.course_id, AnalyticsEventRecord.event_data).where(
            AnalyticsEventRecord.event_type == "question_asked",
            AnalyticsEventRecord.created_at >= since,
        )
        if course_id:
            query = query.where(AnalyticsEventRecord.course_id == course_id)

        async with self.session_factory() as session:
            rows = (await session.execute(query)).all()

        totals: dict[str | None, list[int]] = {}
        for row_course_id, data in rows:
            bucket = totals.setdefault(row_course_id, [0, 0])
            bucket[0] += 1
            bucket[1] += int(data.get("sources_used") or 0)

        stats = [
            CourseQuestionStats(
                course_id=key,
                questions=count,
                avg_sources_used=round(sources / count, 2) if count else 0.0,
            )
            for key, (count, sources) in totals.items()
        ]
        stats.sort(key=lambda item: item.questions, reverse=True)
        return stats
