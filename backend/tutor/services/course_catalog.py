"""Course metadata lookups for prompt personalisation."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tutor.models.database import Course

DEFAULT_COURSE_NAME = "your course"


@dataclass(frozen=True, slots=True)
class CourseInfo:
    id: str
    course_name: str
    department: str | None = None


@dataclass(slots=True)
class CourseCatalog:
    """Read-only access to the courses table."""

    session_factory: async_sessionmaker[AsyncSession]

    async def get_course(self, course_id: str) -> CourseInfo | None:
        """Return course metadata, or None when no course has this id."""
        async with self.session_factory() as session:
            row = (
                await session.execute(select(Course).where(Course.id == course_id))
            ).scalars().first()
        if row is None:
            return None
        return CourseInfo(id=row.id, course_name=row.course_name, department=row.department)

    async def resolve_course_name(self, course_id: str | None) -> str:
        if not course_id:
            return DEFAULT_COURSE_NAME
        course = await self.get_course(course_id)
        return course.course_name if course else DEFAULT_COURSE_NAME
