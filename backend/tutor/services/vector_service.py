"""Vector similarity search over course chunks backed by Qdrant."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import FieldCondition, Filter, MatchValue

from tutor.config import Settings
from tutor.models.schemas import Chunk

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class VectorService:
    """Qdrant search used by the answer pipeline.

    Points are expected to carry `chunk_text`, `page_number` and `course_id`
    in their payload, as written by the ingestion job.
    """

    settings: Settings
    client: AsyncQdrantClient | None = None
    collection_name: str = field(init=False)

    def __post_init__(self) -> None:
        if self.client is None:
            location = ":memory:" if self.settings.is_qdrant_in_memory else None
            self.client = AsyncQdrantClient(
                url=None if location else self.settings.qdrant_url, location=location
            )
        self.collection_name = self.settings.qdrant_collection_name

    async def search(
        self,
        query_embedding: list[float],
        threshold: float = 0.7,
        limit: int = 5,
        course_id: str | None = None,
    ) -> list[Chunk]:
        """Return chunks scoring at least `threshold`, highest similarity first."""
        if not query_embedding:
            return []

        query_filter = None
        if course_id:
            query_filter = Filter(
                must=[FieldCondition(key="course_id", match=MatchValue(value=course_id))]
            )

        response = await self.client.query_points(
            collection_name=self.collection_name,
            query=query_embedding,
            limit=limit,
            score_threshold=threshold,
            query_filter=query_filter,
            with_payload=True,
        )
        return [self._to_chunk(point.id, point.score, point.payload or {}) for point in response.points]

    @staticmethod
    def _page_number(point_id: Any, value: Any) -> int | None:
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError, OverflowError):
            logger.warning("Ignoring unparseable page_number=%r on point %s.", value, point_id)
            return None

    @classmethod
    def _to_chunk(cls, point_id: Any, score: float, payload: dict[str, Any]) -> Chunk:
        return Chunk(
            id=str(point_id),
            text=str(payload.get("chunk_text", "")),
            page_number=cls._page_number(point_id, payload.get("page_number")),
            similarity=min(max(float(score), 0.0), 1.0),
            course_id=payload.get("course_id"),
        )

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
