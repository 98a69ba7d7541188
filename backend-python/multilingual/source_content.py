"""Read-only access to canonical lesson content in the primary datastore."""

import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from models.schemas import LessonRecord, SourceContent
from models.tables import ContentRecord, ContentTypeRecord, TopicRecord

logger = logging.getLogger(__name__)


class SourceContentStore:
    """Lookups over the topics, content and content_types tables."""

    # Filters accepted by list_lessons
    FILTER_COLUMNS = {
        "language": TopicRecord.language,
        "status": TopicRecord.status,
    }

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def find_lesson_content(self, lesson_id: int, content_type: str = "text") -> List[SourceContent]:
        """
        Get stored content of one type for a lesson, oldest first.

        Each record carries the language of its lesson (en when unset).
        """
        async with self.session_factory() as session:
            result = await session.execute(
                select(ContentRecord.content_data, TopicRecord.language)
                .join(TopicRecord, TopicRecord.topic_id == ContentRecord.topic_id)
                .join(ContentTypeRecord, ContentTypeRecord.type_id == ContentRecord.content_type_id)
                .where(
                    ContentRecord.topic_id == int(lesson_id),
                    ContentTypeRecord.type_name == content_type,
                )
                .order_by(ContentRecord.content_id)
            )
            rows = result.all()

        return [
            SourceContent(content_data=self._decode(content_data), language=language or "en")
            for content_data, language in rows
        ]

    async def list_lessons(
        self,
        filters: Optional[Dict[str, Any]] = None,
        page: int = 1,
        limit: int = 100,
    ) -> List[LessonRecord]:
        """
        List lessons ordered by id.

        Args:
            filters: Column filters, only language and status are supported
            page: 1-based page number
            limit: Page size

        Returns:
            Lessons on the requested page
        """
        query = select(TopicRecord).order_by(TopicRecord.topic_id)

        for name, value in (filters or {}).items():
            column = self.FILTER_COLUMNS.get(name)
            if column is None:
                raise ValueError(f"Unsupported lesson filter: {name}")
            query = query.where(column == value)

        query = query.offset((max(page, 1) - 1) * limit).limit(limit)

        async with self.session_factory() as session:
            result = await session.execute(query)
            return [self._to_lesson(topic) for topic in result.scalars()]

    async def get_lesson(self, lesson_id: int) -> Optional[LessonRecord]:
        async with self.session_factory() as session:
            topic = await session.get(TopicRecord, int(lesson_id))
            return self._to_lesson(topic) if topic else None

    @staticmethod
    def _decode(content_data: Any) -> Any:
        # Older rows store serialized JSON text
        if isinstance(content_data, str):
            try:
                return json.loads(content_data)
            except json.JSONDecodeError:
                return content_data
        return content_data

    @staticmethod
    def _to_lesson(topic: TopicRecord) -> LessonRecord:
        return LessonRecord(
            lesson_id=topic.topic_id,
            name=topic.topic_name,
            description=topic.description,
            language=topic.language or "en",
        )
