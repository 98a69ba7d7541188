"""Shared fixtures for multilingual content tests."""

import sys
import os
# Add project root to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import pytest_asyncio
import fakeredis
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config.database import Base
from models.schemas import LessonRecord
from models.tables import ContentRecord, ContentTypeRecord, LanguageStatRecord, TopicRecord
from multilingual.content_cache import ContentCacheStore
from multilingual.language_stats import LanguageStatsRepository
from multilingual.source_content import SourceContentStore

CONTENT_TYPES = ["text", "code", "presentation", "audio", "mind_map"]


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """SQLite-backed session factory with the full schema."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'content.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add_all([
            ContentTypeRecord(type_id=index + 1, type_name=name, display_name=name.title())
            for index, name in enumerate(CONTENT_TYPES)
        ])
        await session.commit()

    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def redis():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    await client.flushall()
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def content_cache(redis):
    return ContentCacheStore(redis, prefix="lesson_content")


@pytest.fixture
def language_stats(session_factory):
    return LanguageStatsRepository(session_factory, predefined_languages=["en", "he", "ar"], threshold_percent=5.0)


@pytest.fixture
def source_store(session_factory):
    return SourceContentStore(session_factory)


@pytest.fixture
def translation_service():
    """Translation double that tags content with the target language."""
    service = MagicMock()

    async def translate_structured(content, source_language, target_language):
        return f"[{source_language}->{target_language}] {content}"

    service.translate_structured = AsyncMock(side_effect=translate_structured)
    return service


@pytest.fixture
def generation_service():
    service = MagicMock()

    async def generate(lesson_meta, language, content_type="text"):
        return f"Generated {content_type} for {lesson_meta.name} in {language}"

    service.generate = AsyncMock(side_effect=generate)
    return service


@pytest.fixture
def add_lesson(session_factory):
    """Insert a lesson, optionally with stored content of one type."""

    async def _add_lesson(lesson_id, name=None, language="en", content=None, content_type="text", description=None):
        async with session_factory() as session:
            session.add(TopicRecord(
                topic_id=lesson_id,
                topic_name=name or f"Lesson {lesson_id}",
                description=description,
                language=language,
            ))
            if content is not None:
                session.add(ContentRecord(
                    topic_id=lesson_id,
                    content_type_id=CONTENT_TYPES.index(content_type) + 1,
                    content_data=content,
                ))
            await session.commit()
        return LessonRecord(lesson_id=lesson_id, name=name or f"Lesson {lesson_id}", language=language)

    return _add_lesson


@pytest.fixture
def add_language(session_factory):
    """Insert a language_stats row with explicit counters and flags."""

    async def _add_language(code, total_requests=0, is_frequent=False, is_predefined=False, total_lessons=0):
        async with session_factory() as session:
            session.add(LanguageStatRecord(
                language_code=code,
                language_name=code,
                total_requests=total_requests,
                total_lessons=total_lessons,
                is_frequent=is_frequent,
                is_predefined=is_predefined,
            ))
            await session.commit()

    return _add_language
