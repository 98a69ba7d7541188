"""
Preload Frequent Languages

Pre-populates the lesson content cache for frequent languages so their
learners hit a warm cache. Runs on startup and daily.
"""

import logging
from typing import List, Optional

from config.settings import settings
from models.schemas import LanguagePreloadResult, LessonRecord, PreloadResult
from multilingual.content_cache import ContentCacheStore
from multilingual.language_stats import LanguageStatsRepository
from multilingual.source_content import SourceContentStore
from multilingual.translation import TranslationService

logger = logging.getLogger(__name__)


class FrequentLanguagePreloader:
    """Batch job that fills the cache for promoted languages."""

    SOURCE_LANGUAGE = "en"

    def __init__(
        self,
        language_stats: LanguageStatsRepository,
        content_cache: ContentCacheStore,
        source_store: SourceContentStore,
        translation_service: TranslationService,
    ):
        self.language_stats = language_stats
        self.content_cache = content_cache
        self.source_store = source_store
        self.translation_service = translation_service

    async def execute(
        self,
        languages: Optional[List[str]] = None,
        max_lessons: Optional[int] = None,
        content_type: str = "text",
    ) -> PreloadResult:
        """
        Preload lesson content for each target language.

        Lessons already cached are skipped, so running twice with the same
        arguments performs no additional writes.

        Args:
            languages: Languages to preload, defaults to all frequent languages
            max_lessons: Maximum English lessons to preload per language
            content_type: Content type to preload

        Returns:
            PreloadResult with per-language and total counts
        """
        max_lessons = settings.PRELOAD_MAX_LESSONS if max_lessons is None else max_lessons
        logger.info("Starting frequent languages preload...")

        target_languages = languages if languages is not None else await self.language_stats.get_frequent_languages()

        if not target_languages:
            logger.info("No frequent languages to preload")
            return PreloadResult()

        if not self.content_cache.is_configured():
            logger.warning("Content cache not configured, skipping preload")
            return PreloadResult(skipped="cache_not_configured")

        lessons = await self.source_store.list_lessons(
            {"language": self.SOURCE_LANGUAGE}, page=1, limit=max_lessons
        )
        logger.info(f"Preloading {len(lessons)} lessons for {len(target_languages)} languages")

        result = PreloadResult()
        for language_code in target_languages:
            try:
                language_result = await self.preload_language(language_code, lessons, content_type)
            except Exception as e:
                logger.error(f"Failed to preload {language_code}: {e}")
                language_result = LanguagePreloadResult(language_code=language_code, error=str(e))

            result.languages.append(language_result)
            result.total_preloaded += language_result.preloaded_lessons

        logger.info(
            f"Frequent languages preload completed: {result.total_preloaded} lessons "
            f"across {len(result.languages)} languages"
        )
        return result

    async def preload_language(
        self, language_code: str, lessons: List[LessonRecord], content_type: str = "text"
    ) -> LanguagePreloadResult:
        language_result = LanguagePreloadResult(language_code=language_code)

        for lesson in lessons:
            try:
                if await self.content_cache.exists(language_code, lesson.lesson_id, content_type):
                    language_result.skipped_existing += 1
                    continue

                contents = await self.source_store.find_lesson_content(lesson.lesson_id, content_type)
                if not contents:
                    language_result.skipped_missing_source += 1
                    continue

                source = contents[0]
                content = source.content_data
                if language_code != source.language:
                    content = await self.translation_service.translate_structured(
                        content, source.language, language_code
                    )

                await self.content_cache.put(language_code, lesson.lesson_id, content_type, content)
                await self.language_stats.increment_lesson_count(language_code)

                language_result.preloaded_lessons += 1
                logger.info(f"Preloaded lesson {lesson.lesson_id} for language {language_code}")
            except Exception as e:
                logger.error(f"Failed to preload lesson {lesson.lesson_id} for {language_code}: {e}")
                language_result.errors.append({"lesson_id": lesson.lesson_id, "error": str(e)})

        return language_result
