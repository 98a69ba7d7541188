"""
Language Cleanup

Removes cached lesson content of demoted languages. Runs right after each
language evaluation. Cleanup is best-effort: failures are recorded and the
run continues.
"""

import logging
from typing import List, Optional

from config.settings import settings
from models.schemas import CleanupResult, LanguageCleanupResult, LessonRecord
from multilingual.content_cache import ContentCacheStore
from multilingual.language_stats import LanguageStatsRepository
from multilingual.source_content import SourceContentStore

logger = logging.getLogger(__name__)


class LanguageCleaner:
    """Purge cache artifacts for languages that are neither frequent nor predefined."""

    def __init__(
        self,
        language_stats: LanguageStatsRepository,
        content_cache: ContentCacheStore,
        source_store: SourceContentStore,
        content_types: Optional[List[str]] = None,
        lesson_batch: Optional[int] = None,
    ):
        self.language_stats = language_stats
        self.content_cache = content_cache
        self.source_store = source_store
        self.content_types = list(content_types or settings.CLEANUP_CONTENT_TYPES)
        self.lesson_batch = settings.CLEANUP_LESSON_BATCH if lesson_batch is None else lesson_batch

    async def execute(self) -> CleanupResult:
        logger.info("Starting language cleanup job...")

        non_frequent_languages = await self.language_stats.get_non_frequent_languages()
        if not non_frequent_languages:
            logger.info("No non-frequent languages to clean up")
            return CleanupResult()

        if not self.content_cache.is_configured():
            logger.warning("Content cache not configured, skipping cleanup")
            return CleanupResult(skipped="cache_not_configured")

        logger.info(f"Found {len(non_frequent_languages)} non-frequent languages to clean up")

        result = CleanupResult(cleaned_languages=len(non_frequent_languages))
        for language in non_frequent_languages:
            language_result = LanguageCleanupResult(
                language_code=language.language_code,
                language_name=language.language_name,
                last_used=language.last_used,
            )
            try:
                lessons = await self.source_store.list_lessons({}, page=1, limit=self.lesson_batch)
                await self.cleanup_language_content(language.language_code, lessons, language_result)
                logger.info(
                    f"Cleaned up {language_result.cleaned_lessons} artifacts for language: "
                    f"{language.language_code}"
                )
            except Exception as e:
                logger.error(f"Failed to cleanup language {language.language_code}: {e}")
                language_result.error = str(e)

            result.results.append(language_result)
            result.total_cleaned_lessons += language_result.cleaned_lessons

        logger.info(
            f"Language cleanup completed: {result.total_cleaned_lessons} artifacts removed "
            f"for {result.cleaned_languages} languages"
        )
        return result

    async def cleanup_language_content(
        self, language_code: str, lessons: List[LessonRecord], language_result: LanguageCleanupResult
    ):
        for lesson in lessons:
            try:
                for content_type in self.content_types:
                    if await self.content_cache.exists(language_code, lesson.lesson_id, content_type):
                        deleted = await self.content_cache.delete(language_code, lesson.lesson_id, content_type)
                        language_result.cleaned_lessons += deleted
                        logger.debug(
                            f"Deleted {content_type} content for lesson {lesson.lesson_id} in {language_code}"
                        )
            except Exception as e:
                logger.error(f"Failed to cleanup lesson {lesson.lesson_id} for {language_code}: {e}")
                language_result.errors.append({"lesson_id": lesson.lesson_id, "error": str(e)})
