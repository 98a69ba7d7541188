"""
Lesson Resolver

Serves lesson content in a preferred language. It tries the cache first.
On a miss it falls back to the cached baseline languages, then to the
canonical source content (translating when needed), and finally to
generating new content.
"""

import asyncio
import logging
from typing import Any, List, Optional, Set

from config.settings import settings
from models.schemas import LessonResolution, ResolutionOutcome, SourceContent
from multilingual.content_cache import ContentCacheStore
from multilingual.exceptions import GenerationError, LessonNotFoundError, TranslationError
from multilingual.generation import GenerationService
from multilingual.language_stats import LanguageStatsRepository
from multilingual.source_content import SourceContentStore
from multilingual.translation import TranslationService

logger = logging.getLogger(__name__)


class LessonResolver:
    """Multi-tier lookup with frequency-gated write-back."""

    def __init__(
        self,
        language_stats: LanguageStatsRepository,
        content_cache: ContentCacheStore,
        source_store: SourceContentStore,
        translation_service: TranslationService,
        generation_service: GenerationService,
        fallback_languages: Optional[List[str]] = None,
        ai_timeout: Optional[float] = None,
    ):
        self.language_stats = language_stats
        self.content_cache = content_cache
        self.source_store = source_store
        self.translation_service = translation_service
        self.generation_service = generation_service
        self.fallback_languages = list(fallback_languages or settings.FALLBACK_LANGUAGES)
        self.ai_timeout = settings.RESOLVE_AI_TIMEOUT_SECONDS if ai_timeout is None else ai_timeout
        self._background_tasks: Set[asyncio.Task] = set()

    async def resolve(
        self,
        lesson_id: int,
        preferred_language: str,
        content_type: str = "text",
        timeout: Optional[float] = None,
    ) -> LessonResolution:
        """
        Get lesson content in the preferred language.

        Args:
            lesson_id: Lesson (topic) id
            preferred_language: Language code requested by the learner
            content_type: Content type (text, code, presentation, ...)
            timeout: Seconds allowed for a translation or generation call

        Returns:
            LessonResolution tagged with how the content was obtained

        Raises:
            TranslationError: source content exists but could not be translated
            GenerationError: nothing to translate and generation failed
            LessonNotFoundError: nothing to translate and no lesson metadata
        """
        timeout = self.ai_timeout if timeout is None else timeout
        self._track_request(preferred_language)

        cached_content = await self.content_cache.get(preferred_language, lesson_id, content_type)
        if cached_content is not None:
            logger.info(f"Content found in cache for lesson {lesson_id} in {preferred_language}")
            return LessonResolution(
                outcome=ResolutionOutcome.CACHE_HIT,
                content=cached_content,
                language=preferred_language,
            )

        is_frequent = await self._is_frequent(preferred_language)

        source = await self._find_source(lesson_id, preferred_language, content_type)

        if source is None:
            return await self._generate(lesson_id, preferred_language, content_type, is_frequent, timeout)

        if source.language == preferred_language:
            return LessonResolution(
                outcome=ResolutionOutcome.UNCHANGED,
                content=source.content_data,
                language=preferred_language,
                source_language=source.language,
            )

        return await self._translate(lesson_id, preferred_language, content_type, source, is_frequent, timeout)

    async def _find_source(
        self, lesson_id: int, preferred_language: str, content_type: str
    ) -> Optional[SourceContent]:
        """First cached fallback language, else the first canonical record."""
        for fallback_language in self.fallback_languages:
            if fallback_language == preferred_language:
                continue
            content = await self.content_cache.get(fallback_language, lesson_id, content_type)
            if content is not None:
                logger.info(f"Using cached {fallback_language} content for lesson {lesson_id}")
                return SourceContent(content_data=content, language=fallback_language)

        contents = await self.source_store.find_lesson_content(lesson_id, content_type)
        if contents:
            return contents[0]

        return None

    async def _translate(
        self,
        lesson_id: int,
        preferred_language: str,
        content_type: str,
        source: SourceContent,
        is_frequent: bool,
        timeout: float,
    ) -> LessonResolution:
        logger.info(f"Translating lesson {lesson_id} from {source.language} to {preferred_language}")
        try:
            translated = await asyncio.wait_for(
                self.translation_service.translate_structured(
                    source.content_data, source.language, preferred_language
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise TranslationError(
                f"Translation of lesson {lesson_id} to {preferred_language} timed out after {timeout}s"
            ) from e

        written_back = False
        if is_frequent:
            written_back = await self._write_back(preferred_language, lesson_id, content_type, translated)

        return LessonResolution(
            outcome=ResolutionOutcome.TRANSLATED_FROM_FALLBACK,
            content=translated,
            language=preferred_language,
            source_language=source.language,
            written_back=written_back,
        )

    async def _generate(
        self,
        lesson_id: int,
        preferred_language: str,
        content_type: str,
        is_frequent: bool,
        timeout: float,
    ) -> LessonResolution:
        lesson = await self.source_store.get_lesson(lesson_id)
        if lesson is None:
            raise LessonNotFoundError(f"Lesson {lesson_id} not found")

        logger.info(f"No source content for lesson {lesson_id}, generating in {preferred_language}")
        try:
            generated = await asyncio.wait_for(
                self.generation_service.generate(lesson, preferred_language, content_type),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise GenerationError(
                f"Generation of lesson {lesson_id} in {preferred_language} timed out after {timeout}s"
            ) from e

        written_back = False
        if is_frequent:
            written_back = await self._write_back(preferred_language, lesson_id, content_type, generated)

        return LessonResolution(
            outcome=ResolutionOutcome.GENERATED,
            content=generated,
            language=preferred_language,
            written_back=written_back,
        )

    async def _write_back(self, language_code: str, lesson_id: int, content_type: str, content: Any) -> bool:
        if not self.content_cache.is_configured():
            logger.debug(f"Content cache not configured, not storing lesson {lesson_id} for {language_code}")
            return False

        try:
            await self.content_cache.put(language_code, lesson_id, content_type, content)
        except Exception as e:
            logger.error(f"Failed to store content for {language_code}: {e}")
            return False

        try:
            await self.language_stats.increment_lesson_count(language_code)
        except Exception as e:
            logger.error(f"Failed to increment lesson count for {language_code}: {e}")

        logger.info(f"Stored lesson {lesson_id} for frequent language: {language_code}")
        return True

    async def _is_frequent(self, language_code: str) -> bool:
        try:
            return await self.language_stats.is_frequent_language(language_code)
        except Exception as e:
            logger.warning(f"Could not read frequency of {language_code}, skipping write-back: {e}")
            return False

    def _track_request(self, language_code: str):
        """Count the request in the background without delaying the response."""
        task = asyncio.create_task(self.language_stats.increment_request(language_code))
        self._background_tasks.add(task)
        task.add_done_callback(self._on_tracking_done)

    def _on_tracking_done(self, task: asyncio.Task):
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Language request tracking failed: {error}")

    async def drain_background_tasks(self):
        """Wait for pending request counters, used on shutdown."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)
