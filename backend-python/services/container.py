"""Dependency graph for the multilingual content services, built once at startup."""

import logging
from typing import Optional

from langchain_core.language_models.base import BaseLanguageModel
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import async_sessionmaker

from config.settings import Settings, settings as default_settings
from multilingual.cleaner import LanguageCleaner
from multilingual.content_cache import ContentCacheStore
from multilingual.evaluator import LanguageStatsEvaluator
from multilingual.generation import GenerationService
from multilingual.language_stats import LanguageStatsRepository
from multilingual.orchestrator import LanguageEvaluationOrchestrator
from multilingual.preloader import FrequentLanguagePreloader
from multilingual.resolver import LessonResolver
from multilingual.source_content import SourceContentStore
from multilingual.translation import TranslationService
from services.calendar import DailyRule, MonthlyDaysRule
from services.job_scheduler import JobScheduler, ScheduledJob

logger = logging.getLogger(__name__)

EVALUATION_JOB = "Language Evaluation"
PRELOAD_JOB = "Preload Frequent Languages"


class MultilingualContainer:
    """Holds one instance of every collaborator, wired explicitly."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        redis: Optional[Redis],
        llm: Optional[BaseLanguageModel] = None,
        config: Optional[Settings] = None,
    ):
        config = config or default_settings
        self.config = config

        # Stores
        self.language_stats = LanguageStatsRepository(
            session_factory,
            predefined_languages=config.PREDEFINED_LANGUAGES,
            threshold_percent=config.FREQUENT_LANGUAGE_THRESHOLD_PERCENT,
        )
        self.content_cache = ContentCacheStore(redis, prefix=config.CONTENT_CACHE_PREFIX)
        self.source_store = SourceContentStore(session_factory)

        # AI collaborators
        self.translation_service = TranslationService(llm=llm)
        self.generation_service = GenerationService(llm=llm)

        # Request path
        self.resolver = LessonResolver(
            language_stats=self.language_stats,
            content_cache=self.content_cache,
            source_store=self.source_store,
            translation_service=self.translation_service,
            generation_service=self.generation_service,
            fallback_languages=config.FALLBACK_LANGUAGES,
            ai_timeout=config.RESOLVE_AI_TIMEOUT_SECONDS,
        )

        # Batch jobs
        self.preloader = FrequentLanguagePreloader(
            language_stats=self.language_stats,
            content_cache=self.content_cache,
            source_store=self.source_store,
            translation_service=self.translation_service,
        )
        self.evaluator = LanguageStatsEvaluator(self.language_stats)
        self.cleaner = LanguageCleaner(
            language_stats=self.language_stats,
            content_cache=self.content_cache,
            source_store=self.source_store,
            content_types=config.CLEANUP_CONTENT_TYPES,
            lesson_batch=config.CLEANUP_LESSON_BATCH,
        )
        self.orchestrator = LanguageEvaluationOrchestrator(self.evaluator, self.cleaner)

        self.scheduler = JobScheduler(jobs=self.build_jobs())

    def build_jobs(self):
        return [
            ScheduledJob(
                name=EVALUATION_JOB,
                rule=MonthlyDaysRule(self.config.EVALUATION_DAYS, hour=self.config.EVALUATION_HOUR),
                target=self.orchestrator.execute,
            ),
            ScheduledJob(
                name=PRELOAD_JOB,
                rule=DailyRule(hour=self.config.PRELOAD_HOUR),
                target=self.preloader.execute,
                run_on_start=True,
            ),
        ]
