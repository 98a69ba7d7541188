"""Multilingual lesson content cache with usage-driven language tiering."""

from multilingual.language_stats import LanguageStatsRepository, classify_languages
from multilingual.content_cache import ContentCacheStore
from multilingual.source_content import SourceContentStore
from multilingual.translation import TranslationService
from multilingual.generation import GenerationService
from multilingual.resolver import LessonResolver
from multilingual.preloader import FrequentLanguagePreloader
from multilingual.evaluator import LanguageStatsEvaluator
from multilingual.cleaner import LanguageCleaner
from multilingual.orchestrator import LanguageEvaluationOrchestrator

__all__ = [
    'LanguageStatsRepository',
    'classify_languages',
    'ContentCacheStore',
    'SourceContentStore',
    'TranslationService',
    'GenerationService',
    'LessonResolver',
    'FrequentLanguagePreloader',
    'LanguageStatsEvaluator',
    'LanguageCleaner',
    'LanguageEvaluationOrchestrator',
]
