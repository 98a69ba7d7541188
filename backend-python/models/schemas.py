from pydantic import BaseModel, Field
from typing import List, Dict, Any, Optional
from datetime import datetime
from enum import Enum


class LanguageStat(BaseModel):
    language_code: str
    language_name: Optional[str] = None
    total_requests: int = 0
    total_lessons: int = 0
    is_frequent: bool = False
    is_predefined: bool = False
    last_used: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LessonRecord(BaseModel):
    lesson_id: int
    name: str
    description: Optional[str] = None
    language: str = "en"


class SourceContent(BaseModel):
    content_data: Any
    language: str = "en"


class ResolutionOutcome(str, Enum):
    CACHE_HIT = "cache_hit"
    TRANSLATED_FROM_FALLBACK = "translated_from_fallback"
    GENERATED = "generated"
    UNCHANGED = "unchanged"


class LessonResolution(BaseModel):
    """Result of resolving a lesson in a preferred language."""

    outcome: ResolutionOutcome
    content: Any
    language: str
    source_language: Optional[str] = None
    written_back: bool = False

    @property
    def source(self) -> str:
        """How the content was obtained: cache, translation or generation."""
        if self.outcome == ResolutionOutcome.CACHE_HIT:
            return "cache"
        if self.outcome == ResolutionOutcome.GENERATED:
            return "generation"
        return "translation"

    @property
    def cached(self) -> bool:
        return self.outcome == ResolutionOutcome.CACHE_HIT

    def to_response(self) -> Dict[str, Any]:
        response = {
            "content": self.content,
            "source": self.source,
            "language": self.language,
            "cached": self.cached,
        }
        if self.source_language is not None:
            response["source_language"] = self.source_language
        return response


# ===== Batch job summaries =====

class LanguagePreloadResult(BaseModel):
    language_code: str
    preloaded_lessons: int = 0
    skipped_existing: int = 0
    skipped_missing_source: int = 0
    errors: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None


class PreloadResult(BaseModel):
    success: bool = True
    languages: List[LanguagePreloadResult] = Field(default_factory=list)
    total_preloaded: int = 0
    skipped: Optional[str] = None
    completed_at: datetime = Field(default_factory=datetime.utcnow)


class LanguageShare(BaseModel):
    code: str
    requests: int
    percentage: float
    frequent: bool
    predefined: bool


class EvaluationResult(BaseModel):
    success: bool = True
    evaluation_date: datetime = Field(default_factory=datetime.utcnow)
    total_languages: int = 0
    frequent_languages: int = 0
    demoted_languages: int = 0
    promoted_languages: int = 0
    newly_promoted: List[str] = Field(default_factory=list)
    newly_demoted: List[str] = Field(default_factory=list)
    top_languages: List[LanguageShare] = Field(default_factory=list)


class LanguageCleanupResult(BaseModel):
    language_code: str
    language_name: Optional[str] = None
    cleaned_lessons: int = 0
    last_used: Optional[datetime] = None
    errors: List[Dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None


class CleanupResult(BaseModel):
    success: bool = True
    cleanup_date: datetime = Field(default_factory=datetime.utcnow)
    cleaned_languages: int = 0
    total_cleaned_lessons: int = 0
    skipped: Optional[str] = None
    results: List[LanguageCleanupResult] = Field(default_factory=list)


class EvaluationCycleResult(BaseModel):
    success: bool = True
    evaluation: EvaluationResult
    cleanup: CleanupResult
    completed_at: datetime = Field(default_factory=datetime.utcnow)


# ===== Scheduler / health =====

class JobStatus(BaseModel):
    name: str
    schedule: str
    is_active: bool
    run_on_start: bool = False
    next_run_at: Optional[datetime] = None
    last_run_at: Optional[datetime] = None
    last_status: Optional[str] = None


class SchedulerStatus(BaseModel):
    is_running: bool
    jobs: List[JobStatus]


class HealthCheckResponse(BaseModel):
    status: str
    timestamp: str
    services: Dict[str, str]
