"""Errors raised by the multilingual content path."""


class MultilingualError(Exception):
    """Base error for lesson resolution and language jobs."""

    def __init__(self, message: str = "Multilingual content error"):
        self.message = message
        super().__init__(self.message)


class LessonResolutionError(MultilingualError):
    """No content could be produced for a lesson request."""


class LessonNotFoundError(LessonResolutionError):
    """Lesson has no cached artifact, no source content and no metadata."""


class TranslationError(LessonResolutionError):
    """Translation of source content failed or timed out."""


class GenerationError(LessonResolutionError):
    """Generation of new content failed or timed out."""


class JobNotFoundError(MultilingualError):
    """No scheduled job is registered under the requested name."""
