"""From-scratch lesson content generation using LangChain and Google Gemini."""

import logging
from typing import Optional

from langchain_core.language_models.base import BaseLanguageModel
from langchain_google_genai import ChatGoogleGenerativeAI

from config.settings import settings
from models.schemas import LessonRecord
from multilingual.exceptions import GenerationError
from multilingual.language_stats import get_language_name
from multilingual.prompt_templates import GENERATION_PROMPT

logger = logging.getLogger(__name__)


class GenerationService:
    """Generate lesson content directly in a target language."""

    def __init__(self, llm: Optional[BaseLanguageModel] = None):
        self.llm = llm or ChatGoogleGenerativeAI(
            model=settings.LLM_MODEL,
            temperature=0.7,
            google_api_key=settings.GOOGLE_API_KEY
        )

    async def generate(self, lesson_meta: LessonRecord, language: str, content_type: str = "text") -> str:
        """
        Generate content for a lesson.

        Args:
            lesson_meta: Lesson name and description used in the prompt
            language: Target language code
            content_type: Content type to produce (text, code, ...)

        Returns:
            Generated content

        Raises:
            GenerationError: when the model call fails or returns nothing
        """
        language_name = get_language_name(language)
        messages = GENERATION_PROMPT.format_messages(
            content_type=content_type,
            lesson_name=lesson_meta.name,
            language=language_name,
            description=f"Lesson description: {lesson_meta.description}\n\n" if lesson_meta.description else "",
        )

        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            raise GenerationError(
                f"Generation of {content_type} for lesson {lesson_meta.lesson_id} in {language} failed: {e}"
            ) from e

        content = response.content if isinstance(response.content, str) else str(response.content)
        if not content.strip():
            raise GenerationError(f"Empty generation for lesson {lesson_meta.lesson_id} in {language}")

        logger.info(f"Generated {content_type} content for lesson {lesson_meta.lesson_id} in {language}")
        return content.strip()
