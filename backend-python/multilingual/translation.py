"""Structured lesson content translation using LangChain and Google Gemini."""

import logging
from typing import Any, Optional

from langchain_core.language_models.base import BaseLanguageModel
from langchain_google_genai import ChatGoogleGenerativeAI

from config.settings import settings
from multilingual.exceptions import TranslationError
from multilingual.language_stats import get_language_name
from multilingual.prompt_templates import TRANSLATION_PROMPT

logger = logging.getLogger(__name__)


class TranslationService:
    """Translate lesson content while keeping its structure."""

    # Keys containing any of these are copied untranslated
    TECHNICAL_FIELDS = (
        "id",
        "url",
        "path",
        "link",
        "code",
        "language",
        "format",
        "type",
        "status",
        "created_at",
        "updated_at",
        "version",
        "metadata",
    )

    def __init__(self, llm: Optional[BaseLanguageModel] = None):
        self.llm = llm or ChatGoogleGenerativeAI(
            model=settings.LLM_MODEL,
            temperature=0.3,
            google_api_key=settings.GOOGLE_API_KEY
        )

    async def translate(
        self,
        content: str,
        source_language: str,
        target_language: str,
        context: Optional[str] = None,
    ) -> str:
        """
        Translate a single piece of text.

        Raises:
            TranslationError: when the model call fails or returns nothing
        """
        messages = TRANSLATION_PROMPT.format_messages(
            source_language=get_language_name(source_language),
            target_language=get_language_name(target_language),
            context=f"Context: {context}\n\n" if context else "",
            content=content,
        )

        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            raise TranslationError(
                f"Translation {source_language}->{target_language} failed: {e}"
            ) from e

        translated = response.content if isinstance(response.content, str) else str(response.content)
        if not translated.strip():
            raise TranslationError(f"Empty translation {source_language}->{target_language}")
        return translated.strip()

    async def translate_structured(self, content: Any, source_language: str, target_language: str) -> Any:
        """
        Translate every text field of structured content.

        Dicts and lists are walked recursively. Technical fields and non-text
        values are copied unchanged. A text field of a dict that fails to
        translate keeps its original value; a bare string raises.

        Args:
            content: A string, dict or list of lesson content
            source_language: Language code of the content
            target_language: Language code to translate into

        Returns:
            Content of the same shape with text translated
        """
        if source_language == target_language:
            return content

        logger.info(f"Translating content from {source_language} to {target_language}")
        return await self._translate_value(content, source_language, target_language, context=None)

    async def _translate_value(self, value: Any, source_language: str, target_language: str, context: Optional[str]):
        if isinstance(value, str):
            if not value.strip():
                return value
            return await self.translate(value, source_language, target_language, context=context)

        if isinstance(value, dict):
            translated = {}
            for key, item in value.items():
                if self._is_technical_field(key):
                    translated[key] = item
                elif isinstance(item, str):
                    # A failed text field keeps its original value
                    try:
                        translated[key] = await self._translate_value(
                            item, source_language, target_language, context=f"Field: {key}"
                        )
                    except TranslationError as e:
                        logger.warning(f"Failed to translate field {key}, keeping original: {e}")
                        translated[key] = item
                else:
                    translated[key] = await self._translate_value(
                        item, source_language, target_language, context=f"Field: {key}"
                    )
            return translated

        if isinstance(value, list):
            return [
                await self._translate_value(item, source_language, target_language, context=context)
                for item in value
            ]

        return value

    def _is_technical_field(self, field_name: str) -> bool:
        name = str(field_name).lower()
        return any(field in name for field in self.TECHNICAL_FIELDS)
