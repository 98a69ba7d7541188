"""Prompt templates for lesson translation and generation using LangChain."""

from langchain_core.prompts import ChatPromptTemplate


# Field Translation Template
TRANSLATION_PROMPT = ChatPromptTemplate.from_messages([
    ("system", """You are an expert translator. Translate content accurately while preserving
meaning, tone, and formatting."""),

    ("human", """Translate the following {source_language} content to {target_language}.

{context}Content to translate:
{content}

Requirements:
- Maintain the same meaning and tone
- Keep technical terms and proper nouns unchanged if appropriate
- Preserve all formatting, markdown, and structure
- Return only the translated content, no additional text""")
])


# Lesson Generation Template
GENERATION_PROMPT = ChatPromptTemplate.from_messages([
    ("system", """You are an expert educational content creator. Write clear, well-structured
lesson content directly in the requested language."""),

    ("human", """Generate {content_type} content for a lesson about "{lesson_name}" in {language}.

{description}Create comprehensive, educational {content_type} content in {language}.
Return only the lesson content.""")
])
