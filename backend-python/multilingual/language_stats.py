"""
Language Usage Tracker

Durable per-language usage counters and frequency flags.

Counters are updated in real time with atomic datastore increments.
Frequency flags only change during a scheduled evaluation, via
recalculate_frequency().
"""

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.settings import settings
from models.schemas import LanguageStat
from models.tables import LanguageStatRecord

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    "en": "English",
    "he": "Hebrew",
    "ar": "Arabic",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "zh": "Chinese",
    "ja": "Japanese",
}


def get_language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, code)


def calculate_share(requests: int, total_requests: int) -> float:
    """Percentage of global requests, 0 when there is no traffic."""
    if total_requests <= 0:
        return 0.0
    return requests / total_requests * 100


def classify_languages(stats: Iterable[LanguageStat], threshold_percent: float) -> Dict[str, bool]:
    """
    Compute the frequency flag for every language.

    Predefined languages are always frequent. Any other language is frequent
    only when its share of all requests strictly exceeds threshold_percent.
    """
    stats = list(stats)
    total_requests = sum(stat.total_requests for stat in stats)

    return {
        stat.language_code: stat.is_predefined
        or calculate_share(stat.total_requests, total_requests) > threshold_percent
        for stat in stats
    }


class LanguageStatsRepository:
    """Language usage statistics stored in the language_stats table."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        predefined_languages: Optional[List[str]] = None,
        threshold_percent: Optional[float] = None,
    ):
        self.session_factory = session_factory
        self.predefined_languages = list(predefined_languages or settings.PREDEFINED_LANGUAGES)
        self.threshold_percent = (
            settings.FREQUENT_LANGUAGE_THRESHOLD_PERCENT if threshold_percent is None else threshold_percent
        )

    def _insert(self, session: AsyncSession):
        if session.bind.dialect.name == "sqlite":
            return sqlite_insert(LanguageStatRecord)
        return pg_insert(LanguageStatRecord)

    async def ensure_predefined_languages(self):
        """Seed the predefined languages as frequent and predefined."""
        async with self.session_factory() as session:
            for code in self.predefined_languages:
                stmt = self._insert(session).values(
                    language_code=code,
                    language_name=get_language_name(code),
                    is_frequent=True,
                    is_predefined=True,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[LanguageStatRecord.language_code],
                    set_={"is_frequent": True, "is_predefined": True},
                )
                await session.execute(stmt)
            await session.commit()
        logger.info(f"Predefined languages ensured: {self.predefined_languages}")

    async def increment_request(self, language_code: str, language_name: Optional[str] = None):
        """Atomically count one request, creating the language row on first use."""
        try:
            async with self.session_factory() as session:
                stmt = self._insert(session).values(
                    language_code=language_code,
                    language_name=language_name or get_language_name(language_code),
                    total_requests=1,
                    last_used=func.now(),
                    updated_at=func.now(),
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=[LanguageStatRecord.language_code],
                    set_={
                        "total_requests": LanguageStatRecord.total_requests + 1,
                        "last_used": func.now(),
                        "updated_at": func.now(),
                    },
                )
                await session.execute(stmt)
                await session.commit()
        except Exception as e:
            logger.error(f"Failed to update language stats for {language_code}: {e}")

    async def increment_lesson_count(self, language_code: str):
        try:
            async with self.session_factory() as session:
                await session.execute(
                    update(LanguageStatRecord)
                    .where(LanguageStatRecord.language_code == language_code)
                    .values(
                        total_lessons=LanguageStatRecord.total_lessons + 1,
                        updated_at=func.now(),
                    )
                )
                await session.commit()
        except Exception as e:
            logger.error(f"Failed to increment lesson count for {language_code}: {e}")

    async def get_language_stats(self, language_code: str) -> Optional[LanguageStat]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(LanguageStatRecord).where(LanguageStatRecord.language_code == language_code)
                )
                record = result.scalar_one_or_none()
                return self._to_stat(record) if record else None
        except Exception as e:
            logger.error(f"Failed to get language stats for {language_code}: {e}")
            return None

    async def get_all_languages(self) -> List[LanguageStat]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(LanguageStatRecord).order_by(
                    LanguageStatRecord.total_requests.desc(), LanguageStatRecord.language_code
                )
            )
            return [self._to_stat(record) for record in result.scalars()]

    async def get_frequent_languages(self) -> List[str]:
        """Codes of all frequent languages, most requested first."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(LanguageStatRecord.language_code)
                    .where(LanguageStatRecord.is_frequent.is_(True))
                    .order_by(LanguageStatRecord.total_requests.desc(), LanguageStatRecord.language_code)
                )
                return list(result.scalars())
        except Exception as e:
            logger.error(f"Failed to get frequent languages: {e}")
            return list(self.predefined_languages)

    async def is_frequent_language(self, language_code: str) -> bool:
        stats = await self.get_language_stats(language_code)
        return stats.is_frequent if stats else False

    async def recalculate_frequency(self) -> Dict[str, bool]:
        """
        Reclassify every language from the accumulated counters.

        This is the periodic evaluation step and must not run per request.
        Only is_frequent is written, so concurrent counter increments are
        never overwritten.

        Returns:
            Mapping of language code to its new frequency flag
        """
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(LanguageStatRecord))
                stats = [self._to_stat(record) for record in result.scalars()]
                flags = classify_languages(stats, self.threshold_percent)

                for code, is_frequent in flags.items():
                    await session.execute(
                        update(LanguageStatRecord)
                        .where(LanguageStatRecord.language_code == code)
                        .values(is_frequent=is_frequent, updated_at=func.now())
                    )
                await session.commit()

            logger.info(f"Language frequency recalculation completed for {len(flags)} languages")
            return flags
        except Exception as e:
            logger.error(f"Failed to recalculate language frequency: {e}")
            raise

    async def get_non_frequent_languages(self) -> List[LanguageStat]:
        """Cleanup candidates: neither frequent nor predefined, least recently used first."""
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(LanguageStatRecord)
                    .where(
                        LanguageStatRecord.is_frequent.is_(False),
                        LanguageStatRecord.is_predefined.is_(False),
                    )
                    .order_by(LanguageStatRecord.last_used.asc())
                )
                return [self._to_stat(record) for record in result.scalars()]
        except Exception as e:
            logger.error(f"Failed to get non-frequent languages: {e}")
            return []

    async def get_popular_languages(self, limit: int = 10) -> List[LanguageStat]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(LanguageStatRecord)
                    .order_by(LanguageStatRecord.total_requests.desc(), LanguageStatRecord.language_code)
                    .limit(limit)
                )
                return [self._to_stat(record) for record in result.scalars()]
        except Exception as e:
            logger.error(f"Failed to get popular languages: {e}")
            return []

    @staticmethod
    def _to_stat(record: LanguageStatRecord) -> LanguageStat:
        return LanguageStat(
            language_code=record.language_code,
            language_name=record.language_name,
            total_requests=record.total_requests or 0,
            total_lessons=record.total_lessons or 0,
            is_frequent=bool(record.is_frequent),
            is_predefined=bool(record.is_predefined),
            last_used=record.last_used,
            updated_at=record.updated_at,
        )
