"""
Language Statistics Evaluation

Periodic (not real-time) promotion and demotion of languages. Request
counters change on every lesson request, but the frequency flags that gate
caching only change here, so short traffic spikes cannot cause thrash.
"""

import logging
from typing import List

from models.schemas import EvaluationResult, LanguageShare, LanguageStat
from multilingual.language_stats import LanguageStatsRepository, calculate_share

logger = logging.getLogger(__name__)


class LanguageStatsEvaluator:
    """Recompute frequency tiers from accumulated counters."""

    TOP_LANGUAGES = 10

    def __init__(self, language_stats: LanguageStatsRepository):
        self.language_stats = language_stats

    async def execute(self) -> EvaluationResult:
        """
        Reclassify every language and summarize the changes.

        Cache contents are never touched here.
        """
        logger.info("Starting scheduled language statistics evaluation...")

        before = {stat.language_code: stat.is_frequent for stat in await self.language_stats.get_all_languages()}

        await self.language_stats.recalculate_frequency()

        all_languages = await self.language_stats.get_all_languages()
        frequent = [stat for stat in all_languages if stat.is_frequent]
        demoted = [stat for stat in all_languages if not stat.is_frequent and not stat.is_predefined]

        result = EvaluationResult(
            total_languages=len(all_languages),
            frequent_languages=len(frequent),
            demoted_languages=len(demoted),
            promoted_languages=len([stat for stat in frequent if not stat.is_predefined]),
            newly_promoted=[
                stat.language_code for stat in frequent if not before.get(stat.language_code, False)
            ],
            newly_demoted=[
                stat.language_code for stat in demoted if before.get(stat.language_code, False)
            ],
            top_languages=self._top_languages(all_languages),
        )

        logger.info(
            f"Language evaluation completed: {result.frequent_languages} frequent, "
            f"{result.demoted_languages} non-frequent, promoted {result.newly_promoted}, "
            f"demoted {result.newly_demoted}"
        )
        return result

    def _top_languages(self, all_languages: List[LanguageStat]) -> List[LanguageShare]:
        total_requests = sum(stat.total_requests for stat in all_languages)
        return [
            LanguageShare(
                code=stat.language_code,
                requests=stat.total_requests,
                percentage=round(calculate_share(stat.total_requests, total_requests), 2),
                frequent=stat.is_frequent,
                predefined=stat.is_predefined,
            )
            for stat in all_languages[:self.TOP_LANGUAGES]
        ]
