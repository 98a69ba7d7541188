"""Runs one language evaluation cycle: evaluation, then cleanup."""

import logging

from models.schemas import EvaluationCycleResult
from multilingual.cleaner import LanguageCleaner
from multilingual.evaluator import LanguageStatsEvaluator

logger = logging.getLogger(__name__)


class LanguageEvaluationOrchestrator:
    """Sequence evaluation and cleanup into one reported cycle."""

    def __init__(self, evaluator: LanguageStatsEvaluator, cleaner: LanguageCleaner):
        self.evaluator = evaluator
        self.cleaner = cleaner

    async def execute(self) -> EvaluationCycleResult:
        """
        Run the complete evaluation cycle.

        Errors are logged and re-raised so the scheduler's job guard sees them.
        """
        logger.info("Starting language evaluation cycle")

        try:
            logger.info("[Step 1/2] Evaluating language statistics...")
            evaluation = await self.evaluator.execute()

            logger.info("[Step 2/2] Cleaning up cached content of demoted languages...")
            cleanup = await self.cleaner.execute()
        except Exception as e:
            logger.error(f"Language evaluation cycle failed: {e}")
            raise

        logger.info("Language evaluation cycle completed")
        return EvaluationCycleResult(evaluation=evaluation, cleanup=cleanup)
