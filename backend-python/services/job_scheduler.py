"""
Job Scheduler

Runs named background jobs on calendar rules:
- Language evaluation and cleanup (bi-weekly)
- Frequent language preload (daily, and once at startup)
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional, Set

from models.schemas import JobStatus, SchedulerStatus
from multilingual.exceptions import JobNotFoundError
from services.calendar import CalendarRule, Ticker, utc_now

logger = logging.getLogger(__name__)


class ScheduledJob:
    """A named async target bound to a calendar rule."""

    def __init__(
        self,
        name: str,
        rule: CalendarRule,
        target: Callable[[], Awaitable[Any]],
        run_on_start: bool = False,
    ):
        self.name = name
        self.rule = rule
        self.target = target
        self.run_on_start = run_on_start
        self.ticker: Optional[Ticker] = None
        self.last_run_at: Optional[datetime] = None
        self.last_status: Optional[str] = None


class JobScheduler:
    """Drive registered jobs from their calendar rules."""

    def __init__(
        self,
        jobs: Optional[List[ScheduledJob]] = None,
        clock: Callable[[], datetime] = utc_now,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.jobs: List[ScheduledJob] = list(jobs or [])
        self.clock = clock
        self.sleep = sleep
        self.is_running = False
        self._startup_runs: Set[asyncio.Task] = set()

    def register(self, job: ScheduledJob):
        if any(existing.name == job.name for existing in self.jobs):
            raise ValueError(f"Job {job.name} already registered")
        self.jobs.append(job)

    async def start(self):
        """
        Start all tickers and launch the startup jobs once in the background.

        Returns without waiting for the startup runs, so the caller can start
        serving while they execute.
        """
        if self.is_running:
            logger.warning("Job scheduler is already running")
            return

        logger.info("Starting job scheduler...")
        self.is_running = True

        for job in self.jobs:
            job.ticker = self._build_ticker(job)
            job.ticker.start()
            logger.info(f"Started job: {job.name} ({job.rule.describe()})")

        for job in self.jobs:
            if job.run_on_start:
                logger.info(f"Running initial {job.name} in the background...")
                run = asyncio.create_task(self._run_guarded(job))
                self._startup_runs.add(run)
                run.add_done_callback(self._startup_runs.discard)

        logger.info(f"Job scheduler started with {len(self.jobs)} jobs")

    async def stop(self):
        """Stop all tickers and wait for runs that have already started."""
        if not self.is_running:
            logger.warning("Job scheduler is not running")
            return

        logger.info("Stopping job scheduler...")
        for job in self.jobs:
            if job.ticker:
                await job.ticker.stop()
                job.ticker = None
            logger.info(f"Stopped job: {job.name}")

        await self.wait_for_startup_runs()

        self.is_running = False
        logger.info("Job scheduler stopped")

    async def wait_for_startup_runs(self):
        if self._startup_runs:
            await asyncio.gather(*list(self._startup_runs), return_exceptions=True)

    def get_status(self) -> SchedulerStatus:
        return SchedulerStatus(
            is_running=self.is_running,
            jobs=[
                JobStatus(
                    name=job.name,
                    schedule=job.rule.describe(),
                    is_active=self.is_running and job.ticker is not None,
                    run_on_start=job.run_on_start,
                    next_run_at=job.ticker.next_run_at if job.ticker else None,
                    last_run_at=job.last_run_at,
                    last_status=job.last_status,
                )
                for job in self.jobs
            ],
        )

    async def trigger_job(self, name: str) -> Any:
        """
        Run a job immediately and return its result.

        Errors propagate to the caller, unlike scheduled runs.

        Raises:
            JobNotFoundError: when no job has this name
        """
        job = self._get_job(name)
        logger.info(f"Manually triggering job: {name}")

        job.last_run_at = self.clock()
        try:
            result = await job.target()
        except Exception:
            job.last_status = "failed"
            raise

        job.last_status = "succeeded"
        return result

    def _get_job(self, name: str) -> ScheduledJob:
        for job in self.jobs:
            if job.name == name:
                return job
        raise JobNotFoundError(f"Job {name} not found")

    def _build_ticker(self, job: ScheduledJob) -> Ticker:
        async def fire():
            await self._run_guarded(job)

        if self.sleep is None:
            return Ticker(job.name, job.rule, fire, clock=self.clock)
        return Ticker(job.name, job.rule, fire, clock=self.clock, sleep=self.sleep)

    async def _run_guarded(self, job: ScheduledJob) -> Optional[Any]:
        """Run a job target; failures are logged and never escape."""
        job.last_run_at = self.clock()
        try:
            result = await job.target()
        except Exception as e:
            job.last_status = "failed"
            logger.error(f"Job {job.name} failed: {e}", exc_info=True)
            return None

        job.last_status = "succeeded"
        logger.info(f"Job {job.name} completed")
        return result
