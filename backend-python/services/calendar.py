"""
Calendar rules and tickers for recurring background jobs.

A rule only answers "when is the next fire after this moment". A Ticker
sleeps until then and runs a callback, so the timing policy can change
without touching the jobs.
"""

import asyncio
import logging
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Awaitable, Callable, Iterable, Optional

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CalendarRule:
    """Base class for fixed calendar schedules."""

    def __init__(self, hour: int = 0, minute: int = 0, tz: tzinfo = timezone.utc):
        if not 0 <= hour <= 23 or not 0 <= minute <= 59:
            raise ValueError(f"Invalid time of day {hour:02d}:{minute:02d}")
        self.hour = hour
        self.minute = minute
        self.tz = tz

    def next_fire_after(self, moment: datetime) -> datetime:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError

    def _localize(self, moment: datetime) -> datetime:
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(self.tz)

    def _at(self, day) -> datetime:
        return datetime.combine(day, time(self.hour, self.minute), tzinfo=self.tz)


class DailyRule(CalendarRule):
    """Every day at a fixed time."""

    def next_fire_after(self, moment: datetime) -> datetime:
        local = self._localize(moment)
        candidate = self._at(local.date())
        if candidate <= local:
            candidate = self._at(local.date() + timedelta(days=1))
        return candidate

    def describe(self) -> str:
        return f"daily at {self.hour:02d}:{self.minute:02d} {self.tz}"


class MonthlyDaysRule(CalendarRule):
    """Fixed days of every month at a fixed time, e.g. the 1st and 15th."""

    def __init__(self, days: Iterable[int], hour: int = 0, minute: int = 0, tz: tzinfo = timezone.utc):
        super().__init__(hour=hour, minute=minute, tz=tz)
        self.days = sorted(set(days))
        if not self.days or any(day < 1 or day > 28 for day in self.days):
            raise ValueError(f"Days of month must be between 1 and 28, got {self.days}")

    def next_fire_after(self, moment: datetime) -> datetime:
        local = self._localize(moment)
        year, month = local.year, local.month

        # The next matching day is at most one month away
        for _ in range(2):
            for day in self.days:
                candidate = self._at(local.date().replace(year=year, month=month, day=day))
                if candidate > local:
                    return candidate
            year, month = (year + 1, 1) if month == 12 else (year, month + 1)

        raise RuntimeError("No fire time found for monthly rule")

    def describe(self) -> str:
        days = ",".join(str(day) for day in self.days)
        return f"monthly on days {days} at {self.hour:02d}:{self.minute:02d} {self.tz}"


class Ticker:
    """Run a callback every time a calendar rule fires."""

    def __init__(
        self,
        name: str,
        rule: CalendarRule,
        callback: Callable[[], Awaitable[None]],
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.name = name
        self.rule = rule
        self.callback = callback
        self.clock = clock
        self.sleep = sleep
        self.next_run_at: Optional[datetime] = None
        self.task: Optional[asyncio.Task] = None
        self.current_run: Optional[asyncio.Task] = None

    def start(self):
        if self.task is None or self.task.done():
            self.task = asyncio.create_task(self._run())

    async def stop(self):
        """Stop ticking, then wait for a run that has already started."""
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None
        self.next_run_at = None

        if self.current_run is not None:
            logger.info(f"Waiting for running {self.name} to finish...")
            await asyncio.gather(self.current_run, return_exceptions=True)
            self.current_run = None

    async def _run(self):
        while True:
            now = self.clock()
            self.next_run_at = self.rule.next_fire_after(now)
            wait_seconds = max((self.next_run_at - now).total_seconds(), 0)
            logger.info(f"⏰ Next run of {self.name} in {wait_seconds / 3600:.1f} hours")

            await self.sleep(wait_seconds)
            # A run that has started finishes even if the ticker is stopped
            self.current_run = asyncio.ensure_future(self.callback())
            await asyncio.shield(self.current_run)
            self.current_run = None
