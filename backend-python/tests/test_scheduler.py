"""Tests for calendar rules, tickers and the job scheduler."""

import asyncio
import logging
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from multilingual.exceptions import JobNotFoundError
from services.calendar import DailyRule, MonthlyDaysRule, Ticker
from services.container import EVALUATION_JOB, PRELOAD_JOB, MultilingualContainer
from services.job_scheduler import JobScheduler, ScheduledJob


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


async def idle_sleep(seconds):
    """Sleep that never wakes up, keeping tickers parked."""
    await asyncio.Event().wait()


@pytest.fixture
def fixed_clock():
    return lambda: utc(2026, 1, 10, 2, 0)


# ===== Calendar Rule Tests =====

def test_daily_rule_same_day():
    """Test the next fire is later the same day when the time has not passed."""
    assert DailyRule(hour=3).next_fire_after(utc(2026, 1, 10, 2, 0)) == utc(2026, 1, 10, 3, 0)


def test_daily_rule_is_strictly_after():
    """Test a moment exactly at fire time schedules the next day."""
    assert DailyRule(hour=3).next_fire_after(utc(2026, 1, 10, 3, 0)) == utc(2026, 1, 11, 3, 0)


def test_daily_rule_accepts_naive_utc():
    """Test naive moments are read as UTC."""
    assert DailyRule(hour=3).next_fire_after(datetime(2026, 1, 10, 4, 0)) == utc(2026, 1, 11, 3, 0)


def test_monthly_rule_next_day_in_month():
    """Test the next listed day in the current month is chosen."""
    rule = MonthlyDaysRule([1, 15], hour=2)

    assert rule.next_fire_after(utc(2026, 1, 10, 12, 0)) == utc(2026, 1, 15, 2, 0)


def test_monthly_rule_rolls_to_next_month():
    """Test the first listed day of next month follows the last one."""
    rule = MonthlyDaysRule([1, 15], hour=2)

    assert rule.next_fire_after(utc(2026, 1, 15, 2, 0)) == utc(2026, 2, 1, 2, 0)


def test_monthly_rule_rolls_over_year():
    """Test December rolls into January of the next year."""
    rule = MonthlyDaysRule([15, 1], hour=2)

    assert rule.next_fire_after(utc(2026, 12, 20, 0, 0)) == utc(2027, 1, 1, 2, 0)


def test_rule_validation():
    """Test invalid days and times are rejected."""
    with pytest.raises(ValueError):
        MonthlyDaysRule([31], hour=2)
    with pytest.raises(ValueError):
        MonthlyDaysRule([], hour=2)
    with pytest.raises(ValueError):
        DailyRule(hour=24)


def test_rule_descriptions():
    """Test rules describe their schedule."""
    assert DailyRule(hour=3).describe() == "daily at 03:00 UTC"
    assert MonthlyDaysRule([15, 1], hour=2).describe() == "monthly on days 1,15 at 02:00 UTC"


# ===== Ticker Tests =====

@pytest.mark.asyncio
async def test_ticker_sleeps_until_fire_time(fixed_clock):
    """Test the ticker waits for the rule and then runs the callback."""
    waits = []
    fired = asyncio.Event()

    async def fake_sleep(seconds):
        waits.append(seconds)
        if len(waits) > 1:
            await asyncio.Event().wait()

    async def callback():
        fired.set()

    ticker = Ticker("test", DailyRule(hour=3), callback, clock=fixed_clock, sleep=fake_sleep)
    ticker.start()
    await asyncio.wait_for(fired.wait(), timeout=1)

    assert waits[0] == 3600
    assert ticker.next_run_at == utc(2026, 1, 10, 3, 0)

    await ticker.stop()
    assert ticker.next_run_at is None
    assert ticker.task is None


# ===== Scheduler Tests =====

def _job(name, target=None, run_on_start=False):
    return ScheduledJob(
        name=name,
        rule=DailyRule(hour=3),
        target=target or AsyncMock(return_value={"success": True}),
        run_on_start=run_on_start,
    )


@pytest.mark.asyncio
async def test_start_runs_startup_jobs_once(fixed_clock):
    """Test run_on_start jobs execute during start and others wait."""
    startup_target = AsyncMock(return_value={"success": True})
    scheduled_target = AsyncMock()
    scheduler = JobScheduler(
        jobs=[_job("startup", startup_target, run_on_start=True), _job("scheduled", scheduled_target)],
        clock=fixed_clock,
        sleep=idle_sleep,
    )

    await scheduler.start()
    await scheduler.wait_for_startup_runs()

    assert scheduler.is_running is True
    startup_target.assert_awaited_once()
    scheduled_target.assert_not_called()

    await scheduler.stop()


@pytest.mark.asyncio
async def test_start_twice_warns(fixed_clock, caplog):
    """Test starting a running scheduler is a logged no-op."""
    caplog.set_level(logging.WARNING)
    startup_target = AsyncMock()
    scheduler = JobScheduler(jobs=[_job("startup", startup_target, run_on_start=True)], clock=fixed_clock, sleep=idle_sleep)

    await scheduler.start()
    await scheduler.start()
    await scheduler.wait_for_startup_runs()

    assert "already running" in caplog.text
    startup_target.assert_awaited_once()

    await scheduler.stop()


@pytest.mark.asyncio
async def test_stop_when_stopped_warns(caplog):
    """Test stopping an idle scheduler is a logged no-op."""
    caplog.set_level(logging.WARNING)
    scheduler = JobScheduler(jobs=[_job("job")])

    await scheduler.stop()

    assert "not running" in caplog.text
    assert scheduler.is_running is False


@pytest.mark.asyncio
async def test_startup_failure_is_contained(fixed_clock):
    """Test a failing startup job does not prevent the scheduler from running."""
    failing_target = AsyncMock(side_effect=RuntimeError("preload failed"))
    scheduler = JobScheduler(jobs=[_job("startup", failing_target, run_on_start=True)], clock=fixed_clock, sleep=idle_sleep)

    await scheduler.start()
    await scheduler.wait_for_startup_runs()

    status = scheduler.get_status()
    assert status.is_running is True
    assert status.jobs[0].last_status == "failed"

    await scheduler.stop()


@pytest.mark.asyncio
async def test_start_does_not_wait_for_startup_jobs(fixed_clock):
    """Test start returns while the startup job is still running and stop waits for it."""
    release = asyncio.Event()

    async def slow_preload():
        await release.wait()
        return {"success": True}

    scheduler = JobScheduler(jobs=[_job("preload", slow_preload, run_on_start=True)], clock=fixed_clock, sleep=idle_sleep)

    await asyncio.wait_for(scheduler.start(), timeout=1)

    assert scheduler.is_running is True
    assert scheduler.get_status().jobs[0].last_status is None

    release.set()
    await scheduler.stop()

    assert scheduler.get_status().jobs[0].last_status == "succeeded"


@pytest.mark.asyncio
async def test_stop_waits_for_running_job(fixed_clock):
    """Test a ticker-fired run that has started finishes before stop returns."""
    started = asyncio.Event()
    release = asyncio.Event()
    finished = []
    waits = []

    async def slow_evaluation():
        started.set()
        await release.wait()
        finished.append(True)

    async def fire_once(seconds):
        waits.append(seconds)
        if len(waits) > 1:
            await asyncio.Event().wait()

    scheduler = JobScheduler(jobs=[_job("evaluation", slow_evaluation)], clock=fixed_clock, sleep=fire_once)
    await scheduler.start()
    await asyncio.wait_for(started.wait(), timeout=1)

    stopping = asyncio.create_task(scheduler.stop())
    await asyncio.sleep(0)
    assert not stopping.done()

    release.set()
    await asyncio.wait_for(stopping, timeout=1)

    assert finished == [True]
    assert scheduler.is_running is False
    assert scheduler.get_status().jobs[0].last_status == "succeeded"


@pytest.mark.asyncio
async def test_status_reports_next_runs(fixed_clock):
    """Test status lists every job with its schedule and next run."""
    scheduler = JobScheduler(jobs=[_job("daily")], clock=fixed_clock, sleep=idle_sleep)

    await scheduler.start()
    await asyncio.sleep(0)
    status = scheduler.get_status()

    assert status.is_running is True
    assert status.jobs[0].name == "daily"
    assert status.jobs[0].schedule == "daily at 03:00 UTC"
    assert status.jobs[0].is_active is True
    assert status.jobs[0].next_run_at == utc(2026, 1, 10, 3, 0)

    await scheduler.stop()
    status = scheduler.get_status()

    assert status.is_running is False
    assert status.jobs[0].is_active is False
    assert status.jobs[0].next_run_at is None


@pytest.mark.asyncio
async def test_trigger_job_returns_result(fixed_clock):
    """Test a manual trigger runs the job and returns its result."""
    scheduler = JobScheduler(jobs=[_job("preload")], clock=fixed_clock)

    result = await scheduler.trigger_job("preload")

    assert result == {"success": True}
    job_status = scheduler.get_status().jobs[0]
    assert job_status.last_status == "succeeded"
    assert job_status.last_run_at == fixed_clock()


@pytest.mark.asyncio
async def test_trigger_job_propagates_errors():
    """Test a manual trigger raises the job's failure."""
    scheduler = JobScheduler(jobs=[_job("evaluation", AsyncMock(side_effect=RuntimeError("boom")))])

    with pytest.raises(RuntimeError):
        await scheduler.trigger_job("evaluation")

    assert scheduler.get_status().jobs[0].last_status == "failed"


@pytest.mark.asyncio
async def test_trigger_unknown_job():
    """Test triggering an unregistered job raises."""
    scheduler = JobScheduler(jobs=[_job("preload")])

    with pytest.raises(JobNotFoundError):
        await scheduler.trigger_job("missing")


def test_register_rejects_duplicates():
    """Test job names are unique."""
    scheduler = JobScheduler(jobs=[_job("preload")])

    with pytest.raises(ValueError):
        scheduler.register(_job("preload"))


# ===== Container Wiring Tests =====

@pytest.mark.asyncio
async def test_container_registers_language_jobs(session_factory, redis):
    """Test the container schedules evaluation and preload jobs."""
    container = MultilingualContainer(session_factory, redis, llm=MagicMock())

    jobs = {job.name: job for job in container.scheduler.jobs}

    assert set(jobs) == {EVALUATION_JOB, PRELOAD_JOB}
    assert jobs[EVALUATION_JOB].rule.describe() == "monthly on days 1,15 at 02:00 UTC"
    assert jobs[EVALUATION_JOB].run_on_start is False
    assert jobs[PRELOAD_JOB].rule.describe() == "daily at 03:00 UTC"
    assert jobs[PRELOAD_JOB].run_on_start is True


@pytest.mark.asyncio
async def test_container_trigger_evaluation(session_factory, redis, add_language):
    """Test the evaluation job runs the full cycle through the scheduler."""
    await add_language("en", total_requests=10, is_frequent=True, is_predefined=True)
    container = MultilingualContainer(session_factory, redis, llm=MagicMock())

    result = await container.scheduler.trigger_job(EVALUATION_JOB)

    assert result.evaluation.total_languages == 1
    assert result.cleanup.cleaned_languages == 0
