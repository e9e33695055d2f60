from datetime import datetime, timedelta

import pytest

from bitbucket_notifier.adapters.inbound.scheduler import CronScheduler
from bitbucket_notifier.domain.schedule import ScheduleSpec


class _Clock:
    def __init__(self, start: datetime):
        self.current = start
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += timedelta(seconds=seconds)


@pytest.mark.asyncio
async def test_runs_job_at_each_matching_time():
    clock = _Clock(datetime(2024, 1, 5, 8, 0))
    fired: list[datetime] = []

    async def job():
        fired.append(clock.now())

    scheduler = CronScheduler(ScheduleSpec.parse("minute:30,hour:9"), job, now=clock.now, sleep=clock.sleep)
    runs = await scheduler.run_forever(max_runs=2)

    assert runs == 2
    assert fired == [datetime(2024, 1, 5, 9, 30), datetime(2024, 1, 6, 9, 30)]
    assert clock.sleeps[0] == 90 * 60


class _EarlyClock(_Clock):
    """긴 sleep 은 5ms 일찍 깨어나는 시계"""

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        early = timedelta(milliseconds=5) if seconds > 1 else timedelta(0)
        self.current += timedelta(seconds=seconds) - early


@pytest.mark.asyncio
async def test_early_wakeup_waits_for_slot_and_does_not_repeat_it():
    clock = _EarlyClock(datetime(2024, 1, 5, 8, 0))
    fired: list[datetime] = []

    async def job():
        fired.append(clock.now())

    scheduler = CronScheduler(ScheduleSpec.parse("minute:0,hour:9"), job, now=clock.now, sleep=clock.sleep)
    await scheduler.run_forever(max_runs=2)

    assert fired == [datetime(2024, 1, 5, 9, 0), datetime(2024, 1, 6, 9, 0)]


@pytest.mark.asyncio
async def test_failing_job_does_not_stop_scheduler(caplog):
    clock = _Clock(datetime(2024, 1, 5, 8, 0))
    calls = 0

    async def job():
        nonlocal calls
        calls += 1
        raise RuntimeError("boom")

    scheduler = CronScheduler(ScheduleSpec.parse("minute:0"), job, now=clock.now, sleep=clock.sleep)
    await scheduler.run_forever(max_runs=3)

    assert calls == 3
    assert "스케줄 실행 중 오류" in caplog.text
