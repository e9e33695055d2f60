import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from bitbucket_notifier.domain.schedule import ScheduleSpec

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[object]]


class CronScheduler:
    """
    ScheduleSpec 에 맞춰 job 을 반복 실행하는 asyncio 스케줄러.

    이전 실행이 끝난 뒤에 다음 실행 시각을 계산하므로 실행이 겹치지 않습니다.
    실행 중 예외는 로그만 남기고 다음 주기로 넘어갑니다.
    """

    def __init__(
        self,
        spec: ScheduleSpec,
        job: Job,
        now: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.spec = spec
        self._job = job
        self._now = now
        self._sleep = sleep

    async def run_forever(self, max_runs: int | None = None) -> int:
        """스케줄을 실행합니다. max_runs 를 지정하면 그 횟수만큼 실행 후 종료합니다."""
        runs = 0
        last_run: datetime | None = None
        while max_runs is None or runs < max_runs:
            current = self._now()
            # 이미 실행한 슬롯은 다시 고르지 않음
            base = current if last_run is None else max(current, last_run)
            next_run = self.spec.next_fire_after(base)
            delay = max(0.0, (next_run - current).total_seconds())
            logger.info("⏰ 다음 실행 예정: %s (%.0f초 후)", next_run.isoformat(sep=" "), delay)
            await self._wait_until(next_run)
            last_run = next_run

            try:
                await self._job()
            except Exception:
                logger.exception("❌ 스케줄 실행 중 오류 발생")
            runs += 1
        return runs

    async def _wait_until(self, target: datetime) -> None:
        """타이머가 일찍 깨어나도 target 시각에 도달할 때까지 남은 시간을 다시 잠듭니다."""
        while True:
            remaining = (target - self._now()).total_seconds()
            if remaining <= 0:
                return
            await self._sleep(remaining)
