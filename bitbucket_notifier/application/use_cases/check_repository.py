import asyncio
import logging
from dataclasses import dataclass, field

from bitbucket_notifier.application.ports.notifier_port import NotifierPort
from bitbucket_notifier.application.services.commit_fetcher import CommitFetcher
from bitbucket_notifier.application.services.commit_filter import CommitFilter
from bitbucket_notifier.application.services.diff_enricher import DiffEnricher
from bitbucket_notifier.application.services.digest_builder import DigestBuilder
from bitbucket_notifier.domain.commit import PipelineRunState

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """한 번의 실행 결과 요약"""
    retrieved: int = 0
    filtered: int = 0
    changed: int = 0
    with_diff: int = 0
    notified: bool = False
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class CheckRepositoryUseCase:
    """
    저장소 커밋을 조회해 감시 경로 변경 다이제스트를 발송하는 Use Case.

    조회 → 필터 → diffstat/diff 보강 → 다이제스트 렌더링 → 발송.
    예외는 밖으로 전파하지 않고 RunReport 에 기록합니다.
    """

    def __init__(
        self,
        fetcher: CommitFetcher,
        commit_filter: CommitFilter,
        enricher: DiffEnricher,
        digest_builder: DigestBuilder,
        notifier: NotifierPort,
        pages: int,
        exclude: list[str] | None = None,
        run_timeout_seconds: float | None = None,
    ):
        self._fetcher = fetcher
        self._filter = commit_filter
        self._enricher = enricher
        self._builder = digest_builder
        self._notifier = notifier
        self.pages = pages
        self.exclude = list(exclude or [])
        self.run_timeout_seconds = run_timeout_seconds

    async def execute(self) -> RunReport:
        logger.info("📋 CheckRepositoryUseCase 실행 시작")
        report = RunReport()
        try:
            await asyncio.wait_for(self._run(report), timeout=self.run_timeout_seconds)
        except asyncio.TimeoutError:
            message = f"실행 시간 초과 ({self.run_timeout_seconds}초)"
            logger.error("❌ %s", message)
            report.errors.append(message)
        except Exception as e:
            logger.exception("❌ 실행 중 예기치 않은 오류: %s", str(e))
            report.errors.append(f"실행 중 오류: {e}")

        logger.info(
            "✅ 실행 완료: 조회=%d, 필터=%d, 변경=%d, diff=%d, 발송=%s",
            report.retrieved, report.filtered, report.changed, report.with_diff, report.notified,
        )
        return report

    async def _run(self, report: RunReport) -> None:
        state = PipelineRunState()

        try:
            raw_commits = await self._fetcher.fetch(self.pages, self.exclude)
        except Exception as e:
            logger.error("❌ 커밋 목록 조회 실패: %s", str(e))
            report.errors.append(f"커밋 목록 조회 실패: {e}")
            return
        report.retrieved = len(raw_commits)

        summaries = self._filter.filter(raw_commits)
        report.filtered = len(summaries)
        if not summaries:
            logger.info("필터링 결과 없음 → 종료")
            return

        digest_commits = await self._enricher.enrich(summaries, state)
        report.changed = len(state.changed_commits)
        report.with_diff = len(state.changed_commit_diffs)
        report.warnings.extend(state.warnings)

        try:
            message = self._builder.build(digest_commits)
        except Exception as e:
            logger.error("❌ 다이제스트 렌더링 실패: %s", str(e))
            report.errors.append(f"다이제스트 렌더링 실패: {e}")
            return
        if message is None:
            return

        report.notified = await self._notifier.send(message)
        if not report.notified:
            report.errors.append("다이제스트 발송 실패")
