import asyncio
import logging
from typing import Any

from bitbucket_notifier.application.ports.commit_source_port import CommitSourcePort
from bitbucket_notifier.application.services.path_watcher import PathWatcher
from bitbucket_notifier.domain.commit import CommitSummary, PipelineRunState
from bitbucket_notifier.domain.result import StageResult

logger = logging.getLogger(__name__)

_DEFAULT_MAX_CONCURRENCY = 10
_DEFAULT_MAX_DIFF_CHARS = 30000
_TRUNCATED_MARKER = "\n... (diff truncated)"


def extract_changed_paths(diffstat: list[dict[str, Any]]) -> list[str]:
    """diffstat 항목에서 변경 경로를 추출합니다.

    수정/삭제는 old 경로, 추가는 new 경로를 사용합니다.
    """
    paths: list[str] = []
    for entry in diffstat:
        changed = entry.get("old") or entry.get("new")
        if isinstance(changed, dict) and changed.get("path"):
            paths.append(changed["path"])
    return paths


class DiffEnricher:
    """
    필터링된 커밋에 변경 경로(diffstat)와 diff 원문을 붙이는 2단계 보강기.

    1단계(diffstat)가 모든 커밋에 대해 끝난 뒤에 2단계(diff)가 시작됩니다.
    두 단계 모두 요청 실패 시 해당 커밋만 건너뛰고 실행은 계속됩니다.
    동시 요청 수는 max_concurrency 로 제한됩니다.
    """

    def __init__(
        self,
        commit_source: CommitSourcePort,
        path_watcher: PathWatcher,
        include_diff: bool = True,
        max_concurrency: int = _DEFAULT_MAX_CONCURRENCY,
        max_diff_chars: int = _DEFAULT_MAX_DIFF_CHARS,
    ):
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency 는 1 이상이어야 합니다: {max_concurrency}")
        self._source = commit_source
        self._watcher = path_watcher
        self.include_diff = include_diff
        self.max_concurrency = max_concurrency
        self.max_diff_chars = max_diff_chars

    async def enrich(self, commits: list[CommitSummary], state: PipelineRunState) -> list[CommitSummary]:
        """
        커밋 목록을 보강하고 state 에 기록합니다.

        Returns:
            다이제스트에 포함할 커밋 목록 (입력 순서 유지)
        """
        if not commits:
            return []

        # 실행마다 새 세마포어 (이벤트 루프에 묶이지 않도록)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        logger.info("🌐 diffstat 수집 시작: %d건 (동시 요청 최대 %d)", len(commits), self.max_concurrency)
        stat_results = await asyncio.gather(
            *(self._match_commit(commit, semaphore) for commit in commits)
        )
        for result in stat_results:
            if not result.succeeded:
                state.warnings.append(result.error)
            elif result.value is not None:
                state.record_changed(result.value)

        logger.info("✅ 변경 감지 커밋: %d건", len(state.changed_commits))

        if self.include_diff and state.changed_commits:
            await self._collect_diffs(state, semaphore)

        return state.digest_commits()

    async def _collect_diffs(self, state: PipelineRunState, semaphore: asyncio.Semaphore) -> None:
        changed = list(state.changed_commits)
        logger.info("🌐 diff 수집 시작: %d건", len(changed))
        diff_results = await asyncio.gather(
            *(self._attach_diff(commit, semaphore) for commit in changed)
        )
        for result in diff_results:
            if result.succeeded:
                state.record_diff(result.value)
            else:
                state.warnings.append(result.error)

        if not state.changed_commit_diffs:
            logger.warning("diff 수집 결과 없음 → 경로 목록만으로 다이제스트 구성")
        else:
            logger.info("✅ diff 수집 완료: %d/%d건", len(state.changed_commit_diffs), len(changed))

    async def _match_commit(
        self, commit: CommitSummary, semaphore: asyncio.Semaphore,
    ) -> StageResult[CommitSummary | None]:
        """diffstat 을 조회해 watch list 와 매칭합니다. 매칭이 없으면 value=None."""
        try:
            async with semaphore:
                diffstat = await self._source.fetch_diffstat(commit.hash)
        except Exception as e:
            logger.error("❌ diffstat 조회 실패: %s - %s", commit.short_hash, str(e))
            return StageResult.failed(f"diffstat 조회 실패 ({commit.short_hash}): {e}")

        watched = self._watcher.matches(extract_changed_paths(diffstat))
        if not watched:
            return StageResult.ok(None)

        logger.info("  - 감시 경로 변경: %s → %s", commit.short_hash, watched)
        return StageResult.ok(commit.with_paths(watched))

    async def _attach_diff(
        self, commit: CommitSummary, semaphore: asyncio.Semaphore,
    ) -> StageResult[CommitSummary]:
        try:
            async with semaphore:
                diff_text = await self._source.fetch_diff(commit.hash, list(commit.paths))
        except Exception as e:
            logger.warning("diff 조회 실패, 경로 목록만 사용: %s - %s", commit.short_hash, str(e))
            return StageResult.failed(f"diff 조회 실패 ({commit.short_hash}): {e}")

        if not diff_text:
            return StageResult.failed(f"diff 내용 없음 ({commit.short_hash})")

        if len(diff_text) > self.max_diff_chars:
            diff_text = diff_text[:self.max_diff_chars] + _TRUNCATED_MARKER
        return StageResult.ok(commit.with_diff(diff_text))
