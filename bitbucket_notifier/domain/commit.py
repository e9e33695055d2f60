from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class EnrichmentLevel(Enum):
    SUMMARY_ONLY = "summary_only"
    WITH_PATHS = "with_paths"
    WITH_DIFF = "with_diff"


def format_long_date(value: datetime) -> str:
    """'September 4, 1986 8:30 PM' 형식의 긴 날짜 문자열을 반환합니다."""
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{value:%B} {value.day}, {value.year} {hour}:{value:%M} {meridiem}"


@dataclass(frozen=True)
class CommitSummary:
    """필터링된 커밋 요약 엔티티"""
    hash: str
    message: str
    author: str
    date: str                              # format_long_date 결과
    committed_at: datetime | None = None
    paths: tuple[str, ...] = ()            # watch list와 매칭된 변경 경로
    diff_details: str | None = None
    level: EnrichmentLevel = EnrichmentLevel.SUMMARY_ONLY

    @property
    def short_hash(self) -> str:
        return self.hash[:12]

    def with_paths(self, paths: list[str]) -> "CommitSummary":
        return replace(self, paths=tuple(paths), level=EnrichmentLevel.WITH_PATHS)

    def with_diff(self, diff_details: str) -> "CommitSummary":
        if self.level is EnrichmentLevel.SUMMARY_ONLY:
            raise ValueError(f"경로 매칭 없이 diff를 첨부할 수 없습니다: {self.hash}")
        return replace(self, diff_details=diff_details, level=EnrichmentLevel.WITH_DIFF)

    @property
    def is_changed(self) -> bool:
        return self.level is not EnrichmentLevel.SUMMARY_ONLY


@dataclass
class PipelineRunState:
    """
    단일 실행(run) 동안의 결과 누적 객체.

    실행마다 새로 생성되며 실행 간 공유되지 않습니다.
    changed_commit_diffs 에는 changed_commits 에 먼저 기록된 커밋만 들어갈 수 있습니다.
    """
    changed_commits: list[CommitSummary] = field(default_factory=list)
    changed_commit_diffs: list[CommitSummary] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def record_changed(self, commit: CommitSummary) -> None:
        if not commit.is_changed:
            raise ValueError(f"경로 매칭 정보가 없는 커밋입니다: {commit.hash}")
        self.changed_commits.append(commit)

    def record_diff(self, commit: CommitSummary) -> None:
        if commit.hash not in {c.hash for c in self.changed_commits}:
            raise ValueError(f"changed_commits 에 없는 커밋입니다: {commit.hash}")
        self.changed_commit_diffs.append(commit)

    def digest_commits(self) -> list[CommitSummary]:
        """다이제스트에 포함할 커밋 목록 (changed_commits 순서 유지).

        diff 정보가 있는 커밋은 diff 버전으로 교체하고,
        diff 수집에 실패한 커밋은 경로 목록만 가진 버전으로 남습니다.
        """
        with_diff = {c.hash: c for c in self.changed_commit_diffs}
        return [with_diff.get(c.hash, c) for c in self.changed_commits]
