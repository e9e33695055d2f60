import logging
from collections.abc import Callable, Sequence
from datetime import date, datetime
from typing import Any

from bitbucket_notifier.domain.commit import CommitSummary, format_long_date

logger = logging.getLogger(__name__)

TODAY = "TODAY"


def _parse_reference_date(value: str, now: datetime) -> date | None:
    """필터 기준 날짜를 계산합니다. TODAY 이면 오늘, 아니면 ISO 날짜로 파싱합니다."""
    if value.strip().upper() == TODAY:
        return now.date()
    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError:
        return None


def _parse_commit_datetime(value: Any) -> datetime | None:
    """API 커밋 날짜(ISO 8601)를 로컬 시간대 datetime 으로 변환합니다."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed.astimezone()


def _raw_author(commit: dict[str, Any]) -> str:
    author = commit.get("author")
    if isinstance(author, dict):
        return author.get("raw") or ""
    return ""


class CommitFilter:
    """
    날짜 → 작성자 → 메시지 순서로 커밋을 걸러내고 CommitSummary 로 변환합니다.

    - 날짜: TODAY 는 같은 날만, 특정 날짜는 그 날짜 포함 이후
    - 작성자: 대소문자 무시 부분 문자열 일치 시 제외
    - 메시지: 정확히 일치할 때만 제외
    """

    def __init__(
        self,
        filter_date: str,
        ignore_authors: Sequence[str] = (),
        ignore_messages: Sequence[str] = (),
        now: Callable[[], datetime] = datetime.now,
    ):
        self.filter_date = filter_date
        self.ignore_authors = [a.lower() for a in ignore_authors if a]
        # API 가 메시지 끝에 붙이는 개행만 비교에서 제외
        self.ignore_messages = {m.rstrip("\n") for m in ignore_messages if m}
        self._now = now

    def filter(self, raw_commits: Sequence[dict[str, Any]]) -> list[CommitSummary]:
        reference = _parse_reference_date(self.filter_date or "", self._now())
        if reference is None:
            logger.warning("COMMITS_FILTER_DATE 값이 올바르지 않습니다: %s", self.filter_date)
            return []

        same_day_only = self.filter_date.strip().upper() == TODAY
        dated: list[tuple[dict[str, Any], datetime]] = []
        for commit in raw_commits:
            committed_at = _parse_commit_datetime(commit.get("date"))
            if committed_at is None:
                logger.warning("커밋 날짜 파싱 실패, 제외: %s (%s)", commit.get("hash"), commit.get("date"))
                continue
            commit_day = committed_at.date()
            if same_day_only:
                keep = commit_day == reference
            else:
                keep = commit_day >= reference
            if keep:
                dated.append((commit, committed_at))

        if self.ignore_authors:
            dated = [
                (commit, committed_at) for commit, committed_at in dated
                if not any(ignored in _raw_author(commit).lower() for ignored in self.ignore_authors)
            ]

        if self.ignore_messages:
            dated = [
                (commit, committed_at) for commit, committed_at in dated
                if (commit.get("message") or "").rstrip("\n") not in self.ignore_messages
            ]

        logger.info("필터링된 커밋: %d건 (기준일=%s, 전체=%d건)", len(dated), reference, len(raw_commits))

        return [
            CommitSummary(
                hash=commit.get("hash", ""),
                message=commit.get("message") or "",
                author=_raw_author(commit),
                date=format_long_date(committed_at),
                committed_at=committed_at,
            )
            for commit, committed_at in dated
        ]
