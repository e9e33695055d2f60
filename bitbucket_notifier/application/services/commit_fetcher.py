import asyncio
import logging
from typing import Any

from bitbucket_notifier.application.ports.commit_source_port import CommitSourcePort

logger = logging.getLogger(__name__)


class CommitFetcher:
    """여러 페이지의 커밋 목록을 동시에 조회하여 하나로 합칩니다."""

    def __init__(self, commit_source: CommitSourcePort):
        self._source = commit_source

    async def fetch(self, pages: int, exclude: list[str] | None = None) -> list[dict[str, Any]]:
        """
        1..pages 페이지를 동시에 요청하고 페이지 번호 순서대로 이어 붙입니다.

        한 페이지라도 실패하면 부분 결과 없이 예외를 그대로 전파합니다.

        Args:
            pages: 조회할 페이지 수 (1 이상)
            exclude: exclude 쿼리 파라미터로 전달할 값 목록

        Returns:
            전체 커밋 원본(dict) 목록
        """
        if pages < 1:
            raise ValueError(f"페이지 수는 1 이상이어야 합니다: {pages}")

        exclude = list(exclude or [])
        logger.info("🌐 커밋 목록 조회 시작: pages=%d, exclude=%s", pages, exclude)

        # gather 는 완료 순서와 무관하게 요청 순서대로 결과를 돌려준다
        results = await asyncio.gather(
            *(self._source.fetch_commit_page(page, exclude) for page in range(1, pages + 1))
        )

        commits: list[dict[str, Any]] = []
        for page_values in results:
            commits.extend(page_values)

        logger.info("✅ 커밋 목록 조회 완료: %d건", len(commits))
        return commits
