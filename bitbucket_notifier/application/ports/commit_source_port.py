from typing import Any, Protocol


class CommitSourcePort(Protocol):
    """원격 저장소 커밋 조회 계약 (Port)"""

    async def fetch_commit_page(self, page: int, exclude: list[str] | None = None) -> list[dict[str, Any]]:
        """커밋 목록의 한 페이지를 조회합니다. 응답의 values 배열을 반환합니다."""
        ...

    async def fetch_diffstat(self, commit_hash: str) -> list[dict[str, Any]]:
        """커밋의 파일별 변경 통계(diffstat) 목록을 조회합니다."""
        ...

    async def fetch_diff(self, commit_hash: str, paths: list[str]) -> str:
        """지정한 경로들에 대한 커밋 diff 원문을 조회합니다."""
        ...
