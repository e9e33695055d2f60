import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class BitbucketAdapter:
    """Bitbucket REST API(2.0)와 통신하는 Outbound Adapter"""

    def __init__(self, repo_url: str, user: str, password: str, timeout: float = 30.0):
        # repo_url 예: https://api.bitbucket.org/2.0/repositories/{workspace}/{repo_slug}/
        self.repo_url = repo_url.rstrip("/") + "/"
        self.user = user
        self.password = password
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Public methods
    # ------------------------------------------------------------------

    async def fetch_commit_page(self, page: int, exclude: list[str] | None = None) -> list[dict[str, Any]]:
        """커밋 목록 한 페이지를 조회합니다 (페이지당 약 30건)."""
        url = f"{self.repo_url}commits/"
        params: list[tuple[str, str | int]] = [("page", page)]
        params.extend(("exclude", name) for name in exclude or [])

        response = await self._request(
            "GET",
            url,
            params=params,
            context_msg=f"커밋 목록 조회 (page={page})",
        )
        values = response.json().get("values", [])
        logger.info("커밋 페이지 %d: %d건", page, len(values))
        return values

    async def fetch_diffstat(self, commit_hash: str) -> list[dict[str, Any]]:
        """커밋의 diffstat 목록을 조회합니다."""
        response = await self._request(
            "GET",
            f"{self.repo_url}diffstat/{commit_hash}",
            custom_errors={404: f"커밋을 찾을 수 없습니다: {commit_hash}"},
            context_msg="diffstat 조회",
        )
        return response.json().get("values", [])

    async def fetch_diff(self, commit_hash: str, paths: list[str]) -> str:
        """지정한 경로들의 diff 원문을 조회합니다."""
        response = await self._request(
            "GET",
            f"{self.repo_url}diff/{commit_hash}",
            params=[("path", path) for path in paths],
            custom_errors={404: f"커밋을 찾을 수 없습니다: {commit_hash}"},
            context_msg="diff 조회",
        )
        return response.text

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        """auth와 timeout이 설정된 httpx.AsyncClient를 반환합니다."""
        return httpx.AsyncClient(
            auth=(self.user, self.password),
            timeout=self.timeout,
        )

    async def _request(
        self,
        method: str,
        url: str,
        *,
        custom_errors: dict[int, str] | None = None,
        context_msg: str = "Bitbucket API",
        **kwargs,
    ) -> httpx.Response:
        """공통 HTTP 요청. 성공한 응답을 반환합니다."""
        try:
            async with self._client() as client:
                response = await client.request(method, url, **kwargs)
                logger.debug("%s: HTTP %d", context_msg, response.status_code)
                response.raise_for_status()
                return response
        except httpx.HTTPStatusError as e:
            logger.error("❌ HTTP 오류 발생: %d (%s)", e.response.status_code, context_msg)
            logger.error("응답 본문: %s", e.response.text[:500])
            self._raise_bitbucket_error(e, custom_errors)
        except httpx.TransportError as e:
            logger.error("❌ 네트워크 오류: %s", str(e))
            raise RuntimeError(f"Bitbucket 서버 연결 실패: {self.repo_url}") from e

    def _raise_bitbucket_error(
        self,
        e: httpx.HTTPStatusError,
        custom_errors: dict[int, str] | None = None,
    ) -> None:
        """HTTP 상태 코드별 적절한 RuntimeError를 발생시킵니다."""
        status = e.response.status_code
        if custom_errors and status in custom_errors:
            raise RuntimeError(custom_errors[status]) from e
        if status == 401:
            raise RuntimeError("Bitbucket 인증 실패: 사용자명 또는 앱 비밀번호를 확인하세요") from e
        elif status == 403:
            raise RuntimeError("Bitbucket 저장소 접근 권한이 없습니다") from e
        elif status == 404:
            raise RuntimeError(f"Bitbucket 저장소를 찾을 수 없습니다: {self.repo_url}") from e
        else:
            raise RuntimeError(f"Bitbucket API 오류: {status}") from e
