"""테스트 모듈에서 공유하는 포트용 인메모리 대체 구현"""

import asyncio
from typing import Any

from bitbucket_notifier.adapters.outbound.yaml_template_repository import DEFAULT_BODY, DEFAULT_SUBJECT
from bitbucket_notifier.domain.digest import DigestMessage, DigestTemplate


def raw_commit(commit_hash: str, date: str, author: str = "Jane Doe <jane@example.com>",
               message: str = "Update things\n") -> dict[str, Any]:
    return {
        "hash": commit_hash,
        "date": date,
        "author": {"raw": author},
        "message": message,
    }


def diffstat_entry(old: str | None = None, new: str | None = None) -> dict[str, Any]:
    return {
        "old": {"path": old} if old else None,
        "new": {"path": new} if new else None,
    }


class FakeCommitSource:
    def __init__(
        self,
        pages: dict[int, list[dict[str, Any]]] | None = None,
        diffstats: dict[str, list[dict[str, Any]]] | None = None,
        diffs: dict[str, str] | None = None,
        page_delays: dict[int, float] | None = None,
        failing_pages: set[int] | None = None,
        failing_diffstats: set[str] | None = None,
        failing_diffs: set[str] | None = None,
        request_delay: float = 0.0,
    ):
        self.pages = pages or {}
        self.diffstats = diffstats or {}
        self.diffs = diffs or {}
        self.page_delays = page_delays or {}
        self.failing_pages = failing_pages or set()
        self.failing_diffstats = failing_diffstats or set()
        self.failing_diffs = failing_diffs or set()
        self.request_delay = request_delay
        self.page_calls: list[tuple[int, list[str]]] = []
        self.events: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_commit_page(self, page: int, exclude: list[str] | None = None) -> list[dict[str, Any]]:
        self.page_calls.append((page, list(exclude or [])))
        await asyncio.sleep(self.page_delays.get(page, 0))
        if page in self.failing_pages:
            raise RuntimeError(f"page {page} unavailable")
        return list(self.pages.get(page, []))

    async def _enter(self) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(self.request_delay)

    async def fetch_diffstat(self, commit_hash: str) -> list[dict[str, Any]]:
        await self._enter()
        try:
            self.events.append(("diffstat", commit_hash))
            if commit_hash in self.failing_diffstats:
                raise RuntimeError("connection reset")
            return list(self.diffstats.get(commit_hash, []))
        finally:
            self.in_flight -= 1

    async def fetch_diff(self, commit_hash: str, paths: list[str]) -> str:
        await self._enter()
        try:
            self.events.append(("diff", commit_hash))
            if commit_hash in self.failing_diffs:
                raise RuntimeError("diff endpoint down")
            return self.diffs.get(commit_hash, "")
        finally:
            self.in_flight -= 1


class FakeNotifier:
    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent: list[DigestMessage] = []

    async def send(self, message: DigestMessage) -> bool:
        self.sent.append(message)
        return self.succeed


class InMemoryTemplateRepository:
    def __init__(self, template: DigestTemplate | None = None):
        self.template = template or DigestTemplate(subject=DEFAULT_SUBJECT, body=DEFAULT_BODY)
        self.reloads = 0

    def get_digest_template(self) -> DigestTemplate:
        return self.template

    def reload(self) -> None:
        self.reloads += 1
