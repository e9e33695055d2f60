from collections.abc import Iterable, Sequence


def matches(changed_paths: Iterable[str], watch_list: Sequence[str]) -> list[str]:
    """watch list 항목 중 하나라도 부분 문자열로 포함하는 경로만 반환합니다 (순서/중복 유지)."""
    return [
        path for path in changed_paths
        if any(watched in path for watched in watch_list)
    ]


class PathWatcher:
    """설정된 watch list 기준으로 변경 경로를 판별합니다."""

    def __init__(self, watch_list: Sequence[str]):
        self.watch_list = tuple(watch_list)

    def matches(self, changed_paths: Iterable[str]) -> list[str]:
        return matches(changed_paths, self.watch_list)
