from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """비동기 단계 실행 결과 (성공 값 또는 실패 사유)"""
    value: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, value: T) -> "StageResult[T]":
        return cls(value=value)

    @classmethod
    def failed(cls, error: str) -> "StageResult[T]":
        return cls(error=error)

    @property
    def succeeded(self) -> bool:
        return self.error is None
