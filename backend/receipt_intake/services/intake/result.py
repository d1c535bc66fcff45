"""Explicit success/failure value for best-effort operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Immutable outcome of an operation whose failure must not propagate."""

    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaseException) -> "Result":
        return cls(error=error)


async def capture(awaitable: Awaitable[T]) -> Result[T]:
    """Await *awaitable* and fold any ``Exception`` into a failed ``Result``."""
    try:
        return Result.success(await awaitable)
    except Exception as exc:
        return Result.failure(exc)
