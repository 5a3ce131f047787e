"""Value-or-error wrapper for calls whose failures the caller may discard."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def capture(cls, fn: Callable[[], T]) -> "Outcome[T]":
        """Run ``fn`` and keep either its return value or the exception it raised."""
        try:
            return cls(value=fn())
        except Exception as e:
            return cls(error=e)
