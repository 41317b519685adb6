"""Result values returned by coordinator commands instead of raising."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """Outcome of a command that talks to the store."""

    value: T | None = None
    """Value produced by the command, if any."""
    error: Exception | None = None
    """Failure recovered at the operation boundary, None on success."""

    @property
    def ok(self) -> bool:
        """Return True if the command completed without a store failure."""
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> Result[T]:
        """Build a successful result."""
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> Result[T]:
        """Build a failed result."""
        return cls(error=error)
