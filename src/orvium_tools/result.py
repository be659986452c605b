"""Tagged results for read-only platform lookups."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Literal, TypeVar, Union

T = TypeVar("T")

FailureKind = Literal["not_found", "status", "network", "invalid"]


@dataclass(slots=True, frozen=True)
class FetchFailure:
    """Why a lookup produced no value."""

    kind: FailureKind
    message: str
    status: int | None = None

    def __str__(self) -> str:
        if self.status is None:
            return f"{self.kind}: {self.message}"
        return f"{self.kind} (HTTP {self.status}): {self.message}"


@dataclass(slots=True, frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(slots=True, frozen=True)
class Err:
    failure: FetchFailure

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]
