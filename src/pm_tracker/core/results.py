# src/pm_tracker/core/results.py

"""
Result envelope returned by every mutating repository call.

Expected outcomes (validation, read-only gates, authorization, dangling ids)
are returned as data so callers can render them inline. Nothing in this
taxonomy is raised across the repository boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    STATE_GATE = "state_gate"
    AUTHORIZATION = "authorization"
    INTEGRITY = "integrity"
    NOT_FOUND = "not_found"
    NO_SESSION = "no_session"
    STORAGE = "storage"


READ_ONLY_MESSAGE = "Project is read-only in this status"
NO_SESSION_MESSAGE = "No active session"
STORAGE_MESSAGE = "Failed to save changes"


@dataclass(slots=True, frozen=True)
class Result(Generic[T]):
    ok: bool
    value: T | None = None
    error: str | None = None
    kind: ErrorKind | None = None

    @classmethod
    def success(cls, value: T | None = None) -> Result[T]:
        return cls(ok=True, value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str) -> Result[T]:
        return cls(ok=False, error=error, kind=kind)

    def propagate(self) -> Result[Any]:
        """Re-type a failure so it can be returned from a caller with a different value type."""
        return Result(ok=False, error=self.error, kind=self.kind)

    def __bool__(self) -> bool:
        return self.ok


def no_session() -> Result:
    return Result.fail(ErrorKind.NO_SESSION, NO_SESSION_MESSAGE)


def storage_fault(what: str = "") -> Result:
    msg = f"{STORAGE_MESSAGE}: {what}" if what else STORAGE_MESSAGE
    return Result.fail(ErrorKind.STORAGE, msg)
