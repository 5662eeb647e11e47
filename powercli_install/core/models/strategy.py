"""
Strategy outcome models — typed results for a single install attempt.

A strategy action returns an ``ActionResult`` (success or a typed
``StrategyError``). The resolver records one ``StrategyAttempt`` per
candidate, whatever happened to it.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel


class ErrorKind(StrEnum):
    """Failure taxonomy for install strategies."""

    PRECONDITION_UNMET = "precondition_unmet"
    NETWORK = "network"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    PARTIAL_WRITE = "partial_write"
    UNKNOWN = "unknown"


class StrategyStatus(StrEnum):
    """Per-candidate outcome within one resolution run."""

    NOT_ATTEMPTED = "not_attempted"
    SKIPPED = "skipped"
    FAILED = "failed"
    SUCCEEDED = "succeeded"


class StrategyError(BaseModel):
    """A recorded, human-readable failure."""

    kind: ErrorKind
    message: str
    detail: str = ""   # raw stderr / exception text, trimmed

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class ActionResult(BaseModel):
    """What a strategy action hands back to the resolver.

    ``mutated`` tells the resolver the action touched persistent state
    before failing, so its rollback must run.
    """

    ok: bool
    location: Path | None = None
    error: StrategyError | None = None
    mutated: bool = False
    output: str = ""

    @classmethod
    def success(cls, location: Path | None = None, output: str = "") -> ActionResult:
        return cls(ok=True, location=location, output=output)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        *,
        detail: str = "",
        mutated: bool = False,
    ) -> ActionResult:
        return cls(
            ok=False,
            error=StrategyError(kind=kind, message=message, detail=detail[-2000:]),
            mutated=mutated,
        )


class StrategyAttempt(BaseModel):
    """The recorded outcome of one candidate."""

    name: str
    status: StrategyStatus = StrategyStatus.NOT_ATTEMPTED
    error: StrategyError | None = None
    rolled_back: bool = False
    rollback_error: str | None = None
    duration_ms: int = 0
