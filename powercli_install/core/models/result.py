"""
Resolution result — the sole output of a resolution run.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field

from powercli_install.core.models.strategy import (
    StrategyAttempt,
    StrategyError,
    StrategyStatus,
)


class ResolutionStatus(StrEnum):
    """Terminal status of a resolution run."""

    DONE = "done"
    ALL_FAILED = "all_failed"
    CANCELLED = "cancelled"


class ResolutionResult(BaseModel):
    """Aggregate outcome: which strategy won, and what happened to every candidate."""

    status: ResolutionStatus
    chosen: str | None = None
    attempts: list[StrategyAttempt] = Field(default_factory=list)
    location: Path | None = None
    started_at: str = ""
    ended_at: str = ""
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status == ResolutionStatus.DONE

    @property
    def errors(self) -> dict[str, StrategyError]:
        """Every recorded per-strategy error, keyed by strategy name."""
        return {a.name: a.error for a in self.attempts if a.error is not None}

    def attempt(self, name: str) -> StrategyAttempt | None:
        for a in self.attempts:
            if a.name == name:
                return a
        return None

    def count(self, status: StrategyStatus) -> int:
        return sum(1 for a in self.attempts if a.status == status)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")
