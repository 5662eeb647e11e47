"""
Receipt model — what a package source hands back for every pwsh call.

Sources trust a repository, install, save or query the module and
answer with a Receipt instead of raising. A failed receipt keeps the raw
stderr in ``error`` so ``detection.install_failure`` can classify it.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class Receipt(BaseModel):
    """Outcome of one package-source operation."""

    source: str                    # psresourceget, powershellget, powercli, probe, mock
    operation: str                 # trust, install, save, verify, disable-ceip, ...
    status: Literal["ok", "failed"] = "ok"

    started_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    duration_ms: int = 0
    return_code: int | None = None  # None when pwsh never ran

    output: str = ""
    error: str | None = None
    timed_out: bool = False

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def label(self) -> str:
        return f"{self.source}/{self.operation}"

    @property
    def location(self) -> str | None:
        """Module directory reported by an install or save, if any."""
        return self.metadata.get("location") or None

    @classmethod
    def success(cls, source: str, operation: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls(source=source, operation=operation, output=output, **kwargs)

    @classmethod
    def failure(cls, source: str, operation: str, error: str, **kwargs: Any) -> Receipt:
        """A failed receipt; ``error`` should be the raw stderr where there is one."""
        return cls(source=source, operation=operation, status="failed", error=error, **kwargs)
