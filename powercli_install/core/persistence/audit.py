"""
Audit ledger — one NDJSON line per install run.

Records what was asked for (module, version, scope), how the run ended,
and the outcome of every candidate strategy. Lines are only appended;
``powercli-install history`` reads them back.
"""

from __future__ import annotations

import logging
import uuid
from collections import deque
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Iterator

from pydantic import BaseModel, Field, ValidationError

from powercli_install.core.models.result import ResolutionResult

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_FILE = "audit.ndjson"


class AttemptRecord(BaseModel):
    """How one candidate strategy ended."""

    name: str
    status: str
    error: str | None = None
    rolled_back: bool = False


class AuditEntry(BaseModel):
    """One install run."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation_id: str = ""

    module: str = ""
    version: str | None = None
    scope: str = ""

    # done, all_failed, cancelled, invalid_environment
    status: str = ""
    chosen: str | None = None
    location: str | None = None
    duration_ms: int = 0
    attempts: list[AttemptRecord] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    context: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, operation_id: str, result: ResolutionResult, **kwargs: Any) -> AuditEntry:
        attempts = [
            AttemptRecord(
                name=a.name,
                status=a.status.value,
                error=str(a.error) if a.error else None,
                rolled_back=a.rolled_back,
            )
            for a in result.attempts
        ]
        return cls(
            operation_id=operation_id,
            status=result.status.value,
            chosen=result.chosen,
            location=str(result.location) if result.location else None,
            duration_ms=result.duration_ms,
            attempts=attempts,
            errors=[f"{name}: {err}" for name, err in result.errors.items()],
            **kwargs,
        )


def ledger_path(state_dir: Path | None = None) -> Path:
    return (state_dir or Path.home() / ".powercli-install") / DEFAULT_AUDIT_FILE


class AuditWriter:
    """Appends entries to the ledger and reads them back.

    The ledger file and its directory are created on the first write. An
    unwritable ledger is logged, never raised: auditing must not turn a
    successful install into a failure.
    """

    def __init__(self, path: Path | None = None, state_dir: Path | None = None):
        self._path = path or ledger_path(state_dir)

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as ledger:
                ledger.write(entry.model_dump_json() + "\n")
        except OSError as e:
            logger.error("Cannot append to audit ledger %s: %s", self._path, e)
            return False

        logger.debug("Recorded %s (%s) in %s", entry.operation_id, entry.status, self._path)
        return True

    def entries(self) -> Iterator[AuditEntry]:
        """Yield entries oldest first, skipping lines that do not parse."""
        try:
            data = self._path.read_bytes()
        except FileNotFoundError:
            return
        except OSError as e:
            logger.error("Cannot read audit ledger %s: %s", self._path, e)
            return

        for number, raw in enumerate(data.splitlines(), start=1):
            if not raw.strip():
                continue
            try:
                entry = AuditEntry.model_validate_json(raw.decode("utf-8"))
            except UnicodeDecodeError:
                logger.warning("%s:%d is not UTF-8, skipped", self._path, number)
                continue
            except ValidationError as e:
                logger.warning("%s:%d is not an audit entry (%d errors)", self._path, number, e.error_count())
                continue
            yield entry

    def read_all(self) -> list[AuditEntry]:
        return list(self.entries())

    def read_recent(self, n: int = 20) -> list[AuditEntry]:
        """The last ``n`` entries, oldest first."""
        if n <= 0:
            return []
        return list(deque(self.entries(), maxlen=n))


def generate_operation_id() -> str:
    """Unique id for one install run."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    return f"install-{now}-{uuid.uuid4().hex[:6]}"
