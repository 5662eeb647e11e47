"""
Resolution events — the structured stream a resolver emits.

The resolver never formats console output. It emits events to an
injected sink; the CLI, the audit ledger or a test decides what to do
with them.

Every event is::

    {
        "type": "strategy:failed",   # <domain>:<action>
        "strategy": "powershellget", # empty for run-level events
        "seq": 3,                    # monotonic within one run
        "ts": "2026-...",            # UTC ISO timestamp
        "reason": "...",             # failures / skips / cancellation
        "data": {...},               # event-specific payload
    }
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Protocol

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class EventType(StrEnum):
    STRATEGY_ATTEMPTED = "strategy:attempted"
    STRATEGY_SKIPPED = "strategy:skipped"
    STRATEGY_SUCCEEDED = "strategy:succeeded"
    STRATEGY_FAILED = "strategy:failed"
    ROLLBACK_FAILED = "rollback:failed"
    RESOLUTION_DONE = "resolution:done"
    ALL_FAILED = "resolution:all_failed"
    RESOLUTION_CANCELLED = "resolution:cancelled"


class ResolutionEvent(BaseModel):
    type: EventType
    strategy: str = ""
    seq: int = 0
    ts: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    reason: str = ""
    data: dict[str, Any] = Field(default_factory=dict)


class EventSink(Protocol):
    """Anything with ``emit(event)``."""

    def emit(self, event: ResolutionEvent) -> None: ...


class LoggingSink:
    """Writes events to the module logger. The default sink."""

    _LEVELS = {
        EventType.STRATEGY_FAILED: logging.WARNING,
        EventType.ROLLBACK_FAILED: logging.ERROR,
        EventType.ALL_FAILED: logging.ERROR,
        EventType.RESOLUTION_CANCELLED: logging.WARNING,
    }

    def emit(self, event: ResolutionEvent) -> None:
        level = self._LEVELS.get(event.type, logging.INFO)
        label = f"{event.type.value} {event.strategy}".strip()
        if event.reason:
            logger.log(level, "%s — %s", label, event.reason)
        else:
            logger.log(level, "%s", label)


class RecordingSink:
    """Keeps every event in memory (tests, JSON output)."""

    def __init__(self) -> None:
        self.events: list[ResolutionEvent] = []

    def emit(self, event: ResolutionEvent) -> None:
        self.events.append(event)

    def types(self) -> list[EventType]:
        return [e.type for e in self.events]

    def of_type(self, event_type: EventType) -> list[ResolutionEvent]:
        return [e for e in self.events if e.type == event_type]


class FanOutSink:
    """Forwards each event to several sinks."""

    def __init__(self, *sinks: EventSink) -> None:
        self._sinks = sinks

    def emit(self, event: ResolutionEvent) -> None:
        for sink in self._sinks:
            sink.emit(event)
