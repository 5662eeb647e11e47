"""
Resolver engine — try install strategies in order until one works.

Flow per candidate:
    check precondition → skipped
                       → execute → succeeded (stop, rest stay not_attempted)
                                 → failed → rollback if it changed anything → next

Nothing a strategy does escapes this loop as an exception. The only
output is the ResolutionResult, with exactly one recorded outcome per
candidate.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import Sequence

from powercli_install.core.models.config import InstallerConfig
from powercli_install.core.models.probe import EnvironmentProbe
from powercli_install.core.models.result import ResolutionResult, ResolutionStatus
from powercli_install.core.models.strategy import (
    ActionResult,
    ErrorKind,
    StrategyAttempt,
    StrategyError,
    StrategyStatus,
)
from powercli_install.core.resolver.cancellation import CancellationToken
from powercli_install.core.resolver.events import (
    EventSink,
    EventType,
    LoggingSink,
    ResolutionEvent,
)
from powercli_install.core.resolver.strategy import AttemptContext, InstallStrategy

logger = logging.getLogger(__name__)


class _Emitter:
    """Numbers events and keeps a misbehaving sink from breaking the run."""

    def __init__(self, sink: EventSink):
        self._sink = sink
        self._seq = 0

    def __call__(self, event_type: EventType, strategy: str = "", reason: str = "", **data) -> None:
        self._seq += 1
        event = ResolutionEvent(
            type=event_type, strategy=strategy, seq=self._seq, reason=reason, data=data,
        )
        try:
            self._sink.emit(event)
        except Exception as e:
            logger.warning("Event sink failed on %s: %s", event_type.value, e)


def resolve(
    candidates: Sequence[InstallStrategy],
    env: EnvironmentProbe,
    config: InstallerConfig,
    *,
    sink: EventSink | None = None,
    cancel: CancellationToken | None = None,
) -> ResolutionResult:
    """Run the candidates in order and return the aggregate outcome.

    Args:
        candidates: Strategies in preference order. Must be non-empty,
            with unique names.
        env: Environment snapshot (read-only).
        config: Installer settings, handed to every strategy.
        sink: Receives resolution events. Defaults to logging.
        cancel: Checked before each attempt.

    Returns:
        ResolutionResult with status ``done``, ``all_failed`` or ``cancelled``.

    Raises:
        ValueError: If ``candidates`` is empty or has duplicate names.
    """
    if not candidates:
        raise ValueError("resolve() needs at least one candidate strategy")
    names = [s.name for s in candidates]
    if len(set(names)) != len(names):
        raise ValueError(f"duplicate strategy names: {names}")

    emit = _Emitter(sink or LoggingSink())
    attempts = [StrategyAttempt(name=name) for name in names]
    started_at = datetime.now(UTC).isoformat()
    start = time.monotonic()

    status = ResolutionStatus.ALL_FAILED
    chosen: str | None = None
    location = None

    for strategy, record in zip(candidates, attempts):
        if cancel is not None and cancel.cancelled:
            status = ResolutionStatus.CANCELLED
            emit(EventType.RESOLUTION_CANCELLED, reason=cancel.reason, next=strategy.name)
            break

        outcome = _attempt(strategy, record, env, config, emit)
        if outcome is not None and outcome.ok:
            status = ResolutionStatus.DONE
            chosen = strategy.name
            location = outcome.location
            break

    result = ResolutionResult(
        status=status,
        chosen=chosen,
        attempts=attempts,
        location=location,
        started_at=started_at,
        ended_at=datetime.now(UTC).isoformat(),
        duration_ms=int((time.monotonic() - start) * 1000),
    )

    if status == ResolutionStatus.DONE:
        emit(EventType.RESOLUTION_DONE, chosen or "", location=str(location or ""))
    elif status == ResolutionStatus.ALL_FAILED:
        emit(
            EventType.ALL_FAILED,
            reason=f"{len(attempts)} strategies exhausted",
            errors={name: str(err) for name, err in result.errors.items()},
        )

    return result


def _attempt(
    strategy: InstallStrategy,
    record: StrategyAttempt,
    env: EnvironmentProbe,
    config: InstallerConfig,
    emit: _Emitter,
) -> ActionResult | None:
    """Evaluate one candidate and fill in its record.

    Returns the action result, or None when the precondition was unmet.
    """
    start = time.monotonic()

    try:
        met, reason = strategy.check(env, config)
    except Exception as e:
        logger.exception("Precondition of '%s' raised", strategy.name)
        met, reason = False, f"precondition check raised: {e}"

    if not met:
        record.status = StrategyStatus.SKIPPED
        record.error = StrategyError(
            kind=ErrorKind.PRECONDITION_UNMET,
            message=reason or "precondition not met",
        )
        record.duration_ms = int((time.monotonic() - start) * 1000)
        emit(EventType.STRATEGY_SKIPPED, strategy.name, reason=record.error.message)
        return None

    emit(EventType.STRATEGY_ATTEMPTED, strategy.name)
    attempt = AttemptContext(strategy=strategy.name)

    try:
        result = strategy.execute(env, config, attempt)
    except Exception as e:
        logger.exception("Strategy '%s' raised during execute", strategy.name)
        result = ActionResult.failure(
            ErrorKind.UNKNOWN,
            f"unexpected error: {e}",
            detail=repr(e),
        )

    if result.ok:
        record.status = StrategyStatus.SUCCEEDED
        record.duration_ms = int((time.monotonic() - start) * 1000)
        emit(
            EventType.STRATEGY_SUCCEEDED,
            strategy.name,
            location=str(result.location or ""),
        )
        return result

    record.status = StrategyStatus.FAILED
    record.error = result.error or StrategyError(
        kind=ErrorKind.UNKNOWN,
        message="strategy reported failure without an error",
    )
    emit(
        EventType.STRATEGY_FAILED,
        strategy.name,
        reason=record.error.message,
        kind=record.error.kind.value,
    )

    if result.mutated or attempt.mutated:
        _rollback(strategy, record, attempt, emit)

    record.duration_ms = int((time.monotonic() - start) * 1000)
    return result


def _rollback(
    strategy: InstallStrategy,
    record: StrategyAttempt,
    attempt: AttemptContext,
    emit: _Emitter,
) -> None:
    logger.info("Rolling back partial changes of '%s'", strategy.name)
    try:
        strategy.rollback(attempt)
        record.rolled_back = True
    except Exception as e:
        logger.error("Rollback of '%s' failed: %s", strategy.name, e)
        record.rollback_error = str(e)
        emit(EventType.ROLLBACK_FAILED, strategy.name, reason=str(e))
