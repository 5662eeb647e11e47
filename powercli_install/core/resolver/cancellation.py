"""
Cancellation token — an external stop signal for a resolution run.

The resolver checks it between strategy attempts, never in the middle
of one: a package-client install is an atomic black box.
"""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class CancellationToken:
    """Set once, from any thread (e.g. a SIGINT handler); read by the resolver."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        logger.info("Resolution cancellation requested: %s", reason)
