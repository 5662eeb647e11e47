"""
Detection — install failure classification.

Maps the stderr of a failed package-client call onto the strategy
error taxonomy. Pure string matching; first match wins, so the order
of ``_PATTERNS`` matters (permission before not-found: "Access to the
path ... is denied" must not be read as a missing package).
"""

from __future__ import annotations

import re

from powercli_install.core.models.receipt import Receipt
from powercli_install.core.models.strategy import ActionResult, ErrorKind

_PATTERNS: list[tuple[ErrorKind, re.Pattern[str], str]] = [
    (
        ErrorKind.PERMISSION,
        re.compile(
            r"Administrator rights are required"
            r"|Access to the path .* is denied"
            r"|UnauthorizedAccess"
            r"|permission denied"
            r"|requires elevation",
            re.IGNORECASE,
        ),
        "permission denied (elevation required for this scope or path)",
    ),
    (
        ErrorKind.NETWORK,
        re.compile(
            r"Unable to resolve package source"
            r"|Unable to access the repository"
            r"|No connection could be made"
            r"|Name or service not known"
            r"|nodename nor servname"
            r"|The remote name could not be resolved"
            r"|Unable to connect"
            r"|timed out"
            r"|SSL connection could not be established",
            re.IGNORECASE,
        ),
        "package gallery could not be reached",
    ),
    (
        ErrorKind.NOT_FOUND,
        re.compile(
            r"No match was found for the specified search criteria"
            r"|could not be found in (?:any|the) (?:registered )?repositor"
            r"|Unable to find repository"
            r"|Package .* could not be found"
            r"|is not recognized as (?:the|a) name of a cmdlet",
            re.IGNORECASE,
        ),
        "module, version or command not found",
    ),
]


def classify_failure(stderr: str) -> tuple[ErrorKind, str]:
    """Classify failure text as ``(kind, human-readable reason)``."""
    if not stderr:
        return ErrorKind.UNKNOWN, "command failed without error output"

    for kind, pattern, reason in _PATTERNS:
        if pattern.search(stderr):
            return kind, reason

    first = stderr.strip().splitlines()[0] if stderr.strip() else ""
    return ErrorKind.UNKNOWN, first[:200] or "unrecognized failure"


def failure_from_receipt(
    receipt: Receipt,
    *,
    step: str,
    mutated: bool = False,
) -> ActionResult:
    """Turn a failed receipt into a typed ActionResult.

    Timeouts are treated as network failures: a hung install is almost
    always a stalled download.
    """
    stderr = receipt.error or ""
    if receipt.timed_out:
        kind, reason = ErrorKind.NETWORK, "timed out"
    else:
        kind, reason = classify_failure(stderr)

    return ActionResult.failure(
        kind,
        f"{step}: {reason}",
        detail=stderr,
        mutated=mutated,
    )
