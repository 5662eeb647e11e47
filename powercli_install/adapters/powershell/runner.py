"""
PowerShell runner — the single place where pwsh is spawned.

Every package-source call and every probe goes through ``run``.
It returns a Receipt and never raises.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time

from powercli_install.core.models.receipt import Receipt

logger = logging.getLogger(__name__)

# pwsh (PowerShell 7+) first, then Windows PowerShell 5.1
_EXECUTABLES = ("pwsh", "powershell")

# Prepended to every script: make non-terminating cmdlet errors fatal
# so a failed Install-Module exits non-zero instead of printing and carrying on.
_PREAMBLE = "$ErrorActionPreference = 'Stop'; $ProgressPreference = 'SilentlyContinue'; "

_MAX_CAPTURE = 4000


def find_powershell() -> str | None:
    """Locate a PowerShell executable on PATH."""
    for name in _EXECUTABLES:
        path = shutil.which(name)
        if path:
            return path
    return None


def ps_quote(value: object) -> str:
    """Quote a value as a PowerShell single-quoted string literal."""
    return "'" + str(value).replace("'", "''") + "'"


class PowerShellRunner:
    """Run PowerShell scripts non-interactively and capture the outcome."""

    def __init__(self, executable: str | None = None, timeout: int = 900):
        self._executable = executable if executable is not None else find_powershell()
        self._timeout = timeout

    @property
    def executable(self) -> str | None:
        return self._executable

    def is_available(self) -> bool:
        return self._executable is not None

    def run(
        self,
        script: str,
        *,
        source: str = "pwsh",
        operation: str = "script",
        timeout: int | None = None,
    ) -> Receipt:
        """Run ``script`` and return a receipt.

        Non-zero exit codes produce a failure receipt whose ``error`` is
        the (trimmed) stderr, so callers can classify it.
        """
        if self._executable is None:
            return Receipt.failure(
                source=source,
                operation=operation,
                error="PowerShell executable not found (looked for pwsh, powershell)",
            )

        timeout = timeout or self._timeout
        cmd = [
            self._executable,
            "-NoLogo",
            "-NoProfile",
            "-NonInteractive",
            "-Command",
            _PREAMBLE + script,
        ]

        logger.debug("pwsh [%s/%s]: %s", source, operation, script)
        start = time.monotonic()

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                source=source,
                operation=operation,
                error=f"Command timed out after {timeout}s",
                timed_out=True,
                duration_ms=int((time.monotonic() - start) * 1000),
            )
        except OSError as e:
            return Receipt.failure(
                source=source,
                operation=operation,
                error=f"Cannot start {self._executable}: {e}",
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = (result.stdout or "").strip()[-_MAX_CAPTURE:]
        stderr = (result.stderr or "").strip()[-_MAX_CAPTURE:]

        if result.returncode == 0:
            return Receipt.success(
                source=source,
                operation=operation,
                output=stdout,
                duration_ms=elapsed_ms,
                return_code=0,
                metadata={"stderr": stderr} if stderr else {},
            )

        logger.debug("pwsh [%s/%s] exited %d: %s", source, operation, result.returncode, stderr)
        return Receipt.failure(
            source=source,
            operation=operation,
            error=stderr or stdout or f"PowerShell exited with code {result.returncode}",
            duration_ms=elapsed_ms,
            return_code=result.returncode,
            metadata={"stdout": stdout} if stdout else {},
        )


def module_base_query(module: str) -> str:
    """Script fragment printing the newest visible ModuleBase of ``module``."""
    return (
        f"(Get-Module -ListAvailable -Name {ps_quote(module)} "
        "| Sort-Object Version -Descending | Select-Object -First 1).ModuleBase"
    )


def last_line(output: str) -> str:
    """Last non-empty line of captured stdout."""
    for line in reversed(output.splitlines()):
        if line.strip():
            return line.strip()
    return ""
