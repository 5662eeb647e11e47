"""
Mock package source — test double for every package-source operation.

Used by tests and ``install --mock`` to exercise the resolver without
touching a real gallery. Succeeds by default; failures are configured
per operation. ``save`` writes a fake ``<Module>/<Version>/`` tree so
the stage-and-copy strategy has something real to copy.
"""

from __future__ import annotations

from pathlib import Path

from powercli_install.adapters.base import InstallRequest, PackageSource
from powercli_install.core.models.receipt import Receipt


class MockPackageSource(PackageSource):
    """Configurable in-memory package client."""

    def __init__(
        self,
        source_name: str = "mock",
        version: str = "13.3.0",
        location: str = "/mock/Modules/VMware.PowerCLI/13.3.0",
        dependencies: tuple[str, ...] = ("VMware.VimAutomation.Core",),
    ):
        self._name = source_name
        self._version = version
        self._location = location
        self._dependencies = dependencies
        self._failures: dict[str, str] = {}
        self._call_log: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[tuple[str, str]]:
        """``(operation, module)`` for every call received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def operations(self) -> list[str]:
        return [op for op, _ in self._call_log]

    def set_failure(self, operation: str, error: str = "Mock failure") -> None:
        """Make ``trust``, ``install`` or ``save`` fail with ``error`` (stderr text)."""
        self._failures[operation] = error

    def reset(self) -> None:
        self._call_log.clear()
        self._failures.clear()

    def _fail(self, operation: str) -> Receipt | None:
        error = self._failures.get(operation)
        if error is None:
            return None
        return Receipt.failure(source=self._name, operation=operation, error=error)

    def trust_repository(self, repository: str) -> Receipt:
        self._call_log.append(("trust", repository))
        return self._fail("trust") or Receipt.success(
            source=self._name, operation="trust", output=f"[mock] trusted {repository}",
        )

    def install(self, request: InstallRequest) -> Receipt:
        self._call_log.append(("install", request.module))
        return self._fail("install") or Receipt.success(
            source=self._name,
            operation="install",
            output=self._location,
            metadata={"location": self._location, "mock": True},
        )

    def save(self, request: InstallRequest, path: Path) -> Receipt:
        self._call_log.append(("save", request.module))
        failed = self._fail("save")
        if failed:
            return failed

        version = request.version or self._version
        for module in (request.module, *self._dependencies):
            target = path / module / version
            target.mkdir(parents=True, exist_ok=True)
            (target / f"{module}.psd1").write_text(
                f"@{{ ModuleVersion = '{version}' }}\n", encoding="utf-8",
            )
        return Receipt.success(
            source=self._name,
            operation="save",
            metadata={"location": str(path), "mock": True},
        )
