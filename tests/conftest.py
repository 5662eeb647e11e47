"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from powercli_install.core.models.config import InstallerConfig
from powercli_install.core.models.probe import (
    POWERSHELLGET,
    PSRESOURCEGET,
    EnvironmentProbe,
    ModulePath,
)
from powercli_install.core.models.strategy import ActionResult, ErrorKind
from powercli_install.core.resolver.strategy import AttemptContext, InstallStrategy


class FakeStrategy(InstallStrategy):
    """Scriptable strategy for resolver tests."""

    def __init__(
        self,
        name: str,
        *,
        met: bool = True,
        reason: str = "",
        result: ActionResult | None = None,
        execute_error: Exception | None = None,
        check_error: Exception | None = None,
        rollback_error: Exception | None = None,
        record_change: bool = False,
    ):
        self._name = name
        self._met = met
        self._reason = reason
        self._result = result or ActionResult.success(location=Path(f"/modules/{name}"))
        self._execute_error = execute_error
        self._check_error = check_error
        self._rollback_error = rollback_error
        self._record_change = record_change
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    def check(self, env, config):
        self.calls.append("check")
        if self._check_error:
            raise self._check_error
        return self._met, self._reason

    def execute(self, env, config, attempt: AttemptContext):
        self.calls.append("execute")
        if self._record_change:
            attempt.created.append(Path(f"/modules/{self._name}"))
        if self._execute_error:
            raise self._execute_error
        return self._result

    def rollback(self, attempt: AttemptContext):
        self.calls.append("rollback")
        if self._rollback_error:
            raise self._rollback_error


def failing(kind: ErrorKind = ErrorKind.UNKNOWN, message: str = "boom", *, mutated: bool = False):
    return ActionResult.failure(kind, message, mutated=mutated)


@pytest.fixture
def config(tmp_path: Path) -> InstallerConfig:
    """Installer config that keeps all state inside tmp_path."""
    return InstallerConfig(state_dir=tmp_path / "state", staging_root=tmp_path / "staging")


@pytest.fixture
def tmp_state_dir(tmp_path: Path) -> Path:
    """Return a temporary directory for state files."""
    state_dir = tmp_path / "state"
    state_dir.mkdir()
    return state_dir


@pytest.fixture
def module_dir(tmp_path: Path) -> Path:
    path = tmp_path / "Modules"
    path.mkdir()
    return path


@pytest.fixture
def env(module_dir: Path) -> EnvironmentProbe:
    """A capable, non-elevated host with both clients and a writable user module path."""
    return EnvironmentProbe(
        platform="linux",
        powershell="/usr/bin/pwsh",
        powershell_version="7.4.1",
        package_managers=frozenset({PSRESOURCEGET, POWERSHELLGET}),
        module_paths=(ModulePath(path=module_dir, writable=True, user_scope=True),),
        network_reachable=True,
    )
