"""
Install use case — the full vertical slice behind ``powercli-install install``.

load config → probe environment → validate → build strategies →
resolve → post-install configuration → audit.
"""

from __future__ import annotations

import logging
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from powercli_install.adapters.base import PackageSource
from powercli_install.adapters.mock import MockPackageSource
from powercli_install.adapters.powershell.powercli import disable_ceip
from powercli_install.adapters.powershell.runner import PowerShellRunner
from powercli_install.core.config.loader import ConfigError, load_config
from powercli_install.core.detection.environment import probe_environment, validate_environment
from powercli_install.core.models.config import InstallerConfig
from powercli_install.core.models.probe import (
    POWERSHELLGET,
    PSRESOURCEGET,
    EnvironmentProbe,
    ModulePath,
)
from powercli_install.core.models.result import ResolutionResult
from powercli_install.core.persistence.audit import AuditEntry, AuditWriter, generate_operation_id
from powercli_install.core.resolver import (
    CancellationToken,
    EventSink,
    FanOutSink,
    LoggingSink,
    RecordingSink,
    ResolutionEvent,
    resolve,
)
from powercli_install.core.strategies import build_strategies, default_sources

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Result of an install run."""

    operation_id: str = ""
    config: InstallerConfig | None = None
    environment: EnvironmentProbe | None = None
    resolution: ResolutionResult | None = None
    problems: list[str] = field(default_factory=list)    # environment validation
    warnings: list[str] = field(default_factory=list)
    events: list[ResolutionEvent] = field(default_factory=list)
    mock: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.resolution is not None and self.resolution.ok

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"operation_id": self.operation_id, "ok": self.ok}
        if self.error:
            result["error"] = self.error
        if self.problems:
            result["problems"] = self.problems
        if self.warnings:
            result["warnings"] = self.warnings
        if self.mock:
            result["mock"] = True
        if self.environment is not None:
            result["environment"] = self.environment.to_dict()
        if self.resolution is not None:
            result["resolution"] = self.resolution.to_dict()
            result["events"] = [e.model_dump(mode="json") for e in self.events]
        return result


def mock_environment(config: InstallerConfig) -> EnvironmentProbe:
    """A fully capable environment for ``--mock`` runs."""
    destination = config.destination or config.effective_state_dir() / "Modules"
    return EnvironmentProbe(
        platform=platform.system().lower(),
        powershell="mock-pwsh",
        powershell_version="7.4.0",
        package_managers=frozenset({PSRESOURCEGET, POWERSHELLGET}),
        module_paths=(ModulePath(path=destination, writable=True, user_scope=True),),
        network_reachable=True,
    )


def mock_sources() -> dict[str, PackageSource]:
    return {
        PSRESOURCEGET: MockPackageSource(source_name=PSRESOURCEGET),
        POWERSHELLGET: MockPackageSource(source_name=POWERSHELLGET),
    }


def run_install(
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
    *,
    mock_mode: bool = False,
    runner: PowerShellRunner | None = None,
    sources: dict[str, PackageSource] | None = None,
    environment: EnvironmentProbe | None = None,
    sink: EventSink | None = None,
    cancel: CancellationToken | None = None,
    audit: bool = True,
) -> InstallResult:
    """Install the configured module, trying every strategy in order.

    Args:
        config_path: Optional explicit powercli-install.yml.
        overrides: CLI values layered over the file (None values ignored).
        mock_mode: Use mock package sources and a mock environment.
        runner: Pre-built PowerShell runner (tests).
        sources: Package sources keyed by client name (tests).
        environment: Pre-built probe; skips detection (tests).
        sink: Extra event sink, in addition to logging.
        cancel: Cancellation token checked between strategies.
        audit: Write an audit ledger entry.

    Returns:
        InstallResult; ``exit_code`` is 0 only when a strategy succeeded.
    """
    result = InstallResult(operation_id=generate_operation_id(), mock=mock_mode)

    # ── Load config ──────────────────────────────────────────────
    try:
        config = load_config(config_path, overrides)
    except ConfigError as e:
        result.error = str(e)
        return result
    result.config = config

    # ── Environment ──────────────────────────────────────────────
    if mock_mode:
        env = environment or mock_environment(config)
        sources = sources or mock_sources()
    else:
        runner = runner or PowerShellRunner(timeout=config.command_timeout)
        env = environment or probe_environment(config, runner)
        sources = sources or default_sources(runner)
    result.environment = env

    writer = AuditWriter(state_dir=config.effective_state_dir()) if audit else None

    result.problems = validate_environment(env)
    if result.problems:
        result.error = "Environment validation failed"
        if writer:
            writer.write(AuditEntry(
                operation_id=result.operation_id,
                module=config.module,
                version=config.version,
                scope=config.scope,
                status="invalid_environment",
                errors=list(result.problems),
            ))
        return result

    # ── Resolve ──────────────────────────────────────────────────
    try:
        candidates = build_strategies(config, sources)
    except ValueError as e:
        result.error = str(e)
        return result

    recorder = RecordingSink()
    sinks: list[EventSink] = [LoggingSink(), recorder]
    if sink is not None:
        sinks.append(sink)

    resolution = resolve(candidates, env, config, sink=FanOutSink(*sinks), cancel=cancel)
    result.resolution = resolution
    result.events = recorder.events

    # ── Post-install ─────────────────────────────────────────────
    telemetry = None
    if resolution.ok and config.disable_telemetry:
        if mock_mode:
            telemetry = "skipped (mock)"
        else:
            assert runner is not None
            receipt = disable_ceip(runner)
            telemetry = "disabled" if receipt.ok else "failed"
            if not receipt.ok:
                result.warnings.append(f"Could not disable CEIP: {receipt.error}")

    # ── Audit ────────────────────────────────────────────────────
    if writer:
        writer.write(AuditEntry.from_result(
            result.operation_id,
            resolution,
            module=config.module,
            version=config.version,
            scope=config.scope,
            context={"mock": mock_mode, "telemetry": telemetry, "force": config.force},
        ))

    return result
