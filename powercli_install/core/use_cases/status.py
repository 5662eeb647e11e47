"""
Status use cases — environment probe and installation check.

Both are read-only: they never install or configure anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from powercli_install.adapters.powershell.powercli import installed_module
from powercli_install.adapters.powershell.runner import PowerShellRunner
from powercli_install.core.config.loader import ConfigError, load_config
from powercli_install.core.detection.environment import probe_environment, validate_environment
from powercli_install.core.models.probe import EnvironmentProbe

logger = logging.getLogger(__name__)


@dataclass
class ProbeResult:
    environment: EnvironmentProbe | None = None
    problems: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.error:
            return {"error": self.error}
        return {
            "environment": self.environment.to_dict() if self.environment else None,
            "problems": self.problems,
        }


@dataclass
class VerifyResult:
    module: str = ""
    installed: bool = False
    version: str | None = None
    location: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "module": self.module,
            "installed": self.installed,
            "version": self.version,
            "location": self.location,
            "error": self.error,
        }


def get_environment(
    config_path: Path | None = None,
    runner: PowerShellRunner | None = None,
) -> ProbeResult:
    """Take an environment snapshot and list blocking problems."""
    result = ProbeResult()
    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    result.environment = probe_environment(config, runner)
    result.problems = validate_environment(result.environment)
    return result


def verify_installation(
    config_path: Path | None = None,
    runner: PowerShellRunner | None = None,
) -> VerifyResult:
    """Check that the configured module is visible to PowerShell."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        return VerifyResult(error=str(e))

    result = VerifyResult(module=config.module)
    runner = runner or PowerShellRunner(timeout=60)
    receipt = installed_module(runner, config.module, config.version)
    if not receipt.ok:
        result.error = receipt.error
        return result

    result.installed = True
    result.version = receipt.metadata.get("version") or None
    result.location = receipt.location
    return result
