"""
Package-client strategies — install by name through PSResourceGet or PowerShellGet.

Both clients do the same dance: optionally trust the repository, then
install into the requested scope. The client itself owns the
destination directory and is idempotent for an already-present version,
so these strategies never record anything to roll back.
"""

from __future__ import annotations

import logging
from pathlib import Path

from powercli_install.adapters.base import InstallRequest, PackageSource
from powercli_install.core.detection.install_failure import failure_from_receipt
from powercli_install.core.models.config import InstallerConfig
from powercli_install.core.models.probe import EnvironmentProbe
from powercli_install.core.models.strategy import ActionResult
from powercli_install.core.resolver.strategy import AttemptContext, InstallStrategy

logger = logging.getLogger(__name__)


def common_preconditions(
    env: EnvironmentProbe,
    config: InstallerConfig,
) -> tuple[bool, str]:
    """Checks every PowerShell-driven strategy shares."""
    if not env.has_powershell:
        return False, "PowerShell is not available"
    if not env.network_reachable:
        return False, f"gallery {config.gallery_url} is not reachable"
    if config.requires_elevation and not env.is_elevated:
        return False, "scope AllUsers requires an elevated session"
    return True, ""


def already_installed(env: EnvironmentProbe, config: InstallerConfig) -> bool:
    return not config.force and env.is_installed(config.version)


class ClientInstallStrategy(InstallStrategy):
    """Install through one package client (strategy name = client name)."""

    def __init__(self, source: PackageSource):
        self._source = source

    @property
    def name(self) -> str:
        return self._source.name

    def check(self, env: EnvironmentProbe, config: InstallerConfig) -> tuple[bool, str]:
        ok, reason = common_preconditions(env, config)
        if not ok:
            return ok, reason
        if not env.has_client(self._source.name):
            return False, f"package client '{self._source.name}' is not installed"
        return True, ""

    def execute(
        self,
        env: EnvironmentProbe,
        config: InstallerConfig,
        attempt: AttemptContext,
    ) -> ActionResult:
        if already_installed(env, config):
            wanted = config.version or "any version"
            logger.info("%s (%s) already installed, nothing to do", config.module, wanted)
            attempt.notes.append("already installed")
            return ActionResult.success(output=f"{config.module} already installed")

        if config.trust_repository:
            receipt = self._source.trust_repository(config.repository)
            if not receipt.ok:
                return failure_from_receipt(receipt, step=f"trust {config.repository}")

        receipt = self._source.install(InstallRequest.from_config(config))
        if not receipt.ok:
            return failure_from_receipt(receipt, step=f"install {config.module}")

        return ActionResult.success(
            location=Path(receipt.location) if receipt.location else None,
            output=receipt.output,
        )
