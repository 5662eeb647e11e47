"""
PowerShell-backed package source — shared plumbing for the vendor clients.

Subclasses only build scripts; running them, attaching the install
location and labelling receipts happens here.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from pathlib import Path

from powercli_install.adapters.base import InstallRequest, PackageSource
from powercli_install.adapters.powershell.runner import (
    PowerShellRunner,
    last_line,
    module_base_query,
)
from powercli_install.core.models.receipt import Receipt

logger = logging.getLogger(__name__)


class PowerShellSource(PackageSource):
    """A package client driven through ``pwsh``."""

    def __init__(self, runner: PowerShellRunner | None = None):
        self._runner = runner or PowerShellRunner()

    # ── Script builders (per client) ────────────────────────────

    @abstractmethod
    def trust_script(self, repository: str) -> str:
        """Script that marks ``repository`` as trusted."""

    @abstractmethod
    def install_script(self, request: InstallRequest) -> str:
        """Script that installs the requested module."""

    @abstractmethod
    def save_script(self, request: InstallRequest, path: Path) -> str:
        """Script that saves the requested module and its dependencies under ``path``."""

    # ── PackageSource ───────────────────────────────────────────

    def trust_repository(self, repository: str) -> Receipt:
        return self._runner.run(
            self.trust_script(repository),
            source=self.name,
            operation="trust",
        )

    def install(self, request: InstallRequest) -> Receipt:
        script = f"{self.install_script(request)}; {module_base_query(request.module)}"
        receipt = self._runner.run(script, source=self.name, operation="install")
        if receipt.ok:
            location = last_line(receipt.output)
            if location:
                receipt.metadata["location"] = location
            logger.info("%s installed %s → %s", self.name, request.module, location or "?")
        return receipt

    def save(self, request: InstallRequest, path: Path) -> Receipt:
        receipt = self._runner.run(
            self.save_script(request, path),
            source=self.name,
            operation="save",
        )
        if receipt.ok:
            receipt.metadata["location"] = str(path)
        return receipt
