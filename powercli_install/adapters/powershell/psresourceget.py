"""
PSResourceGet source — the modern package client (Install-PSResource).
"""

from __future__ import annotations

from pathlib import Path

from powercli_install.adapters.base import InstallRequest
from powercli_install.adapters.powershell.runner import ps_quote
from powercli_install.adapters.powershell.source import PowerShellSource
from powercli_install.core.models.probe import PSRESOURCEGET


class PSResourceGetSource(PowerShellSource):
    """Microsoft.PowerShell.PSResourceGet cmdlets."""

    @property
    def name(self) -> str:
        return PSRESOURCEGET

    def trust_script(self, repository: str) -> str:
        return f"Set-PSResourceRepository -Name {ps_quote(repository)} -Trusted"

    def install_script(self, request: InstallRequest) -> str:
        parts = [
            "Install-PSResource",
            f"-Name {ps_quote(request.module)}",
            f"-Scope {request.scope}",
            f"-Repository {ps_quote(request.repository)}",
            "-TrustRepository",
            "-AcceptLicense",
            "-Quiet",
        ]
        if request.version:
            parts.append(f"-Version {ps_quote(request.version)}")
        if request.force:
            parts.append("-Reinstall")
        return " ".join(parts)

    def save_script(self, request: InstallRequest, path: Path) -> str:
        parts = [
            "Save-PSResource",
            f"-Name {ps_quote(request.module)}",
            f"-Repository {ps_quote(request.repository)}",
            f"-Path {ps_quote(path)}",
            "-TrustRepository",
            "-AcceptLicense",
            "-Quiet",
        ]
        if request.version:
            parts.append(f"-Version {ps_quote(request.version)}")
        return " ".join(parts)
