"""
PowerShellGet source — the classic package client (Install-Module / Save-Module).
"""

from __future__ import annotations

from pathlib import Path

from powercli_install.adapters.base import InstallRequest
from powercli_install.adapters.powershell.runner import ps_quote
from powercli_install.adapters.powershell.source import PowerShellSource
from powercli_install.core.models.probe import POWERSHELLGET


class PowerShellGetSource(PowerShellSource):
    """PowerShellGet v2 cmdlets."""

    @property
    def name(self) -> str:
        return POWERSHELLGET

    def trust_script(self, repository: str) -> str:
        return f"Set-PSRepository -Name {ps_quote(repository)} -InstallationPolicy Trusted"

    def install_script(self, request: InstallRequest) -> str:
        parts = [
            "Install-Module",
            f"-Name {ps_quote(request.module)}",
            f"-Scope {request.scope}",
            f"-Repository {ps_quote(request.repository)}",
            "-AllowClobber",
            "-SkipPublisherCheck",
            "-Confirm:$false",
        ]
        if request.version:
            parts.append(f"-RequiredVersion {ps_quote(request.version)}")
        if request.force:
            parts.append("-Force")
        return " ".join(parts)

    def save_script(self, request: InstallRequest, path: Path) -> str:
        parts = [
            "Save-Module",
            f"-Name {ps_quote(request.module)}",
            f"-Repository {ps_quote(request.repository)}",
            f"-Path {ps_quote(path)}",
            "-Force",
        ]
        if request.version:
            parts.append(f"-RequiredVersion {ps_quote(request.version)}")
        return " ".join(parts)
