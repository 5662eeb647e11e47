"""
Concrete install strategies and the default candidate list.

Order mirrors the classic PowerCLI install chain: modern client
(PSResourceGet) → classic client (PowerShellGet) → manual
stage-and-copy (Save-Module).
"""

from __future__ import annotations

from powercli_install.adapters.base import PackageSource
from powercli_install.adapters.powershell.powershellget import PowerShellGetSource
from powercli_install.adapters.powershell.psresourceget import PSResourceGetSource
from powercli_install.adapters.powershell.runner import PowerShellRunner
from powercli_install.core.models.config import InstallerConfig
from powercli_install.core.models.probe import POWERSHELLGET, PSRESOURCEGET
from powercli_install.core.resolver.strategy import InstallStrategy
from powercli_install.core.strategies.client import ClientInstallStrategy
from powercli_install.core.strategies.save_module import STRATEGY_NAME as SAVE_MODULE
from powercli_install.core.strategies.save_module import SaveModuleStrategy

__all__ = [
    "ClientInstallStrategy",
    "SaveModuleStrategy",
    "build_strategies",
    "default_sources",
]


def default_sources(runner: PowerShellRunner | None = None) -> dict[str, PackageSource]:
    """Real package sources keyed by client name, sharing one runner."""
    runner = runner or PowerShellRunner()
    return {
        PSRESOURCEGET: PSResourceGetSource(runner),
        POWERSHELLGET: PowerShellGetSource(runner),
    }


def build_strategies(
    config: InstallerConfig,
    sources: dict[str, PackageSource],
) -> list[InstallStrategy]:
    """Candidate list in ``config.strategies`` order.

    ``sources`` maps client name → PackageSource; pass mocks here to run
    the whole chain without PowerShell.
    """
    strategies: list[InstallStrategy] = []
    for name in config.strategies:
        if name == SAVE_MODULE:
            # Save-Module first (the classic fallback), Save-PSResource otherwise
            savers = [sources[n] for n in (POWERSHELLGET, PSRESOURCEGET) if n in sources]
            strategies.append(SaveModuleStrategy(savers))
        elif name in sources:
            strategies.append(ClientInstallStrategy(sources[name]))
        else:
            raise ValueError(f"no package source for strategy '{name}'")
    return strategies
