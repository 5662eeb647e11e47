"""
Detection — environment snapshot.

Builds the frozen ``EnvironmentProbe`` a resolution runs against:
one pwsh invocation for everything PowerShell knows (version, package
clients, PSModulePath, elevation, installed target versions), plus the
gallery reachability check. Read-only; never raises.
"""

from __future__ import annotations

import json
import logging
import os
import platform
from pathlib import Path

from powercli_install.adapters.powershell.runner import PowerShellRunner, ps_quote
from powercli_install.core.detection.network import check_gallery_reachable
from powercli_install.core.models.config import InstallerConfig
from powercli_install.core.models.probe import (
    POWERSHELLGET,
    PSRESOURCEGET,
    EnvironmentProbe,
    ModulePath,
)

logger = logging.getLogger(__name__)

# Module name → client identifier
_CLIENT_MODULES = {
    "Microsoft.PowerShell.PSResourceGet": PSRESOURCEGET,
    "PowerShellGet": POWERSHELLGET,
}

MIN_POWERSHELL = (5, 1)


def _probe_script(module: str) -> str:
    names = ", ".join(ps_quote(n) for n in _CLIENT_MODULES)
    return (
        f"$clients = @(Get-Module -ListAvailable -Name {names} "
        "| ForEach-Object { $_.Name } | Sort-Object -Unique); "
        "$admin = if ($IsWindows -or $PSVersionTable.PSEdition -eq 'Desktop') { "
        "([Security.Principal.WindowsPrincipal][Security.Principal.WindowsIdentity]::GetCurrent())"
        ".IsInRole([Security.Principal.WindowsBuiltInRole]::Administrator) } "
        "else { (id -u) -eq '0' }; "
        f"$installed = @(Get-Module -ListAvailable -Name {ps_quote(module)} "
        "| ForEach-Object { $_.Version.ToString() }); "
        "[pscustomobject]@{ "
        "PSVersion = $PSVersionTable.PSVersion.ToString(); "
        "Clients = $clients; "
        "ModulePaths = @($env:PSModulePath -split [IO.Path]::PathSeparator | Where-Object { $_ }); "
        "IsAdmin = [bool]$admin; "
        "Installed = $installed "
        "} | ConvertTo-Json -Compress -Depth 3"
    )


def probe_environment(
    config: InstallerConfig,
    runner: PowerShellRunner | None = None,
    *,
    check_network: bool = True,
) -> EnvironmentProbe:
    """Take the environment snapshot for one resolution run."""
    runner = runner or PowerShellRunner(timeout=60)

    reachable = False
    if check_network:
        net = check_gallery_reachable(config.gallery_url, timeout=config.probe_timeout)
        reachable = net["reachable"]

    base = {
        "platform": platform.system().lower(),
        "powershell": runner.executable,
        "network_reachable": reachable,
    }

    if not runner.is_available():
        logger.warning("No PowerShell executable found on PATH")
        return EnvironmentProbe(**base)

    receipt = runner.run(_probe_script(config.module), source="probe", operation="environment")
    if not receipt.ok:
        logger.warning("Environment probe failed: %s", receipt.error)
        return EnvironmentProbe(**base)

    try:
        data = json.loads(receipt.output or "{}")
    except json.JSONDecodeError as e:
        logger.warning("Environment probe returned invalid JSON: %s", e)
        return EnvironmentProbe(**base)

    return EnvironmentProbe(
        **base,
        powershell_version=data.get("PSVersion"),
        package_managers=frozenset(
            _CLIENT_MODULES[name] for name in _as_list(data.get("Clients"))
            if name in _CLIENT_MODULES
        ),
        module_paths=tuple(_module_path(p) for p in _as_list(data.get("ModulePaths"))),
        is_elevated=bool(data.get("IsAdmin")),
        installed_versions=tuple(_as_list(data.get("Installed"))),
    )


def validate_environment(env: EnvironmentProbe) -> list[str]:
    """Blocking problems that make any install pointless."""
    problems: list[str] = []
    if not env.has_powershell:
        problems.append("PowerShell (pwsh) is not installed or not on PATH")
        return problems

    if env.powershell_version and _version_tuple(env.powershell_version) < MIN_POWERSHELL:
        problems.append(
            f"PowerShell {env.powershell_version} is too old "
            f"(need {'.'.join(map(str, MIN_POWERSHELL))}+)"
        )
    return problems


# ── Helpers ─────────────────────────────────────────────────────


def _as_list(value: object) -> list[str]:
    """ConvertTo-Json collapses one-element arrays into scalars."""
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value if v is not None]
    return [str(value)]


def _module_path(raw: str) -> ModulePath:
    path = Path(raw).expanduser()
    home = Path.home()
    return ModulePath(
        path=path,
        writable=is_writable_dir(path),
        user_scope=path == home or home in path.parents,
    )


def is_writable_dir(path: Path) -> bool:
    """Writable if it exists and is writable, or can be created under a writable ancestor."""
    current = path
    while not current.exists():
        parent = current.parent
        if parent == current:
            return False
        current = parent
    return current.is_dir() and os.access(current, os.W_OK | os.X_OK)


def _version_tuple(version: str) -> tuple[int, ...]:
    parts: list[int] = []
    for piece in version.split(".")[:3]:
        digits = "".join(ch for ch in piece if ch.isdigit())
        if not digits:
            break
        parts.append(int(digits))
    return tuple(parts)
