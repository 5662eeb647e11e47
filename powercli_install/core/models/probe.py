"""
Environment probe — the read-only snapshot a resolution runs against.

Built once by ``detection.environment.probe_environment`` and frozen:
strategies read it, nothing writes it.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

# Package client identifiers used in ``package_managers``
PSRESOURCEGET = "psresourceget"
POWERSHELLGET = "powershellget"


class ModulePath(BaseModel):
    """One entry of PSModulePath."""

    model_config = ConfigDict(frozen=True)

    path: Path
    writable: bool = False
    user_scope: bool = False   # lives under the current user's home


class EnvironmentProbe(BaseModel):
    """Immutable view of the host for a single resolution run."""

    model_config = ConfigDict(frozen=True)

    platform: str = ""
    powershell: str | None = None          # path to pwsh / powershell
    powershell_version: str | None = None
    package_managers: frozenset[str] = Field(default_factory=frozenset)
    module_paths: tuple[ModulePath, ...] = ()
    network_reachable: bool = False
    is_elevated: bool = False
    installed_versions: tuple[str, ...] = ()   # target module versions already visible

    @property
    def has_powershell(self) -> bool:
        return self.powershell is not None

    def has_client(self, name: str) -> bool:
        """Whether a package client is available."""
        return name in self.package_managers

    def is_installed(self, version: str | None = None) -> bool:
        """Whether the target module (optionally an exact version) is visible."""
        if version is None:
            return bool(self.installed_versions)
        return version in self.installed_versions

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["package_managers"] = sorted(self.package_managers)
        return data
