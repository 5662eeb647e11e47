"""
Package source base — the contract between strategies and package clients.

Strategies never call a package client directly. They go through a
PackageSource, which wraps one vendor client (PSResourceGet,
PowerShellGet) and returns receipts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel

from powercli_install.core.models.config import InstallerConfig
from powercli_install.core.models.receipt import Receipt


class InstallRequest(BaseModel):
    """What to install, and where from."""

    module: str
    version: str | None = None
    scope: str = "CurrentUser"
    repository: str = "PSGallery"
    force: bool = False

    @classmethod
    def from_config(cls, config: InstallerConfig) -> InstallRequest:
        return cls(
            module=config.module,
            version=config.version,
            scope=config.scope,
            repository=config.repository,
            force=config.force,
        )


class PackageSource(ABC):
    """Abstract base class for package clients.

    Sources perform external side effects and return receipts.
    They NEVER raise; failures are captured in the Receipt.

    A successful ``install`` receipt carries the module's install
    directory in ``metadata["location"]`` when the client reports it.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Client identifier, matching ``EnvironmentProbe.package_managers``."""

    @abstractmethod
    def trust_repository(self, repository: str) -> Receipt:
        """Mark a repository as trusted so installs don't prompt."""

    @abstractmethod
    def install(self, request: InstallRequest) -> Receipt:
        """Install a module by name into the requested scope."""

    @abstractmethod
    def save(self, request: InstallRequest, path: Path) -> Receipt:
        """Download a module (and its dependencies) into ``path`` without installing.

        Produces the standard ``<path>/<Module>/<Version>/`` layout.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
