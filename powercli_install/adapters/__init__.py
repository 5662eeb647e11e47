"""
Package sources — the only code that talks to PowerShell package clients.

    from powercli_install.adapters import PackageSource, InstallRequest
"""

from powercli_install.adapters.base import InstallRequest, PackageSource
from powercli_install.adapters.mock import MockPackageSource

__all__ = [
    "InstallRequest",
    "MockPackageSource",
    "PackageSource",
]
