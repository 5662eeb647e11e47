"""
Config check use case — validate powercli-install.yml before an install.

Schema errors make the config invalid. Everything else is a warning:
settings that are legal but will probably make every strategy skip or
fail on a normal machine.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from powercli_install.core.config.loader import ConfigError, find_config_file, load_config
from powercli_install.core.models.config import InstallerConfig
from powercli_install.core.strategies.save_module import STRATEGY_NAME as SAVE_MODULE

# Gallery versions: 13.3.0, 13.3.0.24145081, 1.0.0-preview1
_VERSION_RE = re.compile(r"^\d+(\.\d+){1,3}(-[0-9A-Za-z.]+)?$")


@dataclass
class ConfigCheckResult:
    valid: bool = False
    config: InstallerConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "config": self.config.model_dump(mode="json") if self.config else None,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Load the installer config and report errors and warnings.

    A missing file is not an error: the defaults are checked instead.
    """
    path = config_path or find_config_file()
    result = ConfigCheckResult(config_path=path)

    try:
        result.config = load_config(path)
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    if path is None:
        result.warnings.append("No powercli-install.yml found; using defaults.")
    result.warnings.extend(installer_warnings(result.config))
    result.valid = True
    return result


def installer_warnings(config: InstallerConfig) -> list[str]:
    """Legal settings that are likely to break an install."""
    warnings: list[str] = []

    if SAVE_MODULE not in config.strategies:
        warnings.append(
            "The save-module fallback is disabled; a broken package client will fail the install."
        )
    elif config.strategies[-1] != SAVE_MODULE:
        warnings.append("save-module is not last; it will run before a package client gets a chance.")

    if config.scope == "AllUsers":
        warnings.append("Scope AllUsers needs an elevated session.")

    if config.version and not _VERSION_RE.match(config.version):
        warnings.append(f"Version '{config.version}' does not look like a gallery version.")

    if urlparse(config.gallery_url).scheme not in ("http", "https"):
        warnings.append(f"Gallery URL {config.gallery_url} is not http(s); reachability checks will fail.")

    if config.destination is not None:
        if not config.destination.is_absolute():
            warnings.append(f"Destination {config.destination} is relative to the working directory.")
        if config.staging_root is not None and _is_within(config.staging_root, config.destination):
            warnings.append("staging_root is inside destination; staged folders would be copied onto themselves.")

    if config.command_timeout < 60:
        warnings.append(f"command_timeout of {config.command_timeout}s is short for a full PowerCLI download.")

    return warnings


def _is_within(child: Path, parent: Path) -> bool:
    child, parent = child.expanduser().absolute(), parent.expanduser().absolute()
    return child == parent or parent in child.parents
