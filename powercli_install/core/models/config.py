"""
Installer configuration — the explicit settings a resolution runs with.

Loaded from powercli-install.yml (optional) and overridden by CLI flags.
Passed into the resolver and every strategy; there is no ambient
"current installer" state.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_MODULE = "VMware.PowerCLI"
DEFAULT_REPOSITORY = "PSGallery"
DEFAULT_GALLERY_URL = "https://www.powershellgallery.com/api/v2/"
DEFAULT_STRATEGIES = ["psresourceget", "powershellget", "save-module"]


class InstallerConfig(BaseModel):
    """Everything a resolution run needs to know about intent."""

    module: str = DEFAULT_MODULE
    version: str | None = None             # exact version; None = latest
    scope: Literal["CurrentUser", "AllUsers"] = "CurrentUser"
    repository: str = DEFAULT_REPOSITORY
    gallery_url: str = DEFAULT_GALLERY_URL

    trust_repository: bool = False
    disable_telemetry: bool = False
    force: bool = False

    destination: Path | None = None        # save-module target; None = first writable module path
    staging_root: Path | None = None       # None = system temp dir
    state_dir: Path | None = None          # audit ledger; None = ~/.powercli-install

    strategies: list[str] = Field(default_factory=lambda: list(DEFAULT_STRATEGIES))
    command_timeout: int = 900             # seconds per pwsh invocation
    probe_timeout: int = 5                 # seconds for the gallery reachability check

    @field_validator("strategies")
    @classmethod
    def _known_strategies(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one strategy is required")
        unknown = [s for s in value if s not in DEFAULT_STRATEGIES]
        if unknown:
            raise ValueError(
                f"unknown strategies {unknown}; valid: {', '.join(DEFAULT_STRATEGIES)}"
            )
        if len(set(value)) != len(value):
            raise ValueError("strategies must not repeat")
        return value

    @field_validator("module")
    @classmethod
    def _module_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("module name must not be empty")
        return value

    @property
    def requires_elevation(self) -> bool:
        return self.scope == "AllUsers"

    def effective_state_dir(self) -> Path:
        return self.state_dir or Path.home() / ".powercli-install"
