"""
Domain models — Pydantic types for the installer.

All models are re-exported here for convenient access:

    from powercli_install.core.models import EnvironmentProbe, ResolutionResult
"""

from powercli_install.core.models.config import InstallerConfig
from powercli_install.core.models.probe import EnvironmentProbe, ModulePath
from powercli_install.core.models.receipt import Receipt
from powercli_install.core.models.result import ResolutionResult, ResolutionStatus
from powercli_install.core.models.strategy import (
    ActionResult,
    ErrorKind,
    StrategyAttempt,
    StrategyError,
    StrategyStatus,
)

__all__ = [
    # strategy.py
    "ActionResult",
    # probe.py
    "EnvironmentProbe",
    "ErrorKind",
    # config.py
    "InstallerConfig",
    "ModulePath",
    # receipt.py
    "Receipt",
    # result.py
    "ResolutionResult",
    "ResolutionStatus",
    "StrategyAttempt",
    "StrategyError",
    "StrategyStatus",
]
