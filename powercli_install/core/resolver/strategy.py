"""
Install strategy contract.

A strategy is one way of getting the module onto the machine. The
resolver only ever talks to strategies through this interface, so
tests can hand it fakes and the real list stays data-driven.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from powercli_install.core.models.config import InstallerConfig
from powercli_install.core.models.probe import EnvironmentProbe
from powercli_install.core.models.strategy import ActionResult


@dataclass
class AttemptContext:
    """Scratch record for one strategy attempt.

    The action records every persistent change it makes here; the
    resolver hands the same object to ``rollback`` if the action fails.
    """

    strategy: str
    staging_dir: Path | None = None
    created: list[Path] = field(default_factory=list)
    backups: dict[Path, Path] = field(default_factory=dict)   # original → backup copy
    notes: list[str] = field(default_factory=list)

    @property
    def mutated(self) -> bool:
        """Whether anything on disk changed during this attempt."""
        return bool(self.staging_dir or self.created or self.backups)


class InstallStrategy(ABC):
    """Abstract base class for installation strategies.

    Actions return an ``ActionResult`` instead of raising. The resolver
    still guards against exceptions, but a strategy that raises loses
    its error classification.

    To create a new strategy:
        1. Subclass InstallStrategy
        2. Implement name, check, execute (and rollback if execute writes)
        3. Add it to the candidate list passed to ``resolve``
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy identifier (e.g. 'psresourceget', 'save-module')."""

    @abstractmethod
    def check(self, env: EnvironmentProbe, config: InstallerConfig) -> tuple[bool, str]:
        """Precondition: can this strategy be attempted here?

        Must not touch the filesystem or network beyond reading ``env``.

        Returns:
            (is_met, reason). reason explains why it is unmet.
        """

    @abstractmethod
    def execute(
        self,
        env: EnvironmentProbe,
        config: InstallerConfig,
        attempt: AttemptContext,
    ) -> ActionResult:
        """Install the module. Must be idempotent."""

    def rollback(self, attempt: AttemptContext) -> None:
        """Undo whatever ``execute`` recorded in ``attempt``.

        Called only after a failed ``execute`` that changed something.
        May raise; the resolver logs the error and moves on.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
