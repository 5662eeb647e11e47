"""
Save-module strategy — the manual fallback.

Download the module and its dependencies into a private staging folder
with whichever client can save, then copy the ``<Module>/<Version>``
folders into a writable module path ourselves. This works where the
clients' own install fails (locked-down scope, broken client
configuration), as long as some module path is writable.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Sequence

from powercli_install.adapters.base import InstallRequest, PackageSource
from powercli_install.core.detection.environment import is_writable_dir
from powercli_install.core.detection.install_failure import failure_from_receipt
from powercli_install.core.models.config import InstallerConfig
from powercli_install.core.models.probe import EnvironmentProbe
from powercli_install.core.models.strategy import ActionResult, ErrorKind
from powercli_install.core.resolver.strategy import AttemptContext, InstallStrategy
from powercli_install.core.strategies.client import already_installed, common_preconditions
from powercli_install.core.strategies.staging import (
    copy_staged_modules,
    discard_backups,
    make_dirs,
    remove_staging,
    staged_versions,
    undo_copy,
)

logger = logging.getLogger(__name__)

STRATEGY_NAME = "save-module"


def select_destination(env: EnvironmentProbe, config: InstallerConfig) -> Path | None:
    """Where staged modules go.

    An explicit destination wins. Otherwise the first writable module
    path matching the scope: user paths for CurrentUser, system paths
    for AllUsers.
    """
    if config.destination is not None:
        return config.destination if is_writable_dir(config.destination) else None

    want_user = config.scope == "CurrentUser"
    for mp in env.module_paths:
        if mp.writable and mp.user_scope == want_user:
            return mp.path
    return None


class SaveModuleStrategy(InstallStrategy):
    """Stage with Save-Module / Save-PSResource, then copy per-version folders."""

    def __init__(self, sources: Sequence[PackageSource]):
        # Preference order: the first source whose client is present is used
        self._sources = list(sources)

    @property
    def name(self) -> str:
        return STRATEGY_NAME

    def _pick_source(self, env: EnvironmentProbe) -> PackageSource | None:
        for source in self._sources:
            if env.has_client(source.name):
                return source
        return None

    def check(self, env: EnvironmentProbe, config: InstallerConfig) -> tuple[bool, str]:
        ok, reason = common_preconditions(env, config)
        if not ok:
            return ok, reason
        if self._pick_source(env) is None:
            names = ", ".join(s.name for s in self._sources) or "none configured"
            return False, f"no client able to save modules ({names})"
        if select_destination(env, config) is None:
            return False, f"no writable {config.scope} module path"
        return True, ""

    def execute(
        self,
        env: EnvironmentProbe,
        config: InstallerConfig,
        attempt: AttemptContext,
    ) -> ActionResult:
        destination = select_destination(env, config)
        source = self._pick_source(env)
        if destination is None or source is None:
            # check() passed against the same env; only reachable if misused
            return ActionResult.failure(ErrorKind.UNKNOWN, "destination or source vanished")

        if already_installed(env, config):
            attempt.notes.append("already installed")
            return ActionResult.success(output=f"{config.module} already installed")

        try:
            if config.staging_root is not None:
                make_dirs(config.staging_root, attempt)
            attempt.staging_dir = Path(
                tempfile.mkdtemp(prefix="powercli-stage-", dir=config.staging_root)
            )
        except OSError as e:
            where = config.staging_root or tempfile.gettempdir()
            return ActionResult.failure(
                ErrorKind.PERMISSION,
                f"create staging dir under {where}: {e.strerror or e}",
                detail=str(e),
                mutated=attempt.mutated,
            )
        logger.info("Staging %s with %s in %s", config.module, source.name, attempt.staging_dir)

        request = InstallRequest.from_config(config)
        receipt = source.save(request, attempt.staging_dir)
        if not receipt.ok:
            return failure_from_receipt(receipt, step=f"save {config.module}", mutated=True)

        staged = staged_versions(attempt.staging_dir)
        primary = [v for m, v, _ in staged if m == config.module]
        if not primary:
            return ActionResult.failure(
                ErrorKind.NOT_FOUND,
                f"save {config.module}: nothing staged for {config.module}",
                mutated=True,
            )

        already_created = len(attempt.created)
        try:
            report = copy_staged_modules(attempt.staging_dir, destination, attempt)
        except PermissionError as e:
            wrote = len(attempt.created) > already_created or bool(attempt.backups)
            return ActionResult.failure(
                ErrorKind.PARTIAL_WRITE if wrote else ErrorKind.PERMISSION,
                f"copy to {destination}: {e.strerror or e}",
                detail=str(e),
                mutated=True,
            )
        except OSError as e:
            return ActionResult.failure(
                ErrorKind.PARTIAL_WRITE,
                f"copy to {destination}: {e.strerror or e}",
                detail=str(e),
                mutated=True,
            )

        logger.info(
            "Copied %d, replaced %d, unchanged %d module folders into %s",
            len(report["copied"]), len(report["replaced"]), len(report["unchanged"]),
            destination,
        )

        discard_backups(attempt)
        try:
            remove_staging(attempt)
        except OSError as e:
            logger.warning("Could not remove staging dir: %s", e)

        version = config.version or max(primary, key=_version_key)
        return ActionResult.success(
            location=destination / config.module / version,
            output=", ".join(report["copied"] + report["replaced"]) or "all versions unchanged",
        )

    def rollback(self, attempt: AttemptContext) -> None:
        undo_copy(attempt)
        remove_staging(attempt)


def _version_key(version: str) -> tuple:
    return tuple(int(p) if p.isdigit() else 0 for p in version.split("."))
