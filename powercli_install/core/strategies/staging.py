"""
Staging copy — move staged ``<Module>/<Version>/`` folders into a module path.

Existing version folders are compared by tree checksum before anything
is written: identical ones are left alone, different ones are backed up
(``<Version>.bak.YYYYMMDD_HHMMSS``) and replaced. Every write is recorded
on the AttemptContext so a failed copy can be rolled back.
"""

from __future__ import annotations

import hashlib
import logging
import shutil
import time
from itertools import takewhile
from pathlib import Path

from powercli_install.core.resolver.strategy import AttemptContext

logger = logging.getLogger(__name__)


def tree_digest(root: Path) -> str:
    """SHA-256 over every file's relative path and content, in sorted order."""
    h = hashlib.sha256()
    for path in sorted(p for p in root.rglob("*") if p.is_file()):
        h.update(path.relative_to(root).as_posix().encode("utf-8"))
        h.update(b"\0")
        with path.open("rb") as f:
            for chunk in iter(lambda: f.read(65536), b""):
                h.update(chunk)
        h.update(b"\0")
    return h.hexdigest()


def staged_versions(staging: Path) -> list[tuple[str, str, Path]]:
    """``(module, version, path)`` for every version folder in a staging dir."""
    found: list[tuple[str, str, Path]] = []
    for module_dir in sorted(p for p in staging.iterdir() if p.is_dir()):
        for version_dir in sorted(p for p in module_dir.iterdir() if p.is_dir()):
            found.append((module_dir.name, version_dir.name, version_dir))
    return found


def copy_staged_modules(
    staging: Path,
    destination: Path,
    attempt: AttemptContext,
) -> dict[str, list[str]]:
    """Copy all staged version folders into ``destination``.

    Raises:
        OSError: On any filesystem failure. Whatever was written up to
            that point is already recorded in ``attempt``.

    Returns:
        ``{"copied": [...], "replaced": [...], "unchanged": [...]}`` of
        ``Module/Version`` labels.
    """
    report: dict[str, list[str]] = {"copied": [], "replaced": [], "unchanged": []}
    ts = time.strftime("%Y%m%d_%H%M%S")

    for module, version, source in staged_versions(staging):
        label = f"{module}/{version}"
        module_dir = destination / module
        target = module_dir / version

        if target.exists():
            if tree_digest(target) == tree_digest(source):
                logger.debug("Unchanged, skipping: %s", target)
                report["unchanged"].append(label)
                continue
            backup = target.with_name(f"{version}.bak.{ts}")
            target.rename(backup)
            attempt.backups[target] = backup
            logger.info("Backed up %s → %s", target, backup)
            shutil.copytree(source, target)
            report["replaced"].append(label)
            continue

        make_dirs(module_dir, attempt)
        attempt.created.append(target)
        shutil.copytree(source, target)
        report["copied"].append(label)

    return report


def make_dirs(path: Path, attempt: AttemptContext) -> None:
    """Create ``path`` and any missing parents, recording each one outermost first."""
    missing = list(takewhile(lambda p: not p.exists(), (path, *path.parents)))
    for directory in reversed(missing):
        directory.mkdir()
        attempt.created.append(directory)


def discard_backups(attempt: AttemptContext) -> None:
    """Drop backups once the new copies are in place."""
    for backup in attempt.backups.values():
        shutil.rmtree(backup, ignore_errors=True)
    attempt.backups.clear()


def undo_copy(attempt: AttemptContext) -> None:
    """Remove created folders and put backups back. Raises on the first failure."""
    for path in reversed(attempt.created):
        if path.exists():
            shutil.rmtree(path)
            logger.debug("Removed %s", path)
    attempt.created.clear()

    for original, backup in list(attempt.backups.items()):
        if original.exists():
            shutil.rmtree(original)
        backup.rename(original)
        logger.info("Restored %s from %s", original, backup)
        del attempt.backups[original]


def remove_staging(attempt: AttemptContext) -> None:
    if attempt.staging_dir is not None and attempt.staging_dir.exists():
        shutil.rmtree(attempt.staging_dir)
        logger.debug("Removed staging dir %s", attempt.staging_dir)
    attempt.staging_dir = None
