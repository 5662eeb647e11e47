"""
Configuration loader — reads powercli-install.yml into InstallerConfig.

The file is optional: with none present every setting takes its
default and CLI flags layer on top. Settings may sit at the top level
of the YAML or under an ``installer:`` key.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from powercli_install.core.models.config import InstallerConfig

logger = logging.getLogger(__name__)

CONFIG_FILE = "powercli-install.yml"
CONFIG_NAMES = (CONFIG_FILE, f".{CONFIG_FILE}")

# How many parent directories find_config_file will climb
MAX_DEPTH = 20


class ConfigError(Exception):
    """Raised when installer configuration is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Nearest powercli-install.yml (or its dot-file form) at or above ``start_dir``."""
    start = (start_dir or Path.cwd()).resolve()
    for directory in [start, *start.parents][:MAX_DEPTH]:
        for name in CONFIG_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def load_config(
    path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> InstallerConfig:
    """Load and validate installer configuration.

    An explicit ``path`` must exist. Without one the nearest config file
    is used, or the defaults when there is none. ``overrides`` (CLI
    flags) win over the file; ``None`` values mean "flag not given".

    Raises:
        ConfigError: missing explicit file, unreadable file, bad YAML or
            values the model rejects.
    """
    if path is not None and not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    source = path or find_config_file()
    data = _read_yaml(source) if source else {}
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        config = InstallerConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid installer configuration: {e}") from e

    logger.debug(
        "Config from %s: module=%s scope=%s strategies=%s",
        source or "defaults", config.module, config.scope, ",".join(config.strategies),
    )
    return config


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    section = data.get("installer", data) if isinstance(data, dict) else data
    if not isinstance(section, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(section).__name__}")
    return dict(section)
