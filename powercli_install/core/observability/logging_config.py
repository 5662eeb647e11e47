"""
Logging configuration — one-time setup for the CLI process.

Modules only ever do ``logger = logging.getLogger(__name__)``; the
handlers live on the root logger and are installed here.

Console level, highest precedence first:
    --debug  >  --verbose  >  --quiet  >  PCLI_LOG_LEVEL  >  WARNING

A second, usually more verbose, file log is enabled with PCLI_LOG_FILE
(level PCLI_LOG_FILE_LEVEL). The console only shows the classified
reason for a failed strategy; the full pwsh stderr is logged at DEBUG.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Mapping

ENV_LEVEL = "PCLI_LOG_LEVEL"
ENV_FILE = "PCLI_LOG_FILE"
ENV_FILE_LEVEL = "PCLI_LOG_FILE_LEVEL"

# ── Formats by console level ────────────────────────────────────

_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
}
_CONSOLE_DEFAULT = ("%(levelname)s: %(message)s", None)

_FILE_FORMAT = "%(asctime)s %(process)d %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# The gallery probe goes through urllib
_NOISY_LOGGERS = ("urllib3", "urllib")


def level_from_flags(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
) -> str | None:
    """Console level implied by CLI flags, or None to defer to the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return None


def setup_from_env(cli_level: str | None = None, environ: Mapping[str, str] | None = None) -> None:
    """Configure logging from CLI flags plus the PCLI_* environment variables."""
    environ = os.environ if environ is None else environ
    setup_logging(
        level=cli_level or environ.get(ENV_LEVEL, "WARNING"),
        log_file=environ.get(ENV_FILE) or None,
        log_file_level=environ.get(ENV_FILE_LEVEL) or None,
    )


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console handler (and optional file handler) on the root logger.

    Calling it again replaces the previous handlers.
    """
    console_level = parse_level(level)
    handlers: list[logging.Handler] = [_console_handler(console_level)]
    root_level = console_level

    if log_file:
        file_level = parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(Path(log_file).expanduser(), file_level))
        root_level = min(root_level, file_level)

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(root_level)

    if console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    # a closed stderr (e.g. piped into head) must not crash an install
    logging.raiseExceptions = False


def parse_level(level: str | None) -> int:
    """Level name → numeric level; unknown or empty names mean WARNING."""
    if not level:
        return logging.WARNING
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else logging.WARNING


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _CONSOLE_FORMATS.get(level, _CONSOLE_DEFAULT)
    if level < logging.DEBUG:
        fmt, datefmt = _CONSOLE_FORMATS[logging.DEBUG]
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: Path, level: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler
