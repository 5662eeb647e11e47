"""
Tests for logging configuration and the logging event sink.
"""

import logging

import pytest

from powercli_install.core.observability.logging_config import (
    level_from_flags,
    parse_level,
    setup_from_env,
    setup_logging,
)
from powercli_install.core.resolver import EventType, LoggingSink, ResolutionEvent


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


class TestParseLevel:
    def test_names(self):
        assert parse_level("debug") == logging.DEBUG
        assert parse_level("ERROR") == logging.ERROR

    def test_fallback(self):
        assert parse_level(None) == logging.WARNING
        assert parse_level("loud") == logging.WARNING


class TestLevelFromFlags:
    def test_precedence(self):
        assert level_from_flags(debug=True, verbose=True, quiet=True) == "DEBUG"
        assert level_from_flags(verbose=True, quiet=True) == "INFO"
        assert level_from_flags(quiet=True) == "ERROR"
        assert level_from_flags() is None


class TestSetupFromEnv:
    def test_env_level(self):
        setup_from_env(None, {"PCLI_LOG_LEVEL": "info"})
        assert logging.getLogger().level == logging.INFO

    def test_flag_beats_env(self):
        setup_from_env("ERROR", {"PCLI_LOG_LEVEL": "DEBUG"})
        assert logging.getLogger().level == logging.ERROR

    def test_default_warning(self):
        setup_from_env(None, {})
        assert logging.getLogger().level == logging.WARNING

    def test_log_file_from_env(self, tmp_path):
        log_file = tmp_path / "logs" / "install.log"
        setup_from_env(None, {"PCLI_LOG_FILE": str(log_file), "PCLI_LOG_FILE_LEVEL": "DEBUG"})
        assert logging.getLogger().level == logging.DEBUG
        assert log_file.parent.is_dir()


class TestSetupLogging:
    def test_console_only(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.INFO

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "install.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")

        root = logging.getLogger()
        assert len(root.handlers) == 2
        assert root.level == logging.DEBUG

        logging.getLogger("powercli_install.test").debug("pwsh stderr kept here")
        for handler in root.handlers:
            handler.flush()
        assert "pwsh stderr kept here" in log_file.read_text()

    def test_noisy_loggers_quieted(self):
        setup_logging("INFO")
        assert logging.getLogger("urllib3").level == logging.WARNING


class TestLoggingSink:
    def test_failed_is_warning(self, caplog):
        event = ResolutionEvent(
            type=EventType.STRATEGY_FAILED, strategy="powershellget", reason="offline",
        )
        with caplog.at_level(logging.INFO, logger="powercli_install.core.resolver.events"):
            LoggingSink().emit(event)

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "strategy:failed powershellget" in record.getMessage()
        assert "offline" in record.getMessage()

    def test_success_is_info(self, caplog):
        event = ResolutionEvent(type=EventType.RESOLUTION_DONE, strategy="save-module")
        with caplog.at_level(logging.INFO, logger="powercli_install.core.resolver.events"):
            LoggingSink().emit(event)
        assert caplog.records[-1].levelno == logging.INFO
