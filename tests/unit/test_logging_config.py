"""
Unit tests for checksum_verifier.utils.logging

Covers JSON and console formatting, root logger setup, the context logger
used by verification runs, and environment-based configuration.
"""

import json
import logging
import logging.handlers
import os
import sys
from unittest.mock import patch

import pytest

from checksum_verifier.utils.logging import (
    ConsoleFormatter,
    ContextLogger,
    JSONFormatter,
    configure_from_env,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from checksum_verifier.utils.logging.config import NOISY_LOGGERS


def make_record(msg="Checksum mismatch", level=logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="checksum_verifier.checksum.validator",
        level=level,
        pathname="/path/to/validator.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
        func="compare",
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    root_logger = logging.getLogger()
    level = root_logger.level
    yield root_logger
    for handler in root_logger.handlers[:]:
        if (isinstance(handler.formatter, (ConsoleFormatter, JSONFormatter))
                or isinstance(handler, logging.handlers.RotatingFileHandler)):
            handler.close()
            root_logger.removeHandler(handler)
    root_logger.setLevel(level)


class TestJSONFormatter:
    """Test JSONFormatter class"""

    def test_init_with_defaults(self):
        formatter = JSONFormatter()

        assert formatter.include_timestamp is True
        assert formatter.include_hostname is True
        assert formatter.app_name == "checksum-verifier"
        assert formatter.hostname is not None

    def test_format_basic_log_record(self):
        """Test formatting a basic log record"""
        # Arrange
        formatter = JSONFormatter()
        record = make_record()

        # Act
        log_data = json.loads(formatter.format(record))

        # Assert
        assert log_data["level"] == "INFO"
        assert log_data["logger"] == "checksum_verifier.checksum.validator"
        assert log_data["message"] == "Checksum mismatch"
        assert log_data["app"] == "checksum-verifier"
        assert "timestamp" in log_data
        assert log_data["source"] == {
            "file": "/path/to/validator.py",
            "line": 42,
            "function": "compare",
        }
        assert "context" not in log_data

    def test_format_without_timestamp_and_hostname(self):
        formatter = JSONFormatter(include_timestamp=False, include_hostname=False)

        log_data = json.loads(formatter.format(make_record()))

        assert "timestamp" not in log_data
        assert "hostname" not in log_data

    def test_format_with_extra_context(self):
        """Test that extra={...} fields end up under context"""
        # Arrange
        formatter = JSONFormatter()
        record = make_record(run_id="a1b2", column="row$i")

        # Act
        log_data = json.loads(formatter.format(record))

        # Assert
        assert log_data["context"] == {"run_id": "a1b2", "column": "row$i"}

    def test_format_with_exception_info(self):
        formatter = JSONFormatter()
        try:
            raise ValueError("Checksum row is empty")
        except ValueError:
            record = make_record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        log_data = json.loads(formatter.format(record))

        assert log_data["exception"]["type"] == "ValueError"
        assert log_data["exception"]["message"] == "Checksum row is empty"
        assert log_data["exception"]["traceback"]


class TestConsoleFormatter:
    """Test ConsoleFormatter class"""

    def test_format_without_colors(self):
        formatter = ConsoleFormatter(use_colors=False)

        formatted = formatter.format(make_record())

        assert "[INFO] checksum_verifier.checksum.validator: Checksum mismatch" in formatted
        assert "\033[" not in formatted

    @patch("sys.stderr.isatty", return_value=True)
    def test_format_with_colors_enabled(self, mock_isatty):
        formatter = ConsoleFormatter(use_colors=True)

        formatted = formatter.format(make_record(level=logging.WARNING))

        assert "\033[33m" in formatted
        assert ConsoleFormatter.RESET in formatted

    def test_format_with_extra_context(self):
        formatter = ConsoleFormatter(use_colors=False)

        formatted = formatter.format(make_record(run_id="a1b2", control="prod.orders"))

        assert formatted.endswith("[run_id=a1b2, control=prod.orders]")


class TestSetupLogging:
    """Test setup_logging function"""

    def test_setup_logging_with_defaults(self, restore_root_logger):
        setup_logging()

        assert restore_root_logger.level == logging.INFO
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, ConsoleFormatter)

    def test_invalid_level_defaults_to_info(self, restore_root_logger):
        setup_logging(level="CHATTY")

        assert restore_root_logger.level == logging.INFO

    def test_setup_logging_with_json_file(self, restore_root_logger, tmp_path):
        """Test file logging creates the directory and uses JSON"""
        # Arrange
        log_file = tmp_path / "logs" / "verifier.log"

        # Act
        setup_logging(
            level="DEBUG",
            log_file=str(log_file),
            console_output=False,
            json_format=True,
        )

        # Assert
        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        handler = restore_root_logger.handlers[0]
        assert isinstance(handler, logging.handlers.RotatingFileHandler)
        assert isinstance(handler.formatter, JSONFormatter)
        assert os.path.isdir(tmp_path / "logs")

    def test_setup_logging_clears_existing_handlers(self, restore_root_logger):
        restore_root_logger.addHandler(logging.NullHandler())

        setup_logging(console_output=False)

        assert restore_root_logger.handlers == []

    def test_noisy_loggers_are_quieted(self, restore_root_logger):
        setup_logging(level="DEBUG", console_output=False)

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_shutdown_logging_detaches_handlers(self, restore_root_logger, tmp_path):
        setup_logging(log_file=str(tmp_path / "verifier.log"), console_output=False)

        shutdown_logging()

        assert restore_root_logger.handlers == []

    def test_get_logger_returns_named_logger(self):
        assert get_logger("checksum_verifier.execution") is logging.getLogger(
            "checksum_verifier.execution"
        )


class TestContextLogger:
    """Test ContextLogger class"""

    def test_init_with_context(self):
        logger = ContextLogger("test", run_id="a1b2", control="prod.orders")

        assert logger.logger.name == "test"
        assert logger.get_context() == {"run_id": "a1b2", "control": "prod.orders"}

    @patch("logging.Logger.log")
    def test_info_adds_context(self, mock_log):
        logger = ContextLogger("test", run_id="a1b2")

        logger.info("Checksum query finished", side="control")

        mock_log.assert_called_once_with(
            logging.INFO,
            "Checksum query finished",
            exc_info=None,
            extra={"run_id": "a1b2", "side": "control"},
        )

    @patch("logging.Logger.log")
    def test_error_with_exc_info(self, mock_log):
        logger = ContextLogger("test", run_id="a1b2")

        logger.error("Checksum query failed", exc_info=True)

        assert mock_log.call_args.args[0] == logging.ERROR
        assert mock_log.call_args.kwargs["exc_info"] is True

    def test_bind_returns_new_logger(self):
        logger = ContextLogger("test", run_id="a1b2")

        bound = logger.bind(side="test")

        assert bound.get_context() == {"run_id": "a1b2", "side": "test"}
        assert logger.get_context() == {"run_id": "a1b2"}

    def test_get_context_returns_copy(self):
        logger = ContextLogger("test", run_id="a1b2")

        logger.get_context()["run_id"] = "changed"

        assert logger.get_context()["run_id"] == "a1b2"


class TestConfigureFromEnv:
    """Test configure_from_env function"""

    @patch("checksum_verifier.utils.logging.config.setup_logging")
    def test_configure_from_env_all_vars_set(self, mock_setup):
        env = {
            "LOG_LEVEL": "DEBUG",
            "LOG_FILE": "/var/log/verifier.log",
            "LOG_JSON": "yes",
            "LOG_CONSOLE": "false",
        }
        with patch.dict(os.environ, env):
            configure_from_env()

        mock_setup.assert_called_once_with(
            level="DEBUG",
            log_file="/var/log/verifier.log",
            console_output=False,
            json_format=True,
        )

    @patch("checksum_verifier.utils.logging.config.setup_logging")
    def test_configure_from_env_with_defaults(self, mock_setup):
        with patch.dict(os.environ, {}, clear=True):
            configure_from_env()

        mock_setup.assert_called_once_with(
            level="INFO",
            log_file=None,
            console_output=True,
            json_format=False,
        )
