"""Tests for the logging module.

Tests cover the setup_logging function, including configuration of log levels,
formatters, and handlers with various output formats.
"""

# ruff: noqa: S101

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from unittest.mock import patch

import pytest
from structlog.stdlib import ProcessorFormatter

from error_dispatch.exceptions import FatalFailure, RuntimeFailure
from error_dispatch.models.config import LoggingConfig
from error_dispatch.models.errors import Severity
from error_dispatch.utils.logging import add_failure_fields, setup_logging


@pytest.fixture()
def basic_config() -> LoggingConfig:
    """Create a basic logging configuration with no file output."""
    return LoggingConfig(
        level="INFO",
        file=None,
        format="json",
        max_size_mb=5,
        backup_count=3,
    )


@pytest.fixture()
def file_config(tmp_path: Path) -> LoggingConfig:
    """Create a logging configuration with file output."""
    log_file = tmp_path / "logs" / "error-dispatch.log"
    return LoggingConfig(
        level="DEBUG",
        file=str(log_file),
        format="json",
        max_size_mb=5,
        backup_count=3,
    )


def test_setup_logging_basic(basic_config: LoggingConfig) -> None:
    """Test basic logger setup with no file output."""
    logger = setup_logging(basic_config, "test_logger")

    assert logger.name == "test_logger"
    assert logger.level == logging.INFO

    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], logging.StreamHandler)
    assert logger.handlers[0].stream == sys.stdout


def test_setup_logging_replaces_handlers(basic_config: LoggingConfig) -> None:
    """Test calling setup twice does not duplicate handlers."""
    setup_logging(basic_config, "test_logger")
    logger = setup_logging(basic_config, "test_logger")

    assert len(logger.handlers) == 1


def test_setup_logging_json_format(basic_config: LoggingConfig) -> None:
    """Test logger setup with JSON formatter."""
    with patch("structlog.processors.JSONRenderer") as mock_json_renderer:
        logger = setup_logging(basic_config, "test_logger")

        assert mock_json_renderer.call_count == 1
        assert isinstance(logger.handlers[0].formatter, ProcessorFormatter)


def test_setup_logging_console_format(basic_config: LoggingConfig) -> None:
    """Test logger setup with console text formatter."""
    basic_config.format = "text"

    with patch("structlog.dev.ConsoleRenderer") as mock_console_renderer:
        logger = setup_logging(basic_config, "test_logger")

        assert mock_console_renderer.call_count == 1
        assert isinstance(logger.handlers[0].formatter, ProcessorFormatter)


def test_setup_logging_with_file(file_config: LoggingConfig) -> None:
    """Test logger setup with file output."""
    logger = setup_logging(file_config, "test_logger")

    assert len(logger.handlers) == 1
    file_handler = logger.handlers[0]
    assert isinstance(file_handler, RotatingFileHandler)
    assert file_handler.baseFilename == str(file_config.file)
    assert file_handler.maxBytes == file_config.max_size_mb * 1024 * 1024
    assert file_handler.backupCount == file_config.backup_count

    file_path = file_config.file
    assert file_path is not None
    assert Path(file_path).parent.exists()

    file_handler.close()


def test_setup_logging_file_error(file_config: LoggingConfig) -> None:
    """Test falling back to the console when file logging fails."""
    with (
        patch("pathlib.Path.mkdir", side_effect=PermissionError("Permission denied")),
        patch("error_dispatch.utils.logging.write_startup_error") as mock_startup_error,
        patch("logging.Logger.error") as mock_error,
    ):
        logger = setup_logging(file_config, "test_logger")

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)
        assert not isinstance(logger.handlers[0], RotatingFileHandler)

        mock_startup_error.assert_called_once()
        assert mock_startup_error.call_args.args[0] == "LOGGING_FILE_ERROR"
        assert mock_startup_error.call_args.args[2] == {
            "log_file": str(file_config.file),
            "logger": "test_logger",
        }

        assert mock_error.call_count == 1
        error_msg = mock_error.call_args[0][0]
        assert "Failed to set up file logging" in error_msg
        assert "Permission denied" in error_msg


def test_setup_logging_custom_level(basic_config: LoggingConfig) -> None:
    """Test logger setup with custom log level."""
    basic_config.level = "DEBUG"
    logger = setup_logging(basic_config, "test_logger")
    assert logger.level == logging.DEBUG

    basic_config.level = "error"
    logger = setup_logging(basic_config, "test_logger")
    assert logger.level == logging.ERROR

    # Invalid levels default to INFO
    basic_config.level = "INVALID_LEVEL"
    logger = setup_logging(basic_config, "test_logger")
    assert logger.level == logging.INFO


def test_structlog_configuration(basic_config: LoggingConfig) -> None:
    """Test structlog configuration."""
    with patch("structlog.configure") as mock_configure:
        setup_logging(basic_config, "test_logger")

        assert mock_configure.call_count == 1

        _, kwargs = mock_configure.call_args
        assert len(kwargs["processors"]) == 10
        assert add_failure_fields in kwargs["processors"]
        assert kwargs["context_class"] is dict
        assert kwargs["cache_logger_on_first_use"] is True


def test_setup_logging_default_name(basic_config: LoggingConfig) -> None:
    """Test the package logger is configured when no name is given."""
    logger = setup_logging(basic_config)

    try:
        assert logger.name == "error_dispatch"
        assert logging.getLogger("error_dispatch.dispatcher").parent is logger
    finally:
        logger.handlers = []
        logger.setLevel(logging.NOTSET)


def test_add_failure_fields_from_event() -> None:
    """Test a failure passed to a structlog call is described."""
    failure = RuntimeFailure("Careful", Severity.WARNING)

    event_dict = add_failure_fields(None, "warning", {"event": "x", "failure": failure})

    assert event_dict["failure"] == "Warning"
    assert event_dict["failure_kind"] == "runtime"


def test_add_failure_fields_from_record() -> None:
    """Test a failure passed through a stdlib record's extra is described."""
    record = logging.LogRecord("error_dispatch", logging.DEBUG, __file__, 1, "x", None, None)
    record.failure = FatalFailure("Out of memory", Severity.ERROR, out_of_memory=True)

    event_dict = add_failure_fields(None, "debug", {"event": "x", "_record": record})

    assert event_dict["failure"] == "Out of memory"
    assert event_dict["failure_kind"] == "out_of_memory"


def test_add_failure_fields_without_failure() -> None:
    """Test events without a failure are left alone."""
    event_dict = add_failure_fields(None, "info", {"event": "x", "failure": "text"})

    assert event_dict == {"event": "x", "failure": "text"}
