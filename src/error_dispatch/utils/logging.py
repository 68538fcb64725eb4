"""Logging configuration module for the error dispatcher.

Configures the package logger that the dispatcher, runtime and screen modules
propagate to, with console or rotating file output in JSON or human-readable
format. A failure attached to a log call is rendered as its display name and
failure kind.
"""

import logging
import sys
from collections.abc import MutableMapping
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

from error_dispatch.constants import BYTES_PER_MEGABYTE, LOGGER_NAME
from error_dispatch.exceptions import failure_kind
from error_dispatch.models.config import LoggingConfig
from error_dispatch.utils.debug import get_exception_name
from error_dispatch.utils.fallback_output import write_startup_error


def add_failure_fields(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Describe the failure attached to a log event.

    Structlog calls pass it as ``failure=``, stdlib calls as
    ``extra={"failure": ...}``.

    Args:
        logger: Wrapped logger (unused)
        method_name: Name of the log method (unused)
        event_dict: Event being processed

    Returns:
        The event with ``failure`` replaced by the exception's display name
        and ``failure_kind`` added.
    """
    failure = event_dict.get("failure")
    record = event_dict.get("_record")
    if failure is None and record is not None:
        failure = getattr(record, "failure", None)

    if isinstance(failure, BaseException):
        event_dict["failure"] = get_exception_name(failure)
        event_dict["failure_kind"] = failure_kind(failure).value

    return event_dict


def _console_handler(formatter: logging.Formatter, level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def setup_logging(config: LoggingConfig, name: str = LOGGER_NAME) -> logging.Logger:
    """Set up logging with the specified configuration.

    Args:
        config: Logging configuration.
        name: Logger name, the package logger by default so every
            ``error_dispatch.*`` module logger uses the same handlers.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    # Clear existing handlers
    logger.handlers = []

    level = getattr(logging, config.level.upper(), logging.INFO)
    logger.setLevel(level)

    renderer = (
        structlog.processors.JSONRenderer()
        if config.format.lower() == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_failure_fields,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    formatter = ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            add_failure_fields,
        ],
    )

    if not config.file:
        logger.addHandler(_console_handler(formatter, level))
        return logger

    try:
        log_path = Path(config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_size_mb * BYTES_PER_MEGABYTE,
            backupCount=config.backup_count,
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)
    except Exception as e:
        error_msg = f"Failed to set up file logging: {e}"
        write_startup_error(
            "LOGGING_FILE_ERROR",
            error_msg,
            {"log_file": str(config.file), "logger": name},
        )

        # Fall back to console logging if file logging fails
        logger.addHandler(_console_handler(formatter, level))
        logger.error(error_msg)

    return logger
