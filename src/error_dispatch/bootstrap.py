"""One-call installation of the error dispatcher.

Loads configuration, sets up logging, creates the error screen and registers
a dispatcher with the interpreter runtime.
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from error_dispatch.constants import LOGGER_NAME
from error_dispatch.dispatcher import ErrorDispatcher
from error_dispatch.exceptions import ConfigurationError
from error_dispatch.models.config import AppConfig
from error_dispatch.runtime import Runtime, python_runtime
from error_dispatch.screens import create_screen
from error_dispatch.utils.logging import setup_logging


def load_config(config: AppConfig | str | Path | None = None) -> AppConfig:
    """Resolve the application configuration.

    Args:
        config: Configuration object, path to a YAML file, or None for defaults

    Returns:
        The application configuration.

    Raises:
        ConfigurationError: If the file cannot be read or is invalid.
    """
    if config is None:
        return AppConfig()
    if isinstance(config, AppConfig):
        return config

    try:
        return AppConfig.from_yaml(config)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        raise ConfigurationError(
            "Failed to load configuration", {"path": str(config), "error": str(e)}
        ) from e


def install(
    config: AppConfig | str | Path | None = None, runtime: Runtime | None = None
) -> ErrorDispatcher:
    """Create, configure and register an error dispatcher.

    Args:
        config: Configuration object, path to a YAML file, or None for defaults
        runtime: Host runtime, the interpreter runtime when None

    Returns:
        The registered dispatcher.

    Raises:
        ConfigurationError: If the configuration cannot be loaded.
    """
    app_config = load_config(config)
    runtime = runtime or python_runtime

    logger = setup_logging(app_config.logging, LOGGER_NAME)

    dispatcher = ErrorDispatcher.from_config(
        app_config.dispatcher,
        screen=create_screen(app_config.screen, runtime),
        runtime=runtime,
    )
    dispatcher.register()

    logger.info("Error dispatcher installed")
    return dispatcher
