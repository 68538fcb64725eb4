"""Configuration models for the error dispatcher.

Defines Pydantic models for application configuration including dispatcher
behavior, error screen selection and logging.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from error_dispatch.constants import (
    DEFAULT_HTML_CHARSET,
    DEFAULT_MAX_OUTPUT_BUFFER_LENGTH,
    DEFAULT_RESERVED_MEMORY,
    SCREEN_TYPES,
)


def _normalize_path(path: str | Path) -> Path:
    """Convert a string path to a Path object.

    Args:
        path: String or Path object

    Returns:
        A Path object.
    """
    return Path(path) if isinstance(path, str) else path


class DispatcherConfig(BaseModel):
    """Error dispatcher configuration."""

    debug: bool = False
    working_directory: str | None = Field(default_factory=os.getcwd)  # None keeps the cwd as is
    clean_buffers: bool = True
    print_unhandled_in_debug: bool = True
    reserve_memory: int = DEFAULT_RESERVED_MEMORY  # Bytes, 0 disables the reservation

    @field_validator("reserve_memory")
    @classmethod
    def validate_reserve_memory(cls, v: int) -> int:
        """Validate the reserved memory size is not negative.

        Args:
            v: The reserved memory size in bytes.

        Returns:
            The validated reserved memory size.

        Raises:
            ValueError: If the size is negative.
        """
        if v < 0:
            raise ValueError("Reserved memory must be 0 (disabled) or a positive number of bytes")
        return v


class ScreenConfig(BaseModel):
    """Error screen configuration."""

    type: str = "auto"  # Options: "auto", "cli", "web"
    html_charset: str = DEFAULT_HTML_CHARSET
    max_output_buffer_length: int = DEFAULT_MAX_OUTPUT_BUFFER_LENGTH

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        """Validate the screen type is one of the supported types.

        Args:
            v: The screen type string.

        Returns:
            The validated screen type in lower case.

        Raises:
            ValueError: If the type is not supported.
        """
        v = v.lower()
        if v not in SCREEN_TYPES:
            raise ValueError(f"Screen type must be one of: {', '.join(SCREEN_TYPES)}")
        return v

    @field_validator("max_output_buffer_length")
    @classmethod
    def validate_max_output_buffer_length(cls, v: int) -> int:
        """Validate the output buffer limit is not negative.

        Args:
            v: The limit in characters.

        Returns:
            The validated limit.

        Raises:
            ValueError: If the limit is negative.
        """
        if v < 0:
            raise ValueError("Maximum output buffer length cannot be negative")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str | None = None
    format: str = "json"
    max_size_mb: int = 5
    backup_count: int = 3


class AppConfig(BaseModel):
    """Main application configuration."""

    dispatcher: DispatcherConfig = Field(default_factory=DispatcherConfig)
    screen: ScreenConfig = Field(default_factory=ScreenConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "AppConfig":
        """Load configuration from YAML file.

        Args:
            config_path: Path to the YAML configuration file. Can be a string path
                or a Path object.

        Returns:
            An initialized AppConfig object with values from the YAML file.

        Raises:
            FileNotFoundError: If the specified config file doesn't exist.
            yaml.YAMLError: If the YAML file has invalid syntax.
            ValidationError: If the configuration values don't match the expected schema.
        """
        import yaml

        path = _normalize_path(config_path)
        config_data = yaml.safe_load(path.read_text(encoding="utf-8"))

        # An empty file means all defaults
        return cls.model_validate(config_data or {})
