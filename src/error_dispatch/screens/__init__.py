"""Error screens rendering the final failure of a process."""

from error_dispatch.models.config import ScreenConfig
from error_dispatch.runtime import Runtime, python_runtime
from error_dispatch.screens.base import ErrorScreen
from error_dispatch.screens.cli import CliErrorScreen
from error_dispatch.screens.web import WebErrorScreen


def create_screen(config: ScreenConfig | None = None, runtime: Runtime | None = None) -> ErrorScreen:
    """Create the error screen selected by the configuration.

    Args:
        config: Screen configuration, defaults when None
        runtime: Runtime used to detect a command line context for "auto"

    Returns:
        A CLI or web error screen.
    """
    config = config or ScreenConfig()
    runtime = runtime or python_runtime

    screen_type = config.type
    if screen_type == "auto":
        screen_type = "cli" if runtime.is_cli() else "web"

    if screen_type == "cli":
        return CliErrorScreen()

    return WebErrorScreen(
        html_charset=config.html_charset,
        max_output_buffer_length=config.max_output_buffer_length,
    )


__all__ = [
    "CliErrorScreen",
    "ErrorScreen",
    "WebErrorScreen",
    "create_screen",
]
