"""Last-resort output for failures nothing else can report.

These functions write straight to the standard streams. They are used when
logging is not configured yet, or when the configured error screen itself
failed and nobody listens to the ``failure`` event.
"""

import sys
from datetime import datetime
from typing import Any

from error_dispatch.utils.debug import render_exception


def write_startup_error(
    error_type: str, message: str, details: dict[str, Any] | None = None
) -> None:
    """Report an error that occurs before logging is configured.

    Args:
        error_type: Type of error (e.g., "LOGGING_FILE_ERROR")
        message: Main error message
        details: Optional dictionary of additional error details
    """
    timestamp = datetime.now().isoformat()

    sys.stderr.write(f"\n[{timestamp}] {error_type}: {message}\n")

    if details:
        sys.stderr.write("Details:\n")
        for key, value in details.items():
            sys.stderr.write(f"  {key}: {value}\n")

    sys.stderr.flush()


def print_unhandled_exception(exception: BaseException) -> None:
    """Print a failure chain that no screen or listener could handle.

    The full chain (message, origin and trace of every link) goes to
    standard output, where a web response would also end up.

    Args:
        exception: Head of the failure chain
    """
    sys.stdout.write(render_exception(exception, show_trace=True, show_previous=True))
    sys.stdout.flush()
