"""Plaintext rendering of exceptions and failure chains.

Used by the CLI screen, the plaintext trace of the web screen and the
last-resort print when every screen has failed.
"""

import traceback

from error_dispatch.exceptions import FatalFailure, Failure, RuntimeFailure
from error_dispatch.models.errors import severity_name
from error_dispatch.utils.chain import get_exception_chain


def get_exception_name(exception: BaseException) -> str:
    """Get the display name of an exception.

    Args:
        exception: The exception to name

    Returns:
        The severity name for runtime failures, "Fatal error" or
        "Out of memory" for fatal failures, and the class name (qualified by
        module unless it is a builtin) for everything else.
    """
    if isinstance(exception, FatalFailure):
        return "Out of memory" if exception.out_of_memory else "Fatal error"
    if isinstance(exception, RuntimeFailure):
        return severity_name(exception.severity)

    cls = type(exception)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def get_origin(exception: BaseException) -> tuple[str | None, int | None]:
    """Get the file and line an exception originates from.

    Failure records carry their origin explicitly; other exceptions use the
    innermost frame of their traceback.

    Args:
        exception: The exception to inspect

    Returns:
        Tuple of (file, line); either may be None when unknown.
    """
    if isinstance(exception, Failure) and exception.file is not None:
        return exception.file, exception.line

    if exception.__traceback__ is not None:
        frames = traceback.extract_tb(exception.__traceback__)
        if frames:
            return frames[-1].filename, frames[-1].lineno

    return None, None


def get_exception_message(exception: BaseException) -> str:
    """Get the message of an exception without failure details."""
    if isinstance(exception, Failure):
        return exception.message
    return str(exception)


def render_exception(
    exception: BaseException, show_trace: bool = True, show_previous: bool = False
) -> str:
    """Get textual information about an exception.

    Args:
        exception: The exception to render
        show_trace: Include the traceback of each exception
        show_previous: Include every previous exception of the chain

    Returns:
        The rendered text, one "[i/n] Name: message in file on line N" header
        per exception followed by its traceback.
    """
    exceptions = get_exception_chain(exception) if show_previous else [exception]
    total = len(exceptions)

    output = ""
    for index, current in enumerate(exceptions):
        if index > 0 and show_trace:
            output += "\n"

        file, line = get_origin(current)
        prefix = f"[{index + 1}/{total}] " if show_previous else ""
        output += (
            f"{prefix}{get_exception_name(current)}: {get_exception_message(current)}"
            f" in {file or 'unknown file'} on line {line if line is not None else '?'}\n"
        )

        if show_trace:
            output += render_trace(current)

    return output


def render_trace(exception: BaseException) -> str:
    """Render the traceback of a single exception.

    Args:
        exception: The exception whose traceback to render

    Returns:
        Formatted stack frames, or a placeholder if the exception was never
        raised.
    """
    if exception.__traceback__ is None:
        return "  (no traceback)\n"
    return "".join(traceback.format_tb(exception.__traceback__))
