"""Host runtime capabilities used by the error dispatcher.

The dispatcher never touches interpreter globals directly. Everything it
needs from the host (installing sinks, reading the last raw error, the
reporting mask, stopping execution) goes through a ``Runtime``, which keeps
the dispatcher testable with a fake and keeps global state in one place.

``PythonRuntime`` maps those capabilities onto the interpreter:

- runtime error notifications are warnings passing through
  ``warnings.showwarning``
- uncaught exceptions arrive through ``sys.excepthook``
- the termination-time callback is registered with ``atexit``
"""

import atexit
import gc
import logging
import os
import sys
import warnings
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from types import TracebackType
from typing import Any, TextIO

from error_dispatch.constants import CGI_ENVIRONMENT_VARIABLE
from error_dispatch.models.errors import RawError, Severity

logger = logging.getLogger(__name__)

ErrorSink = Callable[[int, str, str | None, int | None], bool]
ExceptionSink = Callable[[Exception], None]
ShutdownCallback = Callable[[], None]

# Ordered from most to least specific, first match wins
WARNING_SEVERITIES: list[tuple[type[Warning], Severity]] = [
    (UserWarning, Severity.USER_WARNING),
    (PendingDeprecationWarning, Severity.DEPRECATED),
    (DeprecationWarning, Severity.DEPRECATED),
    (FutureWarning, Severity.USER_DEPRECATED),
    (SyntaxWarning, Severity.COMPILE_WARNING),
    (ImportWarning, Severity.CORE_WARNING),
    (ResourceWarning, Severity.NOTICE),
    (BytesWarning, Severity.STRICT),
]


def severity_for_warning(category: type[Warning]) -> Severity:
    """Map a warning category to a severity.

    Args:
        category: Warning class

    Returns:
        The matching severity, WARNING for unmapped categories.
    """
    for warning_class, severity in WARNING_SEVERITIES:
        if issubclass(category, warning_class):
            return severity
    return Severity.WARNING


class Runtime(ABC):
    """Capabilities the dispatcher consumes from its host runtime."""

    @abstractmethod
    def set_error_sink(self, sink: ErrorSink | None) -> ErrorSink | None:
        """Install the runtime error sink and return the previous one."""

    @abstractmethod
    def current_error_sink(self) -> ErrorSink | None:
        """Get the currently installed runtime error sink."""

    @abstractmethod
    def set_exception_sink(self, sink: ExceptionSink | None) -> ExceptionSink | None:
        """Install the uncaught exception sink and return the previous one."""

    @abstractmethod
    def register_shutdown(self, callback: ShutdownCallback) -> None:
        """Register a callback to run when the process terminates."""

    @abstractmethod
    def last_error(self) -> RawError | None:
        """Get a snapshot of the most recent raw error."""

    @abstractmethod
    def get_display_errors(self) -> bool:
        """See if the runtime displays errors the sink does not handle."""

    @abstractmethod
    def set_display_errors(self, display: bool) -> bool:
        """Set the display-errors toggle and return the previous value."""

    @abstractmethod
    def error_reporting(self) -> int:
        """Get the current reporting mask."""

    @abstractmethod
    def collect_cycles(self) -> int:
        """Force a garbage collection pass."""

    @abstractmethod
    def is_cli(self) -> bool:
        """See if the process runs in a command line context."""

    @abstractmethod
    def terminate(self, status: int) -> None:
        """Stop execution with the given status code."""


class PythonRuntime(Runtime):
    """Runtime backed by the warnings module, sys.excepthook and atexit."""

    def __init__(self) -> None:
        """Initialize the runtime without touching any interpreter hook."""
        self._error_sink: ErrorSink | None = None
        self._exception_sink: ExceptionSink | None = None
        self._last_error: RawError | None = None
        self._error_reporting = int(Severity.ALL)
        self._display_errors = True
        self._original_showwarning: Callable[..., None] | None = None
        self._original_excepthook: Callable[..., Any] | None = None
        self._hook_depth = 0
        self._pending_exit_status: int | None = None

    # Runtime error notifications
    def set_error_sink(self, sink: ErrorSink | None) -> ErrorSink | None:
        """Install the runtime error sink.

        The warnings hook is installed with the first sink and removed when
        the sink is cleared.

        Args:
            sink: Callable receiving (severity, message, file, line), or None

        Returns:
            The previously installed sink.
        """
        previous = self._error_sink
        self._error_sink = sink

        if sink is not None and warnings.showwarning != self._showwarning:
            self._original_showwarning = warnings.showwarning
            warnings.showwarning = self._showwarning
        elif sink is None and self._original_showwarning is not None:
            # leave a hook installed on top of ours in place
            if warnings.showwarning == self._showwarning:
                warnings.showwarning = self._original_showwarning
            self._original_showwarning = None

        return previous

    def current_error_sink(self) -> ErrorSink | None:
        """Get the currently installed runtime error sink."""
        return self._error_sink

    def _showwarning(
        self,
        message: Warning | str,
        category: type[Warning],
        filename: str,
        lineno: int,
        file: TextIO | None = None,
        line: str | None = None,
    ) -> None:
        """Route a shown warning to the error sink.

        Exceptions raised by the sink propagate to the ``warnings.warn()``
        call site.
        """
        severity = severity_for_warning(category)
        text = str(message)
        self._last_error = RawError(int(severity), text, filename, lineno)

        sink = self._error_sink
        if sink is not None and sink(severity, text, filename, lineno):
            return

        if self._display_errors and self._original_showwarning is not None:
            self._original_showwarning(message, category, filename, lineno, file, line)

    def record_error(
        self,
        severity: int,
        message: str,
        file: str | None = None,
        line: int | None = None,
    ) -> RawError:
        """Record a raw error that bypassed the error sink.

        Hosts call this for fatal conditions detected outside the exception
        machinery, e.g. from a signal handler, so the shutdown check can
        report them.

        Args:
            severity: Severity code
            message: Error message
            file: Origin file, if known
            line: Origin line, if known

        Returns:
            The recorded snapshot.
        """
        self._last_error = RawError(int(severity), message, file, line)
        return self._last_error

    def last_error(self) -> RawError | None:
        """Get a snapshot of the most recent raw error."""
        return self._last_error

    # Uncaught exceptions
    def set_exception_sink(self, sink: ExceptionSink | None) -> ExceptionSink | None:
        """Install the uncaught exception sink.

        Args:
            sink: Callable receiving the uncaught exception, or None

        Returns:
            The previously installed sink.
        """
        previous = self._exception_sink
        self._exception_sink = sink

        if sink is not None and sys.excepthook != self._excepthook:
            self._original_excepthook = sys.excepthook
            sys.excepthook = self._excepthook
        elif sink is None and self._original_excepthook is not None:
            if sys.excepthook == self._excepthook:
                sys.excepthook = self._original_excepthook
            self._original_excepthook = None

        return previous

    def _excepthook(
        self,
        exc_type: type[BaseException],
        exc_value: BaseException,
        exc_tb: TracebackType | None,
    ) -> None:
        """Route an uncaught exception to the exception sink.

        System exceptions (KeyboardInterrupt, SystemExit, ...) are not
        application errors and go to the replaced hook.
        """
        sink = self._exception_sink
        if sink is None or not isinstance(exc_value, Exception):
            (self._original_excepthook or sys.__excepthook__)(exc_type, exc_value, exc_tb)
            return

        with self._inside_hook():
            sink(exc_value)

    # Shutdown
    def register_shutdown(self, callback: ShutdownCallback) -> None:
        """Register a callback to run at interpreter exit.

        Args:
            callback: Callable taking no arguments
        """
        atexit.register(self._run_shutdown, callback)

    def _run_shutdown(self, callback: ShutdownCallback) -> None:
        """Run a shutdown callback and apply a pending exit status."""
        with self._inside_hook():
            callback()

        if self._pending_exit_status is not None:
            status = self._pending_exit_status
            self._pending_exit_status = None
            for stream in (sys.stdout, sys.stderr):
                try:
                    stream.flush()
                except (OSError, ValueError):
                    logger.debug("Could not flush %r before exiting", stream)
            # os._exit skips the remaining atexit handlers, logging.shutdown among them
            logging.shutdown()
            os._exit(status)

    @contextmanager
    def _inside_hook(self) -> Iterator[None]:
        self._hook_depth += 1
        try:
            yield
        finally:
            self._hook_depth -= 1

    def terminate(self, status: int) -> None:
        """Stop execution with the given status code.

        Raises SystemExit on the normal call path. Inside the excepthook or
        a shutdown callback raising is not possible, so the status is kept
        and applied once the shutdown callback has run. It is applied with
        os._exit after stdio is flushed and logging is shut down, so atexit
        handlers registered before this runtime's shutdown callback do not
        run.

        Args:
            status: Process exit status

        Raises:
            SystemExit: When called outside of an interpreter hook.
        """
        if self._hook_depth > 0:
            self._pending_exit_status = status
            return
        raise SystemExit(status)

    @property
    def pending_exit_status(self) -> int | None:
        """Exit status recorded by terminate() inside a hook, if any."""
        return self._pending_exit_status

    # Display and reporting
    def get_display_errors(self) -> bool:
        """See if unhandled notifications are printed by the original hook."""
        return self._display_errors

    def set_display_errors(self, display: bool) -> bool:
        """Set the display-errors toggle.

        Args:
            display: Whether notifications the sink declines are printed

        Returns:
            The previous value.
        """
        previous = self._display_errors
        self._display_errors = display
        return previous

    def error_reporting(self) -> int:
        """Get the current reporting mask."""
        return self._error_reporting

    def set_error_reporting(self, mask: int) -> int:
        """Set the reporting mask.

        Args:
            mask: Combination of Severity flags

        Returns:
            The previous mask.
        """
        previous = self._error_reporting
        self._error_reporting = int(mask)
        return previous

    @contextmanager
    def silence(self) -> Iterator[None]:
        """Suppress every runtime error raised inside the block."""
        previous = self.set_error_reporting(0)
        try:
            yield
        finally:
            self.set_error_reporting(previous)

    def collect_cycles(self) -> int:
        """Force a garbage collection pass.

        Returns:
            Number of unreachable objects found.
        """
        return gc.collect()

    def is_cli(self) -> bool:
        """See if the process is not serving a CGI-style web request."""
        return CGI_ENVIRONMENT_VARIABLE not in os.environ


# Create a global instance for use throughout the application
python_runtime = PythonRuntime()
