"""Process-wide error dispatcher.

The dispatcher installs itself as the runtime's error sink, uncaught
exception sink and termination-time check. It turns every failure reaching
the outermost boundary of the program into a failure record, lets observers
inspect or override the handling decision, and hands the final failure to an
error screen, falling back to plain printing if the screen fails too.

The dispatcher is reentrant by recursion only: an error may occur while
another is being handled on the same call stack. It keeps its in-flight
state on the instance and is not safe to share between threads without a
per-thread instance.

Events:
    error(failure: RuntimeFailure, debug: bool)
        A runtime error notification. Listeners may call ``suppress()`` or
        ``force()`` on the failure; the last call wins.
    exception(exception: BaseException, debug: bool)
        A terminal failure is about to be rendered.
    failure(exception: BaseException, debug: bool)
        The error screen failed. ``exception`` wraps the failure being
        rendered, which is followed by the screen's exception.
"""

import logging
import os
import re
from dataclasses import dataclass

from error_dispatch.constants import (
    DEFAULT_RESERVED_MEMORY,
    EVENT_ERROR,
    EVENT_EXCEPTION,
    EVENT_FAILURE,
    EXIT_STATUS,
    HTTP_INTERNAL_SERVER_ERROR,
    LISTENER_FAILURE_MESSAGE,
    OUT_OF_MEMORY_PREFIXES,
    SCREEN_FAILURE_MESSAGE,
)
from error_dispatch.events import EventEmitter
from error_dispatch.exceptions import (
    ChainedFailure,
    FatalFailure,
    RegistrationError,
    RuntimeFailure,
    failure_kind,
)
from error_dispatch.models.config import DispatcherConfig
from error_dispatch.models.errors import FailureKind, RawError, Severity
from error_dispatch.runtime import ErrorSink, ExceptionSink, Runtime, python_runtime
from error_dispatch.screens import create_screen
from error_dispatch.screens.base import ErrorScreen
from error_dispatch.utils.chain import join_exception_chains
from error_dispatch.utils.fallback_output import print_unhandled_exception
from error_dispatch.utils.output import (
    OutputBuffers,
    ResponseHeaders,
    output_buffers,
    response_headers,
)

logger = logging.getLogger(__name__)

OUT_OF_MEMORY_PATTERN = re.compile(
    "|".join(re.escape(prefix) for prefix in OUT_OF_MEMORY_PREFIXES), re.IGNORECASE
)


def is_out_of_memory_error(error: RawError) -> bool:
    """Classify a raw fatal error as an out-of-memory condition.

    This is a best-effort heuristic on the message prefix and severity.

    Args:
        error: Raw error snapshot

    Returns:
        True if the message starts with a known out-of-memory prefix and the
        severity is the fatal error level.
    """
    return error.severity == Severity.ERROR and OUT_OF_MEMORY_PATTERN.match(error.message) is not None


@dataclass(frozen=True, eq=False)
class Registration:
    """Handle returned by ``ErrorDispatcher.register()``.

    Holds everything ``unregister()`` needs to restore the runtime to the
    state it was in before registration.

    Attributes:
        dispatcher: The dispatcher that was registered
        previous_error_sink: Error sink installed before registration
        previous_exception_sink: Exception sink installed before registration
        previous_display_errors: Display-errors setting before registration
    """

    dispatcher: "ErrorDispatcher"
    previous_error_sink: ErrorSink | None
    previous_exception_sink: ExceptionSink | None
    previous_display_errors: bool


class ErrorDispatcher(EventEmitter):
    """Intercepts runtime errors, uncaught exceptions and fatal shutdowns."""

    def __init__(
        self,
        screen: ErrorScreen | None = None,
        reserve_memory: int = DEFAULT_RESERVED_MEMORY,
        runtime: Runtime | None = None,
        buffers: OutputBuffers | None = None,
        headers: ResponseHeaders | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            screen: Error screen to render terminal failures with, picked
                from the execution context when None
            reserve_memory: Bytes to reserve for reporting out-of-memory
                errors, 0 disables the reservation
            runtime: Host runtime, the interpreter runtime when None
            buffers: Output buffer stack cleaned before rendering
            headers: Response headers switched to a 500 status before rendering
        """
        super().__init__()
        self._runtime = runtime or python_runtime
        self._screen = screen or create_screen(runtime=self._runtime)
        self._buffers = buffers or output_buffers
        self._headers = headers or response_headers
        self._reserved_memory: bytearray | None = (
            bytearray(reserve_memory) if reserve_memory > 0 else None
        )

        self._debug = False
        self._print_unhandled_in_debug = True
        self._clean_buffers = True
        self._working_directory: str | None = os.getcwd()

        self._registration: Registration | None = None
        self._shutdown_registered = False
        self._interrupted_error: BaseException | None = None
        self._current_error: BaseException | None = None
        self._last_error: RawError | None = None

    @classmethod
    def from_config(
        cls,
        config: DispatcherConfig,
        screen: ErrorScreen | None = None,
        runtime: Runtime | None = None,
    ) -> "ErrorDispatcher":
        """Create a dispatcher from configuration.

        Args:
            config: Dispatcher configuration
            screen: Error screen, picked from the execution context when None
            runtime: Host runtime, the interpreter runtime when None

        Returns:
            A configured, not yet registered dispatcher.
        """
        dispatcher = cls(screen=screen, reserve_memory=config.reserve_memory, runtime=runtime)
        dispatcher.debug = config.debug
        dispatcher.working_directory = config.working_directory
        dispatcher.clean_buffers = config.clean_buffers
        dispatcher.print_unhandled_in_debug = config.print_unhandled_in_debug
        return dispatcher

    # Configuration
    @property
    def debug(self) -> bool:
        """Whether failures are rendered with full details."""
        return self._debug

    @debug.setter
    def debug(self, debug: bool) -> None:
        self._debug = debug

    @property
    def print_unhandled_in_debug(self) -> bool:
        """Whether a failure no screen could render is printed in debug mode."""
        return self._print_unhandled_in_debug

    @print_unhandled_in_debug.setter
    def print_unhandled_in_debug(self, enabled: bool) -> None:
        self._print_unhandled_in_debug = enabled

    @property
    def clean_buffers(self) -> bool:
        """Whether output buffers are cleaned before the screen is invoked."""
        return self._clean_buffers

    @clean_buffers.setter
    def clean_buffers(self, enabled: bool) -> None:
        self._clean_buffers = enabled

    @property
    def working_directory(self) -> str | None:
        """Working directory restored before handling a fatal error.

        Hosts may change the working directory during shutdown. None keeps
        the working directory unchanged.
        """
        return self._working_directory

    @working_directory.setter
    def working_directory(self, path: str | None) -> None:
        self._working_directory = path

    @property
    def screen(self) -> ErrorScreen:
        """The error screen terminal failures are rendered with."""
        return self._screen

    @screen.setter
    def screen(self, screen: ErrorScreen) -> None:
        self._screen = screen

    @property
    def runtime(self) -> Runtime:
        """The host runtime this dispatcher registers with."""
        return self._runtime

    @property
    def registered(self) -> bool:
        """Whether this dispatcher is currently registered."""
        return self._registration is not None

    # Registration
    def register(self) -> Registration:
        """Register the dispatcher with the runtime.

        Installs the error and exception sinks, disables the runtime's own
        error display and, once per dispatcher, the shutdown check. Calling
        it again while registered returns the existing registration.

        Returns:
            Registration handle to pass to ``unregister()``.
        """
        if self._registration is not None:
            return self._registration

        self._registration = Registration(
            dispatcher=self,
            previous_error_sink=self._runtime.set_error_sink(self.on_error),
            previous_exception_sink=self._runtime.set_exception_sink(self.on_uncaught_exception),
            previous_display_errors=self._runtime.set_display_errors(False),
        )

        if not self._shutdown_registered:
            self._runtime.register_shutdown(self.on_shutdown)
            self._shutdown_registered = True

        # an error that happened before registration must not be reported
        # as a fatal error on shutdown
        self._last_error = self._runtime.last_error()

        logger.debug("Error dispatcher registered")
        return self._registration

    def unregister(self, registration: Registration | None = None) -> None:
        """Unregister the dispatcher and restore the previous runtime state.

        The shutdown check stays installed; it does nothing once the
        dispatcher is no longer active.

        Args:
            registration: Handle returned by ``register()``, optional

        Raises:
            RegistrationError: If the handle belongs to another registration.
        """
        if self._registration is None:
            return

        if registration is not None and registration is not self._registration:
            raise RegistrationError(
                "Registration does not belong to this dispatcher",
                {"registration": repr(registration)},
            )

        current = self._registration
        self._runtime.set_error_sink(current.previous_error_sink)
        self._runtime.set_exception_sink(current.previous_exception_sink)
        self._runtime.set_display_errors(current.previous_display_errors)
        self._registration = None
        self._interrupted_error = None

        logger.debug("Error dispatcher unregistered")

    def is_active(self) -> bool:
        """See if this dispatcher is the runtime's current error sink.

        Returns:
            True while a runtime error is being handled or when the runtime
            reports this dispatcher's sink as the current one.
        """
        if self._current_error is not None:
            return True

        return self._runtime.current_error_sink() == self.on_error

    # Runtime notifications
    def on_error(
        self,
        severity: int,
        message: str,
        file: str | None = None,
        line: int | None = None,
    ) -> bool:
        """Handle a runtime error notification.

        Args:
            severity: Severity code
            message: Error message
            file: Origin file, if known
            line: Origin line, if known

        Returns:
            True when the error was suppressed and handled.

        Raises:
            RuntimeFailure: When the error is not suppressed.
            ChainedFailure: When an ``error`` listener raised.
        """
        self._last_error = self._runtime.last_error()

        failure = RuntimeFailure(
            message,
            severity,
            suppressed=not (severity & self._runtime.error_reporting()),
            file=file,
            line=line,
        )
        self._interrupted_error = None
        self._current_error = failure
        error: BaseException = failure
        suppressed = failure.suppressed

        try:
            if self.has_listeners(EVENT_ERROR):
                try:
                    self.emit(EVENT_ERROR, failure, self._debug)
                    suppressed = failure.suppressed
                except Exception as listener_exception:
                    logger.warning(
                        "An error event listener raised %r",
                        listener_exception,
                        extra={"failure": failure},
                    )
                    error = ChainedFailure(
                        LISTENER_FAILURE_MESSAGE.format(event=EVENT_ERROR),
                        previous=join_exception_chains(listener_exception, failure),
                    )
                    suppressed = False
        except BaseException:
            # a fatal error recorded while the process goes down is chained to this one
            self._interrupted_error = failure
            raise
        finally:
            self._current_error = None

        if not suppressed:
            raise error

        return True

    def on_uncaught_exception(self, exception: BaseException) -> None:
        """Handle an uncaught exception and stop execution.

        Args:
            exception: The uncaught exception
        """
        try:
            self._handle_exception(exception, failure_kind(exception))
        finally:
            self._runtime.terminate(EXIT_STATUS)

    def on_shutdown(self) -> None:
        """Check for a fatal error when the process terminates.

        A raw error equal to the last one seen by ``on_error()`` or at
        registration has already been handled and is ignored.
        """
        # free the reserved memory
        self._reserved_memory = None

        if not self.is_active():
            return

        error = self._runtime.last_error()
        if error is None or error == self._last_error:
            return

        self._last_error = error

        if self._working_directory is not None:
            try:
                os.chdir(self._working_directory)
            except OSError as e:
                logger.warning(
                    "Could not restore working directory %s: %s",
                    self._working_directory,
                    e,
                )

        out_of_memory = is_out_of_memory_error(error)
        if out_of_memory:
            self._runtime.collect_cycles()

        fatal = FatalFailure(
            error.message,
            error.severity,
            error.file,
            error.line,
            # a fatal error during on_error() is caused by the error being handled
            previous=self._current_error or self._interrupted_error,
            out_of_memory=out_of_memory,
        )
        logger.debug(
            "Fatal error detected on shutdown: %s", error.message, extra={"failure": fatal}
        )

        self.on_uncaught_exception(fatal)

    # Handling
    def _handle_exception(self, exception: BaseException, kind: FailureKind) -> None:
        """Emit events and invoke the screen, chaining any failure on the way."""
        if kind is FailureKind.OUT_OF_MEMORY:
            self._reserved_memory = None

        try:
            try:
                self.emit(EVENT_EXCEPTION, exception, self._debug)
            except Exception as listener_exception:
                logger.warning("An exception event listener raised %r", listener_exception)
                exception = ChainedFailure(
                    LISTENER_FAILURE_MESSAGE.format(event=EVENT_EXCEPTION),
                    previous=join_exception_chains(listener_exception, exception),
                )

            self._invoke_screen(exception, kind)
            return
        except Exception as screen_exception:
            logger.error("Error screen %s raised %r", type(self._screen).__name__, screen_exception)
            exception = ChainedFailure(
                SCREEN_FAILURE_MESSAGE.format(screen=type(self._screen).__name__),
                previous=join_exception_chains(screen_exception, exception),
            )

        if self.has_listeners(EVENT_FAILURE):
            self.emit(EVENT_FAILURE, exception, self._debug)
            return

        # unhandled failure, nowhere left to report to but the output itself
        if self._debug and self._print_unhandled_in_debug:
            print_unhandled_exception(exception)

    def _invoke_screen(self, exception: BaseException, kind: FailureKind) -> None:
        """Prepare the output and render the failure with the screen."""
        if not self._runtime.is_cli():
            self._headers.replace(HTTP_INTERNAL_SERVER_ERROR)

        output_buffer = None
        if self._clean_buffers:
            # capturing could allocate memory that is not available
            if kind is FailureKind.OUT_OF_MEMORY:
                self._buffers.discard_all()
            else:
                output_buffer = self._buffers.capture_and_close_all()

        self._screen.render(exception, self._debug, output_buffer)
