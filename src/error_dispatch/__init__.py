"""Process-wide error and exception interception.

Captures runtime errors, uncaught exceptions and fatal shutdown conditions,
lets observers inspect or override how they are handled, and renders the
final failure with a CLI or web error screen.
"""

from error_dispatch.bootstrap import install
from error_dispatch.dispatcher import ErrorDispatcher, Registration
from error_dispatch.events import EventEmitter
from error_dispatch.exceptions import (
    ChainedFailure,
    ConfigurationError,
    ErrorDispatchError,
    Failure,
    FatalFailure,
    RegistrationError,
    RuntimeFailure,
)
from error_dispatch.models.errors import FailureKind, RawError, Severity
from error_dispatch.runtime import PythonRuntime, Runtime, python_runtime
from error_dispatch.screens import CliErrorScreen, ErrorScreen, WebErrorScreen

__all__ = [
    # Dispatcher
    "ErrorDispatcher",
    "Registration",
    "install",
    # Events
    "EventEmitter",
    # Failures
    "ChainedFailure",
    "ConfigurationError",
    "ErrorDispatchError",
    "Failure",
    "FailureKind",
    "FatalFailure",
    "RawError",
    "RegistrationError",
    "RuntimeFailure",
    "Severity",
    # Runtime
    "PythonRuntime",
    "Runtime",
    "python_runtime",
    # Screens
    "CliErrorScreen",
    "ErrorScreen",
    "WebErrorScreen",
]
