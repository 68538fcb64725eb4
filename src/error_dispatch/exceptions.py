"""Exception hierarchy for the error dispatcher.

This module defines both the library's own errors and the failure records
the dispatcher creates, raises and renders. Failure records are ordinary
exceptions so they can be raised at the call site that triggered them; the
``kind`` attribute tells them apart without inspecting the class.

Exception Hierarchy:
    ErrorDispatchError (Base)
    ├── ConfigurationError
    ├── RegistrationError
    └── Failure
        ├── RuntimeFailure
        ├── FatalFailure
        └── ChainedFailure

The ``previous`` link of a failure is stored on ``__cause__``, so the
standard traceback machinery prints the same chain the screens render.
"""

from typing import Any

from error_dispatch.models.errors import FailureKind, Severity


# Base Exception
class ErrorDispatchError(Exception):
    """Base exception for all error dispatcher errors.

    Attributes:
        message: Human-readable error description
        details: Optional dictionary containing additional error context
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize the exception with message and optional details.

        Args:
            message: Human-readable error description
            details: Optional dictionary containing additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the exception."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(ErrorDispatchError):
    """Raised when configuration cannot be loaded or is invalid.

    Example:
        raise ConfigurationError(
            "Failed to load configuration",
            {"path": "/etc/error-dispatch.yaml", "error": "File not found"}
        )
    """

    pass


class RegistrationError(ErrorDispatchError):
    """Raised when a dispatcher is unregistered with a foreign registration.

    Example:
        raise RegistrationError(
            "Registration does not belong to this dispatcher",
            {"registration": repr(registration)}
        )
    """

    pass


# Failure records
class Failure(ErrorDispatchError):
    """A single failure occurrence, optionally linked to a previous one.

    Attributes:
        kind: Failure kind discriminant
        file: Origin file, if known
        line: Origin line, if known
    """

    kind = FailureKind.GENERIC

    def __init__(
        self,
        message: str,
        file: str | None = None,
        line: int | None = None,
        previous: BaseException | None = None,
    ) -> None:
        """Initialize the failure.

        Args:
            message: Human-readable failure description
            file: Origin file, if known
            line: Origin line, if known
            previous: Failure that happened before this one
        """
        super().__init__(message)
        self.file = file
        self.line = line
        if previous is not None:
            self.__cause__ = previous

    @property
    def previous(self) -> BaseException | None:
        """Get the previous failure in the chain."""
        return self.__cause__


class RuntimeFailure(Failure):
    """Raised in place of a runtime error notification.

    Observers of the ``error`` event decide whether the failure is raised by
    calling ``suppress()`` or ``force()``; the last call wins.

    Example:
        failure = RuntimeFailure("Undefined index", Severity.NOTICE, suppressed=True)
        failure.force()
    """

    kind = FailureKind.RUNTIME

    def __init__(
        self,
        message: str,
        severity: int = Severity.ERROR,
        suppressed: bool = False,
        file: str | None = None,
        line: int | None = None,
        previous: BaseException | None = None,
    ) -> None:
        """Initialize the runtime failure.

        Args:
            message: Error message
            severity: Severity code of the notification
            suppressed: Whether the error is currently suppressed
            file: Origin file, if known
            line: Origin line, if known
            previous: Failure that happened before this one
        """
        super().__init__(message, file, line, previous)
        self.severity = severity
        self.suppressed = suppressed

    @property
    def is_suppressed(self) -> bool:
        """See if the error is suppressed."""
        return self.suppressed

    def suppress(self) -> None:
        """Make the error suppressed."""
        self.suppressed = True

    def force(self) -> None:
        """Make the error unsuppressed."""
        self.suppressed = False


class FatalFailure(Failure):
    """Describes a fatal error detected when the process shuts down.

    Example:
        raise FatalFailure(
            "Allowed memory size of 134217728 bytes exhausted",
            Severity.ERROR,
            out_of_memory=True,
        )
    """

    def __init__(
        self,
        message: str,
        severity: int = Severity.ERROR,
        file: str | None = None,
        line: int | None = None,
        previous: BaseException | None = None,
        out_of_memory: bool = False,
    ) -> None:
        """Initialize the fatal failure.

        Args:
            message: Error message
            severity: Severity code of the raw error
            file: Origin file, if known
            line: Origin line, if known
            previous: Error that was being handled when the fatal error happened
            out_of_memory: Whether the error was classified as out-of-memory
        """
        super().__init__(message, file, line, previous)
        self.severity = severity
        self.kind = FailureKind.OUT_OF_MEMORY if out_of_memory else FailureKind.FATAL

    @property
    def out_of_memory(self) -> bool:
        """See if this fatal error is an out-of-memory condition."""
        return self.kind is FailureKind.OUT_OF_MEMORY


class ChainedFailure(Failure):
    """Raised when another exception occurs while handling a failure.

    Example:
        raise ChainedFailure(
            "Additional exception was thrown from an [error] event listener. "
            "See previous exceptions.",
            previous=join_exception_chains(listener_exception, original),
        )
    """

    kind = FailureKind.CHAINED


def failure_kind(exception: BaseException) -> FailureKind:
    """Classify any exception by failure kind.

    Args:
        exception: The exception to classify

    Returns:
        The failure kind of a failure record, OUT_OF_MEMORY for a bare
        ``MemoryError`` and GENERIC for everything else.
    """
    if isinstance(exception, Failure):
        return exception.kind
    if isinstance(exception, MemoryError):
        return FailureKind.OUT_OF_MEMORY
    return FailureKind.GENERIC
