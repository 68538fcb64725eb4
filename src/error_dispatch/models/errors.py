"""Error classification models.

Defines the severity flags used by the reporting mask, the failure kind
discriminant carried by every failure record, and the raw error snapshot the
runtime keeps for shutdown-time de-duplication.
"""

from dataclasses import dataclass
from enum import Enum, IntFlag


class Severity(IntFlag):
    """Severity of a runtime error notification.

    Values are bit flags so a reporting mask can select any combination.
    Codes outside the known flags are still accepted by the dispatcher and
    described as unknown errors.
    """

    ERROR = 1
    WARNING = 2
    PARSE = 4
    NOTICE = 8
    CORE_ERROR = 16
    CORE_WARNING = 32
    COMPILE_ERROR = 64
    COMPILE_WARNING = 128
    USER_ERROR = 256
    USER_WARNING = 512
    USER_NOTICE = 1024
    STRICT = 2048
    RECOVERABLE_ERROR = 4096
    DEPRECATED = 8192
    USER_DEPRECATED = 16384
    ALL = 32767


SEVERITY_NAMES: dict[int, str] = {
    Severity.ERROR: "Error",
    Severity.WARNING: "Warning",
    Severity.PARSE: "Parse error",
    Severity.NOTICE: "Notice",
    Severity.CORE_ERROR: "Core error",
    Severity.CORE_WARNING: "Core warning",
    Severity.COMPILE_ERROR: "Compile error",
    Severity.COMPILE_WARNING: "Compile warning",
    Severity.USER_ERROR: "User error",
    Severity.USER_WARNING: "User warning",
    Severity.USER_NOTICE: "User notice",
    Severity.STRICT: "Strict notice",
    Severity.RECOVERABLE_ERROR: "Recoverable error",
    Severity.DEPRECATED: "Deprecated",
    Severity.USER_DEPRECATED: "User deprecated",
}


def severity_name(code: int) -> str:
    """Get a human readable name for a severity code.

    Args:
        code: Severity code, known or not.

    Returns:
        Name such as "Warning", or "Unknown error (<code>)".
    """
    return SEVERITY_NAMES.get(int(code), f"Unknown error ({int(code)})")


class FailureKind(Enum):
    """Discriminant describing what a failure record represents."""

    GENERIC = "generic"
    RUNTIME = "runtime"
    CHAINED = "chained"
    FATAL = "fatal"
    OUT_OF_MEMORY = "out_of_memory"


@dataclass(frozen=True)
class RawError:
    """Snapshot of the most recent raw error seen by the runtime.

    Snapshots compare by value, which is what the shutdown check relies on to
    tell a new fatal condition from the error it already handled.

    Attributes:
        severity: Severity code of the error
        message: Error message as reported by the runtime
        file: Origin file, if known
        line: Origin line, if known
    """

    severity: int
    message: str
    file: str | None = None
    line: int | None = None
