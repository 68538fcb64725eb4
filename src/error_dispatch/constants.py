"""Application-wide constants for the error dispatcher.

This module centralizes the constants used throughout the package to
ensure consistency between the dispatcher, the stock screens and the tests.

Constants are grouped into the following categories:
- Event Constants: Names of the events emitted by the dispatcher and screens
- Exit Constants: Status code used when execution is stopped
- Classification Constants: Out-of-memory detection patterns
- Memory Constants: Reserved memory defaults
- Message Constants: Fixed chaining message templates
- Screen Constants: Default texts and limits of the stock screens
- Logging Constants: Size conversion for rotating log files
"""

# Event constants
EVENT_ERROR = "error"  # Runtime error notification, payload (failure, debug)
EVENT_EXCEPTION = "exception"  # Uncaught exception being handled, payload (exception, debug)
EVENT_FAILURE = "failure"  # The screen failed to render, payload (exception, debug)
EVENT_RENDER = "render"  # Screen render (non-debug), payload (view,)
EVENT_RENDER_DEBUG = "render.debug"  # Screen render (debug), payload (view,)

# Exit constants
EXIT_STATUS = 255  # Status code passed to Runtime.terminate() after a terminal failure

# Classification constants
# Case-insensitive message prefixes identifying an out-of-memory fatal error
OUT_OF_MEMORY_PREFIXES = ("Allowed memory size of ", "Out of memory")

# Memory constants
DEFAULT_RESERVED_MEMORY = 10240  # Bytes reserved to build an out-of-memory report

# Message constants
LISTENER_FAILURE_MESSAGE = (
    "Additional exception was thrown from an [{event}] event listener. "
    "See previous exceptions."
)
SCREEN_FAILURE_MESSAGE = (
    "Additional exception was thrown while trying to invoke {screen}. "
    "See previous exceptions."
)

# HTTP constants
HTTP_INTERNAL_SERVER_ERROR = "500 Internal Server Error"
HTTP_OK = "200 OK"
CGI_ENVIRONMENT_VARIABLE = "GATEWAY_INTERFACE"  # Set by CGI-style web servers

# Screen constants
CLI_TITLE = "An error has occurred"
CLI_NON_DEBUG_OUTPUT = "Enable debug mode for more details."
WEB_TITLE = "Internal server error"
WEB_HEADING = "Internal server error"
WEB_TEXT = "Something went wrong while processing your request. Please try again later."
DEFAULT_HTML_CHARSET = "UTF-8"
DEFAULT_MAX_OUTPUT_BUFFER_LENGTH = 102400  # 100 kB of captured output shown in debug mode
WEB_TEMPLATE_NAME = "error_screen.html.j2"
SCREEN_TYPES = ("auto", "cli", "web")

# Logging constants
BYTES_PER_MEGABYTE = 1024 * 1024
LOGGER_NAME = "error_dispatch"  # Package logger the module loggers propagate to
