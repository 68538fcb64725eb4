"""Module initialization."""

from error_dispatch.utils.chain import (
    get_exception_chain,
    get_previous,
    join_exception_chains,
    set_previous,
)
from error_dispatch.utils.debug import get_exception_name, render_exception
from error_dispatch.utils.output import (
    OutputBuffers,
    ResponseHeaders,
    output_buffers,
    response_headers,
)

__all__ = [
    # Failure chains
    "get_exception_chain",
    "get_previous",
    "join_exception_chains",
    "set_previous",
    # Rendering
    "get_exception_name",
    "render_exception",
    # Output
    "OutputBuffers",
    "ResponseHeaders",
    "output_buffers",
    "response_headers",
]
