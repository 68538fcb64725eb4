"""Plaintext error screen for command line processes."""

import sys
from typing import Any, TextIO

from error_dispatch.constants import (
    CLI_NON_DEBUG_OUTPUT,
    CLI_TITLE,
    EVENT_RENDER,
    EVENT_RENDER_DEBUG,
)
from error_dispatch.events import EventEmitter
from error_dispatch.screens.base import ErrorScreen
from error_dispatch.utils.debug import render_exception


class CliErrorScreen(EventEmitter, ErrorScreen):
    """Writes a plaintext error report to a stream.

    Emits ``render`` (non-debug) or ``render.debug`` (debug) with a mutable
    view dict holding ``title``, ``output``, ``exception``, ``output_buffer``
    and ``screen``. Listeners may change ``title`` and ``output`` in place.
    """

    def __init__(self, output_stream: TextIO | None = None) -> None:
        """Initialize the screen.

        Args:
            output_stream: Stream to write to, standard error when None
        """
        super().__init__()
        self._output_stream = output_stream

    @property
    def output_stream(self) -> TextIO:
        """Get the stream used for rendering."""
        if self._output_stream is not None:
            return self._output_stream
        return sys.stderr

    @output_stream.setter
    def output_stream(self, stream: TextIO | None) -> None:
        self._output_stream = stream

    def render(
        self, exception: BaseException, debug: bool, output_buffer: str | None = None
    ) -> None:
        """Render the failure as plain text.

        Args:
            exception: The failure to render
            debug: Show the full failure chain
            output_buffer: Output captured before rendering, if any
        """
        stream = self.output_stream

        if debug:
            title, output = self._render_debug(exception, output_buffer)
        else:
            title, output = self._render(exception, output_buffer)

        if title:
            stream.write(title)

        if output:
            if title:
                stream.write("\n\n")
            stream.write(output)

        stream.write("\n")
        stream.flush()

    def _render(self, exception: BaseException, output_buffer: str | None) -> tuple[str, str]:
        """Prepare the non-debug title and output."""
        view = self._create_view(CLI_TITLE, CLI_NON_DEBUG_OUTPUT, exception, output_buffer)
        self.emit(EVENT_RENDER, view)

        return view["title"], view["output"]

    def _render_debug(
        self, exception: BaseException, output_buffer: str | None
    ) -> tuple[str, str]:
        """Prepare the debug title and output."""
        view = self._create_view(
            CLI_TITLE,
            render_exception(exception, show_trace=True, show_previous=True),
            exception,
            output_buffer,
        )
        self.emit(EVENT_RENDER_DEBUG, view)

        return view["title"], view["output"]

    def _create_view(
        self,
        title: str,
        output: str,
        exception: BaseException,
        output_buffer: str | None,
    ) -> dict[str, Any]:
        return {
            "title": title,
            "output": output,
            "exception": exception,
            "output_buffer": output_buffer,
            "screen": self,
        }
