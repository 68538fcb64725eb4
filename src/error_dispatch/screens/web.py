"""HTML error screen for web processes.

Renders the error page with a Jinja2 template and writes it, preceded by the
response headers if they have not been sent yet, to the output stream.
"""

import logging
import sys
import traceback
from pathlib import Path
from typing import Any, TextIO

import jinja2
from markupsafe import Markup

from error_dispatch.constants import (
    DEFAULT_HTML_CHARSET,
    DEFAULT_MAX_OUTPUT_BUFFER_LENGTH,
    EVENT_RENDER,
    EVENT_RENDER_DEBUG,
    WEB_HEADING,
    WEB_TEMPLATE_NAME,
    WEB_TEXT,
    WEB_TITLE,
)
from error_dispatch.events import EventEmitter
from error_dispatch.screens.base import ErrorScreen
from error_dispatch.utils.chain import get_exception_chain
from error_dispatch.utils.debug import (
    get_exception_message,
    get_exception_name,
    get_origin,
    render_exception,
)
from error_dispatch.utils.output import ResponseHeaders, response_headers

TEMPLATE_DIR = Path(__file__).parent / "templates"


class WebErrorScreen(EventEmitter, ErrorScreen):
    """Renders an HTML error page.

    Emits ``render`` with a view dict holding ``title``, ``heading``,
    ``text`` and ``extras`` (non-debug), or ``render.debug`` with ``title``
    and ``extras`` (debug). ``extras`` is inserted as raw HTML.
    """

    def __init__(
        self,
        output_stream: TextIO | None = None,
        headers: ResponseHeaders | None = None,
        html_charset: str = DEFAULT_HTML_CHARSET,
        max_output_buffer_length: int = DEFAULT_MAX_OUTPUT_BUFFER_LENGTH,
        template_dir: Path | None = None,
    ) -> None:
        """Initialize the screen.

        Args:
            output_stream: Stream to write to, standard output when None
            headers: Response headers, the global instance when None
            html_charset: Charset announced by the page and Content-Type
            max_output_buffer_length: Characters of captured output to show
            template_dir: Directory holding the page template
        """
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self._output_stream = output_stream
        self.headers = headers or response_headers
        self.html_charset = html_charset
        self.max_output_buffer_length = max_output_buffer_length

        # Set up Jinja2 environment
        self.jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(template_dir or TEMPLATE_DIR), autoescape=True
        )
        self.jinja_env.filters["exception_name"] = get_exception_name
        self.jinja_env.filters["exception_message"] = get_exception_message

    @property
    def output_stream(self) -> TextIO:
        """Get the stream used for rendering."""
        if self._output_stream is not None:
            return self._output_stream
        return sys.stdout

    def render(
        self, exception: BaseException, debug: bool, output_buffer: str | None = None
    ) -> None:
        """Render the failure as an HTML page.

        Args:
            exception: The failure to render
            debug: Show the failure chain, output buffer and trace
            output_buffer: Output captured before rendering, if any
        """
        self.headers.set("Content-Type", f"text/html; charset={self.html_charset}")

        if debug:
            context = self._render_debug(exception, output_buffer)
        else:
            context = self._render(exception, output_buffer)

        template = self.jinja_env.get_template(WEB_TEMPLATE_NAME)
        html = template.render(debug=debug, charset=self.html_charset, **context)

        stream = self.output_stream
        self.headers.send(stream)
        stream.write(html)
        stream.flush()

    def _render(self, exception: BaseException, output_buffer: str | None) -> dict[str, Any]:
        """Prepare the non-debug page context."""
        view: dict[str, Any] = {
            "title": WEB_TITLE,
            "heading": WEB_HEADING,
            "text": WEB_TEXT,
            "extras": "",
            "exception": exception,
            "output_buffer": output_buffer,
            "screen": self,
        }
        self.emit(EVENT_RENDER, view)

        return {
            "title": view["title"],
            "heading": view["heading"],
            "text": view["text"],
            "extras": Markup(view["extras"]),
        }

    def _render_debug(
        self, exception: BaseException, output_buffer: str | None
    ) -> dict[str, Any]:
        """Prepare the debug page context."""
        view: dict[str, Any] = {
            "title": get_exception_name(exception),
            "extras": "",
            "exception": exception,
            "output_buffer": output_buffer,
            "screen": self,
        }
        self.emit(EVENT_RENDER_DEBUG, view)

        chain = get_exception_chain(exception)

        return {
            "title": view["title"],
            "extras": Markup(view["extras"]),
            "exceptions": [
                self._describe_exception(node, index, len(chain))
                for index, node in enumerate(chain)
            ],
            "output_buffer": self._truncate_output_buffer(output_buffer),
            "plaintext_trace": render_exception(exception, show_trace=True, show_previous=True),
        }

    def _describe_exception(
        self, exception: BaseException, index: int, total: int
    ) -> dict[str, Any]:
        """Build the template data of a single chain link."""
        file, line = get_origin(exception)
        frames = (
            traceback.extract_tb(exception.__traceback__)
            if exception.__traceback__ is not None
            else []
        )

        return {
            "number": index + 1,
            "total": total,
            "exception": exception,
            "file": file,
            "line": line,
            "frames": [
                {
                    "file": frame.filename,
                    "line": frame.lineno,
                    "function": frame.name,
                    "code": frame.line,
                }
                for frame in reversed(frames)
            ],
        }

    def _truncate_output_buffer(self, output_buffer: str | None) -> str | None:
        """Limit captured output to the configured length."""
        if not output_buffer:
            return None

        if len(output_buffer) > self.max_output_buffer_length:
            self.logger.debug(
                "Truncating output buffer from %d characters", len(output_buffer)
            )
            return output_buffer[: self.max_output_buffer_length] + "\n..."

        return output_buffer
