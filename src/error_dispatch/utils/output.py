"""Output buffering and response header utilities.

Provides a stack of in-memory buffers capturing ``sys.stdout`` and a minimal
CGI-style response header holder. The dispatcher uses them to throw away or
capture partial output before an error screen is rendered and to switch the
response status to 500 while that is still possible.
"""

import io
import logging
import sys
from typing import TextIO

from error_dispatch.constants import HTTP_OK

logger = logging.getLogger(__name__)


class OutputBuffers:
    """Stack of output buffers capturing standard output.

    Each level replaces ``sys.stdout`` with a fresh ``StringIO`` and remembers
    the stream it replaced. Levels at or below ``base_level`` are owned by the
    host and are never unwound by ``capture_and_close_all()`` or
    ``discard_all()``.
    """

    def __init__(self, base_level: int = 0) -> None:
        """Initialize the buffer stack.

        Args:
            base_level: Number of externally owned levels to leave in place
        """
        self.base_level = base_level
        self._stack: list[tuple[io.StringIO, TextIO]] = []

    def start(self) -> io.StringIO:
        """Start a new buffering level.

        Returns:
            The buffer now installed as ``sys.stdout``.
        """
        buffer = io.StringIO()
        self._stack.append((buffer, sys.stdout))
        sys.stdout = buffer
        return buffer

    def level(self) -> int:
        """Get the current buffering level."""
        return len(self._stack)

    def get_clean(self) -> str:
        """Close the innermost level and return what it captured.

        Returns:
            The captured output.

        Raises:
            IndexError: If there is no active buffering level.
        """
        buffer, replaced = self._stack.pop()
        sys.stdout = replaced
        return buffer.getvalue()

    def end_clean(self) -> None:
        """Close the innermost level and discard what it captured."""
        buffer, replaced = self._stack.pop()
        sys.stdout = replaced
        buffer.close()

    def capture_and_close_all(self, target_level: int | None = None) -> str:
        """Close all levels above the target level and return their content.

        Args:
            target_level: Level to unwind to, defaults to ``base_level``

        Returns:
            Captured output, outermost level first.
        """
        target = self.base_level if target_level is None else target_level
        parts: list[str] = []
        while self.level() > target:
            parts.append(self.get_clean())
        return "".join(reversed(parts))

    def discard_all(self, target_level: int | None = None) -> None:
        """Close all levels above the target level without capturing.

        Args:
            target_level: Level to unwind to, defaults to ``base_level``
        """
        target = self.base_level if target_level is None else target_level
        while self.level() > target:
            self.end_clean()


class ResponseHeaders:
    """Status line and headers of a CGI-style response.

    Headers can be changed until ``send()`` has written them; after that
    ``replace()`` reports failure instead of raising.
    """

    def __init__(self) -> None:
        """Initialize an unsent response with a 200 status."""
        self.status = HTTP_OK
        self.headers: list[tuple[str, str]] = []
        self.sent = False

    def set(self, name: str, value: str) -> bool:
        """Set a header, replacing any previous value.

        Args:
            name: Header name
            value: Header value

        Returns:
            True if the header was set, False if headers were already sent.
        """
        if self.sent:
            return False
        self.headers = [(n, v) for n, v in self.headers if n.lower() != name.lower()]
        self.headers.append((name, value))
        return True

    def replace(self, status: str, headers: list[tuple[str, str]] | None = None) -> bool:
        """Replace the status line and drop all previously set headers.

        Args:
            status: New status line, e.g. "500 Internal Server Error"
            headers: Headers to set after clearing

        Returns:
            True if replaced, False if headers were already sent.
        """
        if self.sent:
            logger.debug("Headers already sent, keeping status %s", self.status)
            return False
        self.status = status
        self.headers = list(headers or [])
        return True

    def send(self, stream: TextIO) -> bool:
        """Write the header block to a stream once.

        Args:
            stream: Stream to write to

        Returns:
            True if the headers were written, False if they were already sent.
        """
        if self.sent:
            return False
        stream.write(f"Status: {self.status}\r\n")
        for name, value in self.headers:
            stream.write(f"{name}: {value}\r\n")
        stream.write("\r\n")
        self.sent = True
        return True


# Create global instances for use throughout the application
output_buffers = OutputBuffers()
response_headers = ResponseHeaders()
