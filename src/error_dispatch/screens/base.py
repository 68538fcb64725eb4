"""Error screen interface.

An error screen turns the final failure of a process into visible output.
The dispatcher only depends on this interface; the stock CLI and web screens
are two implementations of it.
"""

from abc import ABC, abstractmethod


class ErrorScreen(ABC):
    """Renders a failure that reached the outermost boundary of the program."""

    @abstractmethod
    def render(
        self, exception: BaseException, debug: bool, output_buffer: str | None = None
    ) -> None:
        """Render the failure.

        Args:
            exception: The failure to render, possibly the head of a chain
            debug: Whether to show details meant for developers
            output_buffer: Output captured before rendering, if any

        Raises:
            Exception: Any failure while rendering; the dispatcher chains it.
        """
