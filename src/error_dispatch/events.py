"""Synchronous event emitter.

Listeners are plain callables invoked in order on the caller's stack. A
listener that raises interrupts the emission immediately and the exception
propagates to whoever called ``emit()``.
"""

from collections.abc import Callable
from typing import Any

Listener = Callable[..., Any]


class EventEmitter:
    """Named-event publish/subscribe with ordered synchronous delivery.

    Listeners with a higher priority run first; listeners with the same
    priority run in the order they were attached.
    """

    def __init__(self) -> None:
        """Initialize the emitter with no listeners."""
        self._listeners: dict[str, list[tuple[int, int, Listener]]] = {}
        self._sequence = 0

    def on(self, event: str, listener: Listener, priority: int = 0) -> None:
        """Attach a listener to an event.

        Args:
            event: Event name
            listener: Callable receiving the event arguments
            priority: Listeners with higher priority are called first
        """
        self._sequence += 1
        listeners = self._listeners.setdefault(event, [])
        listeners.append((-priority, self._sequence, listener))
        listeners.sort(key=lambda entry: (entry[0], entry[1]))

    def off(self, event: str, listener: Listener) -> bool:
        """Detach a listener from an event.

        Args:
            event: Event name
            listener: Previously attached listener

        Returns:
            True if the listener was found and removed.
        """
        listeners = self._listeners.get(event)
        if not listeners:
            return False

        for index, (_, _, attached) in enumerate(listeners):
            if attached == listener:
                del listeners[index]
                if not listeners:
                    del self._listeners[event]
                return True

        return False

    def has_listeners(self, event: str | None = None) -> bool:
        """See if there are any listeners, optionally for a single event."""
        if event is None:
            return bool(self._listeners)
        return bool(self._listeners.get(event))

    def get_listeners(self, event: str) -> list[Listener]:
        """Get listeners of an event in invocation order."""
        return [listener for _, _, listener in self._listeners.get(event, [])]

    def clear_listeners(self, event: str | None = None) -> None:
        """Remove all listeners, optionally only those of a single event."""
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def emit(self, event: str, *args: Any) -> None:
        """Invoke all listeners of an event.

        Args:
            event: Event name
            *args: Arguments passed to every listener
        """
        # copy so listeners may detach themselves while being called
        for listener in self.get_listeners(event):
            listener(*args)
