"""Session event publishing.

Sessions report their progress by emitting named events. Consumers such
as metrics aggregators subscribe to these events; sessions never read
anything back from the emitter.

Events:
    - `started`: the session is ready to run its steps;
    - `request`: a message is about to be written;
    - `response(latency_ns, status)`: a write completed;
    - `error(code)`: a connection or write failed.
"""

import logging
from threading import Lock
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable

    from loco_ws.values import RuntimeValue

logger = logging.getLogger(__name__)

STARTED = 'started'
REQUEST = 'request'
RESPONSE = 'response'
ERROR = 'error'

#: Event listener receiving the event payload as positional arguments.
type Listener = Callable[..., object]


@runtime_checkable
class EventEmitter(Protocol):
    """Write-only publish point shared by concurrent sessions."""

    def emit(self, event: str, *args: 'RuntimeValue') -> None:
        """Publish an event with its payload."""
        ...  # pragma: no cover


class Emitter:
    """In-process event emitter.

    Safe for concurrent emission from several sessions and threads:
    the listener registry is guarded by a lock and listeners are called
    outside of it. A failing listener is logged and does not affect the
    emitting session or other listeners.
    """

    def __init__(self) -> None:
        """Initialize an emitter without listeners."""
        self._listeners: dict[str, list[Listener]] = {}
        self._lock = Lock()

    def on(self, event: str, listener: Listener) -> Listener:
        """Subscribe a listener to an event.

        Args:
            event: Event name.
            listener: Callable receiving the event payload.

        Returns:
            The listener, so the method may be used as a decorator factory.
        """
        with self._lock:
            self._listeners.setdefault(event, []).append(listener)

        return listener

    def off(self, event: str, listener: Listener) -> None:
        """Unsubscribe a listener; unknown listeners are ignored."""
        with self._lock:
            listeners = self._listeners.get(event, [])
            if listener in listeners:
                listeners.remove(listener)

    def listeners(self, event: str) -> tuple[Listener, ...]:
        """Return a snapshot of listeners subscribed to an event."""
        with self._lock:
            return tuple(self._listeners.get(event, ()))

    def emit(self, event: str, *args: 'RuntimeValue') -> None:
        """Call every listener of an event with the payload.

        Args:
            event: Event name.
            *args: Event payload.
        """
        for listener in self.listeners(event):
            try:
                listener(*args)
            except Exception:
                logger.exception('Listener %r failed on %r event', listener, event)
