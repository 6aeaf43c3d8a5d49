"""Connection capability used by sessions.

Sessions only need to open a connection, write messages and close it.
The `Transport` and `Connection` protocols describe that capability;
`WebSocketTransport` implements it with the `websockets` library.
"""

import logging
from errno import errorcode
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import websockets
from websockets.exceptions import InvalidStatus

if TYPE_CHECKING:
    from websockets.asyncio.client import ClientConnection

logger = logging.getLogger(__name__)

#: Default maximum size of incoming messages, in bytes.
MAX_MESSAGE_SIZE = 1024 * 1024


@runtime_checkable
class Connection(Protocol):
    """Open connection exclusively owned by one session."""

    async def send(self, message: str | bytes) -> None:
        """Write a single message; completes when the write is done."""
        ...  # pragma: no cover

    async def close(self) -> None:
        """Close the connection."""
        ...  # pragma: no cover


@runtime_checkable
class Transport(Protocol):
    """Factory of connections."""

    async def open(self, url: str) -> Connection:
        """Open a connection to the URL; raises on failure."""
        ...  # pragma: no cover


class WebSocketTransport:
    """Transport opening WebSocket client connections."""

    def __init__(self, *, open_timeout: float | None = 10.0,
                 close_timeout: float | None = 5.0,
                 max_size: int | None = MAX_MESSAGE_SIZE) -> None:
        """Initialize the transport.

        Args:
            open_timeout: Seconds to wait for the opening handshake.
            close_timeout: Seconds to wait for the closing handshake.
            max_size: Maximum size of incoming messages.
        """
        self.open_timeout = open_timeout
        self.close_timeout = close_timeout
        self.max_size = max_size

    async def open(self, url: str) -> 'ClientConnection':
        """Open a WebSocket connection.

        Args:
            url: WebSocket URL (`ws://` or `wss://`).

        Returns:
            An open client connection.

        Raises:
            OSError: If the TCP connection fails.
            websockets.exceptions.WebSocketException: If the handshake fails.
            TimeoutError: If the handshake does not complete in time.
        """
        return await websockets.connect(
            url,
            open_timeout=self.open_timeout,
            close_timeout=self.close_timeout,
            max_size=self.max_size,
        )


def error_code(error: BaseException) -> str:
    """Map a transport failure to a short failure code.

    Args:
        error: Exception raised by a transport.

    Returns:
        The symbolic errno name for OS errors (for example
        `ECONNREFUSED`), `HTTP <status>` for rejected handshakes,
        `ETIMEDOUT` for timeouts, otherwise the exception class name.
    """
    if isinstance(error, InvalidStatus):
        return f'HTTP {error.response.status_code}'

    if isinstance(error, TimeoutError):
        return 'ETIMEDOUT'

    if isinstance(error, OSError) and error.errno in errorcode:
        return errorcode[error.errno]

    return type(error).__name__


async def close_quietly(connection: Connection) -> None:
    """Close a connection, logging failures instead of raising them."""
    try:
        await connection.close()

    except Exception:
        logger.warning('Failed to close connection %r', connection, exc_info=True)
