"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket with the buffered, line-oriented reading
the request parser needs.

=============================================================================
WHY BUFFER?
=============================================================================

TCP delivers bytes in arbitrary chunks. One recv() may return half a header
line, or the whole request plus part of a body:

    recv() #1:  b"GET /hello HTTP/1.1\r\nHo"
    recv() #2:  b"st: localhost\r\n\r\n"

readline() hides that: it accumulates chunks in a private buffer and hands
out exactly one line at a time, keeping the leftovers for the next call.

=============================================================================
BOUNDED RESOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  MEMORY   readline(limit) never returns more than `limit` bytes,    │
    │           so the buffer stays below limit + buffer_size             │
    │                                                                      │
    │  TIME     the socket timeout is the idle timeout: a peer that       │
    │           stops sending raises socket.timeout in recv()             │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)

# Upper bound on unread client data discarded while closing
MAX_DRAIN_BYTES = 64 * 1024


class ConnectionState(Enum):
    """Connection lifecycle states, used in logs."""

    NEW = "new"                # Just accepted
    READING = "reading"        # Reading request lines
    PROCESSING = "processing"  # Request parsed, resolving the route
    WRITING = "writing"        # Sending the response
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    Represents a client connection.

    The mock server answers exactly one request per connection, so there
    is no keep-alive bookkeeping here: read lines, send one response, close.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier used in log lines.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        last_activity: Timestamp of the last successful recv/send.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def readline(self, limit: int = -1) -> bytes:
        """
        Read one line, up to and including the LF.

        Mirrors io.BufferedReader.readline(): at most `limit` bytes are
        returned (a negative limit means no limit), and b"" means the peer
        closed the connection with nothing left in the buffer.

        Raises:
            socket.timeout: No data arrived within the idle timeout.
            OSError: Any other socket failure.
        """
        self.state = ConnectionState.READING

        while True:
            end = self._buffer.find(b"\n")
            if end != -1 and (limit < 0 or end < limit):
                return self._take(end + 1)

            if 0 <= limit <= len(self._buffer):
                return self._take(limit)

            chunk = self._recv()
            if not chunk:
                # Peer closed: hand out whatever is left
                return self._take(len(self._buffer))
            self._buffer += chunk

    def _take(self, size: int) -> bytes:
        data, self._buffer = self._buffer[:size], self._buffer[size:]
        return data

    def _recv(self) -> bytes:
        """
        Receive data from the socket.

        Returns:
            Received bytes, or b"" if the client disconnected.
        """
        try:
            data = self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""
        self.last_activity = time.time()
        return data

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, data: bytes) -> bool:
        """
        Send the whole response with sendall().

        Returns:
            True if the data was sent, False if the client went away.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False
        self.last_activity = time.time()
        return True

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR) sends FIN so the client sees end-of-response
        2. drain whatever the client still sent (e.g. an unread body)
        3. close() releases the file descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self.socket.settimeout(0.5)
            drained = 0
            while drained < MAX_DRAIN_BYTES:
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self._buffer = b""
        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
