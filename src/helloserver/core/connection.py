"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module wraps an accepted client socket with the two read strategies
the server supports, plus writing and an orderly close.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

    Client sends:
        "GET / HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n"

    Server might receive ANY of these:
        recv() → the whole request
        recv() → "GET / HT"             (partial)
        recv() → "TP/1.1\\r\\nHost: x\\r\\n\\r\\n"  (rest)

=============================================================================
TWO WAYS TO READ A REQUEST
=============================================================================

    read_fixed()  (legacy)                  read_head()  (standard)
    ──────────────────────                  ───────────────────────
    buffer = bytearray(1024)                buffer = b""
    recv_into(buffer)   ← ONE call          while no blank line:
    return buffer       ← zero padded           buffer += recv()
                                                stop at EOF or the cap
                                            return buffer

read_fixed() is the legacy read: whatever the first recv() returns is the
request, and the unused tail of the buffer stays zero. A client that
trickles the request line is therefore classified on its first segment.

read_head() keeps reading until the head is complete, so slow clients are
classified on the whole request line.

Bytes that arrive beyond what either strategy consumes are never
interpreted. close() drains and discards them.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──────► READING ──────► PROCESSING ──────► WRITING
     │             │                 │                 │
     │             ▼                 ▼                 ▼
     └──────────► CLOSING ◄──────────┴─────────────────┘
                    │
                    ▼
                  CLOSED

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional


logger = logging.getLogger(__name__)

# End of the request head; bare-LF clients send the second form
HEAD_TERMINATORS = (b"\r\n\r\n", b"\n\n")

# Upper bound on the time close() spends discarding unread request bytes
DRAIN_TIMEOUT = 0.5


class ConnectionState(Enum):
    """Connection lifecycle states."""
    NEW = "new"                # Just accepted, nothing read yet
    READING = "reading"        # Reading request bytes
    PROCESSING = "processing"  # Classifying and loading the page
    WRITING = "writing"        # Sending the response
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    Represents one accepted client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier used as a log prefix.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        bytes_read: Number of request bytes received so far.
    """

    # Required parameters
    socket: socket.socket
    address: tuple

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    bytes_read: int = 0

    # Configuration (passed from ServerConfig)
    buffer_size: int = 1024             # Fixed capacity / recv chunk size
    max_header_size: int = 8192         # Cap for read_head()
    timeout: Optional[float] = 30.0     # None = block forever

    def __post_init__(self):
        self.socket.setblocking(True)
        self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_fixed(self) -> bytearray:
        """
        Read once into a zero-filled buffer of ``buffer_size`` bytes.

        Returns:
            The whole buffer, including the zero padding after whatever the
            single recv() delivered. All zeros if the client sent nothing and
            closed.

        Raises:
            TimeoutError: If nothing arrives within the timeout.
            ConnectionError: If the client reset the connection.
        """
        self.state = ConnectionState.READING
        buffer = bytearray(self.buffer_size)

        try:
            received = self.socket.recv_into(buffer, self.buffer_size)
        except socket.timeout:
            raise TimeoutError("Request read timeout") from None

        self.bytes_read += received
        logger.debug(f"[{self.id}] Read {received} bytes into fixed buffer")
        return buffer

    def read_head(self) -> bytes:
        """
        Read until the request head is complete.

        Reading stops at the first of:

        1. a blank line (``\\r\\n\\r\\n`` or ``\\n\\n``) in the data
        2. the client closing its side (recv() returns b"")
        3. ``max_header_size`` bytes received

        Returns:
            The bytes received, at most ``max_header_size`` of them. Possibly
            empty.

        Raises:
            TimeoutError: If the client stalls before any stop condition.
            ConnectionError: If the client reset the connection.
        """
        self.state = ConnectionState.READING
        data = b""

        try:
            while not self._head_complete(data):
                remaining = self.max_header_size - len(data)
                if remaining <= 0:
                    logger.debug(f"[{self.id}] Request head hit the {self.max_header_size}-byte cap")
                    break

                chunk = self.socket.recv(min(self.buffer_size, remaining))
                if not chunk:
                    break  # Client closed its side

                data += chunk
                self.bytes_read += len(chunk)
        except socket.timeout:
            raise TimeoutError("Request read timeout") from None

        return data

    @staticmethod
    def _head_complete(data: bytes) -> bool:
        return any(terminator in data for terminator in HEAD_TERMINATORS)

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send the full response to the client.

        sendall() keeps writing until every byte is handed to the kernel, so
        nothing is left buffered in user space when it returns.

        Returns:
            True if the data was sent, False if the client went away.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            return True
        except (ConnectionResetError, BrokenPipeError, socket.timeout, OSError) as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        1. shutdown(SHUT_WR): send FIN, we are done writing
        2. drain: discard request bytes we never read, for at most
           DRAIN_TIMEOUT seconds and max_header_size bytes
        3. close(): release the file descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        deadline = time.time() + DRAIN_TIMEOUT
        budget = self.max_header_size
        try:
            while budget > 0:
                remaining = deadline - time.time()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(min(self.buffer_size, budget))
                if not chunk:
                    break
                budget -= len(chunk)
        except OSError:
            pass  # Includes socket.timeout

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Always close the connection; never suppress exceptions."""
        self.close()
        return False
