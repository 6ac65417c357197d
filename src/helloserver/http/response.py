"""
=============================================================================
HTTP RESPONSE COMPOSITION
=============================================================================

Every response this server produces has exactly the same shape:

    HTTP/1.1 200 OK\\r\\n              ← Status line
    Content-Length: 27\\r\\n           ← Byte length of the body
    \\r\\n                             ← Empty line (separator)
    <html>...</html>                 ← Body bytes

There is deliberately no Content-Type, Date, Server or Connection header.
The connection is closed after the body, so Content-Length alone tells the
client where the message ends.

=============================================================================
CONTENT-LENGTH COUNTS BYTES, NOT CHARACTERS
=============================================================================

    >>> len("héllo")
    5
    >>> len("héllo".encode("utf-8"))
    6                       ← This is what goes in the header

Getting this wrong makes the client either truncate the body or hang
waiting for bytes that never arrive.

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional, Union

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be written to a socket.

        HTTPResponse(                    to_bytes()
          status=HTTPStatus.OK,   ─────►   b"HTTP/1.1 200 OK\\r\\n"
          body=b"<html>...",               b"Content-Length: 9\\r\\n\\r\\n"
        )                                  b"<html>..."

    Attributes:
        status: Status code.
        body: Body bytes (strings are encoded as UTF-8 on construction).
        reason: Reason phrase override. None = the standard phrase.
        version: Protocol version for the status line.
    """

    status: HTTPStatus = HTTPStatus.OK
    body: Union[str, bytes] = b""
    reason: Optional[str] = None
    version: str = "HTTP/1.1"

    def __post_init__(self):
        if isinstance(self.body, str):
            self.body = self.body.encode("utf-8")

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 404 Not Found"
        """
        reason = self.reason if self.reason is not None else self.status.phrase
        return f"{self.version} {int(self.status)} {reason}"

    @property
    def content_length(self) -> int:
        """Length of the body in bytes."""
        return len(self.body)

    def to_bytes(self) -> bytes:
        """
        Serialize the response for socket.sendall().

        Returns:
            Status line, Content-Length header, blank line, body.
        """
        head = f"{self.status_line}\r\nContent-Length: {self.content_length}\r\n\r\n"
        return head.encode("utf-8") + self.body
