"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The server only ever answers with two statuses:

    200 OK          The request was for the root path; the index page follows.
    404 Not Found   Anything else; the not-found page follows.

Using an IntEnum keeps them comparable to plain integers
(HTTPStatus.OK == 200) while carrying a reason phrase for the status line.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """HTTP status codes emitted by the server."""

    OK = 200
    NOT_FOUND = 404

    @property
    def phrase(self) -> str:
        """
        Get the standard reason phrase (RFC 7231).

        Example:
            HTTPStatus.NOT_FOUND.phrase → "Not Found"
        """
        return _PHRASES[self]


_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NOT_FOUND: "Not Found",
}
