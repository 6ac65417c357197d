"""
=============================================================================
REQUEST CLASSIFICATION
=============================================================================

The server only needs to answer one question about a request:

    "Is this a GET for the root path?"

There are two ways to answer it, one per server mode.

=============================================================================
LEGACY: LITERAL PREFIX MATCH
=============================================================================

Compare the first 16 bytes of the buffer against one exact byte string:

    buffer:   G E T ␠ / ␠ H T T P / 1 . 1 \\r \\n H o s t ...
    literal:  G E T ␠ / ␠ H T T P / 1 . 1 \\r \\n
              └──────────── must be identical ───────┘

Anything else falls into "not found", including requests a human would
call a root request:

    GET /?x=1 HTTP/1.1\\r\\n     ← query string
    GET / HTTP/1.0\\r\\n         ← different version
    GET / HTTP/1.1\\n           ← bare LF line ending
    GET / HT                   ← line split across two TCP segments

=============================================================================
STANDARD: REQUEST-LINE PARSER
=============================================================================

    METHOD SP REQUEST-TARGET SP HTTP-VERSION CRLF   (RFC 7230 §3.1.1)

    "GET /?x=1 HTTP/1.1"
     ─┬─ ──┬── ────┬───
      │    │       └── version: HTTP/1.0 or HTTP/1.1
      │    └── target: path "/" + query "x=1"
      └── method: case-sensitive token

A root request is method GET, path "/" (query ignored), HTTP/1.0 or 1.1.
Parsing failures are not errors for the client: they simply mean
"not a root request".

=============================================================================
"""

import re
from dataclasses import dataclass
from urllib.parse import urlsplit


# The exact request line the legacy mode looks for
ROOT_REQUEST_PREFIX = b"GET / HTTP/1.1\r\n"

SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")


class HTTPParseError(Exception):
    """
    Raised when a request line cannot be parsed.

    Carries the offending line (lossily decoded) for logging.
    """

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


@dataclass(frozen=True)
class RequestLine:
    """
    The parsed first line of an HTTP request.

    Attributes:
        method: Request method, e.g. "GET".
        target: Raw request target, e.g. "/?x=1".
        path: Path component of the target, e.g. "/".
        query: Query string without the "?", e.g. "x=1".
        version: Protocol version token, e.g. "HTTP/1.1".
    """

    method: str
    target: str
    path: str
    query: str
    version: str

    @property
    def is_root(self) -> bool:
        """True for GET / over HTTP/1.0 or HTTP/1.1."""
        return (
            self.method == "GET"
            and self.path == "/"
            and self.version in SUPPORTED_VERSIONS
        )


# Compiled once at import time
REQUEST_LINE_PATTERN = re.compile(r"^([!#$%&'*+.^_`|~0-9A-Za-z-]+) (\S+) (HTTP/\d\.\d)$")


def parse_request_line(data: bytes) -> RequestLine:
    """
    Parse the request line at the start of ``data``.

    The line may end with CRLF or a bare LF. Trailing zero bytes (the
    unused part of a fixed buffer) are ignored.

    Args:
        data: Raw request bytes, at least the first line.

    Returns:
        Parsed RequestLine.

    Raises:
        HTTPParseError: If no well-formed request line is present.
    """
    data = data.rstrip(b"\x00")
    if not data:
        raise HTTPParseError("Empty request")

    end = data.find(b"\n")
    if end == -1:
        raise HTTPParseError(
            "Incomplete request line",
            line=data.decode("utf-8", errors="replace"),
        )

    raw_line = data[:end]
    if raw_line.endswith(b"\r"):
        raw_line = raw_line[:-1]

    try:
        # Request lines are ASCII (RFC 7230 §3.1.1)
        line = raw_line.decode("ascii")
    except UnicodeDecodeError:
        raise HTTPParseError(
            "Request line is not ASCII",
            line=raw_line.decode("utf-8", errors="replace"),
        ) from None

    match = REQUEST_LINE_PATTERN.match(line)
    if not match:
        raise HTTPParseError(f"Invalid request line: {line!r}", line=line)

    method, target, version = match.groups()

    if target.startswith("/"):
        # Origin-form ("/path?query"); urlsplit would read "//x" as a host
        path, _, query = target.partition("?")
    else:
        # Absolute-form ("http://host/path")
        parts = urlsplit(target)
        path = parts.path or ("/" if parts.netloc else "")
        query = parts.query
    if not path.startswith("/"):
        raise HTTPParseError(f"Invalid request target: {target!r}", line=line)

    return RequestLine(
        method=method,
        target=target,
        path=path,
        query=query,
        version=version,
    )


def matches_root_prefix(buffer: bytes) -> bool:
    """Legacy check: does the buffer begin with exactly ``GET / HTTP/1.1\\r\\n``?"""
    return bytes(buffer).startswith(ROOT_REQUEST_PREFIX)


def is_root_request(data: bytes) -> bool:
    """
    Standard check: is ``data`` a GET request for the root path?

    Malformed input is never an error here, it is just not a root request.
    """
    try:
        return parse_request_line(data).is_root
    except HTTPParseError:
        return False
