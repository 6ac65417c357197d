"""
=============================================================================
HTTP PROTOCOL PIECES
=============================================================================

The small subset of HTTP/1.1 this server speaks:

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST (request.py)                                                │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Classifies raw request bytes as "root" or "not root"                │
    │                                                                      │
    │ Input:   b"GET /?x=1 HTTP/1.1\\r\\nHost: ...\\r\\n\\r\\n"                │
    │ Output:  RequestLine(method="GET", path="/", query="x=1", ...)      │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ RESPONSE (response.py)                                              │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Status line + Content-Length + body, nothing else                   │
    │                                                                      │
    │ Output:  b"HTTP/1.1 200 OK\\r\\nContent-Length: 9\\r\\n\\r\\n<html>..."  │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import (
    HTTPParseError,
    RequestLine,
    ROOT_REQUEST_PREFIX,
    parse_request_line,
    matches_root_prefix,
    is_root_request,
)
from .response import HTTPResponse
from .status_codes import HTTPStatus

__all__ = [
    # Request classification
    "HTTPParseError",
    "RequestLine",
    "ROOT_REQUEST_PREFIX",
    "parse_request_line",
    "matches_root_prefix",
    "is_root_request",

    # Response composition
    "HTTPResponse",
    "HTTPStatus",
]
