"""
=============================================================================
REQUEST HANDLERS
=============================================================================

    from helloserver.handlers import PageHandler

    handler = PageHandler("./pages")
    response = handler.respond(b"GET / HTTP/1.1\\r\\n\\r\\n")
    response.status        # HTTPStatus.OK
    response.to_bytes()    # b"HTTP/1.1 200 OK\\r\\nContent-Length: ..."

=============================================================================
"""

from .pages import PageHandler, PageChoice, PageLoadError, LEGACY_NOT_FOUND_REASON

__all__ = [
    "PageHandler",
    "PageChoice",
    "PageLoadError",
    "LEGACY_NOT_FOUND_REASON",
]
