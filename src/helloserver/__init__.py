"""
=============================================================================
HELLOSERVER - A Two-Page HTTP/1.1 Server on Raw Sockets
=============================================================================

The smallest useful web server: it answers ``GET /`` with an index page
and every other request with a not-found page.

    $ curl -i http://127.0.0.1:7878/
    HTTP/1.1 200 OK
    Content-Length: 158

    <!DOCTYPE html>
    ...

    $ curl -i http://127.0.0.1:7878/anything
    HTTP/1.1 404 Not Found
    Content-Length: 148
    ...

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    helloserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m helloserver)
    ├── server.py            # HelloServer: read → classify → respond → log
    ├── config.py            # ServerConfig dataclass
    ├── core/                # Networking plumbing
    │   ├── socket_server.py # Listener and accept loop
    │   ├── connection.py    # Client socket wrapper
    │   └── thread_pool.py   # Worker threads
    ├── http/                # The HTTP subset we speak
    │   ├── request.py       # Request-line parsing and classification
    │   ├── response.py      # Status line + Content-Length + body
    │   └── status_codes.py  # 200 and 404
    ├── handlers/
    │   └── pages.py         # Choose and load one of the two pages
    └── pages/               # Bundled index.html and 404.html

=============================================================================
QUICK START
=============================================================================

    from helloserver import HelloServer, ServerConfig

    server = HelloServer(ServerConfig(document_root="./site"))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import HelloServer, create_app
from .config import ServerConfig

__all__ = ["HelloServer", "ServerConfig", "create_app", "__version__"]
