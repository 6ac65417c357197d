"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing underneath the page handler:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  • Binds HOST:PORT, runs the accept() loop                          │
    │  • Logs "Connection established." per client                        │
    │  • Stops on shutdown(), SIGINT or SIGTERM                           │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ Hands off new connections
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          THREAD POOL                                 │
    │  • Workers pull connections from a bounded queue                    │
    │  • Skipped entirely in legacy (serial) mode                         │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ Worker processes connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  • Fixed single read (legacy) or read-until-blank-line (standard)   │
    │  • sendall() of the response, orderly close                         │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",     # TCP listener and accept loop
    "Connection",       # Wrapper for a client socket
    "ConnectionState",  # Connection lifecycle states
    "ThreadPool",       # Worker threads for concurrent handling
]
