"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the two-page server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m helloserver --port 3000                         │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_PORT=3000 python -m helloserver                      │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
STANDARD VS LEGACY MODE
=============================================================================

    STANDARD (default)                 LEGACY (--legacy)
    ──────────────────                 ─────────────────
    read until \\r\\n\\r\\n or cap       one recv() into a 1024-byte buffer
    parse the request line             literal prefix "GET / HTTP/1.1\\r\\n"
    thread pool per connection         one connection at a time
    "404 Not Found"                    "404 NOT FOUND"
    log the bytes received             log the whole zero-padded buffer

=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


# Bundled index.html / 404.html shipped inside the package
DEFAULT_PAGES_DIR = Path(__file__).parent / "pages"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ServerConfig:
    """
    Configuration for the page server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, timeout

    READING
    - buffer_size, max_header_size

    THREADING SETTINGS
    - min_workers, max_workers

    PAGES
    - document_root, index_file, not_found_file

    BEHAVIOUR
    - legacy, log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to. Loopback only unless told otherwise.
    """

    port: int = 7878
    """
    The port number to listen on. 0 lets the OS pick a free port.
    """

    backlog: int = 128
    """
    Maximum number of connections the OS queues before refusing new ones.
    """

    timeout: Optional[float] = 30.0
    """
    Per-connection socket timeout in seconds.
    None = block forever (a silent client stalls its worker indefinitely).
    """

    # ─────────────────────────────────────────────────────────────────────
    # READING
    # ─────────────────────────────────────────────────────────────────────

    buffer_size: int = 1024
    """
    Size of one recv() call. In legacy mode this is also the fixed capacity
    of the request buffer: exactly one read of this many bytes is made.
    """

    max_header_size: int = 8192
    """
    Safety cap for the growable read in standard mode. Reading stops once
    this many bytes have arrived even if no blank line was seen.
    """

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    """
    Worker threads created at startup.
    """

    max_workers: int = 16
    """
    Upper bound on worker threads. 0 disables the pool and serves every
    connection on the accept thread.
    """

    # ─────────────────────────────────────────────────────────────────────
    # PAGES
    # ─────────────────────────────────────────────────────────────────────

    document_root: Optional[str] = None
    """
    Directory holding the two pages. None = the pages bundled with the
    package.
    """

    index_file: str = "index.html"
    """
    Page served for a request for the root path.
    """

    not_found_file: str = "404.html"
    """
    Page served for every other request.
    """

    # ─────────────────────────────────────────────────────────────────────
    # BEHAVIOUR
    # ─────────────────────────────────────────────────────────────────────

    legacy: bool = False
    """
    Use the single-read, prefix-match, serial compatibility behaviour.
    """

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """

    @property
    def pages_dir(self) -> Path:
        """Directory the two pages are loaded from."""
        if self.document_root:
            return Path(self.document_root)
        return DEFAULT_PAGES_DIR

    @property
    def is_serial(self) -> bool:
        """True when connections are handled one at a time on the accept thread."""
        return self.legacy or self.max_workers == 0

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST           Server host (default: 127.0.0.1)
        HTTP_PORT           Server port (default: 7878)
        HTTP_WORKERS        Max worker threads (default: 16)
        HTTP_TIMEOUT        Connection timeout in seconds, 0 = none (default: 30)
        HTTP_DOCUMENT_ROOT  Directory holding the pages (default: bundled)
        HTTP_LEGACY         1/true/yes/on enables legacy mode (default: off)
        HTTP_LOG_LEVEL      Logging level (default: INFO)

        =====================================================================
        """
        max_workers = int(os.getenv("HTTP_WORKERS", "16"))
        timeout = float(os.getenv("HTTP_TIMEOUT", "30"))
        return cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "7878")),
            min_workers=min(4, max_workers),
            max_workers=max_workers,
            timeout=timeout or None,
            document_root=os.getenv("HTTP_DOCUMENT_ROOT") or None,
            legacy=_env_flag("HTTP_LEGACY"),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.min_workers < 0:
            raise ValueError("min_workers must be >= 0")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.max_workers > 0 and self.min_workers < 1:
            raise ValueError("min_workers must be >= 1 when the pool is enabled")

        # Must at least hold the request line we compare against
        if self.buffer_size < 16:
            raise ValueError("buffer_size must be >= 16")

        if self.max_header_size < self.buffer_size:
            raise ValueError("max_header_size must be >= buffer_size")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

        if not self.index_file or not self.not_found_file:
            raise ValueError("index_file and not_found_file must be set")
