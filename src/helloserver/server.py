"""
=============================================================================
PAGE SERVER
=============================================================================

Ties the listener, the thread pool and the page handler together.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   HelloServer   │                          │
    │                        └────────┬────────┘                          │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │ SocketServer │    │  ThreadPool  │    │ PageHandler  │        │
    │    │  (accepting) │    │ (concurrency)│    │  (two pages) │        │
    │    └──────────────┘    └──────────────┘    └──────────────┘        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ONE CONNECTION, START TO FINISH
=============================================================================

    1. ACCEPT     SocketServer logs "Connection established."
    2. DISPATCH   serial → run inline; otherwise → thread pool
    3. READ       legacy: one fixed 1024-byte read
                  standard: read until the blank line or the cap
    4. CLASSIFY   root request → 200 + index page, else 404 + not-found page
    5. LOAD       read the chosen page from disk
    6. COMPOSE    status line, Content-Length, blank line, body
    7. WRITE      sendall()
    8. LOG        "Request: <request bytes, lossily decoded>"
    9. CLOSE      always, one response per connection

=============================================================================
FAILURES STAY INSIDE THEIR CONNECTION
=============================================================================

    read timeout / reset      logged, connection closed, no response
    page missing / not UTF-8  logged, connection closed, no response
    client gone during write  logged, connection closed

Only a failure to bind stops the server.

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState, ThreadPool
from .handlers import PageHandler, PageLoadError


logger = logging.getLogger(__name__)


class HelloServer:
    """
    Serves an index page for ``GET /`` and a not-found page for the rest.

    Usage:
        server = HelloServer(ServerConfig(port=7878))
        server.run()   # Blocks until Ctrl+C / SIGTERM / stop()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Uses defaults if not provided.

        Raises:
            ValueError: If the configuration is invalid or the pages
                        directory does not exist.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._pages = PageHandler.from_config(self.config)

        self._thread_pool: Optional[ThreadPool] = None
        if not self.config.is_serial:
            self._thread_pool = ThreadPool(
                min_workers=self.config.min_workers,
                max_workers=self.config.max_workers,
                queue_size=self.config.backlog,
            )

        self._running = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port) once listening, configured address before."""
        return self._socket_server.address

    def run(self, configure_logging: bool = True):
        """
        Start the server (blocking).

        Args:
            configure_logging: Install the log format and level from the
                               config. Embedding applications that set up
                               logging themselves pass False.

        Raises:
            OSError: If the address cannot be bound.
        """
        if configure_logging:
            self._setup_logging()

        self._running = True
        if self._thread_pool:
            self._thread_pool.start()

        mode = "legacy" if self.config.legacy else "standard"
        logger.info(f"Serving pages from {self._pages.root_dir} ({mode} mode)")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def stop(self):
        """Ask a running server to stop. Safe from any thread."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listener is accepting connections."""
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("helloserver").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False

        if self._thread_pool:
            # Workers are released by shutdown(), so count them first
            stats = self._thread_pool.stats()
            self._thread_pool.shutdown(wait=True, timeout=self.config.timeout or 30.0)
            logger.info(
                f"Served {stats['completed']} connections on the pool "
                f"({stats['failed']} failed)"
            )

        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Called on the accept thread for every new connection.

        Serial mode serves the connection right here, so the next accept()
        waits until this client is done. Otherwise the connection goes to
        the thread pool.
        """
        if self._thread_pool is None:
            self._process_connection(conn)
            return

        if not self._thread_pool.submit(self._process_connection, args=(conn,)):
            stats = self._thread_pool.stats()
            logger.warning(
                f"[{conn.id}] Thread pool full, dropping connection "
                f"({stats['busy']} busy, {stats['pending']} queued)"
            )
            conn.close()

    def _process_connection(self, conn: Connection):
        """
        Read, classify, load, compose, write and log for one connection.

        Never raises: every failure is logged and ends with the connection
        closed.
        """
        with conn:
            try:
                raw = self._read_request(conn)
                if raw is None:
                    return

                conn.state = ConnectionState.PROCESSING
                try:
                    response = self._pages.respond(raw)
                except PageLoadError as e:
                    logger.error(f"[{conn.id}] {e}")
                    return

                if conn.send_response(response.to_bytes()):
                    logger.debug(
                        f"[{conn.id}] {response.status_line} "
                        f"({response.content_length} body bytes)"
                    )

                self._log_request(raw)

            except Exception as e:
                logger.exception(f"[{conn.id}] Connection error: {e}")

    def _read_request(self, conn: Connection) -> Optional[bytes]:
        """
        Read the request with the strategy for the current mode.

        Returns:
            Request bytes (possibly empty or all zeros), or None when the
            read failed and the connection should just be closed.
        """
        try:
            if self.config.legacy:
                return conn.read_fixed()
            return conn.read_head()
        except TimeoutError:
            logger.warning(f"[{conn.id}] Timed out waiting for request from {conn.client_ip}")
        except ConnectionError as e:
            logger.warning(f"[{conn.id}] Read failed: {e}")
        return None

    def _log_request(self, raw: bytes):
        """
        Log the request as text, replacing undecodable bytes.

        In legacy mode ``raw`` is the whole fixed buffer, so the unused
        tail shows up as NUL characters.
        """
        logger.info(f"Request: {bytes(raw).decode('utf-8', errors='replace')}")


def create_app(config: Optional[ServerConfig] = None) -> HelloServer:
    """Factory for server instances."""
    return HelloServer(config)
