"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from pathlib import Path
from typing import Callable, Generator, Optional

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from helloserver import HelloServer, ServerConfig


INDEX_HTML = "<!DOCTYPE html>\r\n<html><body><h1>Hello!</h1><p>héllo wörld</p></body></html>\n"
NOT_FOUND_HTML = "<!DOCTYPE html>\n<html><body><h1>Oops!</h1></body></html>\n"


@pytest.fixture
def pages_dir(tmp_path: Path) -> Path:
    """Directory with an index page (non-ASCII, CRLF) and a not-found page."""
    (tmp_path / "index.html").write_bytes(INDEX_HTML.encode("utf-8"))
    (tmp_path / "404.html").write_bytes(NOT_FOUND_HTML.encode("utf-8"))
    return tmp_path


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


def exchange(
    port: int,
    data: bytes,
    close_write: bool = True,
    timeout: float = 5.0,
) -> bytes:
    """Send ``data``, optionally half-close, and read until the server closes."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        if data:
            sock.sendall(data)
        if close_write:
            sock.shutdown(socket.SHUT_WR)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)


def wait_for(predicate: Callable[[], bool], timeout: float = 3.0) -> bool:
    """Poll until ``predicate`` is true or the timeout expires."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


class RunningServer:
    """Server running in a background thread."""

    def __init__(self, server: HelloServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self) -> "RunningServer":
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"configure_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")
        return self

    def stop(self):
        self.server.stop()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def start_server(pages_dir: Path) -> Generator[Callable[..., RunningServer], None, None]:
    """
    Factory fixture: start_server(legacy=True, ...) returns a RunningServer.

    Every server started through it is stopped at teardown.
    """
    started = []

    def _start(**overrides) -> RunningServer:
        options = dict(
            host="127.0.0.1",
            port=0,  # Let OS pick a free port
            document_root=str(pages_dir),
            min_workers=2,
            max_workers=4,
            timeout=2.0,
            log_level="WARNING",
        )
        options.update(overrides)
        running = RunningServer(HelloServer(ServerConfig(**options))).start()
        started.append(running)
        return running

    yield _start

    for running in started:
        running.stop()
