"""
Unit tests for the client connection wrapper.

These use socket.socketpair() so no network listener is involved.
"""

import socket
import threading
import time

import pytest

from helloserver.core.connection import DRAIN_TIMEOUT, Connection, ConnectionState


@pytest.fixture
def pair():
    """A connected (server_side, client_side) socket pair."""
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    for sock in (server_side, client_side):
        try:
            sock.close()
        except OSError:
            pass


def make_connection(sock: socket.socket, **kwargs) -> Connection:
    options = dict(buffer_size=1024, max_header_size=4096, timeout=2.0)
    options.update(kwargs)
    return Connection(socket=sock, address=("127.0.0.1", 50000), **options)


class TestReadFixed:
    """Tests for the legacy single read."""

    def test_zero_padded_buffer(self, pair):
        """Test that the unused tail of the buffer stays zero."""
        server_side, client_side = pair
        client_side.sendall(b"GET / HTTP/1.1\r\n\r\n")

        conn = make_connection(server_side)
        buffer = conn.read_fixed()

        assert len(buffer) == 1024
        assert buffer.startswith(b"GET / HTTP/1.1\r\n\r\n")
        assert buffer[18:] == bytes(1024 - 18)
        assert conn.bytes_read == 18
        assert conn.state == ConnectionState.READING

    def test_client_sent_nothing(self, pair):
        """Test that an immediate close yields an all-zero buffer."""
        server_side, client_side = pair
        client_side.shutdown(socket.SHUT_WR)

        buffer = make_connection(server_side).read_fixed()

        assert buffer == bytearray(1024)

    def test_oversized_request_only_fills_capacity(self, pair):
        """Test that bytes beyond the capacity are not consumed."""
        server_side, client_side = pair
        client_side.sendall(b"A" * 3000)
        time.sleep(0.05)

        conn = make_connection(server_side, buffer_size=1024, max_header_size=1024)
        buffer = conn.read_fixed()

        assert len(buffer) == 1024
        assert conn.bytes_read <= 1024

    def test_single_read_only(self, pair):
        """Test that a trickled request is cut at the first segment."""
        server_side, client_side = pair
        client_side.sendall(b"G")

        def send_rest():
            time.sleep(0.2)
            client_side.sendall(b"ET / HTTP/1.1\r\n\r\n")

        threading.Thread(target=send_rest, daemon=True).start()

        buffer = make_connection(server_side).read_fixed()
        assert buffer.rstrip(b"\x00") == b"G"

    def test_timeout(self, pair):
        """Test that a silent client times out."""
        server_side, _ = pair
        conn = make_connection(server_side, timeout=0.1)

        with pytest.raises(TimeoutError):
            conn.read_fixed()


class TestReadHead:
    """Tests for the growable read."""

    def test_stops_at_blank_line(self, pair):
        """Test reading a complete head."""
        server_side, client_side = pair
        client_side.sendall(b"GET / HTTP/1.1\r\nHost: x\r\n\r\n")

        data = make_connection(server_side).read_head()

        assert data == b"GET / HTTP/1.1\r\nHost: x\r\n\r\n"

    def test_bare_lf_blank_line(self, pair):
        """Test a client that ends lines with LF only."""
        server_side, client_side = pair
        client_side.sendall(b"GET / HTTP/1.1\nHost: x\n\n")

        assert make_connection(server_side).read_head() == b"GET / HTTP/1.1\nHost: x\n\n"

    def test_reassembles_trickled_request(self, pair):
        """Test that a request sent in pieces is read whole."""
        server_side, client_side = pair
        pieces = [b"G", b"ET / HT", b"TP/1.1\r", b"\n\r\n"]

        def trickle():
            for piece in pieces:
                client_side.sendall(piece)
                time.sleep(0.05)

        threading.Thread(target=trickle, daemon=True).start()

        assert make_connection(server_side).read_head() == b"".join(pieces)

    def test_stops_at_eof(self, pair):
        """Test a client that closes before finishing the head."""
        server_side, client_side = pair
        client_side.sendall(b"GET / HTTP/1.1\r\n")
        client_side.shutdown(socket.SHUT_WR)

        assert make_connection(server_side).read_head() == b"GET / HTTP/1.1\r\n"

    def test_empty_on_immediate_close(self, pair):
        """Test a client that sends nothing."""
        server_side, client_side = pair
        client_side.shutdown(socket.SHUT_WR)

        assert make_connection(server_side).read_head() == b""

    def test_stops_at_cap(self, pair):
        """Test that an endless head is cut at max_header_size."""
        server_side, client_side = pair
        client_side.sendall(b"GET / HTTP/1.1\r\nX-Long: " + b"a" * 5000)

        conn = make_connection(server_side, buffer_size=512, max_header_size=2048)
        data = conn.read_head()

        assert len(data) == 2048
        assert data.startswith(b"GET / HTTP/1.1\r\n")
        assert conn.bytes_read == 2048

    def test_timeout(self, pair):
        """Test that a stalled head times out."""
        server_side, client_side = pair
        client_side.sendall(b"GET / HTTP/1.1\r\n")

        conn = make_connection(server_side, timeout=0.1)
        with pytest.raises(TimeoutError):
            conn.read_head()


class TestWriteAndClose:
    """Tests for send_response() and close()."""

    def test_send_response(self, pair):
        """Test that the whole payload arrives."""
        server_side, client_side = pair
        conn = make_connection(server_side)
        payload = b"HTTP/1.1 200 OK\r\nContent-Length: 2\r\n\r\nhi"

        assert conn.send_response(payload) is True
        assert conn.state == ConnectionState.WRITING
        conn.close()

        received = b""
        while True:
            chunk = client_side.recv(1024)
            if not chunk:
                break
            received += chunk
        assert received == payload

    def test_send_to_closed_peer(self, pair):
        """Test that a vanished client is reported, not raised."""
        server_side, client_side = pair
        client_side.close()
        conn = make_connection(server_side)

        assert conn.send_response(b"x" * 65536) is False

    def test_close_bounded_against_streaming_client(self, pair):
        """Test that a client that never stops sending cannot hold close()."""
        server_side, client_side = pair
        stop = threading.Event()

        def feed():
            while not stop.is_set():
                try:
                    client_side.sendall(b"x" * 100)
                except OSError:
                    return
                time.sleep(0.05)

        feeder = threading.Thread(target=feed, daemon=True)
        feeder.start()
        conn = make_connection(server_side)

        started = time.time()
        try:
            conn.close()
            elapsed = time.time() - started
        finally:
            stop.set()
            feeder.join(timeout=2.0)

        assert conn.state == ConnectionState.CLOSED
        assert elapsed < DRAIN_TIMEOUT + 0.5

    def test_close_bounded_by_byte_budget(self, pair):
        """Test that draining stops after max_header_size bytes."""
        server_side, client_side = pair
        client_side.sendall(b"x" * 8192)
        conn = make_connection(server_side, buffer_size=512, max_header_size=1024)

        started = time.time()
        conn.close()

        # Peer never sends EOF, so only the budget ends the drain early
        assert time.time() - started < DRAIN_TIMEOUT / 2
        assert conn.state == ConnectionState.CLOSED

    def test_close_is_idempotent(self, pair):
        """Test closing twice."""
        server_side, client_side = pair
        client_side.shutdown(socket.SHUT_WR)
        conn = make_connection(server_side)

        conn.close()
        conn.close()

        assert conn.state == ConnectionState.CLOSED
        assert server_side.fileno() == -1

    def test_context_manager_closes(self, pair):
        """Test that leaving the with-block closes the connection."""
        server_side, client_side = pair
        client_side.shutdown(socket.SHUT_WR)

        with pytest.raises(RuntimeError):
            with make_connection(server_side) as conn:
                raise RuntimeError("boom")

        assert conn.state == ConnectionState.CLOSED

    def test_client_properties(self, pair):
        """Test address accessors."""
        server_side, _ = pair
        conn = make_connection(server_side)

        assert conn.client_ip == "127.0.0.1"
        assert len(conn.id) == 8
        assert conn.age >= 0
