"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Callable, Generator, Optional

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mockserver import MockServer, ServerConfig
from mockserver.http import RouteTable


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request with a query string."""
    return (
        b"GET /api/users?page=1&limit=10 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"X-Token: abc\r\n"
        b"\r\n"
    )


@pytest.fixture
def body_files(tmp_path: Path) -> dict:
    """Files used as file/dl route bodies."""
    text = tmp_path / "greeting.txt"
    text.write_bytes(b"hello\r\nworld\n")

    pdf = tmp_path / "report.pdf"
    pdf.write_bytes(b"%PDF-1.4\x00\x01\xff binary")

    blob = tmp_path / "blob.bin"
    blob.write_bytes(b"\x00\x01\x02")

    noext = tmp_path / "README"
    noext.write_bytes(b"plain")

    return {"text": text, "pdf": pdf, "blob": blob, "noext": noext}


@pytest.fixture
def route_data(body_files: dict) -> list:
    """Decoded JSON route list covering every result type."""
    return [
        {"path": "/hello", "method": "GET", "result_type": "direct", "result": '{"ok":true}'},
        {"path": "/created", "method": "POST", "result_type": "direct", "result": "made", "status_code": 201},
        {
            "path": "/secure",
            "method": "GET",
            "headers": ["X-Token"],
            "queries": ["id"],
            "result_type": "direct",
            "result": "secret",
            "result_headers": ["X-Mock: yes", "Content-Type: text/plain"],
        },
        {"path": "/text", "method": "GET", "result_type": "file", "result": str(body_files["text"])},
        {"path": "/dl", "method": "GET", "result_type": "dl", "result": str(body_files["pdf"])},
        {"path": "/missing", "method": "GET", "result_type": "file", "result": str(body_files["text"].parent / "nope.txt")},
    ]


@pytest.fixture
def route_table(route_data: list) -> RouteTable:
    return RouteTable.from_list(route_data)


def send_raw(port: int, data: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes to the server and read until it closes the connection."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        sock.sendall(data)
        chunks = []
        while True:
            try:
                chunk = sock.recv(4096)
            except ConnectionResetError:
                break
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # not a test class

    def __init__(self, server: MockServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, data: bytes) -> bytes:
        return send_raw(self.port, data)


@pytest.fixture
def make_server(route_table: RouteTable) -> Generator[Callable[..., TestServer], None, None]:
    """Factory starting a mock server on a free port; stopped after the test."""
    started = []

    def factory(table: Optional[RouteTable] = None, **config_kwargs) -> TestServer:
        settings = dict(
            host="127.0.0.1",
            port=0,  # Let OS pick a free port
            min_workers=2,
            timeout=5.0,
            log_level="WARNING",
        )
        settings.update(config_kwargs)
        config = ServerConfig(**settings)
        test_srv = TestServer(MockServer(config, table if table is not None else route_table))
        test_srv.start()
        started.append(test_srv)
        return test_srv

    yield factory

    for test_srv in started:
        test_srv.stop()


@pytest.fixture
def test_server(make_server) -> TestServer:
    """A running mock server in respond mode serving route_table."""
    return make_server()
