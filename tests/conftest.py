"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pyrack import Server, ServerConfig, Response
from pyrack.apps import HelloWorld, PrettyHello


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /greet?name=Ada&lang=en HTTP/1.1\r\n"
        b"Host: localhost:9292\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a form body."""
    body = b"name=Ada&lang=en"
    return (
        b"POST /greet HTTP/1.1\r\n"
        b"Host: localhost:9292\r\n"
        b"Content-Type: application/x-www-form-urlencoded\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        b"\r\n"
    ) + body


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


def make_config(port: int, **overrides) -> ServerConfig:
    """Small, quiet server settings for tests."""
    settings = dict(
        host="127.0.0.1",
        port=port,
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        keep_alive_timeout=1.0,
        log_level="WARNING",
    )
    settings.update(overrides)
    return ServerConfig(**settings)


class TestServer:
    """Runs a Server in a background thread for the length of a test."""

    __test__ = False

    def __init__(self, server: Server):
        self.server = server
        self.port = server.config.port
        self._thread: threading.Thread = None

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"banner": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw request bytes and read until the server closes."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=timeout) as s:
            s.sendall(raw)
            chunks = []
            while True:
                data = s.recv(4096)
                if not data:
                    break
                chunks.append(data)
        return b"".join(chunks)

    def get(self, path: str = "/", method: str = "GET") -> bytes:
        return self.request(
            f"{method} {path} HTTP/1.1\r\n"
            f"Host: 127.0.0.1:{self.port}\r\n"
            f"Connection: close\r\n"
            f"\r\n".encode()
        )


def split_response(raw: bytes):
    """(status code, lowercase header dict, body) from raw response bytes."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    status = int(lines[0].split(" ")[1])
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()
    return status, headers, body


def flaky(environ):
    """Raises on /boom, otherwise answers like HelloWorld."""
    if environ["PATH_INFO"] == "/boom":
        raise RuntimeError("kaboom")
    if environ["PATH_INFO"] == "/string-body":
        return [200, {"Content-Type": "text/plain"}, "not a list"]
    if environ["PATH_INFO"] == "/echo":
        body = environ["pyrack.input"].read()
        return Response(200, {"Content-Type": "text/plain"}, [
            f"{environ['REQUEST_METHOD']} {environ['PATH_INFO']}?{environ['QUERY_STRING']}\n",
            body,
        ])
    return HelloWorld()(environ)


@pytest.fixture
def test_server(free_port: int) -> Generator[TestServer, None, None]:
    """A running server whose handler can misbehave on purpose."""
    test_srv = TestServer(Server(flaky, make_config(free_port)))
    test_srv.start()

    yield test_srv

    test_srv.stop()


@pytest.fixture
def pretty_server(free_port: int) -> Generator[TestServer, None, None]:
    """A running server for the time-parity handler, clock pinned to even."""
    test_srv = TestServer(Server(PrettyHello(clock=lambda: 1_700_000_000), make_config(free_port)))
    test_srv.start()

    yield test_srv

    test_srv.stop()
