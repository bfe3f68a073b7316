"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, Generator, Optional

import pytest

from webserver import WebServer, ServerConfig
from webserver.core import ServerState


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /status?verbose=1&lang=en HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a form body."""
    body = b"name=John&email=john%40example.com"
    return (
        b"POST /about HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/x-www-form-urlencoded\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
    ) + body


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        timeout=5.0,
        log_level="WARNING",
    )


# ─────────────────────────────────────────────────────────────────────────
# RAW HTTP CLIENT
# ─────────────────────────────────────────────────────────────────────────

@dataclass
class RawResponse:
    """A response as read off the wire."""
    status: int
    reason: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")


def read_response(sock: socket.socket) -> RawResponse:
    """Read until the server closes the connection, then parse."""
    chunks = []
    while True:
        chunk = sock.recv(65536)
        if not chunk:
            break
        chunks.append(chunk)
    return parse_response(b"".join(chunks))


def parse_response(data: bytes) -> RawResponse:
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("iso-8859-1").split("\r\n")
    _version, status, reason = lines[0].split(" ", 2)
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()
    return RawResponse(status=int(status), reason=reason, headers=headers, body=body)


def http_request(
    port: int,
    method: str = "GET",
    path: str = "/",
    headers: Optional[Dict[str, str]] = None,
    raw: Optional[bytes] = None,
    timeout: float = 5.0,
) -> RawResponse:
    """
    Send one request over a fresh connection and return the response.

    raw replaces the generated request bytes entirely.
    """
    if raw is None:
        lines = [f"{method} {path} HTTP/1.1", f"Host: 127.0.0.1:{port}"]
        for name, value in (headers or {}).items():
            lines.append(f"{name}: {value}")
        raw = ("\r\n".join(lines) + "\r\n\r\n").encode()

    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        sock.sendall(raw)
        return read_response(sock)


# ─────────────────────────────────────────────────────────────────────────
# BACKGROUND SERVER
# ─────────────────────────────────────────────────────────────────────────

class ServerHarness:
    """Runs a WebServer on a background thread."""

    def __init__(self, server: WebServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.port

    def start(self):
        """Bind, then run the accept loop in a background thread."""
        self.server.listen()
        self._thread = threading.Thread(target=self.server.start, daemon=True)
        self._thread.start()

        deadline = time.time() + 5.0
        while not self.server.is_running:
            if time.time() > deadline:
                raise RuntimeError("Server failed to start")
            time.sleep(0.01)

    def stop(self):
        """Stop the server and wait for the accept loop to exit."""
        self.server.dispose()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        self.server.wait_for_requests(timeout=5.0)


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[ServerHarness, None, None]:
    """A started server on an ephemeral port."""
    harness = ServerHarness(WebServer(config))
    harness.start()

    yield harness

    harness.stop()
    assert harness.server.state is ServerState.STOPPED


@pytest.fixture
def http():
    """The raw-socket client: http(port, method, path, headers=..., raw=...)."""
    return http_request


@pytest.fixture
def response_reader():
    """Read a full response from a socket until the server closes it."""
    return read_response


@pytest.fixture
def server_factory() -> Generator:
    """Start servers with custom configs; all are stopped after the test."""
    harnesses = []

    def make(config: ServerConfig) -> ServerHarness:
        harness = ServerHarness(WebServer(config))
        harness.start()
        harnesses.append(harness)
        return harness

    yield make

    for harness in harnesses:
        harness.stop()
