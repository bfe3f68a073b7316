"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the raw bytes read from a connection into an immutable HTTPRequest.

    b"get /About?x=1 HTTP/1.1\r\nUser-Agent: curl\r\n\r\n"
                         │
                         ▼  RequestParser.parse()
    HTTPRequest(method="get", path="/About",
                headers={"user-agent": "curl"}, ...)

What the parser normalises:

    path     URL-decoded path component only; query string and
             fragment never take part in route matching
    headers  lower-case names, duplicate headers joined with ", "

The method is kept exactly as the client sent it, so logs and the 405
page show what actually arrived. Any RFC 9110 token is a valid method
("M-SEARCH", "PURGE_ALL", "get").

What it does NOT judge: whether the method is supported or the path
exists. Those are routing decisions and belong to the dispatcher, which
answers them with 405 and 404.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict
from urllib.parse import urlparse, unquote
import re


class HTTPParseError(Exception):
    """
    Raised when a request cannot be parsed.

    Carries the status code to answer with:
        400 Bad Request                 - malformed syntax
        413 Payload Too Large           - over the size limit
        505 HTTP Version Not Supported  - not HTTP/1.0 or HTTP/1.1
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed HTTP request.

    Frozen: once read from the connection a request is never modified.
    It is owned by the worker that parsed it and dropped when that worker
    finishes with the connection.
    """

    method: str                          # As sent: GET, get, M-SEARCH, ...
    path: str                            # Decoded path, no query string
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)

    client_address: tuple[str, int] = ("", 0)

    @property
    def client_ip(self) -> str:
        """IP address of the peer that sent the request."""
        return self.client_address[0]

    @property
    def user_agent(self) -> str:
        """User-Agent header, or "" when the client sent none."""
        return self.headers.get("user-agent", "")


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

        1. Size check                    → 413 if too large
        2. Split head / body at \\r\\n\\r\\n → 400 if missing
        3. Request line                  → 400 / 505
        4. Headers
        5. Body length check             → 400 if short

    The body itself is not kept: no page takes input.
    """

    # Method is an RFC 9110 token.
    REQUEST_LINE_PATTERN = re.compile(
        r"^([!#$%&'*+\-.^_`|~0-9A-Za-z]+) ([^ ]+) (HTTP/\d\.\d)$"
    )
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")

    def __init__(self, max_request_size: int = 10 * 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw request bytes.

        Args:
            data: Complete request as read by Connection.read_request().
            client_address: Peer (ip, port), kept for logging.

        Returns:
            The parsed request.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413,
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError(
                f"Invalid Content-Length: {headers['content-length']}"
            )
        if content_length < 0 or len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            client_address=client_address,
        )

    def _parse_request_line(
        self,
        line: str
    ) -> tuple[str, str, str]:
        """
        Parse "METHOD SP REQUEST-URI SP HTTP-VERSION".

        Returns:
            Tuple of (method, path, version).
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        method, uri, version = match.groups()

        if version not in self.SUPPORTED_VERSIONS:
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505,
            )

        # urlparse also handles absolute-form targets (http://host/path)
        # and drops any query or #fragment.
        path = unquote(urlparse(uri).path) or "/"

        return method, path, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse header lines into a dict with lower-case names.

        Continuation lines (leading whitespace) extend the previous
        header; repeated headers are joined with ", "; lines without a
        colon are skipped.
        """
        headers: Dict[str, str] = {}
        current_name = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers
