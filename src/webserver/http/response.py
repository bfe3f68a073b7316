"""
=============================================================================
HTTP RESPONSE
=============================================================================

A response is a status, a set of headers and a body. HTTPResponse holds
those three and serialises them in the order HTTP requires:

    HTTP/1.1 200 OK\\r\\n                          ← status line
    Content-Type: text/html; charset=utf-8\\r\\n
    Content-Length: 1234\\r\\n                     ← always the body's byte length
    Connection: close\\r\\n
    Date: Mon, 19 Oct 2026 12:00:00 GMT\\r\\n
    Server: SimpleWebServer/1.0\\r\\n
    \\r\\n                                         ← end of head
    <!DOCTYPE html>...                            ← body bytes

Status and headers are fixed before the first body byte: to_bytes() builds
the whole head first and appends the body to it.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict

from .status_codes import HTTPStatus


HTML_CONTENT_TYPE = "text/html; charset=utf-8"


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialised.

        response = HTTPResponse(
            HTTPStatus.OK,
            headers={"Content-Type": HTML_CONTENT_TYPE},
            body=b"<h1>Hi</h1>",
        )
        conn.send_response(response.to_bytes())
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 200 OK"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def to_bytes(self, server_name: str = "SimpleWebServer/1.0") -> bytes:
        """
        Serialise to bytes for socket.sendall().

        Content-Length is always recomputed from the body so the header
        can never disagree with what is sent. Date and Server are added
        unless already present.
        """
        response_headers = dict(self.headers)
        response_headers["Content-Length"] = str(len(self.body))

        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Example: Wed, 01 Jan 2026 12:00:00 GMT

    Weekday and month names are fixed English abbreviations, not the
    locale's, so strftime("%a") is not used.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )
