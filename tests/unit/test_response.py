"""
Unit tests for HTTP response serialisation.
"""

from datetime import datetime, timezone

from webserver.http.response import (
    HTTPResponse,
    format_http_date,
)
from webserver.http.status_codes import HTTPStatus


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        """Test status line generation."""
        response = HTTPResponse(status=HTTPStatus.OK)
        assert response.status_line == "HTTP/1.1 200 OK"

        response = HTTPResponse(status=HTTPStatus.NOT_FOUND)
        assert response.status_line == "HTTP/1.1 404 Not Found"

        response = HTTPResponse(status=HTTPStatus.METHOD_NOT_ALLOWED)
        assert response.status_line == "HTTP/1.1 405 Method Not Allowed"

    def test_to_bytes_includes_headers(self):
        """Test that to_bytes includes all headers."""
        response = HTTPResponse(
            status=HTTPStatus.OK,
            headers={"X-Custom": "value"},
            body=b"test",
        )

        result = response.to_bytes()

        assert result.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"X-Custom: value\r\n" in result
        assert b"Content-Length: 4\r\n" in result
        assert result.endswith(b"\r\n\r\ntest")

    def test_content_length_is_body_byte_length(self):
        """Multi-byte characters count as bytes, not characters."""
        response = HTTPResponse(body="héllo ✓".encode("utf-8"))
        result = response.to_bytes()

        assert f"Content-Length: {len('héllo ✓'.encode('utf-8'))}\r\n".encode() in result

    def test_stale_content_length_is_replaced(self):
        response = HTTPResponse(headers={"Content-Length": "999"}, body=b"abc")
        result = response.to_bytes()

        assert b"Content-Length: 3\r\n" in result
        assert b"999" not in result

    def test_server_and_date_headers(self):
        result = HTTPResponse(body=b"x").to_bytes(server_name="TestServer/0.1")

        assert b"Server: TestServer/0.1\r\n" in result
        assert b"Date: " in result

    def test_empty_body(self):
        result = HTTPResponse(status=HTTPStatus.BAD_REQUEST).to_bytes()

        assert b"Content-Length: 0\r\n" in result
        assert result.endswith(b"\r\n\r\n")


class TestHTTPStatus:

    def test_lookup_by_code(self):
        assert HTTPStatus(505) is HTTPStatus.HTTP_VERSION_NOT_SUPPORTED
        assert HTTPStatus(413).phrase == "Payload Too Large"


def test_format_http_date():
    dt = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    assert format_http_date(dt) == "Thu, 01 Jan 2026 12:00:00 GMT"
