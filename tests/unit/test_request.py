"""
Unit tests for HTTP request parsing.
"""

import pytest

from webserver.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
)


@pytest.fixture
def parser() -> RequestParser:
    return RequestParser()


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, parser, sample_get_request: bytes):
        """Test parsing a simple GET request."""
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/status"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)
        assert request.client_ip == "127.0.0.1"

    def test_parse_headers(self, parser, sample_get_request: bytes):
        """Test that headers are parsed correctly."""
        request = parser.parse(sample_get_request)

        assert request.headers["host"] == "localhost:8080"
        assert request.user_agent == "pytest"
        assert request.headers["accept"] == "text/html"

    def test_query_string_is_dropped(self, parser, sample_get_request: bytes):
        request = parser.parse(sample_get_request)

        assert request.path == "/status"
        assert "verbose" not in request.path

    def test_parse_post_with_body(self, parser, sample_post_request: bytes):
        """Test parsing a POST request with a body."""
        request = parser.parse(sample_post_request)

        assert request.method == "POST"
        assert request.path == "/about"
        assert request.headers["content-length"] == "34"

    def test_method_is_kept_as_sent(self, parser):
        request = parser.parse(b"get /about HTTP/1.1\r\nHost: test\r\n\r\n")
        assert request.method == "get"

    def test_unknown_method_is_parsed(self, parser):
        """Method checks belong to the dispatcher, not the parser."""
        request = parser.parse(b"BREW /pot HTTP/1.1\r\nHost: test\r\n\r\n")
        assert request.method == "BREW"

    @pytest.mark.parametrize("method", ["M-SEARCH", "PURGE_ALL", "X.Y", "A~B!"])
    def test_token_methods_are_parsed(self, parser, method):
        request = parser.parse(f"{method} * HTTP/1.1\r\n\r\n".encode())
        assert request.method == method

    @pytest.mark.parametrize("method", ["GE(T", "G@T", "GET:"])
    def test_non_token_method_is_rejected(self, parser, method):
        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(f"{method} / HTTP/1.1\r\n\r\n".encode())

        assert exc_info.value.status_code == 400

    def test_parse_path_with_special_chars(self, parser):
        """Test URL-encoded path parsing."""
        raw = b"GET /my%20page?q=hello%20world HTTP/1.1\r\nHost: test\r\n\r\n"
        request = parser.parse(raw)

        assert request.path == "/my page"

    def test_fragment_is_dropped(self, parser):
        request = parser.parse(b"GET /about#team HTTP/1.1\r\n\r\n")
        assert request.path == "/about"

    def test_absolute_form_target(self, parser):
        request = parser.parse(b"GET http://localhost:8080/status HTTP/1.1\r\n\r\n")
        assert request.path == "/status"

    def test_parse_invalid_request_line(self, parser):
        """Test handling of malformed request line."""
        raw = b"GET\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(raw)

        assert exc_info.value.status_code == 400

    def test_missing_header_terminator(self, parser):
        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(b"GET / HTTP/1.1\r\nHost: test\r\n")

        assert exc_info.value.status_code == 400

    def test_parse_missing_headers(self, parser):
        """Test parsing request with no headers."""
        request = parser.parse(b"GET / HTTP/1.1\r\n\r\n")

        assert request.method == "GET"
        assert request.path == "/"
        assert len(request.headers) == 0
        assert request.user_agent == ""

    def test_parse_request_too_large(self):
        """Test that oversized requests are rejected."""
        parser = RequestParser(max_request_size=100)
        raw = b"GET / HTTP/1.1\r\n" + b"X-Large: " + b"A" * 200 + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(raw)

        assert exc_info.value.status_code == 413

    def test_http_version_parsing(self, parser):
        """Test HTTP/1.0 and HTTP/1.1 version handling."""
        assert parser.parse(b"GET / HTTP/1.0\r\n\r\n").version == "HTTP/1.0"
        assert parser.parse(b"GET / HTTP/1.1\r\n\r\n").version == "HTTP/1.1"

    def test_unsupported_version(self, parser):
        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(b"GET / HTTP/2.0\r\nHost: test\r\n\r\n")

        assert exc_info.value.status_code == 505

    def test_content_length_handling(self, parser):
        """A body matching Content-Length is accepted."""
        raw = (
            b"POST / HTTP/1.1\r\n"
            b"Content-Length: 9\r\n"
            b"\r\n"
        ) + b"test body"

        request = parser.parse(raw)
        assert request.method == "POST"

    def test_invalid_content_length(self, parser):
        raw = b"POST / HTTP/1.1\r\nContent-Length: ten\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(raw)

        assert exc_info.value.status_code == 400

    def test_incomplete_body(self, parser):
        raw = b"POST / HTTP/1.1\r\nContent-Length: 20\r\n\r\nshort"

        with pytest.raises(HTTPParseError):
            parser.parse(raw)

    def test_case_insensitive_headers(self, parser):
        """Header names are stored lower-cased."""
        raw = b"GET / HTTP/1.1\r\nCONTENT-TYPE: text/html\r\n\r\n"
        request = parser.parse(raw)

        assert request.headers == {"content-type": "text/html"}

    def test_repeated_and_folded_headers(self, parser):
        raw = (
            b"GET / HTTP/1.1\r\n"
            b"Accept: text/html\r\n"
            b"Accept: text/plain\r\n"
            b"X-Long: first\r\n"
            b"  second\r\n"
            b"\r\n"
        )
        request = parser.parse(raw)

        assert request.headers["accept"] == "text/html, text/plain"
        assert request.headers["x-long"] == "first second"


class TestHTTPRequest:
    """Tests for HTTPRequest dataclass."""

    def test_defaults(self):
        request = HTTPRequest(method="GET", path="/")

        assert request.user_agent == ""
        assert request.client_ip == ""

    def test_request_is_immutable(self):
        request = HTTPRequest(method="GET", path="/")

        with pytest.raises(AttributeError):
            request.path = "/about"
