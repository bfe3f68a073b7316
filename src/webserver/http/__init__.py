"""
HTTP protocol pieces: request parsing, response serialisation, the
single-use response writer and the route table.
"""

from .request import HTTPParseError, HTTPRequest, RequestParser
from .response import HTML_CONTENT_TYPE, HTTPResponse, format_http_date
from .routes import ROUTES, Page, resolve
from .status_codes import HTTPStatus
from .writer import ResponseAlreadySentError, ResponseWriteError, ResponseWriter

__all__ = [
    "HTTPParseError",
    "HTTPRequest",
    "RequestParser",
    "HTML_CONTENT_TYPE",
    "HTTPResponse",
    "format_http_date",
    "ROUTES",
    "Page",
    "resolve",
    "HTTPStatus",
    "ResponseAlreadySentError",
    "ResponseWriteError",
    "ResponseWriter",
]
