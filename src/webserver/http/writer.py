"""
Single-use response writer.

A ResponseWriter is bound to one Connection and writes exactly one
response to it. Whatever happens while writing, the connection is closed
when write() returns or raises.
"""

import logging

from ..core.connection import Connection
from .response import HTTPResponse
from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)


class ResponseAlreadySentError(RuntimeError):
    """write() was called twice for the same connection."""


class ResponseWriteError(ConnectionError):
    """The response could not be delivered to the client."""


class ResponseWriter:
    """
    Writes the one response a connection gets.

        writer = ResponseWriter(conn)
        writer.write(HTTPStatus.OK, HTML_CONTENT_TYPE, payload)
        writer.sent      # True, and conn is closed

    Precondition: write() is called at most once. A second call is a bug
    in the caller and raises ResponseAlreadySentError; it is not something
    to recover from at runtime.
    """

    def __init__(self, conn: Connection, server_name: str = "SimpleWebServer/1.0"):
        self._conn = conn
        self._server_name = server_name
        self._sent = False

    @property
    def sent(self) -> bool:
        """True once a response has been committed to this connection."""
        return self._sent

    @property
    def connection(self) -> Connection:
        return self._conn

    def write(self, status: HTTPStatus, content_type: str, payload: bytes) -> None:
        """
        Send a complete response and release the connection.

        Args:
            status: Response status.
            content_type: Value for the Content-Type header.
            payload: Body bytes; Content-Length is taken from its length.

        Raises:
            ResponseAlreadySentError: If a response was already written.
            ResponseWriteError: If the client could not be written to.
        """
        if self._sent:
            raise ResponseAlreadySentError(
                f"[{self._conn.id}] Response already sent on this connection"
            )
        response = HTTPResponse(
            status=status,
            headers={
                "Content-Type": content_type,
                "Connection": "close",
            },
            body=payload,
        )

        data = response.to_bytes(self._server_name)
        self._sent = True

        try:
            if not self._conn.send_response(data):
                raise ResponseWriteError(
                    f"[{self._conn.id}] Failed to send {int(status)} response "
                    f"to {self._conn.client_ip}"
                )
            logger.debug(
                f"[{self._conn.id}] {int(status)} {status.phrase} "
                f"({len(payload)} bytes)"
            )
        finally:
            self._conn.close()
