"""
=============================================================================
WEB SERVER
=============================================================================

WebServer ties the pieces together: the listening socket, the per-request
threads, the route table and the page generator.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                             WebServer                               │
    │                   (lifecycle + request dispatch)                    │
    └───────┬──────────────────────┬───────────────────────┬──────────────┘
            │                      │                       │
            ▼                      ▼                       ▼
    ┌──────────────┐       ┌──────────────┐        ┌──────────────┐
    │ SocketServer │       │  TaskRunner  │        │    routes    │
    │ accept loop  │──────►│ 1 thread per │───────►│    pages     │
    │              │ conn  │   request    │        │ (pure HTML)  │
    └──────────────┘       └──────────────┘        └──────────────┘

=============================================================================
REQUEST LIFECYCLE (worker thread)
=============================================================================

    1. READ      Connection.read_request()
                   timeout → 408, too large → 413, client gone → nothing
    2. PARSE     RequestParser.parse()         error → its status code
    3. LOG       access line, before any decision is made
    4. DISPATCH  method != GET → 405
                 unknown path  → 404
                 known path    → 200 + page
    5. WRITE     ResponseWriter: one response, then the connection closes

Anything that goes wrong after the read becomes a 500 page, as long as
nothing has been written yet. Nothing escapes to the task runner.

=============================================================================
SHUTDOWN
=============================================================================

stop() only closes the listener. Requests already handed to a worker run
to completion; wait_for_requests() lets the caller wait for them.

=============================================================================
"""

import logging
import signal
from typing import Dict, Optional

from .access_log import AccessLogger
from .config import ServerConfig
from .core import (
    Connection,
    ConnectionState,
    RequestTooLargeError,
    ServerState,
    SocketServer,
    TaskRunner,
)
from .handlers.pages import PageContext, render_error, render_page
from .http import (
    HTML_CONTENT_TYPE,
    HTTPParseError,
    HTTPRequest,
    HTTPStatus,
    RequestParser,
    ResponseWriteError,
    ResponseWriter,
    resolve,
)


logger = logging.getLogger(__name__)


class WebServer:
    """
    A small web server serving three HTML pages over GET.

    Usage:
        server = WebServer(ServerConfig(port=8080))
        server.install_signal_handlers()   # main thread only
        try:
            server.start()                 # blocks until stop()
        finally:
            server.dispose()

    A stopped server cannot be started again; create a new one.
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._tasks = TaskRunner(name_prefix="Request")
        self._parser = RequestParser(self.config.max_request_size)
        self._access_log = AccessLogger()
        self._context: Optional[PageContext] = None

        self._original_handlers: Dict[int, object] = {}

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def state(self) -> ServerState:
        return self._socket_server.state

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    @property
    def address(self) -> tuple[str, int]:
        return self._socket_server.address

    @property
    def port(self) -> int:
        """The bound port (the real one when configured with port 0)."""
        return self.address[1]

    @property
    def active_requests(self) -> int:
        """Requests currently being handled on worker threads."""
        return self._tasks.active_count

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def listen(self):
        """
        Bind the listening socket without starting the accept loop.

        Raises:
            OSError: If the address cannot be bound.
            RuntimeError: If the server was already started or stopped.
        """
        self._socket_server.listen()
        self._context = PageContext(port=self.port)

    def start(self):
        """
        Start serving. Blocks until stop() is called.

        Binds first unless listen() was already called.

        Raises:
            OSError: If the address cannot be bound.
            RuntimeError: If the server was already stopped.
        """
        if self.state is ServerState.NOT_STARTED:
            self.listen()
        elif self.state is ServerState.STOPPED:
            raise RuntimeError("Server has been stopped; create a new WebServer")

        print(f"Web server started on http://localhost:{self.port}")
        print("Press Ctrl+C to stop the server...")

        self._socket_server.serve(self._handle_connection)

    def run(self):
        """
        Serve until interrupted, then let in-flight requests finish.

        Installs signal handlers, so call this from the main thread.
        """
        self.install_signal_handlers()
        try:
            self.start()
        finally:
            self.dispose()
            if not self.wait_for_requests(self.config.drain_timeout):
                logger.warning(
                    f"{self.active_requests} request(s) still running after "
                    f"{self.config.drain_timeout}s"
                )

    def stop(self):
        """
        Stop accepting connections. Safe to call more than once.

        Requests already being handled are not interrupted.
        """
        if self._socket_server.shutdown():
            logger.info("Web server stopped.")

    def dispose(self):
        """Stop the server and restore signal handlers. Idempotent."""
        self.stop()
        self._restore_signal_handlers()

    def wait_for_requests(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for in-flight requests to complete.

        Returns:
            True if none are left running, False on timeout.
        """
        return self._tasks.wait(timeout)

    def install_signal_handlers(self):
        """
        Stop the server on SIGINT or SIGTERM.

        Python only delivers signals to the main thread, so this must be
        called from there.
        """
        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, shutting down...")
            self.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            if sig not in self._original_handlers:
                self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signal_handlers(self):
        while self._original_handlers:
            sig, handler = self._original_handlers.popitem()
            signal.signal(sig, handler)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.dispose()
        return False

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Hand an accepted connection to its own worker thread."""
        self._tasks.submit(self._process_connection, args=(conn,))

    def _process_connection(self, conn: Connection):
        """Answer one request on a worker thread."""
        writer = ResponseWriter(conn, self.config.server_name)

        try:
            request = self._read_request(conn, writer)
            if request is None:
                return

            conn.state = ConnectionState.PROCESSING
            self._access_log.log(request)
            self._dispatch(request, writer)

        except ResponseWriteError as e:
            logger.warning(str(e))

        except Exception as e:
            logger.error(f"[{conn.id}] Error handling request: {e}", exc_info=True)
            if not writer.sent:
                try:
                    self._send_error(
                        writer,
                        HTTPStatus.INTERNAL_SERVER_ERROR,
                        "An internal server error occurred while processing your request.",
                    )
                except Exception as send_error:
                    logger.error(f"[{conn.id}] Failed to send error page: {send_error}")

        finally:
            conn.close()

    def _read_request(self, conn: Connection, writer: ResponseWriter) -> Optional[HTTPRequest]:
        """
        Read and parse the request.

        Returns:
            The request, or None if the client was already answered with
            an error page or went away without sending one.
        """
        try:
            raw_request = conn.read_request()
        except TimeoutError:
            logger.debug(f"[{conn.id}] Read timed out")
            self._send_error(
                writer, HTTPStatus.REQUEST_TIMEOUT,
                "The server timed out waiting for the request.",
            )
            return None
        except RequestTooLargeError as e:
            self._send_error(writer, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
            return None

        if raw_request is None:
            logger.debug(f"[{conn.id}] Client closed before sending a request")
            return None

        try:
            return self._parser.parse(raw_request, conn.address)
        except HTTPParseError as e:
            logger.debug(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
            self._send_error(writer, HTTPStatus(e.status_code), str(e))
            return None

    def _dispatch(self, request: HTTPRequest, writer: ResponseWriter):
        """Choose and send the answer for a parsed request."""
        if request.method.upper() != "GET":
            self._send_error(
                writer,
                HTTPStatus.METHOD_NOT_ALLOWED,
                f"Method {request.method} is not supported. "
                f"Only GET requests are allowed.",
            )
            return

        page = resolve(request.path)
        if page is None:
            self._send_error(
                writer,
                HTTPStatus.NOT_FOUND,
                f"The requested page '{request.path}' was not found on this server.",
                status_text="Page Not Found",
            )
            return

        context = self._context or PageContext(port=self.port)
        writer.write(HTTPStatus.OK, HTML_CONTENT_TYPE, render_page(page, context))

    def _send_error(
        self,
        writer: ResponseWriter,
        status: HTTPStatus,
        message: str,
        status_text: Optional[str] = None,
    ):
        """Send the HTML error page for status."""
        payload = render_error(int(status), status_text or status.phrase, message)
        writer.write(status, HTML_CONTENT_TYPE, payload)
