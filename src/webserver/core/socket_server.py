"""
=============================================================================
LISTENING SOCKET AND ACCEPT LOOP
=============================================================================

SocketServer owns the listening socket for its whole life and runs the
loop that accepts client connections. It knows nothing about HTTP: every
accepted socket is wrapped in a Connection and passed to a callback.

=============================================================================
LIFECYCLE
=============================================================================

    ┌─────────────┐  listen()   ┌─────────────┐  shutdown()  ┌─────────────┐
    │ NOT_STARTED │ ──────────► │  LISTENING  │ ───────────► │   STOPPED   │
    └─────────────┘             └─────────────┘              └─────────────┘
          │                                                         ▲
          └──────────────────────── shutdown() ─────────────────────┘

STOPPED is terminal. A stopped SocketServer cannot listen again; create a
new one instead. A failed bind leaves the server in NOT_STARTED.

=============================================================================
THE ACCEPT STEP
=============================================================================

serve() repeats one accept step. The step never uses an exception to
tell the loop what to do next; it returns an AcceptResult:

    CONTINUE   a connection was handed off, the poll timed out, or a
               transient error was logged; go round again
    STOPPED    shutdown() closed the listener; leave quietly
    ERROR      the listener itself is broken; log and leave

The listening socket has a short timeout so the loop re-checks the
running flag regularly. shutdown() also calls socket.shutdown() on the
listener, which wakes a blocked accept() on Linux immediately; the
timeout covers platforms where closing does not.

    SO_REUSEADDR   rebind right after a restart (skip TIME_WAIT)
    TCP_NODELAY    inherited by accepted sockets; send small
                   responses without Nagle delay

=============================================================================
"""

import errno
import socket
import logging
import threading
from enum import Enum
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class ServerState(Enum):
    """Lifecycle state of the listening socket."""
    NOT_STARTED = "not_started"
    LISTENING = "listening"
    STOPPED = "stopped"


class AcceptResult(Enum):
    """Outcome of one accept step."""
    CONTINUE = "continue"
    STOPPED = "stopped"
    ERROR = "error"


# accept() errors that mean the listener is unusable, not that one
# incoming connection went wrong.
_FATAL_ACCEPT_ERRNOS = frozenset({errno.EBADF, errno.ENOTSOCK, errno.EINVAL})


class SocketServer:
    """
    Low-level TCP listener.

    Usage:
        def handle_connection(conn: Connection):
            ...  # must not block; hand off to a worker

        server = SocketServer(config)
        server.listen()
        server.serve(handle_connection)   # blocks until shutdown()

    shutdown() may be called from any thread, including a signal handler
    running on the thread that is inside serve().
    """

    ACCEPT_POLL_INTERVAL = 0.5
    """Seconds accept() waits before re-checking the running flag."""

    ACCEPT_ERROR_BACKOFF = 0.05
    """Pause after a transient accept error (e.g. EMFILE) before retrying."""

    def __init__(self, config: ServerConfig):
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._bound_address: Optional[Tuple[str, int]] = None
        self._state = ServerState.NOT_STARTED

        # Set while LISTENING. The accept loop reads it every iteration;
        # only listen() and shutdown() change it.
        self._running = threading.Event()
        self._stopped = threading.Event()

        # Serialises state transitions. Re-entrant because shutdown() can
        # run from a signal handler on a thread already inside listen().
        self._lock = threading.RLock()

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def address(self) -> Tuple[str, int]:
        """
        The (host, port) the server is bound to.

        Before listen() this is the configured address; afterwards the
        port is the real one, which matters when config.port is 0. It
        stays available after shutdown().
        """
        return self._bound_address or (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """Create the listening socket and set its options."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(self.ACCEPT_POLL_INTERVAL)
        return sock

    def listen(self):
        """
        Bind and start listening.

        Raises:
            RuntimeError: If the server already listened or was stopped.
            OSError: If the address cannot be bound. The error is logged
                     and the server stays NOT_STARTED.
        """
        with self._lock:
            if self._state is not ServerState.NOT_STARTED:
                raise RuntimeError(
                    f"Cannot listen from state {self._state.value}; "
                    f"create a new server instead"
                )

            sock = self._create_socket()
            try:
                sock.bind((self.config.host, self.config.port))
                sock.listen(self.config.backlog)
            except OSError as e:
                logger.error(
                    f"Failed to bind to {self.config.host}:{self.config.port}: {e}"
                )
                sock.close()
                raise

            self._socket = sock
            self._bound_address = sock.getsockname()[:2]
            self._state = ServerState.LISTENING
            self._running.set()

        host, port = self.address
        logger.info(f"Listening on {host}:{port}")

    def serve(self, connection_handler: Callable[[Connection], None]):
        """
        Run the accept loop until shutdown() or a fatal listener error.

        Args:
            connection_handler: Called with each accepted Connection. It
                                should return quickly; slow work belongs
                                on another thread.

        Returns immediately if shutdown() already happened.

        Raises:
            RuntimeError: If listen() was never called.
        """
        if self._state is ServerState.NOT_STARTED:
            raise RuntimeError("Cannot serve before listen()")

        try:
            while True:
                result = self._accept_once(connection_handler)
                if result is AcceptResult.CONTINUE:
                    continue
                if result is AcceptResult.ERROR:
                    logger.error("Listening socket failed, leaving accept loop")
                break
        finally:
            # After a fatal error the listener still needs releasing.
            self.shutdown()

    def _accept_once(self, connection_handler: Callable[[Connection], None]) -> AcceptResult:
        """
        Wait for one connection and hand it off.

        Returns:
            What the loop should do next.
        """
        sock = self._socket
        if not self._running.is_set() or sock is None:
            return AcceptResult.STOPPED

        try:
            client_socket, client_address = sock.accept()
        except socket.timeout:
            return AcceptResult.CONTINUE
        except OSError as e:
            if not self._running.is_set():
                # shutdown() closed the listener under us.
                return AcceptResult.STOPPED
            if e.errno in _FATAL_ACCEPT_ERRNOS:
                logger.error(f"Accept failed on listening socket: {e}")
                return AcceptResult.ERROR
            logger.error(f"Accept error: {e}")
            self._backoff()
            return AcceptResult.CONTINUE

        logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

        try:
            conn = Connection(
                socket=client_socket,
                address=client_address[:2],
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_request_size=self.config.max_request_size,
            )
        except OSError as e:
            # The client can vanish between accept() and setup.
            logger.warning(f"Dropping connection from {client_address[0]}: {e}")
            client_socket.close()
            return AcceptResult.CONTINUE

        try:
            connection_handler(conn)
        except Exception as e:
            logger.exception(f"[{conn.id}] Failed to dispatch connection: {e}")
            conn.close()

        return AcceptResult.CONTINUE

    def _backoff(self):
        # Returns early if shutdown() happens meanwhile.
        self._stopped.wait(self.ACCEPT_ERROR_BACKOFF)

    def shutdown(self) -> bool:
        """
        Stop accepting and release the listening socket.

        Safe to call more than once and from any thread. Connections that
        were already handed off are not touched.

        Returns:
            True if this call stopped the server, False if it was already
            stopped.
        """
        with self._lock:
            if self._state is ServerState.STOPPED:
                return False

            self._state = ServerState.STOPPED
            self._running.clear()
            self._stopped.set()
            sock, self._socket = self._socket, None

        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass  # Listening sockets are often "not connected"
            try:
                sock.close()
            except OSError:
                pass
            logger.info("Listening socket closed")

        return True
