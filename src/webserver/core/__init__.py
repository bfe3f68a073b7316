"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking layer underneath the HTTP code:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  SocketServer   listening socket + accept loop (one thread)         │
    └──────────────────────────────┬──────────────────────────────────────┘
                                   │ each accepted socket
                                   ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  TaskRunner     starts one daemon thread per connection             │
    └──────────────────────────────┬──────────────────────────────────────┘
                                   │ on the worker thread
                                   ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  Connection     buffered read, sendall, FIN + close                 │
    └─────────────────────────────────────────────────────────────────────┘

None of these know anything about HTTP pages or routes.

=============================================================================
"""

from .connection import Connection, ConnectionState, RequestTooLargeError
from .socket_server import AcceptResult, ServerState, SocketServer
from .tasks import TaskRunner

__all__ = [
    "Connection",
    "ConnectionState",
    "RequestTooLargeError",
    "AcceptResult",
    "ServerState",
    "SocketServer",
    "TaskRunner",
]
