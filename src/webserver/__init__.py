"""
=============================================================================
WEBSERVER - A Small Web Server on Raw Sockets
=============================================================================

Serves three HTML pages (welcome, about, status) to GET requests on a
local port, with one thread per request and nothing outside the Python
standard library.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    webserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m webserver)
    ├── server.py            # WebServer: lifecycle + request dispatch
    ├── config.py            # ServerConfig dataclass
    ├── access_log.py        # Access log line + logging setup
    ├── core/
    │   ├── socket_server.py # Listening socket and accept loop
    │   ├── connection.py    # Connection wrapper
    │   └── tasks.py         # Thread-per-request runner
    ├── http/
    │   ├── request.py       # Request parsing
    │   ├── response.py      # Response serialisation
    │   ├── writer.py        # Single-use response writer
    │   ├── routes.py        # Route table
    │   └── status_codes.py  # Status enum
    └── handlers/
        └── pages.py         # HTML page generator

=============================================================================
QUICK START
=============================================================================

    from webserver import WebServer, ServerConfig

    server = WebServer(ServerConfig(port=8080))
    server.run()        # Ctrl+C to stop

=============================================================================
"""

__version__ = "1.0.0"

from .server import WebServer
from .config import ServerConfig

__all__ = ["WebServer", "ServerConfig", "__version__"]
