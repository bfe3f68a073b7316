"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables of the web server live in one dataclass. The only setting an
operator normally touches is the port; everything else has a sensible
default and exists so tests and embedding code can tighten it.

=============================================================================
SOURCES OF CONFIGURATION
=============================================================================

    ┌──────────────┐     ┌──────────────┐     ┌──────────────┐
    │  defaults    │ ──► │ environment  │ ──► │  CLI flags   │
    │ (dataclass)  │     │ WEBSERVER_*  │     │ --port, ...  │
    └──────────────┘     └──────────────┘     └──────────────┘

Later sources win. The CLI reads the environment first (from_env) and then
overrides individual fields from argparse.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the web server.

    Development:
        ServerConfig(port=8080, log_level="DEBUG")

    Tests:
        ServerConfig(port=0, timeout=5.0)   # OS picks a free port
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    Interface to bind to. The server only ever listens on loopback.
    """

    port: int = 8080
    """
    TCP port to listen on. 0 lets the OS choose a free port, which is
    what the test-suite does; read the real one back from WebServer.port.
    """

    backlog: int = 128
    """
    Maximum number of connections the OS queues before accept() picks
    them up.
    """

    buffer_size: int = 8192
    """Size of each recv() call in bytes."""

    timeout: Optional[float] = 30.0
    """
    Read timeout for a single client connection, in seconds.
    None blocks forever on a silent client.
    """

    max_request_size: int = 10 * 1024 * 1024  # 10 MB
    """Requests larger than this are answered with 413."""

    # ─────────────────────────────────────────────────────────────────────
    # LIFECYCLE
    # ─────────────────────────────────────────────────────────────────────

    drain_timeout: float = 30.0
    """
    How long the CLI waits for in-flight requests after the listener has
    been closed, before the process exits.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING / IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Level for diagnostic logging (DEBUG, INFO, WARNING, ERROR)."""

    server_name: str = "SimpleWebServer/1.0"
    """Value of the Server response header."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        WEBSERVER_PORT       Port to listen on (default: 8080)
        WEBSERVER_LOG_LEVEL  Logging level (default: INFO)

        Example:
            WEBSERVER_PORT=3000 python -m webserver
        """
        return cls(
            port=int(os.getenv("WEBSERVER_PORT", "8080")),
            log_level=os.getenv("WEBSERVER_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called by WebServer on construction so a bad value fails at
        startup, not on the first request.

        Raises:
            ValueError: If any setting is out of range.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_request_size < self.buffer_size:
            raise ValueError("max_request_size must be >= buffer_size")

        if self.drain_timeout < 0:
            raise ValueError("drain_timeout must be >= 0")

        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(
                f"Invalid log level: {self.log_level}. "
                f"Must be one of {', '.join(_LOG_LEVELS)}."
            )
