"""
=============================================================================
ACCESS LOG AND LOGGING SETUP
=============================================================================

Every request that parses is recorded as one line on the
"webserver.access" logger, before the server decides how to answer it:

    [2024-06-10 10:55:36] GET /about - Client: 127.0.0.1 - User-Agent: curl/8.4.0

A request without a User-Agent header is logged as "User-Agent: Unknown".

Diagnostics (bind failures, send errors, tracebacks) go through the
normal per-module loggers under "webserver". setup_logging() configures
both; it is called once by the command-line entry point. Library users
and the test-suite configure logging themselves.

=============================================================================
"""

import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .http.request import HTTPRequest


ACCESS_LOGGER_NAME = "webserver.access"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class RequestLog:
    """One access-log record."""
    method: str
    path: str
    client_ip: str
    user_agent: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_request(cls, request: HTTPRequest) -> "RequestLog":
        return cls(
            method=request.method,
            path=request.path,
            client_ip=request.client_ip,
            user_agent=request.user_agent,
        )

    def to_text(self) -> str:
        """Format as a single access-log line."""
        return (
            f"[{self.timestamp.strftime(TIMESTAMP_FORMAT)}] "
            f"{self.method} {self.path} - "
            f"Client: {self.client_ip} - "
            f"User-Agent: {self.user_agent or 'Unknown'}"
        )


class AccessLogger:
    """
    Writes access-log lines.

    Called concurrently from request threads. Each record is a single
    logging call, so lines never interleave.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(ACCESS_LOGGER_NAME)

    def log(self, request: HTTPRequest) -> RequestLog:
        record = RequestLog.from_request(request)
        self.logger.info(record.to_text())
        return record


def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the command-line server.

    Diagnostics go to stderr with a timestamp, level and logger name.
    Access lines go to stdout as-is, since they carry their own timestamp.
    Calling this twice does not add a second access handler.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format=_LOG_FORMAT,
        datefmt=TIMESTAMP_FORMAT,
    )
    logging.getLogger("webserver").setLevel(numeric_level)

    access = logging.getLogger(ACCESS_LOGGER_NAME)
    access.setLevel(logging.INFO)
    access.propagate = False
    if not any(getattr(h, "_webserver_access", False) for h in access.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler._webserver_access = True
        access.addHandler(handler)
