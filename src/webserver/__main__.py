"""
=============================================================================
WEB SERVER CLI ENTRY POINT
=============================================================================

    # Run with defaults (localhost:8080)
    python -m webserver

    # Custom port
    python -m webserver --port 3000

    # Verbose diagnostics
    python -m webserver --log-level DEBUG

Defaults come from the environment (WEBSERVER_PORT, WEBSERVER_LOG_LEVEL);
command-line options override them.

On Ctrl+C or SIGTERM the listener closes at once, then the process waits
up to drain_timeout seconds for requests that are still being answered.

=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .access_log import setup_logging
from .config import ServerConfig
from .server import WebServer


def build_parser(defaults: Optional[ServerConfig] = None) -> argparse.ArgumentParser:
    """Create the argument parser, taking defaults from the environment."""
    defaults = defaults or ServerConfig.from_env()

    parser = argparse.ArgumentParser(
        prog="webserver",
        description="Small web server serving three HTML pages over GET",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m webserver                  # Run on port 8080
  python -m webserver --port 3000      # Custom port
  python -m webserver -l DEBUG         # Verbose logging
        """,
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})",
    )

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level.upper()})",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"SimpleWebServer {__version__}",
    )

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run the server until interrupted.

    Returns:
        Process exit code: 0 after a clean stop, 1 if startup failed.
    """
    try:
        args = build_parser().parse_args(argv)
        config = ServerConfig(port=args.port, log_level=args.log_level)
        server = WebServer(config)
    except ValueError as e:
        print(f"Failed to start server: {e}", file=sys.stderr)
        return 1

    setup_logging(config.log_level)

    try:
        server.run()
    except (OSError, RuntimeError) as e:
        print(f"Failed to start server: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
