"""
=============================================================================
HTML PAGES
=============================================================================

Every page the server sends is generated here: the three content pages
and the error page used for 4xx/5xx answers.

    render_page(Page.STATUS, context)      →  b"<!DOCTYPE html>..."
    render_error(404, "Page Not Found", …) →  b"<!DOCTYPE html>..."

The functions are pure: no sockets, no logging, no shared state. What
varies between two renders is read at render time:

    - the current local time (every page shows it)
    - platform and Python version (status page)
    - uptime, from PageContext.started_at (status page)

so two requests a second apart never see the same timestamp.

Nothing taken from a request is inserted into a page unescaped. The only
request-derived text that reaches HTML is the error message (which may
quote the path or method), and render_error escapes it.

=============================================================================
"""

import html
import platform
import time
from dataclasses import dataclass, field
from datetime import datetime
from string import Template
from typing import Callable, Dict

from ..http.routes import Page


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class PageContext:
    """Server facts shown on the pages."""
    port: int = 8080
    started_at: float = field(default_factory=time.time)


# ─────────────────────────────────────────────────────────────────────────
# SHARED LAYOUT
# ─────────────────────────────────────────────────────────────────────────

_LAYOUT = Template("""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>$title</title>
    <style>
        body { font-family: Arial, sans-serif; max-width: 800px; margin: 0 auto; padding: 20px; background-color: #f5f5f5; }
        .container { background-color: white; padding: 30px; border-radius: 8px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
        h1 { color: #333; text-align: center; }
        .welcome { color: #666; text-align: center; font-size: 18px; margin: 20px 0; }
        .info { background-color: #e7f3ff; padding: 15px; border-radius: 5px; margin: 20px 0; }
        .status-ok { color: #28a745; font-weight: bold; }
        .nav { text-align: center; margin: 20px 0; }
        .nav a { margin: 0 10px; color: #007acc; text-decoration: none; }
        .nav a:hover { text-decoration: underline; }
    </style>
</head>
<body>
    <div class="container">
$content
        <div class="nav">
            <a href="/">Home</a>
            <a href="/about">About</a>
            <a href="/status">Status</a>
        </div>
    </div>
</body>
</html>
""")

_WELCOME = Template("""        <h1>Welcome to the Python Web Server!</h1>
        <p class="welcome">A small web server built on raw sockets and the Python standard library.</p>

        <div class="info">
            <h3>Server Information:</h3>
            <ul>
                <li>Server Time: $now</li>
                <li>Built with: Python $python_version and the socket module</li>
                <li>Port: $port</li>
                <li>No external dependencies!</li>
            </ul>
        </div>
""")

_ABOUT = Template("""        <h1>About This Server</h1>
        <p>This web server demonstrates a simple HTTP server written with nothing but the Python standard library.</p>

        <h3>Features:</h3>
        <ul>
            <li>HTTP GET request handling</li>
            <li>Multiple page routing</li>
            <li>Request logging with client IP and path</li>
            <li>Clean HTML responses</li>
            <li>Error handling (404, 405, 500)</li>
        </ul>

        <h3>Technology Stack:</h3>
        <ul>
            <li>Python $python_version</li>
            <li>socket and threading modules</li>
            <li>One thread per request</li>
            <li>No external dependencies</li>
        </ul>

        <p>Page generated at $now.</p>
""")

_STATUS = Template("""        <h1>Server Status</h1>
        <p class="status-ok">&#9989; Server is running normally</p>

        <h3>System Information:</h3>
        <ul>
            <li>Current Time: $now</li>
            <li>Server Uptime: $uptime (since $started)</li>
            <li>Platform: $platform</li>
            <li>Python Version: $python_implementation $python_version</li>
        </ul>
""")

_ERROR = Template("""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Error $code - $status_text</title>
    <style>
        body { font-family: Arial, sans-serif; text-align: center; margin-top: 50px; }
        .error { color: #d32f2f; }
    </style>
</head>
<body>
    <h1 class="error">Error $code</h1>
    <h2>$status_text</h2>
    <p>$message</p>
    <a href="/">Return to Home</a>
</body>
</html>
""")


# ─────────────────────────────────────────────────────────────────────────
# PAGE RENDERERS
# ─────────────────────────────────────────────────────────────────────────

def _now() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def format_uptime(seconds: float) -> str:
    """Format a duration as e.g. "2d 03h 04m 05s" (days only when non-zero)."""
    seconds = max(0, int(seconds))
    days, seconds = divmod(seconds, 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    text = f"{hours:02d}h {minutes:02d}m {seconds:02d}s"
    return f"{days}d {text}" if days else text


def _welcome(context: PageContext) -> str:
    return _WELCOME.substitute(
        now=_now(),
        python_version=platform.python_version(),
        port=context.port,
    )


def _about(context: PageContext) -> str:
    return _ABOUT.substitute(
        now=_now(),
        python_version=platform.python_version(),
    )


def _status(context: PageContext) -> str:
    return _STATUS.substitute(
        now=_now(),
        uptime=format_uptime(time.time() - context.started_at),
        started=datetime.fromtimestamp(context.started_at).strftime(TIMESTAMP_FORMAT),
        platform=html.escape(platform.platform()),
        python_implementation=platform.python_implementation(),
        python_version=platform.python_version(),
    )


_RENDERERS: Dict[Page, Callable[[PageContext], str]] = {
    Page.WELCOME: _welcome,
    Page.ABOUT: _about,
    Page.STATUS: _status,
}

_TITLES: Dict[Page, str] = {
    Page.WELCOME: "Welcome to the Python Web Server",
    Page.ABOUT: "About - Python Web Server",
    Page.STATUS: "Server Status - Python Web Server",
}


def render_page(page: Page, context: PageContext) -> bytes:
    """
    Render one of the content pages.

    Args:
        page: Which page to render.
        context: Server facts (port, start time).

    Returns:
        UTF-8 encoded HTML.
    """
    content = _RENDERERS[page](context)
    return _LAYOUT.substitute(title=_TITLES[page], content=content).encode("utf-8")


def render_error(status_code: int, status_text: str, message: str) -> bytes:
    """
    Render the error page.

    The page is titled "Error {code} - {status_text}", shows the message
    and links back to "/".

    Returns:
        UTF-8 encoded HTML.
    """
    return _ERROR.substitute(
        code=int(status_code),
        status_text=html.escape(status_text, quote=False),
        message=html.escape(message, quote=False),
    ).encode("utf-8")
