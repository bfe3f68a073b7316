"""Page generation."""

from .pages import PageContext, format_uptime, render_error, render_page

__all__ = ["PageContext", "format_uptime", "render_error", "render_page"]
