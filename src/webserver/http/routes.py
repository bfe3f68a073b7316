"""
Route table.

The server knows exactly three pages. A route is a literal path; matching
is an exact, case-insensitive dictionary lookup. There are no parameters,
no wildcards and no prefix matching, so "/about/" and "/about/team" are
both unknown.
"""

from enum import Enum
from typing import Dict, Optional


class Page(Enum):
    """The pages the server can render."""
    WELCOME = "welcome"
    ABOUT = "about"
    STATUS = "status"


# Keys are lower-case; resolve() lower-cases the request path.
ROUTES: Dict[str, Page] = {
    "/": Page.WELCOME,
    "/index": Page.WELCOME,
    "/index.html": Page.WELCOME,
    "/about": Page.ABOUT,
    "/status": Page.STATUS,
}


def resolve(path: str) -> Optional[Page]:
    """
    Find the page for a request path.

    Args:
        path: Decoded path component (no query string).

    Returns:
        The matching Page, or None if the path is not served.
    """
    return ROUTES.get(path.lower())
