"""
Unit tests for the route table.
"""

import pytest

from webserver.http.routes import ROUTES, Page, resolve


class TestResolve:

    @pytest.mark.parametrize("path", ["/", "/index", "/index.html"])
    def test_welcome_aliases(self, path):
        assert resolve(path) is Page.WELCOME

    def test_about_and_status(self):
        assert resolve("/about") is Page.ABOUT
        assert resolve("/status") is Page.STATUS

    @pytest.mark.parametrize("path", ["/ABOUT", "/About", "/Index.HTML", "/STATUS"])
    def test_case_insensitive(self, path):
        assert resolve(path) is not None

    @pytest.mark.parametrize("path", [
        "/about/",
        "/about/team",
        "/statuses",
        "/favicon.ico",
        "",
        "//",
    ])
    def test_unknown_paths(self, path):
        """Only exact matches count; trailing slashes are not stripped."""
        assert resolve(path) is None


def test_route_table_keys_are_lower_case():
    assert all(key == key.lower() for key in ROUTES)


def test_every_page_is_reachable():
    assert set(ROUTES.values()) == set(Page)
