"""
Page Shell Package.

Headless stand-in for the browser router: a ``PageRegistry`` of routes
and an ``AppShell`` that navigates between them under the route guard.
"""

from jeementor.shell.app_shell import AppShell, parse_url
from jeementor.shell.page_registry import PageEntry, PageRegistry
from jeementor.shell.pages import register_pages

__all__ = [
    "AppShell",
    "PageEntry",
    "PageRegistry",
    "parse_url",
    "register_pages",
]
