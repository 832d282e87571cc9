"""Page Registry.

Central registry for every routable page.  The ``AppShell`` looks pages
up here by path to find their access level and loader.

Adding a new page = one ``register()`` call + one loader function.
"""

from __future__ import annotations

from typing import Callable

from jeementor.logger import StructuredLogger
from jeementor.models.enums import PageAccess
from jeementor.models.navigation import PageOutcome, PageRequest

PageLoader = Callable[[PageRequest], PageOutcome]


class PageEntry:
    """Metadata for a single registered page.

    Attributes
    ----------
    path:
        Route path (e.g. ``'/dashboard'``).
    title:
        Human-readable page title.
    access:
        Who may view the page.
    loader:
        Callable that receives the ``PageRequest`` and returns the page
        content or a redirect.  Called only once the guard authorises
        the visit.
    """

    __slots__ = (
        "path",
        "title",
        "access",
        "loader",
    )

    def __init__(
        self,
        path: str,
        title: str,
        access: PageAccess,
        loader: PageLoader,
    ) -> None:
        self.path = path
        self.title = title
        self.access = access
        self.loader = loader


class PageRegistry:
    """Manages the collection of registered pages.

    Parameters
    ----------
    logger:
        Structured logger for registration events.
    """

    def __init__(self, logger: StructuredLogger) -> None:
        self._entries: dict[str, PageEntry] = {}
        self._logger = logger

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def register(
        self,
        path: str,
        title: str,
        loader: PageLoader,
        access: PageAccess = PageAccess.PUBLIC,
    ) -> None:
        """Register a page with the shell.

        Parameters
        ----------
        path:
            Route path; must start with ``/``.
        title:
            Page title.
        loader:
            Callable ``(request) -> PageOutcome``.
        access:
            Access level enforced by the route guard.
        """
        if not path.startswith("/"):
            raise ValueError(f"Page path must start with '/': {path!r}")
        if path in self._entries:
            self._logger.warning("Page '%s' already registered; overwriting.", path)
        self._entries[path] = PageEntry(
            path=path,
            title=title,
            access=access,
            loader=loader,
        )
        self._logger.debug("Page registered: %s (%s, %s)", path, title, access)

    def get_page(self, path: str) -> PageEntry:
        """Return the entry registered for *path*.

        Raises
        ------
        KeyError
            If *path* is not registered.
        """
        if path not in self._entries:
            raise KeyError(f"Page '{path}' is not registered.")
        return self._entries[path]

    def get_pages_for_access(self, access: PageAccess) -> list[PageEntry]:
        """Return pages with the given access level, in registration order."""
        return [entry for entry in self._entries.values() if entry.access == access]
