"""Application Host Shell.

Headless navigator that plays the role of the browser router: every
``navigate()`` call is one page visit.  For each visit the shell asks
the ``RouteGuard`` whether the page may render, follows redirects, and
runs the page loader from the ``PageRegistry``.

The shell re-evaluates the current page on every session change, so a
page that was ``authorized`` leaves that state as soon as the session
disappears.

All dependencies are injected via the constructor.  The shell contains
no business logic.
"""

from __future__ import annotations

import threading
from typing import Optional
from urllib.parse import parse_qsl, urlsplit

from jeementor.guards import GuardCheck, RouteGuard
from jeementor.logger import StructuredLogger
from jeementor.models.auth_models import AuthSession
from jeementor.models.enums import GuardState, PageAccess
from jeementor.models.navigation import NavigationResult, PageOutcome, PageRequest
from jeementor.session import SessionStore, SessionSubscription
from jeementor.shell.page_registry import PageLoader, PageRegistry

_MAX_HOPS: int = 10


def parse_url(url: str) -> PageRequest:
    """Split a site-relative URL into path and query parameters."""
    parts = urlsplit(url or "/")
    path = parts.path or "/"
    if len(path) > 1:
        path = path.rstrip("/")
    return PageRequest(path=path, query=dict(parse_qsl(parts.query)))


class AppShell:
    """Host Shell for a single client session.

    Lifecycle
    ---------
    1. ``start()`` subscribes to the session store.
    2. ``navigate(url)`` cancels the previous visit's guard check and
       evaluates the new page.
    3. Session changes re-run the current page.
    4. ``stop()`` unsubscribes.

    Parameters
    ----------
    store:
        Process-wide session store.
    guard:
        Route guard evaluating each visit.
    registry:
        Page registry populated before the shell starts.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        store: SessionStore,
        guard: RouteGuard,
        registry: PageRegistry,
        logger: StructuredLogger,
    ) -> None:
        self._store = store
        self._guard = guard
        self._registry = registry
        self._logger = logger

        self._lock = threading.RLock()
        self._subscription: Optional[SessionSubscription] = None
        self._check: Optional[GuardCheck] = None
        self._request: Optional[PageRequest] = None
        self._current: Optional[NavigationResult] = None
        self._navigating: bool = False
        self._stale: bool = False

    # ==================================================================
    # Lifecycle
    # ==================================================================

    def start(self) -> None:
        if self._subscription is None:
            self._subscription = self._store.on_session_change(self._on_session_change)

    def stop(self) -> None:
        with self._lock:
            if self._check is not None:
                self._check.cancel()
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    # ==================================================================
    # Navigation
    # ==================================================================

    @property
    def current(self) -> Optional[NavigationResult]:
        """Result of the most recent visit."""
        with self._lock:
            return self._current

    @property
    def current_url(self) -> Optional[str]:
        with self._lock:
            return self._request.url if self._request is not None else None

    def navigate(self, url: str) -> NavigationResult:
        """Visit *url*, following guard and loader redirects."""
        with self._lock:
            if self._check is not None:
                self._check.cancel()
            self._navigating = True
            try:
                result = self._visit(url)
                if self._stale and self._request is not None:
                    # Another thread changed the session after the last
                    # evaluation of this visit.
                    result = self._visit(self._request.url)
            finally:
                self._navigating = False
                self._stale = False

            self._current = result
            return result

    def refresh(self) -> Optional[NavigationResult]:
        """Re-run the current page (e.g. after a session change)."""
        url = self.current_url
        if url is None:
            return None
        return self.navigate(url)

    # ==================================================================
    # Internals
    # ==================================================================

    def _visit(self, url: str) -> NavigationResult:
        request = parse_url(url)
        redirects: list[str] = []

        for _ in range(_MAX_HOPS):
            self._request = request
            self._stale = False

            try:
                entry = self._registry.get_page(request.path)
            except KeyError:
                self._logger.warning("Unknown page: %s", request.path)
                return NavigationResult(
                    requested=url,
                    path=request.path,
                    state=GuardState.AUTHORIZED,
                    content={"title": "Page not found", "status": 404},
                    redirects=redirects,
                    error="not_found",
                )

            check = self._guard.begin(request, entry.access)
            self._check = check
            decision = self._guard.evaluate(check)

            if decision is None:
                if self._stale:
                    continue
                return NavigationResult(
                    requested=url, path=request.path, state=GuardState.CHECKING,
                    redirects=redirects, error="superseded",
                )

            if decision.state == GuardState.CHECKING:
                return NavigationResult(
                    requested=url, path=request.path, state=GuardState.CHECKING,
                    redirects=redirects,
                )

            if decision.state == GuardState.REDIRECTING:
                location = decision.location or "/"
                redirects.append(location)
                request = parse_url(location)
                continue

            outcome = self._run_loader(entry.loader, request)
            if not check.is_alive:
                # The session changed while the page loaded; evaluate again.
                continue
            if outcome is None:
                return NavigationResult(
                    requested=url,
                    path=request.path,
                    state=GuardState.AUTHORIZED,
                    content={"title": entry.title},
                    redirects=redirects,
                    error="page_error",
                )
            if outcome.redirect_to:
                redirects.append(outcome.redirect_to)
                request = parse_url(outcome.redirect_to)
                continue

            self._logger.info("Rendered %s", request.url)
            return NavigationResult(
                requested=url,
                path=request.path,
                state=GuardState.AUTHORIZED,
                content={"title": entry.title, **outcome.content},
                redirects=redirects,
            )

        self._logger.error("Too many redirects starting from %s: %s", url, redirects)
        return NavigationResult(
            requested=url,
            path=request.path,
            state=GuardState.REDIRECTING,
            redirects=redirects,
            error="too_many_redirects",
        )

    def _run_loader(self, loader: PageLoader, request: PageRequest) -> Optional[PageOutcome]:
        try:
            return loader(request)
        except Exception as exc:
            self._logger.error(
                "Page loader failed for %s: %s", request.path, exc, exc_info=True,
            )
            return None

    def _on_session_change(self, event: str, session: Optional[AuthSession]) -> None:
        """Re-evaluate the current page whenever the session changes.

        Never waits for a visit in flight: the change may arrive on the
        guard's worker thread (a token refresh inside ``get_session()``)
        while the visiting thread holds the lock and waits on that worker.
        """
        if self._navigating:
            self._invalidate_visit(event)
            return

        with self._lock:
            if self._navigating:
                self._invalidate_visit(event)
                return
            if self._request is None:
                return
            url = self._request.url

        self._logger.debug("Session %s; re-evaluating %s", event, url)
        self.navigate(url)

    def _invalidate_visit(self, event: str) -> None:
        # Drop the in-flight result of a guarded page and let the running
        # visit evaluate again.  Public pages do not depend on the session
        # and their loaders (the OAuth callback) must not run twice.
        check = self._check
        if check is not None and check.access != PageAccess.PUBLIC:
            self._logger.debug("Session %s during visit to %s", event, check.request.path)
            self._stale = True
            check.cancel()
