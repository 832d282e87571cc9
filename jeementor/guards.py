"""
Route Guard.

Per-visit gate in front of protected pages.  Each page visit creates a
:class:`GuardCheck`; the guard moves it from ``checking`` to either
``authorized`` or ``redirecting``.

Usage::

    from jeementor.guards import RouteGuard

    guard = RouteGuard(store, resolver, logger)
    check = guard.begin(PageRequest(path="/admin"), PageAccess.ADMIN)
    decision = guard.evaluate(check)  # None if the visit was superseded

Rules:
    - Public pages are always authorized (the login page is public, so
      redirects cannot loop).
    - While the session store is loading the visit stays ``checking``.
    - No session -> redirect to the login page with ``redirect=<path>``.
    - Admin page and the email is not on the allow-list -> redirect home.
    - Errors and timeouts deny.
"""

from __future__ import annotations

import threading
from typing import Optional

from jeementor.logger import StructuredLogger
from jeementor.models.auth_models import AuthSession
from jeementor.models.enums import GuardState, PageAccess
from jeementor.models.navigation import GuardDecision, PageRequest
from jeementor.services.role_resolver import RoleResolver
from jeementor.session import SessionStore
from jeementor.utils.general import call_with_timeout


class GuardCheck:
    """One guard evaluation for one page visit.

    Cancelling a check (the user navigated elsewhere, or the session
    changed) makes :meth:`apply` discard whatever result arrives later.
    """

    def __init__(self, request: PageRequest, access: PageAccess) -> None:
        self.request: PageRequest = request
        self.access: PageAccess = access
        self._lock = threading.Lock()
        self._alive: bool = True
        self._decision: GuardDecision = GuardDecision(state=GuardState.CHECKING)

    @property
    def is_alive(self) -> bool:
        with self._lock:
            return self._alive

    @property
    def decision(self) -> GuardDecision:
        with self._lock:
            return self._decision

    @property
    def state(self) -> GuardState:
        return self.decision.state

    def cancel(self) -> None:
        with self._lock:
            self._alive = False

    def apply(self, decision: GuardDecision) -> bool:
        """Record *decision* unless the check was cancelled."""
        with self._lock:
            if not self._alive:
                return False
            self._decision = decision
            return True


class RouteGuard:
    """Decides whether a page visit may render.

    Parameters
    ----------
    store:
        Process-wide session store.
    resolver:
        Admin allow-list lookup.
    logger:
        Structured logger.
    login_path / home_path:
        Redirect targets for missing sessions and failed admin checks.
    timeout_s:
        Upper bound for the session fetch and for the admin lookup.
    """

    def __init__(
        self,
        store: SessionStore,
        resolver: RoleResolver,
        logger: StructuredLogger,
        *,
        login_path: str = "/login",
        home_path: str = "/",
        timeout_s: float = 10.0,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._logger = logger
        self._login_path = login_path
        self._home_path = home_path
        self._timeout_s = timeout_s

    def begin(self, request: PageRequest, access: PageAccess) -> GuardCheck:
        return GuardCheck(request, access)

    def evaluate(self, check: GuardCheck) -> Optional[GuardDecision]:
        """Run the rules for *check*.

        Returns the applied decision, or ``None`` when the check was
        cancelled before its result arrived.
        """
        decision = self._decide(check)
        if decision is None or not check.apply(decision):
            self._logger.debug("Discarded guard result for %s", check.request.path)
            return None
        if decision.state == GuardState.REDIRECTING:
            self._logger.info(
                "Guard redirect %s -> %s (%s)",
                check.request.path,
                decision.redirect_to,
                decision.reason,
            )
        return decision

    def check(self, request: PageRequest, access: PageAccess) -> GuardDecision:
        """Evaluate a one-off visit that nothing else can cancel."""
        check = self.begin(request, access)
        return self.evaluate(check) or check.decision

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _decide(self, check: GuardCheck) -> Optional[GuardDecision]:
        if check.access == PageAccess.PUBLIC:
            return GuardDecision(state=GuardState.AUTHORIZED)

        if self._store.is_loading:
            return GuardDecision(state=GuardState.CHECKING)

        session = self._fetch_session()
        if not check.is_alive:
            return None
        if session is None:
            return GuardDecision(
                state=GuardState.REDIRECTING,
                redirect_to=self._login_path,
                return_to=check.request.path,
                reason="no_session",
            )

        if check.access == PageAccess.ADMIN:
            allowed = self._check_admin(session)
            if not check.is_alive:
                return None
            if not allowed:
                return GuardDecision(
                    state=GuardState.REDIRECTING,
                    redirect_to=self._home_path,
                    reason="not_admin",
                )

        return GuardDecision(state=GuardState.AUTHORIZED)

    def _fetch_session(self) -> Optional[AuthSession]:
        try:
            return call_with_timeout(
                self._store.get_current_session,
                self._timeout_s,
                name="guard-session",
            )
        except TimeoutError as exc:
            self._logger.warning("Session fetch timed out; treating as signed out: %s", exc)
        except Exception as exc:
            self._logger.error("Session fetch failed; treating as signed out: %s", exc)
        return None

    def _check_admin(self, session: AuthSession) -> bool:
        email = session.identity.email
        try:
            return call_with_timeout(
                lambda: self._resolver.is_admin(email),
                self._timeout_s,
                name="guard-admin",
            )
        except TimeoutError as exc:
            self._logger.warning("Admin check timed out for %s; denying: %s", email, exc)
        except Exception as exc:
            self._logger.error("Admin check failed for %s; denying: %s", email, exc)
        return False
