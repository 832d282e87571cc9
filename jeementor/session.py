"""
Session Store.

Provides an injectable ``SessionStore`` that caches the auth provider's
session for the lifetime of the client process and fans out session
changes to subscribers (``AccountContext``, ``AppShell``).

Usage::

    from jeementor.session import SessionStore

    store = SessionStore(auth_client=db.auth, logger=get_logger("session"))
    subscription = store.on_session_change(lambda event, session: ...)
    store.initialize()
    ...
    subscription.unsubscribe()

Delivery contract
-----------------
- Handlers receive ``(event, session)`` where ``event`` is an
  :class:`~jeementor.models.enums.AuthEvent` value and ``session`` is the
  new :class:`AuthSession` or ``None``.
- At-least-once per real transition; the provider may repeat
  ``SIGNED_IN`` and logout may deliver ``SIGNED_OUT`` twice.
- No ordering guarantee between handlers.
- Handlers run synchronously on the thread that observed the change.
  A failing handler is logged and does not affect the others.
"""

from __future__ import annotations

import itertools
import threading
from typing import Any, Callable, Optional

from jeementor.logger import StructuredLogger
from jeementor.models.auth_models import AuthSession
from jeementor.models.enums import AuthEvent

SessionHandler = Callable[[str, Optional[AuthSession]], None]


class SessionSubscription:
    """Handle returned by :meth:`SessionStore.on_session_change`."""

    def __init__(self, store: "SessionStore", handler_id: int) -> None:
        self._store = store
        self._handler_id = handler_id
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        """Stop deliveries to this handler. Safe to call more than once."""
        if self._active:
            self._store._remove_handler(self._handler_id)
            self._active = False


class SessionStore:
    """Injectable holder for the current auth session.

    One instance per process, created at the composition root.  The
    cache has a single writer (provider change events and
    :meth:`initialize`) and many readers (route guards).

    Parameters
    ----------
    auth_client:
        The provider's auth client (supabase-py ``client.auth``).
    logger:
        Structured logger.
    """

    def __init__(self, auth_client: Any, logger: StructuredLogger) -> None:
        self._auth = auth_client
        self._logger = logger
        self._lock: threading.RLock = threading.RLock()
        self._session: Optional[AuthSession] = None
        self._loading: bool = True
        self._handlers: dict[int, SessionHandler] = {}
        self._ids = itertools.count(1)
        self._provider_subscription: Any = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> Optional[AuthSession]:
        """Subscribe to provider events and resolve the initial session.

        Clears the loading flag and delivers ``INITIAL_SESSION`` to every
        registered handler.  Transport errors resolve to "no session".
        """
        with self._lock:
            if self._provider_subscription is None:
                try:
                    self._provider_subscription = self._auth.on_auth_state_change(
                        self._on_provider_event
                    )
                except Exception as exc:
                    self._logger.error(
                        "Could not subscribe to auth state changes: %s", exc,
                    )

        session = self._fetch_from_provider()
        with self._lock:
            self._session = session
            self._loading = False

        self._logger.info(
            "Session store initialised (%s).",
            "signed in" if session else "signed out",
        )
        self._dispatch(AuthEvent.INITIAL_SESSION, session)
        return session

    def adopt(self, provider_session: Any) -> Optional[AuthSession]:
        """Cache a session obtained outside the change stream.

        Used after password sign-in and the OAuth code exchange.  Delivers
        ``SIGNED_IN`` unless the provider already reported the same user.
        """
        session = AuthSession.from_provider(provider_session)
        if session is None or session.is_expired:
            return None
        with self._lock:
            previous = self._session
            self._session = session
            self._loading = False
        if previous is None or previous.identity.id != session.identity.id:
            self._dispatch(AuthEvent.SIGNED_IN, session)
        return session

    def clear(self) -> None:
        """Drop the cached session, notifying handlers if one was present."""
        with self._lock:
            previous = self._session
            self._session = None
            self._loading = False
        if previous is not None:
            self._dispatch(AuthEvent.SIGNED_OUT, None)

    def reset(self) -> None:
        """Return to the pre-initialise state (test-time reset).

        Unsubscribes from the provider, forgets every handler and the
        cached session.
        """
        with self._lock:
            subscription = self._provider_subscription
            self._provider_subscription = None
            self._handlers.clear()
            self._session = None
            self._loading = True
        if subscription is not None:
            try:
                subscription.unsubscribe()
            except Exception as exc:
                self._logger.warning("Provider unsubscribe failed: %s", exc)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def is_loading(self) -> bool:
        """``True`` until the initial session has been resolved."""
        with self._lock:
            return self._loading

    def get_current_session(self) -> Optional[AuthSession]:
        """Return the current session, or ``None``.

        Serves from cache when possible.  Goes to the provider only when
        the store has not loaded yet or the cached token has expired (the
        provider refreshes it).  Fails closed: transport errors and
        still-expired sessions both yield ``None``.
        """
        with self._lock:
            cached = self._session
            loading = self._loading

        if cached is not None and not cached.is_expired:
            return cached
        if cached is None and not loading:
            return None

        session = self._fetch_from_provider()
        with self._lock:
            self._session = session
        return session

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def on_session_change(self, handler: SessionHandler) -> SessionSubscription:
        """Register *handler* for session changes.

        If the store has already loaded, *handler* immediately receives a
        synthetic ``INITIAL_SESSION`` with the cached session.
        """
        with self._lock:
            handler_id = next(self._ids)
            self._handlers[handler_id] = handler
            loaded = not self._loading
            session = self._session

        if loaded:
            self._deliver(handler, AuthEvent.INITIAL_SESSION, session)
        return SessionSubscription(self, handler_id)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    def _remove_handler(self, handler_id: int) -> None:
        with self._lock:
            self._handlers.pop(handler_id, None)

    # ------------------------------------------------------------------
    # Provider plumbing
    # ------------------------------------------------------------------

    def _on_provider_event(self, event: str, provider_session: Any) -> None:
        """Callback registered with ``auth.on_auth_state_change``."""
        try:
            session = AuthSession.from_provider(provider_session)
        except Exception as exc:
            self._logger.error("Unreadable session in %s event: %s", event, exc)
            session = None

        with self._lock:
            self._session = session
            self._loading = False

        self._logger.info("Auth event: %s", event, extra={"event": str(event)})
        self._dispatch(str(event), session)

    def _fetch_from_provider(self) -> Optional[AuthSession]:
        try:
            session = AuthSession.from_provider(self._auth.get_session())
        except Exception as exc:
            self._logger.warning(
                "Could not fetch session from auth provider; treating as signed out: %s",
                exc,
            )
            return None
        if session is not None and session.is_expired:
            self._logger.info("Provider returned an expired session; treating as signed out.")
            return None
        return session

    def _dispatch(self, event: str, session: Optional[AuthSession]) -> None:
        with self._lock:
            handlers = list(self._handlers.values())
        for handler in handlers:
            self._deliver(handler, event, session)

    def _deliver(
        self,
        handler: SessionHandler,
        event: str,
        session: Optional[AuthSession],
    ) -> None:
        try:
            handler(str(event), session)
        except Exception as exc:
            self._logger.error(
                "Session handler failed on %s: %s", event, exc, exc_info=True,
            )
