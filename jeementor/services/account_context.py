"""
Account Context.

Glue between the ``SessionStore`` and the profile layer: keeps the
signed-in user's Profile current for the page shell.

- ``SIGNED_IN`` -> reconcile the profile against the Identity.
- Any delivery with a session -> load the stored profile.
- Delivery without a session -> forget the profile.
"""

from __future__ import annotations

import threading
from typing import Optional

from jeementor.logger import StructuredLogger
from jeementor.models.auth_models import AuthSession
from jeementor.models.enums import AuthEvent
from jeementor.models.profile import Profile
from jeementor.services.base_service import BaseService
from jeementor.services.profile_sync import ProfileSynchronizer
from jeementor.session import SessionStore, SessionSubscription


class AccountContext(BaseService):
    """Holds the current Profile and refreshes it on session changes."""

    def __init__(
        self,
        store: SessionStore,
        synchronizer: ProfileSynchronizer,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._store = store
        self._synchronizer = synchronizer
        self._lock = threading.Lock()
        self._profile: Optional[Profile] = None
        self._subscription: Optional[SessionSubscription] = None

    def start(self) -> None:
        """Begin listening to the session store. Idempotent."""
        if self._subscription is None:
            self._subscription = self._store.on_session_change(self._on_session_change)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    @property
    def profile(self) -> Optional[Profile]:
        with self._lock:
            return self._profile

    def refresh(self) -> Optional[Profile]:
        """Reload the profile for the current session."""
        session = self._store.get_current_session()
        return self._apply(AuthEvent.USER_UPDATED, session)

    def _on_session_change(self, event: str, session: Optional[AuthSession]) -> None:
        self._apply(event, session)

    def _apply(self, event: str, session: Optional[AuthSession]) -> Optional[Profile]:
        if session is None:
            with self._lock:
                self._profile = None
            return None

        profile: Optional[Profile] = None
        if event == AuthEvent.SIGNED_IN:
            profile = self._synchronizer.reconcile(session.identity)
        if profile is None:
            profile = self._synchronizer.load(session.identity.id)
        if profile is None:
            self._logger.warning(
                "No profile available for %s after %s.", session.identity.id, event,
            )

        with self._lock:
            self._profile = profile
        return profile
