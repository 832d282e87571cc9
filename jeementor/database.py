"""
Database Abstraction Layer.

Owns the single Supabase client used for both Auth and the PostgREST
tables (``profiles``, ``admin_users``, ``test_series``, ``webinars``,
``mentorship_sessions``, ``bookings``).

Data access is performed through the Repository pattern.  This module only
manages the client *connection*; it contains no query logic.

Usage (dependency injection at app startup)::

    from jeementor.database import DatabaseManager
    from jeementor.logger import StructuredLogger

    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        logger=StructuredLogger(name="database"),
    )
"""

from __future__ import annotations

from supabase import Client as SupabaseClient
from supabase import create_client

from jeementor.config import ConfigurationError
from jeementor.logger import StructuredLogger


class DatabaseManager:
    """Manages the connection to the hosted Supabase project.

    Unlike a cache-backed client there is no offline mode: missing
    credentials fail fast with :class:`ConfigurationError` rather than
    silently talking to a placeholder project.

    Parameters
    ----------
    supabase_url:
        The Supabase project URL (e.g. ``https://xyz.supabase.co``).
    supabase_key:
        The project's public anon key.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        logger: StructuredLogger,
    ) -> None:
        self._logger: StructuredLogger = logger

        if not supabase_url or not supabase_key:
            raise ConfigurationError(
                "Supabase URL and anon key are required to start the client."
            )

        try:
            self._supabase: SupabaseClient = create_client(supabase_url, supabase_key)
        except (ValueError, TypeError) as exc:
            # supabase-py validates URL/key format eagerly.
            raise ConfigurationError(
                f"Supabase credentials are malformed: {exc}"
            ) from exc
        self._logger.info("Supabase client initialized.")

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def supabase(self) -> SupabaseClient:
        """Return the initialised Supabase client."""
        return self._supabase

    @property
    def auth(self):
        """Return the Supabase Auth client (``client.auth``)."""
        return self._supabase.auth
