"""
Application Configuration.

Pydantic Settings model for the JEE Mentors portal client.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import ClassVar, Optional

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings


class ConfigurationError(ValueError):
    """Raised when required configuration is missing or still a placeholder."""


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")

    # Values shipped in templates and old builds; never valid credentials.
    PLACEHOLDER_KEYS: ClassVar[frozenset[str]] = frozenset(
        {"your-anon-key", "your-supabase-anon-key", "changeme"}
    )

    # --- Site routing ---
    SITE_URL: str = "http://localhost:3000"
    AUTH_CALLBACK_PATH: str = "/auth/callback"
    LOGIN_PATH: str = "/login"
    HOME_PATH: str = "/"
    DASHBOARD_PATH: str = "/dashboard"

    # --- Route guard ---
    GUARD_TIMEOUT_S: float = 10.0

    # --- Accounts ---
    MIN_PASSWORD_LENGTH: int = 6
    DEFAULT_PLAN: str = "Basic Plan"

    # --- Logging ---
    LOG_FILE: str = "jeementor.log"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when critical configuration is empty.

        Construction never fails so that tooling (and the logger, which
        reads log settings from here) can run without credentials.
        Call :meth:`validate_supabase_config` before talking to Supabase.
        """
        _log = logging.getLogger("jeementor.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found; all configuration loaded from "
                "environment variables or defaults."
            )

        if not self.SUPABASE_URL:
            _log.warning("SUPABASE_URL is empty.")

        return self

    @property
    def auth_callback_url(self) -> str:
        """Absolute URL the OAuth provider and signup emails return to."""
        return f"{self.SITE_URL.rstrip('/')}{self.AUTH_CALLBACK_PATH}"

    def validate_supabase_config(self) -> None:
        """Fail fast when the backend URL or public key is unusable.

        Raises:
            ConfigurationError: If either value is missing or a known
                placeholder.
        """
        if not self.SUPABASE_URL.strip():
            raise ConfigurationError(
                "SUPABASE_URL is not set. Add it to the environment or .env file."
            )
        key = self.SUPABASE_ANON_KEY.get_secret_value().strip()
        if not key:
            raise ConfigurationError(
                "SUPABASE_ANON_KEY is not set. Add it to the environment or .env file."
            )
        if key.lower() in self.PLACEHOLDER_KEYS:
            raise ConfigurationError(
                "SUPABASE_ANON_KEY still holds a placeholder value. "
                "Use the project's public anon key."
            )


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    Uses a check-lock-check pattern to avoid the lock overhead on the fast
    path while remaining thread-safe during first initialisation.

    Prefer direct constructor injection of ``AppConfig`` in new code.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance


def reset_config() -> None:
    """Drop the cached config so the next ``get_config()`` re-reads the environment."""
    global _config_instance
    with _config_lock:
        _config_instance = None
