"""
Authentication Models.

Pydantic models and enumerations for the auth contracts between the
Supabase client, ``SessionStore``, ``AuthService`` and the page shell.

Provider objects (supabase-py ``Session`` / ``User``) are converted into
these models at the boundary so nothing downstream depends on the
provider's classes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Mapping, Optional

from pydantic import BaseModel

from jeementor.models.enums import LoginProvider


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class AuthErrorCode(StrEnum):
    """Categories of authentication failure shown to the user."""

    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    EMAIL_ALREADY_EXISTS = "email_already_exists"
    WEAK_PASSWORD = "weak_password"
    RATE_LIMITED = "rate_limited"
    NETWORK_ERROR = "network_error"
    VALIDATION_ERROR = "validation_error"
    PROVIDER_ERROR = "provider_error"
    UNKNOWN_ERROR = "unknown_error"


# ---------------------------------------------------------------------------
# Supabase error-message mapping
# ---------------------------------------------------------------------------

# Keys are matched as lower-case substrings of the provider's message.
SUPABASE_ERROR_MAP: dict[str, tuple[AuthErrorCode, str]] = {
    "invalid login credentials": (
        AuthErrorCode.INVALID_CREDENTIALS,
        "Incorrect email or password.",
    ),
    "invalid_credentials": (
        AuthErrorCode.INVALID_CREDENTIALS,
        "Incorrect email or password.",
    ),
    "email not confirmed": (
        AuthErrorCode.EMAIL_NOT_CONFIRMED,
        "Please confirm your email address before signing in.",
    ),
    "user already registered": (
        AuthErrorCode.EMAIL_ALREADY_EXISTS,
        "An account with this email already exists. Try signing in.",
    ),
    "password should be at least": (
        AuthErrorCode.WEAK_PASSWORD,
        "Password is too weak. Use at least 6 characters.",
    ),
    "rate limit": (
        AuthErrorCode.RATE_LIMITED,
        "Too many attempts. Please wait a moment and try again.",
    ),
}

# Messages shown on the login page for ``?error=`` codes set by the
# OAuth callback.
CALLBACK_ERROR_MESSAGES: dict[str, str] = {
    "auth_failed": "Authentication failed. Please try again.",
    "unexpected": "An unexpected error occurred. Please try again.",
}


# ---------------------------------------------------------------------------
# Identity and session
# ---------------------------------------------------------------------------

def _metadata(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


class Identity(BaseModel):
    """The auth provider's record of who the user is."""

    id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    provider: str = LoginProvider.EMAIL

    model_config = {"from_attributes": True}

    @classmethod
    def from_provider_user(cls, user: Any) -> "Identity":
        """Build an ``Identity`` from a supabase-py ``User`` object.

        Display name comes from ``user_metadata.full_name`` (password
        signup) or ``user_metadata.name`` (Google); avatar from
        ``avatar_url`` or ``picture``.
        """
        user_metadata = _metadata(getattr(user, "user_metadata", None))
        app_metadata = _metadata(getattr(user, "app_metadata", None))
        return cls(
            id=str(user.id),
            email=getattr(user, "email", None) or "",
            full_name=user_metadata.get("full_name") or user_metadata.get("name"),
            avatar_url=user_metadata.get("avatar_url") or user_metadata.get("picture"),
            provider=app_metadata.get("provider") or LoginProvider.EMAIL,
        )

    @property
    def display_name(self) -> str:
        """Supplied name, or the local part of the email when none was given."""
        if self.full_name and self.full_name.strip():
            return self.full_name.strip()
        return self.email.split("@")[0]


class AuthSession(BaseModel):
    """Time-bounded proof of authentication held by the client.

    Attributes
    ----------
    access_token:
        Short-lived JWT.
    refresh_token:
        Token used by the provider to renew the session.
    expires_at:
        Unix timestamp (seconds) when the access token expires, if known.
    identity:
        Who the session belongs to.
    """

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    identity: Identity

    @classmethod
    def from_provider(cls, session: Any) -> Optional["AuthSession"]:
        """Convert a supabase-py ``Session`` (or ``None``) into an ``AuthSession``."""
        if session is None or getattr(session, "user", None) is None:
            return None
        return cls(
            access_token=session.access_token,
            refresh_token=getattr(session, "refresh_token", None),
            expires_at=getattr(session, "expires_at", None),
            identity=Identity.from_provider_user(session.user),
        )

    @property
    def is_expired(self) -> bool:
        """``True`` once the access token's expiry has passed."""
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) >= datetime.fromtimestamp(
            self.expires_at, tz=timezone.utc
        )


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class ValidationResult(BaseModel):
    """Result of a single client-side form validation check."""

    is_valid: bool
    error_message: Optional[str] = None

    model_config = {"from_attributes": True}


class AuthResult(BaseModel):
    """Unified response for login, OAuth start, signup and callback handling.

    Attributes
    ----------
    success:
        ``True`` when the operation completed without error.
    error_code:
        Structured error category (``None`` on success).
    error_message:
        Human-readable error description (``None`` on success).
    info_message:
        Non-error notice, e.g. "check your email" after signup.
    redirect_to:
        Where the caller should navigate next, if anywhere.
    oauth_url:
        Provider URL to open for OAuth sign-in.
    user_id / email:
        The identity involved, when known.
    """

    success: bool
    error_code: Optional[AuthErrorCode] = None
    error_message: Optional[str] = None
    info_message: Optional[str] = None
    redirect_to: Optional[str] = None
    oauth_url: Optional[str] = None
    user_id: Optional[str] = None
    email: Optional[str] = None

    model_config = {"from_attributes": True}
