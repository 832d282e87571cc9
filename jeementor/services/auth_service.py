"""
Authentication Service.

Single orchestrator for every user-initiated auth action in the JEE
Mentors client: password login, Google OAuth start, signup, logout and
completion of the OAuth callback.

Sits between the page shell and the Supabase auth client so that pages
remain thin form handlers.  All methods return typed ``AuthResult`` or
``ValidationResult`` models; the shell never inspects raw exceptions.

Profile creation is *not* done here.  A successful sign-in reaches the
``SessionStore``, whose ``SIGNED_IN`` delivery drives
``AccountContext`` -> ``ProfileSynchronizer``.
"""

from __future__ import annotations

import re
from typing import Any, Optional
from urllib.parse import urlencode

from jeementor.config import AppConfig
from jeementor.logger import StructuredLogger
from jeementor.models.auth_models import (
    AuthErrorCode,
    AuthResult,
    SUPABASE_ERROR_MAP,
    ValidationResult,
)
from jeementor.models.enums import LoginProvider
from jeementor.session import SessionStore


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_EMAIL_RE: re.Pattern[str] = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)

_CONFIRM_EMAIL_MESSAGE: str = "Please check your email to confirm your account"
_NETWORK_MESSAGE: str = "Cannot reach the server. Check your internet connection."
_UNEXPECTED_MESSAGE: str = "An unexpected error occurred"


class AuthService:
    """Orchestrates login, OAuth, signup, logout and the OAuth callback.

    Parameters
    ----------
    auth_client:
        The Supabase auth client (``client.auth``).
    store:
        The process-wide session store.
    config:
        Application configuration (routes, site URL, password policy).
    logger:
        Structured JSON logger.
    """

    def __init__(
        self,
        auth_client: Any,
        store: SessionStore,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        self._auth = auth_client
        self._store: SessionStore = store
        self._config: AppConfig = config
        self._logger: StructuredLogger = logger

    # ==================================================================
    # Validation helpers
    # ==================================================================

    @staticmethod
    def validate_email(email: str) -> ValidationResult:
        """Validate an email address against a simplified RFC 5322 regex."""
        if not email or not email.strip():
            return ValidationResult(
                is_valid=False,
                error_message="Email address is required.",
            )
        if not _EMAIL_RE.match(email.strip()):
            return ValidationResult(
                is_valid=False,
                error_message="Please enter a valid email address.",
            )
        return ValidationResult(is_valid=True)

    def validate_password(self, password: str, confirm_password: str) -> ValidationResult:
        """Check the signup password pair.

        Matching is checked before length, so a mismatched pair always
        reports the mismatch.
        """
        if password != confirm_password:
            return ValidationResult(
                is_valid=False,
                error_message="Passwords do not match",
            )
        if len(password) < self._config.MIN_PASSWORD_LENGTH:
            return ValidationResult(
                is_valid=False,
                error_message=(
                    f"Password must be at least {self._config.MIN_PASSWORD_LENGTH} "
                    "characters long"
                ),
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def validate_name(name: str) -> ValidationResult:
        if not name or not name.strip():
            return ValidationResult(
                is_valid=False,
                error_message="Full name is required.",
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def normalize_email(email: str) -> str:
        """Normalise an email address: strip whitespace and lowercase."""
        return email.strip().lower()

    def sanitize_redirect(self, redirect: Optional[str]) -> str:
        """Return *redirect* if it is a same-site path, else the dashboard.

        Rejects absolute URLs and protocol-relative ``//host`` paths so a
        crafted ``?redirect=`` cannot send the user off-site.
        """
        if redirect and redirect.startswith("/") and not redirect.startswith("//"):
            return redirect
        return self._config.DASHBOARD_PATH

    # ==================================================================
    # Login
    # ==================================================================

    def login(
        self,
        email: str,
        password: str,
        redirect: Optional[str] = None,
    ) -> AuthResult:
        """Sign in with email and password.

        Parameters
        ----------
        email:
            The raw email entered by the user.
        password:
            The raw password entered by the user.
        redirect:
            The ``redirect`` query parameter the guard attached to the
            login URL, if any.

        Returns
        -------
        AuthResult
            On success ``redirect_to`` holds the sanitised destination.
        """
        if not email or not email.strip() or not password:
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.VALIDATION_ERROR,
                error_message="Email and password are required.",
            )

        email = self.normalize_email(email)
        try:
            response = self._auth.sign_in_with_password({
                "email": email,
                "password": password,
            })
        except Exception as exc:
            return self._classify_error(exc, event="LOGIN_FAILED")

        session = self._store.adopt(getattr(response, "session", None))
        user = getattr(response, "user", None)
        user_id = str(user.id) if user is not None else None

        self._logger.info(
            "User signed in: %s",
            email,
            extra={"event": "LOGIN", "email": email, "user_id": user_id},
        )
        return AuthResult(
            success=True,
            redirect_to=self.sanitize_redirect(redirect),
            user_id=session.identity.id if session is not None else user_id,
            email=email,
        )

    def login_with_google(self) -> AuthResult:
        """Start Google OAuth; the caller opens ``oauth_url`` in a browser.

        The provider returns to ``SITE_URL + AUTH_CALLBACK_PATH``.
        """
        try:
            response = self._auth.sign_in_with_oauth({
                "provider": LoginProvider.GOOGLE.value,
                "options": {"redirect_to": self._config.auth_callback_url},
            })
        except Exception as exc:
            return self._classify_error(exc, event="OAUTH_START_FAILED")

        self._logger.info("Google OAuth started.", extra={"event": "OAUTH_START"})
        return AuthResult(success=True, oauth_url=getattr(response, "url", None))

    # ==================================================================
    # Signup
    # ==================================================================

    def signup(
        self,
        name: str,
        email: str,
        password: str,
        confirm_password: str,
    ) -> AuthResult:
        """Create an account via Supabase ``sign_up()``.

        ``full_name`` travels as user metadata so the first sign-in
        creates the profile with the chosen name.  When the project
        requires email confirmation the provider returns a user without
        a session; that is reported as success with ``info_message``.
        """
        for check in (
            self.validate_name(name),
            self.validate_email(email),
            self.validate_password(password, confirm_password),
        ):
            if not check.is_valid:
                return AuthResult(
                    success=False,
                    error_code=AuthErrorCode.VALIDATION_ERROR,
                    error_message=check.error_message,
                )

        email = self.normalize_email(email)
        full_name = name.strip()
        try:
            response = self._auth.sign_up({
                "email": email,
                "password": password,
                "options": {
                    "data": {"full_name": full_name},
                    "email_redirect_to": self._config.auth_callback_url,
                },
            })
        except Exception as exc:
            return self._classify_error(exc, event="SIGNUP_FAILED")

        user = getattr(response, "user", None)
        provider_session = getattr(response, "session", None)
        user_id = str(user.id) if user is not None else None

        self._logger.info(
            "User registered: %s",
            email,
            extra={"event": "SIGNUP", "email": email, "confirmed": provider_session is not None},
        )

        if user is not None and provider_session is None:
            return AuthResult(
                success=True,
                info_message=_CONFIRM_EMAIL_MESSAGE,
                user_id=user_id,
                email=email,
            )

        self._store.adopt(provider_session)
        return AuthResult(
            success=True,
            redirect_to=self._config.DASHBOARD_PATH,
            user_id=user_id,
            email=email,
        )

    # ==================================================================
    # Logout
    # ==================================================================

    def logout(self) -> AuthResult:
        """Sign out at the provider, then drop the local session.

        The local session is cleared even when the provider call fails,
        so the user is never left looking signed in.
        """
        try:
            self._auth.sign_out()
        except Exception as exc:
            self._logger.error("Error signing out: %s", exc)
        finally:
            self._store.clear()

        self._logger.info("User signed out.", extra={"event": "LOGOUT"})
        return AuthResult(success=True, redirect_to=self._config.HOME_PATH)

    # ==================================================================
    # OAuth callback
    # ==================================================================

    def complete_oauth_callback(self, code: Optional[str] = None) -> AuthResult:
        """Finish an OAuth or email-confirmation round trip.

        Exchanges *code* when present, then asks the provider for the
        session.  ``redirect_to`` is always set:

        - session present -> dashboard
        - no session -> login
        - provider error -> ``/login?error=auth_failed``
        - anything else -> ``/login?error=unexpected``
        """
        login_path = self._config.LOGIN_PATH
        try:
            if code:
                self._auth.exchange_code_for_session({"auth_code": code})
            provider_session = self._auth.get_session()
        except Exception as exc:
            if isinstance(getattr(exc, "message", None), str):
                self._logger.error("Auth callback error: %s", exc)
                error_code = "auth_failed"
            else:
                self._logger.error(
                    "Unexpected error in auth callback: %s", exc, exc_info=True,
                )
                error_code = "unexpected"
            return AuthResult(
                success=False,
                error_code=(
                    AuthErrorCode.PROVIDER_ERROR
                    if error_code == "auth_failed"
                    else AuthErrorCode.UNKNOWN_ERROR
                ),
                redirect_to=f"{login_path}?{urlencode({'error': error_code})}",
            )

        session = self._store.adopt(provider_session)
        if session is None:
            self._logger.info("No session found after callback; back to login.")
            return AuthResult(success=False, redirect_to=login_path)

        self._logger.info(
            "Authentication successful for %s.",
            session.identity.email,
            extra={"event": "OAUTH_CALLBACK", "user_id": session.identity.id},
        )
        return AuthResult(
            success=True,
            redirect_to=self._config.DASHBOARD_PATH,
            user_id=session.identity.id,
            email=session.identity.email,
        )

    # ==================================================================
    # Error classification
    # ==================================================================

    def _classify_error(self, exc: Exception, *, event: str) -> AuthResult:
        """Map a Supabase or network exception to a structured ``AuthResult``.

        Known provider messages get friendlier text; unknown provider
        messages are shown as the provider wrote them.
        """
        if isinstance(exc, (ConnectionError, TimeoutError)):
            self._logger.warning(
                "Network error: %s", exc, extra={"event": event},
            )
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.NETWORK_ERROR,
                error_message=_NETWORK_MESSAGE,
            )

        provider_message: Optional[str] = getattr(exc, "message", None)
        if not isinstance(provider_message, str):
            provider_message = None
        error_str = (provider_message or str(exc)).lower()

        for code_key, (error_code, human_message) in SUPABASE_ERROR_MAP.items():
            if code_key in error_str:
                self._logger.warning(
                    "Auth error (%s): %s", code_key, exc,
                    extra={"event": event, "error_code": code_key},
                )
                return AuthResult(
                    success=False,
                    error_code=error_code,
                    error_message=human_message,
                )

        if provider_message:
            self._logger.warning(
                "Auth provider error: %s", provider_message,
                extra={"event": event, "error_code": "provider"},
            )
            return AuthResult(
                success=False,
                error_code=AuthErrorCode.PROVIDER_ERROR,
                error_message=provider_message,
            )

        self._logger.error(
            "Unknown auth error: %s", exc, exc_info=True,
            extra={"event": event, "error_code": "unknown"},
        )
        return AuthResult(
            success=False,
            error_code=AuthErrorCode.UNKNOWN_ERROR,
            error_message=_UNEXPECTED_MESSAGE,
        )
