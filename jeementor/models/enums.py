"""
Shared Enumerations.

All string enumerations for type-safe field constraints.
StrEnum values compare equal to their string equivalents,
so stored rows like ``{"plan": "Pro Plan"}`` match ``PlanTier.PRO``.
"""

from __future__ import annotations

from enum import StrEnum


class PlanTier(StrEnum):
    """Subscription tiers a student profile can hold."""

    BASIC = "Basic Plan"
    PREMIUM = "Premium Plan"
    PRO = "Pro Plan"


class LoginProvider(StrEnum):
    """How the identity signed in."""

    EMAIL = "email"
    GOOGLE = "google"


class AuthEvent(StrEnum):
    """Auth state transitions delivered to session listeners.

    Values match the event names emitted by Supabase Auth.
    """

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


class GuardState(StrEnum):
    """Route guard states for a single page visit."""

    CHECKING = "checking"
    AUTHORIZED = "authorized"
    REDIRECTING = "redirecting"


class PageAccess(StrEnum):
    """Access level a registered page requires."""

    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


class SessionStatus(StrEnum):
    """Mentorship session lifecycle."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BookingStatus(StrEnum):
    """Booking lifecycle."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class PaymentStatus(StrEnum):
    """Payment state recorded against a booking by the payment processor."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
