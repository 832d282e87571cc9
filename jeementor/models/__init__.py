from __future__ import annotations

"""
Data Models Package.

Re-exports the Pydantic models for short imports:
    from jeementor.models import Profile, AuthSession, Identity
    from jeementor.models import PlanTier, LoginProvider, GuardState
"""

from jeementor.models.auth_models import AuthErrorCode, AuthResult, AuthSession, Identity
from jeementor.models.catalog import AdminUser, Booking, MentorshipSession, TestSeries, Webinar
from jeementor.models.enums import (
    AuthEvent,
    BookingStatus,
    GuardState,
    LoginProvider,
    PageAccess,
    PaymentStatus,
    PlanTier,
    SessionStatus,
)
from jeementor.models.navigation import GuardDecision, NavigationResult, PageOutcome, PageRequest
from jeementor.models.profile import Profile
from jeementor.models.service_models import AdminStats, ServiceResult

__all__ = [
    "AdminStats",
    "AdminUser",
    "AuthErrorCode",
    "AuthEvent",
    "AuthResult",
    "AuthSession",
    "Booking",
    "BookingStatus",
    "GuardDecision",
    "GuardState",
    "Identity",
    "LoginProvider",
    "MentorshipSession",
    "NavigationResult",
    "PageAccess",
    "PageOutcome",
    "PageRequest",
    "PaymentStatus",
    "PlanTier",
    "Profile",
    "ServiceResult",
    "SessionStatus",
    "TestSeries",
    "Webinar",
]
