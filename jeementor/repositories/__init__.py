"""
Repository Layer Package.

Provides data-access abstractions over the Supabase tables.
All database operations flow through repositories; services never
touch ``db.supabase`` table builders directly.

Usage:
    from jeementor.repositories.profile_repository import ProfileRepository
    from jeementor.repositories.admin_user_repository import AdminUserRepository
"""

from jeementor.repositories.admin_user_repository import AdminUserRepository
from jeementor.repositories.base_repository import BaseRepository, RepositoryError
from jeementor.repositories.catalog_repository import (
    BookingRepository,
    MentorshipSessionRepository,
    TestSeriesRepository,
    WebinarRepository,
)
from jeementor.repositories.profile_repository import ProfileRepository

__all__ = [
    "AdminUserRepository",
    "BaseRepository",
    "BookingRepository",
    "MentorshipSessionRepository",
    "ProfileRepository",
    "RepositoryError",
    "TestSeriesRepository",
    "WebinarRepository",
]
