"""
Admin User Repository.

Read access to the ``admin_users`` allow-list plus the two write paths
used by maintenance scripts.  Emails are always stored and queried
stripped and lower-cased.
"""

from __future__ import annotations

from typing import Optional

from jeementor.models.catalog import AdminUser
from jeementor.repositories.base_repository import BaseRepository


def normalize_email(email: str) -> str:
    """Strip whitespace and lowercase an email address."""
    return email.strip().lower()


class AdminUserRepository(BaseRepository[AdminUser]):
    """Data access layer for the admin allow-list."""

    TABLE = "admin_users"
    MODEL = AdminUser

    def get_by_email(self, email: str) -> Optional[AdminUser]:
        """Fetch the allow-list entry for *email*, or ``None``."""
        return self._get_one("email", normalize_email(email))

    def grant(self, email: str, role: str = "admin") -> AdminUser:
        """Add *email* to the allow-list."""
        return self.create(AdminUser(email=email, role=role))

    def revoke(self, email: str) -> bool:
        """Remove *email* from the allow-list. Returns ``True`` if a row went away."""
        normalized = normalize_email(email)

        def _op() -> bool:
            response = (
                self.supabase.table(self.TABLE)
                .delete()
                .eq("email", normalized)
                .execute()
            )
            return bool(response.data)

        return self._run(_op, operation_name="revoke (admin_users)")
