"""
Role Resolver.

Answers "is this email an administrator?" from the ``admin_users``
allow-list.  Every failure path answers *no*.
"""

from __future__ import annotations

from typing import Optional

from jeementor.logger import StructuredLogger
from jeementor.models.catalog import AdminUser
from jeementor.repositories.admin_user_repository import AdminUserRepository, normalize_email
from jeementor.repositories.base_repository import RepositoryError
from jeementor.services.base_service import BaseService


class RoleResolver(BaseService):
    """Fail-closed admin lookup keyed by identity email."""

    def __init__(self, repo: AdminUserRepository, logger: StructuredLogger) -> None:
        super().__init__(logger)
        self._repo = repo

    def is_admin(self, email: Optional[str]) -> bool:
        """``True`` only when *email* is on the allow-list.

        Empty input, a missing row and a failed lookup all return ``False``.
        """
        return self._lookup(email) is not None

    def get_admin_role(self, email: Optional[str]) -> Optional[str]:
        """Role string stored for *email*, or ``None`` when not an admin."""
        entry = self._lookup(email)
        return entry.role if entry is not None else None

    def _lookup(self, email: Optional[str]) -> Optional[AdminUser]:
        if not email or not email.strip():
            return None
        normalized = normalize_email(email)
        try:
            entry = self._repo.get_by_email(normalized)
        except RepositoryError as exc:
            self._logger.error(
                "Admin lookup failed for %s; denying: %s", normalized, exc.message,
            )
            return None
        if entry is None:
            self._logger.debug("Not an admin: %s", normalized)
        return entry
