"""
Profile Repository.

Handles all ``profiles`` table access.  Profiles are keyed by the
Supabase auth user id and created lazily on first sign-in.
"""

from __future__ import annotations

from jeementor.models.profile import Profile
from jeementor.repositories.base_repository import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    """Data access layer for student and mentor profiles."""

    TABLE = "profiles"
    MODEL = Profile

    def list_mentors(self) -> list[Profile]:
        """Profiles flagged as mentors (speakers, test authors, session hosts)."""
        return self.list_where("is_mentor", True)

    def list_students(self) -> list[Profile]:
        """Profiles not flagged as mentors."""
        def _op() -> list[Profile]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .neq("is_mentor", True)
                .order(self.ORDER_BY, desc=True)
                .execute()
            )
            return [Profile(**row) for row in response.data or []]

        return self._run(_op, operation_name="list_students (profiles)")
