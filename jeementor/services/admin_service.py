"""
Admin Console Service.

Handles the administrative operations behind ``/admin``: headline
statistics, listing users, editing and deleting profiles.

Architectural notes:
    - Every write re-checks the acting email against the admin
      allow-list; page-level gating alone is not trusted.
    - Users are never created here; profiles appear on first sign-in.
    - ``plan`` is editable only through this service.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from jeementor.logger import StructuredLogger
from jeementor.models.catalog import Booking
from jeementor.models.enums import BookingStatus, PlanTier
from jeementor.models.profile import Profile, split_subjects
from jeementor.models.service_models import AdminStats, ServiceResult
from jeementor.repositories.base_repository import RepositoryError
from jeementor.repositories.catalog_repository import (
    BookingRepository,
    MentorshipSessionRepository,
    TestSeriesRepository,
    WebinarRepository,
)
from jeementor.repositories.profile_repository import ProfileRepository
from jeementor.services.base_service import BaseService
from jeementor.services.role_resolver import RoleResolver
from jeementor.utils.audit import log_audit_event

EDITABLE_PROFILE_FIELDS: frozenset[str] = frozenset({
    "full_name",
    "plan",
    "is_mentor",
    "mentor_subjects",
    "mentor_specialization",
    "mentor_experience",
    "is_available",
})


class AdminService(BaseService):
    """Service layer for admin statistics and user management."""

    def __init__(
        self,
        profiles: ProfileRepository,
        test_series: TestSeriesRepository,
        webinars: WebinarRepository,
        sessions: MentorshipSessionRepository,
        bookings: BookingRepository,
        resolver: RoleResolver,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._profiles = profiles
        self._test_series = test_series
        self._webinars = webinars
        self._sessions = sessions
        self._bookings = bookings
        self._resolver = resolver

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_stats(self) -> ServiceResult:
        """Counts per table plus revenue from paid bookings."""
        try:
            paid: list[Booking] = self._bookings.list_paid()
            stats = AdminStats(
                total_users=self._profiles.count(),
                total_tests=self._test_series.count(),
                total_webinars=self._webinars.count(),
                total_sessions=self._sessions.count(),
                total_revenue=sum(booking.amount for booking in paid),
                active_bookings=sum(
                    1 for booking in paid if booking.status == BookingStatus.CONFIRMED
                ),
            )
            return ServiceResult(success=True, data=stats)
        except RepositoryError as exc:
            self._logger.error("Failed to compute admin stats: %s", exc.message)
            return ServiceResult(
                success=False,
                error=f"Database error fetching stats: {exc.message}",
                status_code=500,
            )

    def list_users(self) -> ServiceResult:
        return self._list(self._profiles.list_all, "users")

    def list_mentors(self) -> ServiceResult:
        return self._list(self._profiles.list_mentors, "mentors")

    def list_students(self) -> ServiceResult:
        return self._list(self._profiles.list_students, "students")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def update_user(
        self,
        actor_email: str,
        user_id: str,
        changes: dict[str, Any],
    ) -> ServiceResult:
        """
        Apply admin edits to a profile.

        Args:
            actor_email: Email of the signed-in admin.
            user_id: Profile id to edit.
            changes: Subset of the editable fields.  ``mentor_subjects``
                may be a list or a comma-separated string.
        """
        # --- 0. RBAC ---
        denied = self._require_admin(actor_email, "update users")
        if denied is not None:
            return denied

        # --- 1. Validate the payload ---
        unknown = sorted(set(changes) - EDITABLE_PROFILE_FIELDS)
        if unknown:
            return ServiceResult(
                success=False,
                error=f"Fields not editable: {', '.join(unknown)}.",
                status_code=400,
            )
        if not changes:
            return ServiceResult(success=False, error="No changes supplied.", status_code=400)

        update: dict[str, Any] = dict(changes)
        if "plan" in update:
            try:
                update["plan"] = PlanTier(update["plan"]).value
            except ValueError:
                return ServiceResult(
                    success=False,
                    error=f"Invalid plan: '{update['plan']}'. "
                          f"Must be one of: {', '.join(p.value for p in PlanTier)}.",
                    status_code=400,
                )
        if "mentor_subjects" in update:
            update["mentor_subjects"] = split_subjects(update["mentor_subjects"])
        if "full_name" in update:
            full_name = str(update["full_name"] or "").strip()
            if not full_name:
                return ServiceResult(
                    success=False, error="Full name cannot be empty.", status_code=400,
                )
            update["full_name"] = full_name
        update["updated_at"] = datetime.now(timezone.utc).isoformat()

        # --- 2. Verify and write ---
        try:
            existing: Optional[Profile] = self._profiles.get_by_id(user_id)
            if existing is None:
                return ServiceResult(success=False, error="User not found.", status_code=404)
            updated: Optional[Profile] = self._profiles.update(user_id, update)
        except RepositoryError as exc:
            self._logger.error("Profile update failed for %s: %s", user_id, exc.message)
            return ServiceResult(
                success=False, error=f"Could not update user: {exc.message}", status_code=500,
            )
        if updated is None:
            return ServiceResult(success=False, error="User not found.", status_code=404)

        # --- 3. Audit trail ---
        log_audit_event(
            logger=self._logger,
            action="UPDATE",
            entity_type="Profile",
            entity_id=user_id,
            user_id=actor_email,
            details={
                "fields": ", ".join(sorted(changes)),
                "old_plan": existing.plan,
                "new_plan": updated.plan,
            },
        )
        return ServiceResult(success=True, data=updated)

    def delete_user(self, actor_email: str, user_id: str) -> ServiceResult:
        """Delete a profile row.  The auth identity itself is untouched."""
        denied = self._require_admin(actor_email, "delete users")
        if denied is not None:
            return denied

        try:
            removed = self._profiles.delete(user_id)
        except RepositoryError as exc:
            self._logger.error("Profile delete failed for %s: %s", user_id, exc.message)
            return ServiceResult(
                success=False, error=f"Could not delete user: {exc.message}", status_code=500,
            )
        if not removed:
            return ServiceResult(success=False, error="User not found.", status_code=404)

        log_audit_event(
            logger=self._logger,
            action="DELETE",
            entity_type="Profile",
            entity_id=user_id,
            user_id=actor_email,
        )
        return ServiceResult(success=True, data={"message": "User deleted successfully."})

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_admin(self, actor_email: str, action: str) -> Optional[ServiceResult]:
        if self._resolver.is_admin(actor_email):
            return None
        self._logger.warning("Denied %s to non-admin %s", action, actor_email)
        return ServiceResult(
            success=False,
            error=f"Only admins can {action}.",
            status_code=403,
        )

    def _list(self, fetch: Any, label: str) -> ServiceResult:
        try:
            return ServiceResult(success=True, data=fetch())
        except RepositoryError as exc:
            self._logger.error("Failed to fetch %s: %s", label, exc.message)
            return ServiceResult(
                success=False,
                error=f"Database error fetching {label}: {exc.message}",
                status_code=500,
            )
