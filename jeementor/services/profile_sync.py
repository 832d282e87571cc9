"""
Profile Synchronisation Service.

Ensures that every signed-in Identity has exactly one row in the
``profiles`` table and that the row mirrors the provider's metadata.

Sync strategy:
    - Create lazily on the first observed sign-in with plan "Basic Plan".
    - Sync non-privileged metadata on every sign-in (full_name,
      avatar_url, provider, email).
    - NEVER write ``plan`` on an existing profile; plans are changed by
      admins only.
    - Idempotent: no write when nothing differs.
    - Best effort: data-store failures are logged and swallowed, the
      session itself is never affected.

Architectural notes:
    - All database access goes through ProfileRepository.
    - Race condition handling: if the insert fails, retry get_by_id.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from jeementor.logger import StructuredLogger
from jeementor.models.auth_models import Identity
from jeementor.models.enums import PlanTier
from jeementor.models.profile import Profile
from jeementor.repositories.base_repository import RepositoryError
from jeementor.repositories.profile_repository import ProfileRepository
from jeementor.services.base_service import BaseService
from jeementor.utils.audit import log_audit_event


class ProfileSyncError(Exception):
    """Raised inside reconcile when a profile cannot be created or synced."""

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.message: str = message
        self.original_error: Optional[Exception] = original_error
        super().__init__(self.message)


class ProfileSynchronizer(BaseService):
    """
    Service that reconciles the ``profiles`` table with the auth Identity.

    Called by ``AccountContext`` on every ``SIGNED_IN`` event.
    """

    def __init__(
        self,
        repo: ProfileRepository,
        logger: StructuredLogger,
        default_plan: str = PlanTier.BASIC,
    ) -> None:
        super().__init__(logger)
        self._repo = repo
        self._default_plan = default_plan

    def reconcile(self, identity: Identity) -> Optional[Profile]:
        """Ensure a Profile exists for *identity* and matches its metadata.

        Args:
            identity: The signed-in user as reported by the auth provider.

        Returns:
            The stored Profile, or ``None`` if the data store could not
            be reached or rejected the write.  Never raises.
        """
        try:
            return self._sync_profile(identity)
        except ProfileSyncError as exc:
            self._logger.error(
                "Profile sync failed for %s: %s", identity.id, exc.message,
            )
            return None
        except Exception as exc:
            self._logger.error(
                "Profile sync: unexpected error for %s. Error: %s",
                identity.id,
                exc,
                exc_info=True,
            )
            return None

    def load(self, user_id: str) -> Optional[Profile]:
        """Fetch the stored profile for *user_id*; ``None`` if absent or on error."""
        try:
            return self._repo.get_by_id(user_id)
        except RepositoryError as exc:
            self._logger.error("Could not load profile %s: %s", user_id, exc.message)
            return None

    # ------------------------------------------------------------------
    # Private implementation
    # ------------------------------------------------------------------

    def _sync_profile(self, identity: Identity) -> Profile:
        try:
            existing: Optional[Profile] = self._repo.get_by_id(identity.id)
        except RepositoryError as exc:
            raise ProfileSyncError(
                f"Could not look up profile {identity.id}", original_error=exc,
            ) from exc

        if existing is None:
            return self._create_profile(identity)
        return self._sync_existing_profile(existing, identity)

    def _create_profile(self, identity: Identity) -> Profile:
        """Insert a new profile.

        If the insert fails another tab or device may have created the
        row first; look it up again before giving up.
        """
        now = datetime.now(timezone.utc)
        new_profile = Profile(
            id=identity.id,
            email=identity.email,
            full_name=identity.display_name,
            plan=self._default_plan,
            avatar_url=identity.avatar_url,
            provider=identity.provider,
            created_at=now,
            updated_at=now,
        )

        self._logger.info(
            "Profile sync: creating profile for %s (ID: %s)",
            new_profile.full_name,
            identity.id,
        )

        try:
            created: Profile = self._repo.create(new_profile)
        except RepositoryError as exc:
            self._logger.warning(
                "Profile sync: insert failed for %s, retrying lookup. Error: %s",
                identity.id,
                exc.message,
            )
            try:
                retried: Optional[Profile] = self._repo.get_by_id(identity.id)
            except RepositoryError as retry_exc:
                raise ProfileSyncError(
                    f"Failed to create profile {identity.id}", original_error=retry_exc,
                ) from retry_exc
            if retried is None:
                raise ProfileSyncError(
                    f"Failed to create profile {identity.id}", original_error=exc,
                ) from exc
            return retried

        log_audit_event(
            logger=self._logger,
            action="PROFILE_CREATE",
            entity_type="Profile",
            entity_id=identity.id,
            user_id=identity.id,
            details={
                "email": identity.email,
                "full_name": new_profile.full_name,
                "plan": new_profile.plan,
                "provider": new_profile.provider,
            },
        )
        return created

    def _sync_existing_profile(self, profile: Profile, identity: Identity) -> Profile:
        """Write the metadata fields that differ; ``plan`` is never compared."""
        desired: dict[str, Any] = {
            "full_name": identity.display_name,
            "avatar_url": identity.avatar_url,
            "provider": identity.provider,
            "email": identity.email,
        }
        changes: dict[str, Any] = {
            field: value
            for field, value in desired.items()
            if getattr(profile, field) != value
        }

        if not changes:
            return profile

        changes["updated_at"] = datetime.now(timezone.utc).isoformat()
        changed_fields = sorted(key for key in changes if key != "updated_at")

        self._logger.info(
            "Profile sync: updating %s (ID: %s). Changes: %s",
            profile.full_name,
            profile.id,
            ", ".join(changed_fields),
        )

        try:
            synced: Optional[Profile] = self._repo.update(profile.id, changes)
        except RepositoryError as exc:
            raise ProfileSyncError(
                f"Failed to sync profile {profile.id}", original_error=exc,
            ) from exc
        if synced is None:
            raise ProfileSyncError(f"Profile {profile.id} disappeared during sync")

        log_audit_event(
            logger=self._logger,
            action="PROFILE_SYNC",
            entity_type="Profile",
            entity_id=profile.id,
            user_id=profile.id,
            details={"changed_fields": ", ".join(changed_fields)},
        )
        return synced
