"""
Catalog Service.

Generic list / create / update / delete for the admin-editable record
types.  Payloads are validated by the record's pydantic model; writes
are restricted to admins.  Signed-in students may only create their own
pending bookings through :meth:`CatalogService.book`.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from jeementor.logger import StructuredLogger
from jeementor.models.auth_models import Identity
from jeementor.models.catalog import Booking
from jeementor.models.enums import BookingStatus
from jeementor.models.service_models import ServiceResult
from jeementor.repositories.base_repository import BaseRepository, RepositoryError
from jeementor.repositories.profile_repository import ProfileRepository
from jeementor.services.base_service import BaseService
from jeementor.services.role_resolver import RoleResolver
from jeementor.utils.audit import log_audit_event

# Fields owned by the database.
_READ_ONLY_FIELDS: frozenset[str] = frozenset({"id", "created_at"})

# Record kinds a signed-in student can book, with the stored booking_type.
BOOKING_TYPES: dict[str, str] = {
    "test_series": "test",
    "webinars": "webinar",
    "mentorship_sessions": "mentorship",
}


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "record"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


class CatalogService(BaseService):
    """CRUD over ``test_series``, ``webinars``, ``mentorship_sessions``
    and ``bookings``, plus the student-facing booking path.

    Parameters
    ----------
    repositories:
        Mapping of record kind (the table name) to its repository.
    profiles:
        Profile repository, for the mentors shown beside the catalog.
    resolver:
        Admin allow-list lookup used to gate writes.
    logger:
        Structured logger.
    """

    def __init__(
        self,
        repositories: dict[str, BaseRepository[Any]],
        profiles: ProfileRepository,
        resolver: RoleResolver,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._repositories = repositories
        self._profiles = profiles
        self._resolver = resolver

    @property
    def kinds(self) -> list[str]:
        return sorted(self._repositories)

    def list_records(self, kind: str, *, active_only: bool = False) -> ServiceResult:
        """List *kind* records, newest first.

        ``active_only`` restricts to rows flagged ``is_active`` for the
        kinds that carry the flag (test series, webinars).
        """
        repo = self._repositories.get(kind)
        if repo is None:
            return self._unknown_kind(kind)
        fetch = getattr(repo, "list_active", None) if active_only else None
        try:
            return ServiceResult(success=True, data=(fetch or repo.list_all)())
        except RepositoryError as exc:
            self._logger.error("Failed to list %s: %s", kind, exc.message)
            return ServiceResult(
                success=False,
                error=f"Database error fetching {kind}: {exc.message}",
                status_code=500,
            )

    def list_featured_mentors(self, limit: int = 3) -> ServiceResult:
        """Up to *limit* mentor profiles for the catalog pages."""
        try:
            return ServiceResult(success=True, data=self._profiles.list_mentors()[:limit])
        except RepositoryError as exc:
            self._logger.error("Failed to list mentors: %s", exc.message)
            return ServiceResult(
                success=False,
                error=f"Database error fetching mentors: {exc.message}",
                status_code=500,
            )

    # ------------------------------------------------------------------
    # Student bookings
    # ------------------------------------------------------------------

    def book(self, identity: Optional[Identity], kind: str, item_id: str) -> ServiceResult:
        """
        Record a pending booking of one catalog item for the signed-in user.

        Args:
            identity: Identity of the current session, or ``None`` when
                signed out.  The booking's ``user_id`` always comes from
                here.
            kind: Record kind being booked (``test_series``, ``webinars``
                or ``mentorship_sessions``).
            item_id: Id of the booked record.

        Returns:
            ServiceResult with the stored ``Booking``; 401 when signed out,
            400 for kinds that cannot be booked, 404 for unknown items.
        """
        booking_type = BOOKING_TYPES.get(kind)
        repo = self._repositories.get(kind)
        bookings = self._repositories.get("bookings")
        if booking_type is None or repo is None or bookings is None:
            return ServiceResult(
                success=False,
                error=f"Record type '{kind}' cannot be booked.",
                status_code=400,
            )
        if identity is None:
            return ServiceResult(
                success=False, error="Sign in to book.", status_code=401,
            )

        try:
            item = repo.get_by_id(item_id)
        except RepositoryError as exc:
            return self._write_failed("book", kind, exc)
        if item is None:
            return ServiceResult(success=False, error=f"{kind} record not found.", status_code=404)

        booking = Booking(
            user_id=identity.id,
            booking_type=booking_type,
            item_id=item_id,
            amount=getattr(item, "price", 0) or 0,
            status=BookingStatus.PENDING,
        )
        try:
            created = bookings.create(booking)
        except RepositoryError as exc:
            return self._write_failed("book", kind, exc)

        log_audit_event(
            logger=self._logger,
            action="CREATE",
            entity_type="bookings",
            entity_id=str(created.id or ""),
            user_id=identity.id,
            details={"booking_type": booking_type, "item_id": item_id, "amount": created.amount},
        )
        return ServiceResult(success=True, data=created)

    # ------------------------------------------------------------------
    # Admin writes
    # ------------------------------------------------------------------

    def create_record(self, actor_email: str, kind: str, data: dict[str, Any]) -> ServiceResult:
        """Validate *data* as a new *kind* record and insert it."""
        repo = self._repositories.get(kind)
        if repo is None:
            return self._unknown_kind(kind)
        denied = self._require_admin(actor_email, kind)
        if denied is not None:
            return denied

        payload = {key: value for key, value in data.items() if key not in _READ_ONLY_FIELDS}
        try:
            record: BaseModel = repo.MODEL.model_validate(payload)
        except ValidationError as exc:
            return ServiceResult(
                success=False,
                error=f"Invalid {kind} record: {_format_validation_error(exc)}",
                status_code=400,
            )

        try:
            created = repo.create(record)
        except RepositoryError as exc:
            return self._write_failed("create", kind, exc)

        log_audit_event(
            logger=self._logger,
            action="CREATE",
            entity_type=kind,
            entity_id=str(getattr(created, "id", None) or ""),
            user_id=actor_email,
            details={"title": getattr(created, "title", None)},
        )
        return ServiceResult(success=True, data=created)

    def update_record(
        self,
        actor_email: str,
        kind: str,
        record_id: str,
        data: dict[str, Any],
    ) -> ServiceResult:
        """Apply a partial update after validating the merged record."""
        repo = self._repositories.get(kind)
        if repo is None:
            return self._unknown_kind(kind)
        denied = self._require_admin(actor_email, kind)
        if denied is not None:
            return denied

        changes = {key: value for key, value in data.items() if key not in _READ_ONLY_FIELDS}
        if not changes:
            return ServiceResult(success=False, error="No changes supplied.", status_code=400)

        try:
            existing: Optional[BaseModel] = repo.get_by_id(record_id)
        except RepositoryError as exc:
            return self._write_failed("update", kind, exc)
        if existing is None:
            return ServiceResult(success=False, error=f"{kind} record not found.", status_code=404)

        try:
            merged = repo.MODEL.model_validate({**existing.model_dump(), **changes})
        except ValidationError as exc:
            return ServiceResult(
                success=False,
                error=f"Invalid {kind} record: {_format_validation_error(exc)}",
                status_code=400,
            )

        row = merged.model_dump(mode="json", include=set(changes))
        try:
            updated = repo.update(record_id, row)
        except RepositoryError as exc:
            return self._write_failed("update", kind, exc)
        if updated is None:
            return ServiceResult(success=False, error=f"{kind} record not found.", status_code=404)

        log_audit_event(
            logger=self._logger,
            action="UPDATE",
            entity_type=kind,
            entity_id=record_id,
            user_id=actor_email,
            details={"fields": ", ".join(sorted(row))},
        )
        return ServiceResult(success=True, data=updated)

    def delete_record(self, actor_email: str, kind: str, record_id: str) -> ServiceResult:
        repo = self._repositories.get(kind)
        if repo is None:
            return self._unknown_kind(kind)
        denied = self._require_admin(actor_email, kind)
        if denied is not None:
            return denied

        try:
            removed = repo.delete(record_id)
        except RepositoryError as exc:
            return self._write_failed("delete", kind, exc)
        if not removed:
            return ServiceResult(success=False, error=f"{kind} record not found.", status_code=404)

        log_audit_event(
            logger=self._logger,
            action="DELETE",
            entity_type=kind,
            entity_id=record_id,
            user_id=actor_email,
        )
        return ServiceResult(success=True, data={"message": f"{kind} record deleted."})

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_admin(self, actor_email: str, kind: str) -> Optional[ServiceResult]:
        if self._resolver.is_admin(actor_email):
            return None
        self._logger.warning("Denied %s write to non-admin %s", kind, actor_email)
        return ServiceResult(
            success=False,
            error="Only admins can modify catalog records.",
            status_code=403,
        )

    def _unknown_kind(self, kind: str) -> ServiceResult:
        return ServiceResult(
            success=False,
            error=f"Unknown record type '{kind}'. Must be one of: {', '.join(self.kinds)}.",
            status_code=400,
        )

    def _write_failed(self, operation: str, kind: str, exc: RepositoryError) -> ServiceResult:
        self._logger.error("Could not %s %s record: %s", operation, kind, exc.message)
        return ServiceResult(
            success=False,
            error=f"Could not {operation} {kind} record: {exc.message}",
            status_code=500,
        )
