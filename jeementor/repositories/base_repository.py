"""
Base Repository.

Provides shared infrastructure for all repositories:
- DatabaseManager reference
- Logger reference
- Generic list / get / create / update / delete / count against one table

Every Supabase failure is logged and re-raised as :class:`RepositoryError`
so services can decide whether to degrade, deny or report.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Optional, TypeVar

from pydantic import BaseModel
from supabase import Client as SupabaseClient

from jeementor.database import DatabaseManager
from jeementor.logger import StructuredLogger

M = TypeVar("M", bound=BaseModel)
R = TypeVar("R")


class RepositoryError(Exception):
    """A data-store operation failed (transport, constraint or decode error)."""

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.message: str = message
        self.original_error: Optional[Exception] = original_error
        super().__init__(self.message)


class BaseRepository(Generic[M]):
    """Base class for all repositories. Receives dependencies via __init__.

    Subclasses set ``TABLE`` and ``MODEL``; ``ORDER_BY`` controls the
    default sort of :meth:`list_all` (newest first).
    """

    TABLE: str = ""
    MODEL: type[M]
    ORDER_BY: str = "created_at"

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        self._db = db
        self._logger = logger

    @property
    def supabase(self) -> SupabaseClient:
        """Returns the Supabase client for table operations."""
        return self._db.supabase

    # ------------------------------------------------------------------
    # Generic CRUD
    # ------------------------------------------------------------------

    def list_all(self, *, descending: bool = True) -> list[M]:
        """Fetch every row, sorted by ``ORDER_BY``."""
        def _op() -> list[M]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .order(self.ORDER_BY, desc=descending)
                .execute()
            )
            return [self.MODEL(**row) for row in response.data or []]

        return self._run(_op, operation_name=f"list_all ({self.TABLE})")

    def list_where(self, column: str, value: Any) -> list[M]:
        """Fetch rows where ``column == value``."""
        def _op() -> list[M]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq(column, value)
                .order(self.ORDER_BY, desc=True)
                .execute()
            )
            return [self.MODEL(**row) for row in response.data or []]

        return self._run(_op, operation_name=f"list_where {column} ({self.TABLE})")

    def get_by_id(self, record_id: str) -> Optional[M]:
        """Fetch a row by primary key, or ``None`` when absent."""
        return self._get_one("id", record_id)

    def create(self, record: M) -> M:
        """Insert *record* and return the stored row."""
        data = self._to_row(record)

        def _op() -> M:
            response = self.supabase.table(self.TABLE).insert(data).execute()
            rows = response.data or []
            return self.MODEL(**rows[0]) if rows else record

        result = self._run(_op, operation_name=f"create ({self.TABLE})")
        self._logger.info("Row created in %s: %s", self.TABLE, getattr(result, "id", None))
        return result

    def update(self, record_id: str, changes: dict[str, Any]) -> Optional[M]:
        """Apply *changes* to the row and return it, or ``None`` if not found."""
        def _op() -> Optional[M]:
            response = (
                self.supabase.table(self.TABLE)
                .update(changes)
                .eq("id", record_id)
                .execute()
            )
            rows = response.data or []
            return self.MODEL(**rows[0]) if rows else None

        return self._run(_op, operation_name=f"update ({self.TABLE})")

    def delete(self, record_id: str) -> bool:
        """Delete the row. Returns ``True`` when a row was removed."""
        def _op() -> bool:
            response = (
                self.supabase.table(self.TABLE)
                .delete()
                .eq("id", record_id)
                .execute()
            )
            return bool(response.data)

        return self._run(_op, operation_name=f"delete ({self.TABLE})")

    def count(self) -> int:
        """Exact row count without transferring rows."""
        def _op() -> int:
            response = (
                self.supabase.table(self.TABLE)
                .select("*", count="exact", head=True)
                .execute()
            )
            return int(response.count or 0)

        return self._run(_op, operation_name=f"count ({self.TABLE})")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_one(self, column: str, value: Any) -> Optional[M]:
        def _op() -> Optional[M]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq(column, value)
                .limit(1)
                .execute()
            )
            rows = response.data or []
            return self.MODEL(**rows[0]) if rows else None

        return self._run(_op, operation_name=f"get by {column} ({self.TABLE})")

    @staticmethod
    def _to_row(record: BaseModel) -> dict[str, Any]:
        """Serialise a model for PostgREST; ``None`` fields are left to DB defaults."""
        return record.model_dump(mode="json", exclude_none=True)

    def _run(self, op: Callable[[], R], *, operation_name: str) -> R:
        try:
            return op()
        except Exception as exc:
            self._logger.error("Supabase %s failed: %s", operation_name, exc)
            raise RepositoryError(
                f"{operation_name} failed: {exc}", original_error=exc,
            ) from exc
