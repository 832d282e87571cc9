"""
Service Layer Data Transfer Objects.

Pydantic models returned by services to the page shell.
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

__all__ = ["AdminStats", "ServiceResult"]


class AdminStats(BaseModel):
    """Headline numbers on the admin console."""

    total_users: int = 0
    total_tests: int = 0
    total_webinars: int = 0
    total_sessions: int = 0
    total_revenue: float = 0.0
    active_bookings: int = 0


class ServiceResult(BaseModel, Generic[T]):
    """
    Standard service return envelope.

    All CRUD and admin service methods return this, providing a
    consistent contract for the page shell.  ``status_code`` follows
    HTTP conventions (200, 400, 401, 403, 404, 500).
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    status_code: int = 200
