"""
Catalog Repositories.

One thin repository per admin-editable table.  All behaviour lives in
``BaseRepository``; these classes only bind the table name and model.
"""

from __future__ import annotations

from jeementor.models.catalog import Booking, MentorshipSession, TestSeries, Webinar
from jeementor.models.enums import PaymentStatus
from jeementor.repositories.base_repository import BaseRepository


class TestSeriesRepository(BaseRepository[TestSeries]):
    __test__ = False

    TABLE = "test_series"
    MODEL = TestSeries

    def list_active(self) -> list[TestSeries]:
        return self.list_where("is_active", True)


class WebinarRepository(BaseRepository[Webinar]):
    TABLE = "webinars"
    MODEL = Webinar

    def list_active(self) -> list[Webinar]:
        return self.list_where("is_active", True)


class MentorshipSessionRepository(BaseRepository[MentorshipSession]):
    TABLE = "mentorship_sessions"
    MODEL = MentorshipSession


class BookingRepository(BaseRepository[Booking]):
    TABLE = "bookings"
    MODEL = Booking

    def list_paid(self) -> list[Booking]:
        """Bookings whose payment has cleared (revenue source for admin stats)."""
        return self.list_where("payment_status", str(PaymentStatus.PAID))
