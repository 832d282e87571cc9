"""
Catalog Models.

Records edited from the admin console: test series, webinars,
mentorship sessions and bookings.  ``id`` and ``created_at`` are
assigned by the database, so both are optional on input.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from jeementor.models.enums import BookingStatus, PaymentStatus, SessionStatus
from jeementor.models.profile import split_subjects


class AdminUser(BaseModel):
    """Row of the ``admin_users`` allow-list."""

    id: Optional[str] = None
    email: str
    role: str = "admin"
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "extra": "ignore"}

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, value: str) -> str:
        return value.strip().lower()


class TestSeries(BaseModel):
    """A scheduled mock-test series."""

    __test__ = False  # keep pytest from collecting this model

    id: Optional[str] = None
    title: str = Field(min_length=1)
    description: str = ""
    mentor_id: Optional[str] = None
    duration: int = Field(default=180, ge=0)
    questions: int = Field(default=0, ge=0)
    difficulty: str = "Medium"
    price: float = Field(default=0, ge=0)
    max_students: int = Field(default=0, ge=0)
    enrolled_count: int = Field(default=0, ge=0)
    test_date: Optional[str] = None
    test_time: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    syllabus: str = ""
    is_active: bool = True
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "extra": "ignore"}

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: object) -> list[str]:
        return split_subjects(value)  # type: ignore[arg-type]


class Webinar(BaseModel):
    """A live or recorded webinar."""

    id: Optional[str] = None
    title: str = Field(min_length=1)
    description: str = ""
    speaker_id: Optional[str] = None
    webinar_date: Optional[str] = None
    webinar_time: Optional[str] = None
    duration: int = Field(default=60, ge=0)
    max_attendees: int = Field(default=0, ge=0)
    attendees_count: int = Field(default=0, ge=0)
    category: str = ""
    level: str = "Beginner"
    price: float = Field(default=0, ge=0)
    topics: list[str] = Field(default_factory=list)
    thumbnail_url: Optional[str] = None
    is_live: bool = False
    is_recorded: bool = False
    recording_url: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "extra": "ignore"}

    @field_validator("topics", mode="before")
    @classmethod
    def _coerce_topics(cls, value: object) -> list[str]:
        return split_subjects(value)  # type: ignore[arg-type]


class MentorshipSession(BaseModel):
    """A one-to-one session between a mentor and a student."""

    id: Optional[str] = None
    title: str = Field(min_length=1)
    description: str = ""
    mentor_id: Optional[str] = None
    student_id: Optional[str] = None
    session_date: Optional[str] = None
    session_time: Optional[str] = None
    duration: int = Field(default=60, ge=0)
    session_type: str = "one-on-one"
    price: float = Field(default=0, ge=0)
    status: SessionStatus = SessionStatus.SCHEDULED
    meeting_link: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "extra": "ignore"}


class Booking(BaseModel):
    """A student's booking of a test series, webinar or session."""

    id: Optional[str] = None
    user_id: Optional[str] = None
    booking_type: str = "mentorship"
    item_id: Optional[str] = None
    title: Optional[str] = None
    amount: float = Field(default=0, ge=0)
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    booking_date: Optional[str] = None
    booking_time: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "extra": "ignore"}
