"""
Profile Model.

The application's own record about a user, layered on top of the auth
provider's Identity.  Rows live in the ``profiles`` table keyed by the
Identity id.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

from jeementor.models.enums import LoginProvider, PlanTier


def split_subjects(value: Union[str, list[str], None]) -> list[str]:
    """Accept a list or a comma-separated string and return trimmed subjects."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [subject.strip() for subject in value if subject and subject.strip()]


class Profile(BaseModel):
    """A student or mentor profile.

    ``plan`` is a business decision owned by admins; sign-in sync never
    writes it after creation.
    """

    id: str  # Supabase auth user id
    email: str
    full_name: str
    plan: str = PlanTier.BASIC
    avatar_url: Optional[str] = None
    provider: str = LoginProvider.EMAIL

    # Mentor metadata
    is_mentor: bool = False
    mentor_subjects: list[str] = Field(default_factory=list)
    mentor_specialization: Optional[str] = None
    mentor_rating: Optional[float] = None
    mentor_experience: Optional[str] = None
    is_available: bool = True

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "extra": "ignore"}

    @field_validator("mentor_subjects", mode="before")
    @classmethod
    def _coerce_subjects(cls, value: Union[str, list[str], None]) -> list[str]:
        return split_subjects(value)

    @field_validator("is_mentor", mode="before")
    @classmethod
    def _null_is_not_mentor(cls, value: Optional[bool]) -> bool:
        return bool(value)

    @field_validator("is_available", mode="before")
    @classmethod
    def _null_is_available(cls, value: Optional[bool]) -> bool:
        return True if value is None else value
