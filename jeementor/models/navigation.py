"""
Navigation Models.

Requests, guard decisions and navigation results exchanged between the
route guard, page loaders and the ``AppShell``.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlencode

from pydantic import BaseModel, Field

from jeementor.models.enums import GuardState


class PageRequest(BaseModel):
    """A single page visit: path plus decoded query parameters."""

    path: str
    query: dict[str, str] = Field(default_factory=dict)

    @property
    def url(self) -> str:
        if not self.query:
            return self.path
        return f"{self.path}?{urlencode(self.query)}"


class GuardDecision(BaseModel):
    """Outcome of one route-guard evaluation.

    ``redirect_to`` is the bare target path; ``return_to`` is the page
    the user asked for, carried to the login page so it can send them
    back after sign-in.
    """

    state: GuardState
    redirect_to: Optional[str] = None
    return_to: Optional[str] = None
    reason: Optional[str] = None

    @property
    def location(self) -> Optional[str]:
        """Full redirect URL including the ``redirect`` query parameter."""
        if self.redirect_to is None:
            return None
        if self.return_to:
            return f"{self.redirect_to}?{urlencode({'redirect': self.return_to})}"
        return self.redirect_to


class PageOutcome(BaseModel):
    """What a page loader produced: content to render, or a redirect."""

    content: dict[str, Any] = Field(default_factory=dict)
    redirect_to: Optional[str] = None


class NavigationResult(BaseModel):
    """Where a navigation ended up and what it rendered.

    Attributes
    ----------
    requested:
        The URL originally asked for.
    path:
        The path finally shown (after following redirects).
    state:
        Guard state of the final page.
    content:
        Loader output for the final page (empty unless authorized).
    redirects:
        Every URL redirected to, in order.
    """

    requested: str
    path: str
    state: GuardState
    content: dict[str, Any] = Field(default_factory=dict)
    redirects: list[str] = Field(default_factory=list)
    error: Optional[str] = None
