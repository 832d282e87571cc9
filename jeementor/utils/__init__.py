"""Shared utility functions and models for the JEE Mentors portal client.

Convenience re-exports so consumers can import directly from
``jeementor.utils`` (e.g. ``from jeementor.utils import log_audit_event``).
"""

from jeementor.utils.audit import AuditEvent, log_audit_event
from jeementor.utils.general import call_with_timeout, convert_to_json_safe

__all__ = [
    "AuditEvent",
    "call_with_timeout",
    "convert_to_json_safe",
    "log_audit_event",
]
