# blueprints/booking/services/errors.py
from __future__ import annotations
from typing import Any, Dict, Optional


class SchedulingError(Exception):
    """Base class for recoverable scheduling failures.

    Every error carries a machine-readable ``code`` plus a ``details`` dict,
    the same shape the API returns in its ``errors`` list.
    """

    code = "SCHEDULING_ERROR"
    http_status = 409

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class LessonValidationError(SchedulingError):
    """Required lesson fields are missing or malformed."""

    code = "VALIDATION_ERROR"
    http_status = 400

    def __init__(self, message: str, *, fields=None, details=None):
        details = dict(details or {})
        if fields:
            details["fields"] = list(fields)
        super().__init__(message, details=details)
        self.fields = list(fields or [])


class BoundsError(SchedulingError):
    """Start time falls outside the availability slot the booking is bound to."""

    code = "OUT_OF_SLOT_BOUNDS"


class SlotOverlapError(SchedulingError):
    code = "SLOT_OVERLAP"


class SlotRangeError(SchedulingError):
    code = "SLOT_RANGE"
    http_status = 400


class IncompleteAssignmentError(SchedulingError):
    """Recurring commit attempted while some occurrence has no teacher."""

    code = "INCOMPLETE_ASSIGNMENT"


class EmptyPreviewError(IncompleteAssignmentError):
    code = "EMPTY_PREVIEW"


class IdentifierExhaustedError(SchedulingError):
    code = "IDENTIFIER_EXHAUSTED"


class SessionStateError(SchedulingError):
    code = "INVALID_SESSION_STATE"


class NotFoundError(SchedulingError):
    code = "NOT_FOUND"
    http_status = 404
