"""Error types raised by the service layer.

Each error carries a stable ``code`` and the HTTP ``status`` the API answers
with. They also derive from the matching builtin (``ValueError``,
``LookupError``, ``PermissionError``) so callers that only know the builtins
keep working.
"""
from __future__ import annotations


class BuildTrackError(Exception):
    """Base class for every error the services raise on purpose."""

    code = "error"
    status = 500
    default_message = "Something went wrong."

    def __init__(self, message: str | None = None, **details):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "success": False,
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            payload.update(self.details)
        return payload


class ValidationError(BuildTrackError, ValueError):
    code = "validation_error"
    status = 400
    default_message = "Please correct the highlighted fields."


class InvalidTransitionError(ValidationError):
    code = "invalid_transition"
    status = 409
    default_message = "This action is not allowed in the milestone's current state."


class InvalidDecisionError(ValidationError):
    code = "invalid_decision"
    status = 400
    default_message = "Status must be approved or rejected."


class DuplicateDateForProjectError(ValidationError):
    code = "duplicate_date_for_project"
    status = 400
    default_message = "A report already exists for this date."


class NotFoundError(BuildTrackError, LookupError):
    code = "not_found"
    status = 404
    default_message = "The requested item was not found."


class ForbiddenError(BuildTrackError, PermissionError):
    code = "forbidden"
    status = 403
    default_message = "You do not have permission to perform this action."


class ConflictError(BuildTrackError):
    code = "conflict"
    status = 409
    default_message = "The item was changed by another request. Please try again."


__all__ = [
    "BuildTrackError",
    "ConflictError",
    "DuplicateDateForProjectError",
    "ForbiddenError",
    "InvalidDecisionError",
    "InvalidTransitionError",
    "NotFoundError",
    "ValidationError",
]
