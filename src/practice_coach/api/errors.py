# Error Taxonomy
"""
Exceptions raised by the practice coach core.

NotFoundError and InvalidStateError subclass KeyError and ValueError so
callers that only know the builtin types still catch them.
"""

from typing import Optional


class PracticeCoachError(Exception):
    """Base class for all errors raised by the core."""

    error_name = "PracticeCoachError"

    def __init__(self, detail: str, session_id: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        self.session_id = session_id

    def __str__(self) -> str:
        return self.detail


class NotFoundError(PracticeCoachError, KeyError):
    """A session, question or user id does not resolve for the caller."""

    error_name = "NotFound"


class InvalidStateError(PracticeCoachError, ValueError):
    """The session is not in a state that allows the operation."""

    error_name = "InvalidState"


class UnauthenticatedError(PracticeCoachError):
    """No verified, active user identity is attached to the request."""

    error_name = "Unauthenticated"


class StoreUnavailableError(PracticeCoachError):
    """The configured store cannot be created or reached."""

    error_name = "StoreUnavailable"
