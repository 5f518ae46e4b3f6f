# Authentication Boundary
"""
Resolves the caller of a request to a verified, active user.

Credentials are verified upstream (gateway or identity service), which
forwards the user id in the ``X-User-Id`` header. This module only checks
that the id belongs to an active user and hands routes a typed context.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header, Request

from .errors import UnauthenticatedError
from .store import InterviewStore


@dataclass(frozen=True)
class UserContext:
    """Verified identity of the caller."""
    user_id: int
    email: str
    role: str


def resolve_user(store: InterviewStore, raw_user_id: Optional[str]) -> UserContext:
    """
    Turn a forwarded user id into a UserContext.

    Raises:
        UnauthenticatedError: missing or malformed id, unknown or inactive user
    """
    if not raw_user_id:
        raise UnauthenticatedError("You are not logged in! Please log in to get access.")

    try:
        user_id = int(raw_user_id)
    except ValueError:
        raise UnauthenticatedError("Invalid user identity") from None

    user = store.get_user(user_id)
    if user is None:
        raise UnauthenticatedError("The user belonging to this identity no longer exists.")
    if not user.is_active:
        raise UnauthenticatedError("Your account has been deactivated. Please contact support.")

    return UserContext(user_id=user.id, email=user.email, role=user.role)


def get_current_user(
    request: Request,
    x_user_id: Optional[str] = Header(None),
) -> UserContext:
    """FastAPI dependency providing the caller's UserContext."""
    return resolve_user(request.app.state.store, x_user_id)
