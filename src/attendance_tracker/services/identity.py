"""Explicit user identity checks."""

from attendance_tracker.domain.errors import NotAuthenticatedError


def require_user(user_id: str | None) -> str:
    """Return the stable user id, refusing calls without an identity."""
    if user_id is None or not user_id.strip():
        raise NotAuthenticatedError("No user identity is bound to this request")
    return user_id.strip()
