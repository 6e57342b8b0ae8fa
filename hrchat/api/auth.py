"""
Requester identity.

Authentication happens in front of this service; the auth layer forwards the
verified identity as X-Username / X-User-Role headers.
"""
from typing import Optional

from fastapi import Header

from hrchat.core.errors import AuthenticationError, PermissionDeniedError
from hrchat.core.intents import ROLE_USER, Requester


def requester_from_headers(username: Optional[str], role: Optional[str]) -> Requester:
    username = (username or "").strip()
    if not username:
        raise AuthenticationError("Authentication required")
    return Requester(username=username, role=(role or ROLE_USER).strip().lower() or ROLE_USER)


def get_requester(
    x_username: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Requester:
    """FastAPI dependency: the authenticated caller."""
    return requester_from_headers(x_username, x_user_role)


def require_admin(requester: Requester) -> Requester:
    if not requester.is_admin:
        raise PermissionDeniedError("Admin access required")
    return requester
