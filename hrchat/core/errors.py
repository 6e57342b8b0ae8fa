"""
Exception types raised by the chat engine.

Parse failures and authorization gaps are deliberately absent: the response
extractor and the dispatcher recover from those locally and answer in-band.
"""
from typing import Optional


class HRChatError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(HRChatError):
    """Raised when the incoming request is unusable (e.g. empty query)."""

    status_code = 400


class AuthenticationError(HRChatError):
    """Raised when no requester identity accompanies the request."""

    status_code = 401


class PermissionDeniedError(HRChatError):
    """Raised when a non-admin calls an admin-only route."""

    status_code = 403


class UpstreamError(HRChatError):
    """Raised when the completion endpoint is unreachable, times out or answers non-2xx."""

    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
