"""
API Error Hierarchy

Every failure that reaches a client is one of three kinds:
    - ValidationError: client-supplied data violates a constraint (400)
    - Unauthorized: missing or invalid credential (401)
    - InternalError: a downstream dependency failed (500)

Messages are already localized and safe to show; internal details stay
in the server log.
"""

from typing import Optional


class OrderApiError(Exception):
    """Base exception rendered by the global API error handler."""

    http_status: int = 500

    def __init__(self, message: str, headers: Optional[dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.headers = headers

    def to_response(self) -> dict[str, str]:
        """Convert to the JSON error body."""
        return {"message": self.message}


class ValidationError(OrderApiError):
    """Client-supplied data violates a constraint."""
    http_status = 400


class Unauthorized(OrderApiError):
    """Missing, malformed or rejected bearer credential."""
    http_status = 401

    def __init__(self, message: str):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class InternalError(OrderApiError):
    """A downstream dependency (store, verifier) failed."""
    http_status = 500
