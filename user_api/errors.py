"""Domain errors raised by the service layer.

Each error carries a human-readable message and a machine-readable code
from ErrorCode. The controller maps codes to HTTP statuses; nothing here
knows about HTTP.
"""

from .schemas import ErrorCode


class UserServiceError(Exception):
    """Base class for failures of user operations."""

    code: str | None = None

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(UserServiceError):
    """Requested user does not exist."""
    code = ErrorCode.NOT_FOUND


class ConflictError(UserServiceError):
    """Email already belongs to another user."""
    code = ErrorCode.CONFLICT


class InternalError(UserServiceError):
    """Store returned a state that contradicts an earlier check."""
    code = ErrorCode.INTERNAL_ERROR
