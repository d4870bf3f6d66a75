"""Pydantic schemas for request/response validation and serialization."""

from pydantic import BaseModel, ConfigDict, Field
from .config import settings


# ==================== Error Schemas ====================

class ErrorResponse(BaseModel):
    """Standardized error body; code is omitted for transport-level errors."""
    error: str
    code: str | None = None


class ErrorCode:
    """Centralized error codes for API responses."""
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"


# ==================== User Schemas ====================

class UserOut(BaseModel):
    """User as returned by the repository and rendered to clients."""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    email: str
    created_at: str | None = Field(default=None, alias="createdAt")


class UserCreate(BaseModel):
    """Fields required to create a user."""
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, max_length=settings.USER_NAME_MAX_LENGTH)
    email: str = Field(..., min_length=1, max_length=settings.USER_EMAIL_MAX_LENGTH)


class UserUpdate(BaseModel):
    """Partial update; only fields present in the payload are applied.

    A field sent as null is treated as omitted, there is no way to clear
    a column.
    """
    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(default=None, min_length=1, max_length=settings.USER_NAME_MAX_LENGTH)
    email: str | None = Field(default=None, min_length=1, max_length=settings.USER_EMAIL_MAX_LENGTH)

    def changes(self) -> dict:
        """Fields to write, keyed by column name."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class MessageResponse(BaseModel):
    message: str
