"""
API response models.

Pydantic models for response serialization and OpenAPI schema generation.
Request bodies are validated by rule sets, not by these models.
"""

from datetime import datetime

from pydantic import BaseModel

from learngate.domain.ports import UserRecord


class UserOut(BaseModel):
    """Public view of a user record."""

    id: str
    email: str
    name: str
    email_verified_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, user: UserRecord) -> "UserOut":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            email_verified_at=user.email_verified_at,
            created_at=user.created_at,
        )


class AuthData(BaseModel):
    user: UserOut
    token: str


class AuthResponse(BaseModel):
    """Response model for registration and login."""

    status: bool = True
    message: str
    data: AuthData


class UserResponse(BaseModel):
    status: bool = True
    message: str
    data: UserOut


class ResendData(BaseModel):
    retry_after_seconds: int


class ResendResponse(BaseModel):
    """Response model for a re-issued verification code."""

    status: bool = True
    message: str
    data: ResendData


class MessageResponse(BaseModel):
    """Success response without a data payload."""

    status: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    status: bool = False
    message: str


class ValidationErrorResponse(ErrorResponse):
    errors: dict[str, list[str]]
