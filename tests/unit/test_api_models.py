"""
Unit tests for API response models.

Tests Pydantic serialization of the ``{status, message, data}`` envelope.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from learngate.api.models import (
    AuthData,
    AuthResponse,
    ErrorResponse,
    ResendData,
    ResendResponse,
    UserOut,
    ValidationErrorResponse,
)
from learngate.domain.ports import UserRecord

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_record(**overrides: object) -> UserRecord:
    fields = {
        "id": "7d3c1c1e-0000-4000-8000-000000000001",
        "email": "user@example.com",
        "name": "Ada",
        "password_hash": "$2b$10$secret",
        "verification_code_hash": "$2b$05$code",
        "created_at": NOW,
    }
    fields.update(overrides)
    return UserRecord(**fields)


class TestUserOut:
    """Tests for UserOut.from_record()."""

    def test_copies_public_fields(self) -> None:
        out = UserOut.from_record(make_record(email_verified_at=NOW))

        assert out.id == "7d3c1c1e-0000-4000-8000-000000000001"
        assert out.email == "user@example.com"
        assert out.name == "Ada"
        assert out.email_verified_at == NOW
        assert out.created_at == NOW

    def test_never_exposes_secrets(self) -> None:
        """Password and code digests stay out of responses."""
        dumped = UserOut.from_record(make_record()).model_dump()

        assert "password_hash" not in dumped
        assert "verification_code_hash" not in dumped
        assert "$2b$" not in str(dumped)


class TestEnvelopes:
    """Tests for the success and failure envelopes."""

    def test_auth_response_defaults_status_true(self) -> None:
        response = AuthResponse(
            message="Login successful",
            data=AuthData(user=UserOut.from_record(make_record()), token="jwt"),
        )
        assert response.status is True
        assert response.model_dump()["data"]["token"] == "jwt"

    def test_resend_response(self) -> None:
        response = ResendResponse(message="Verification code sent", data=ResendData(retry_after_seconds=180))
        assert response.model_dump() == {
            "status": True,
            "message": "Verification code sent",
            "data": {"retry_after_seconds": 180},
        }

    def test_error_response_defaults_status_false(self) -> None:
        assert ErrorResponse(message="Invalid credentials").model_dump() == {
            "status": False,
            "message": "Invalid credentials",
        }

    def test_validation_error_response_requires_errors(self) -> None:
        with pytest.raises(ValidationError):
            ValidationErrorResponse(message="Validation failed")  # type: ignore[call-arg]

        response = ValidationErrorResponse(message="Validation failed", errors={"email": ["email is required"]})
        assert response.errors == {"email": ["email is required"]}
