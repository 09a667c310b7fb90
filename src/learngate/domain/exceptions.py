"""
Domain exceptions - Semantic error types for validation, access and verification.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
The API layer maps each of them to a client-facing status code.
"""

from enum import Enum


class LearnGateError(Exception):
    """Base class for all domain errors."""

    pass


class ConfigurationError(LearnGateError):
    """A rule chain could not be compiled (unknown atom, bad arguments)."""

    pass


class ValidationFailure(LearnGateError):
    """Request input did not satisfy its rule set."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        super().__init__("Validation failed")


# --- Access ---------------------------------------------------------------


class AccessDenied(LearnGateError):
    """Base class for access-gate failures."""

    pass


class Unauthorized(AccessDenied):
    """Caller could not be authenticated."""

    def __init__(self, message: str = "Authentication failed") -> None:
        self.message = message
        super().__init__(message)


class ForbiddenReason(str, Enum):
    """Why an authenticated caller was refused."""

    EMAIL_NOT_VERIFIED = "email_not_verified"


class Forbidden(AccessDenied):
    """Caller is authenticated but not allowed to reach the resource."""

    def __init__(self, reason: ForbiddenReason) -> None:
        self.reason = reason
        super().__init__(reason.value)


class EmailNotVerified(Forbidden):
    """Caller must verify their email address first."""

    def __init__(self) -> None:
        super().__init__(ForbiddenReason.EMAIL_NOT_VERIFIED)


# --- Tokens ---------------------------------------------------------------


class TokenError(LearnGateError):
    """Base class for bearer token failures."""

    pass


class ExpiredToken(TokenError):
    """Token signature is valid but its expiry has passed."""

    pass


class InvalidSignature(TokenError):
    """Token is malformed, tampered with, or signed with another key."""

    pass


# --- Verification ---------------------------------------------------------


class VerificationError(LearnGateError):
    """Base class for email-verification lifecycle errors."""

    pass


class RateLimited(VerificationError):
    """A code or reset link was requested before the cooldown elapsed."""

    def __init__(self, remaining_seconds: int, action: str = "a new code") -> None:
        self.remaining_seconds = remaining_seconds
        minutes, seconds = divmod(remaining_seconds, 60)
        super().__init__(
            f"Please wait {minutes} minute{'s' if minutes != 1 else ''} and "
            f"{seconds} second{'s' if seconds != 1 else ''} "
            f"before requesting {action}"
        )


class InvalidCode(VerificationError):
    """Submitted verification code does not match the issued one."""

    def __init__(self) -> None:
        super().__init__("Invalid verification code")


class EmailAlreadyVerified(VerificationError):
    """The lifecycle is already in its terminal state."""

    def __init__(self) -> None:
        super().__init__("Email already verified")


class VerificationCodeMissing(VerificationError):
    """Confirmation attempted before any code was issued."""

    def __init__(self) -> None:
        super().__init__("No verification code found")


# --- Accounts -------------------------------------------------------------


class AccountError(LearnGateError):
    """Base class for registration and login errors."""

    pass


class EmailAlreadyRegistered(AccountError):
    """Email is already bound to an account."""

    pass


class InvalidCredentials(AccountError):
    """Email/password pair does not match any account."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class UserNotFound(AccountError):
    """No account with the given email."""

    def __init__(self) -> None:
        super().__init__("User not found")


# --- Passwords ------------------------------------------------------------


class PasswordError(LearnGateError):
    """Base class for password change and reset errors."""

    pass


class IncorrectPassword(PasswordError):
    """The current password supplied for a change does not match."""

    def __init__(self) -> None:
        super().__init__("Current password is incorrect")


class PasswordUnchanged(PasswordError):
    def __init__(self) -> None:
        super().__init__("New password must be different from current password")


class InvalidResetToken(PasswordError):
    """Reset token is unknown, already used or past its expiry."""

    def __init__(self) -> None:
        super().__init__("Invalid or expired reset token")
