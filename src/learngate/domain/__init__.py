"""
Domain layer - Validation engine and credential/verification lifecycle.

Pure business logic with no web framework imports. Infrastructure is
reached only through the port protocols in ``ports``.
"""

from .access import AccessGate, AccessGrant
from .accounts import AccountService
from .credentials import CredentialService
from .exceptions import (
    ConfigurationError,
    EmailAlreadyRegistered,
    EmailAlreadyVerified,
    EmailNotVerified,
    ExpiredToken,
    Forbidden,
    IncorrectPassword,
    InvalidCode,
    InvalidCredentials,
    InvalidResetToken,
    InvalidSignature,
    LearnGateError,
    PasswordUnchanged,
    RateLimited,
    Unauthorized,
    UserNotFound,
    ValidationFailure,
    VerificationCodeMissing,
)
from .passwords import PasswordService
from .ports import CodeSender, UserRecord, UserRepository, VerificationState
from .rate_limit import ResendRateLimiter
from .rules import RuleSet
from .tokens import TokenClaims, TokenService
from .verification import VerificationLifecycle

__all__ = [
    "AccessGate",
    "AccessGrant",
    "AccountService",
    "CodeSender",
    "ConfigurationError",
    "CredentialService",
    "EmailAlreadyRegistered",
    "EmailAlreadyVerified",
    "EmailNotVerified",
    "ExpiredToken",
    "Forbidden",
    "IncorrectPassword",
    "InvalidCode",
    "InvalidCredentials",
    "InvalidResetToken",
    "InvalidSignature",
    "LearnGateError",
    "PasswordService",
    "PasswordUnchanged",
    "RateLimited",
    "ResendRateLimiter",
    "RuleSet",
    "TokenClaims",
    "TokenService",
    "Unauthorized",
    "UserNotFound",
    "UserRecord",
    "UserRepository",
    "ValidationFailure",
    "VerificationCodeMissing",
    "VerificationLifecycle",
    "VerificationState",
]
