"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes, plus the
request pipeline stages: rule-set validation and the access gate.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from learngate.adapters.smtp.console import ConsoleCodeSender
from learngate.config.settings import Settings, get_settings
from learngate.domain.access import AccessGate, AccessGrant
from learngate.domain.accounts import AccountService
from learngate.domain.credentials import CredentialService
from learngate.domain import rulesets
from learngate.domain.exceptions import ValidationFailure
from learngate.domain.passwords import PasswordService
from learngate.domain.ports import CodeSender, UserRepository
from learngate.domain.rate_limit import ResendRateLimiter
from learngate.domain.rules import RuleSet, validate
from learngate.domain.tokens import TokenService
from learngate.domain.verification import VerificationLifecycle

logger = logging.getLogger(__name__)


def get_repository(request: Request) -> UserRepository:
    """
    Get the user repository from app state.

    The repository is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.repository


def get_code_sender() -> CodeSender:
    """Get the verification code sender."""
    return ConsoleCodeSender()


def get_credential_service(settings: Settings = Depends(get_settings)) -> CredentialService:
    return CredentialService(
        password_cost=settings.password_bcrypt_cost,
        code_cost=settings.code_bcrypt_cost,
    )


def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl=timedelta(seconds=settings.token_ttl_seconds),
    )


def get_verification_lifecycle(
    settings: Settings = Depends(get_settings),
    repository: UserRepository = Depends(get_repository),
    credentials: CredentialService = Depends(get_credential_service),
    code_sender: CodeSender = Depends(get_code_sender),
) -> VerificationLifecycle:
    """Wire the lifecycle with its repository, hasher, sender and cooldown."""
    return VerificationLifecycle(
        repository=repository,
        credentials=credentials,
        code_sender=code_sender,
        rate_limiter=ResendRateLimiter(cooldown=timedelta(seconds=settings.resend_cooldown_seconds)),
        code_length=settings.verification_code_length,
    )


def get_account_service(
    repository: UserRepository = Depends(get_repository),
    credentials: CredentialService = Depends(get_credential_service),
    tokens: TokenService = Depends(get_token_service),
    lifecycle: VerificationLifecycle = Depends(get_verification_lifecycle),
) -> AccountService:
    return AccountService(
        repository=repository,
        credentials=credentials,
        tokens=tokens,
        lifecycle=lifecycle,
    )


def get_password_service(
    settings: Settings = Depends(get_settings),
    repository: UserRepository = Depends(get_repository),
    credentials: CredentialService = Depends(get_credential_service),
    sender: CodeSender = Depends(get_code_sender),
) -> PasswordService:
    return PasswordService(
        repository=repository,
        credentials=credentials,
        sender=sender,
        rate_limiter=ResendRateLimiter(cooldown=timedelta(seconds=settings.reset_cooldown_seconds)),
        reset_ttl=timedelta(seconds=settings.reset_token_ttl_seconds),
    )


def get_access_gate(
    tokens: TokenService = Depends(get_token_service),
    repository: UserRepository = Depends(get_repository),
) -> AccessGate:
    return AccessGate(tokens=tokens, repository=repository)


# Missing or malformed Authorization headers yield None; the gate answers 401.
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    gate: AccessGate = Depends(get_access_gate),
) -> AccessGrant:
    """Admit any authenticated caller."""
    token = credentials.credentials if credentials is not None else None
    return gate.authorize(token, require_verified=False)


def get_verified_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    gate: AccessGate = Depends(get_access_gate),
) -> AccessGrant:
    """Admit only authenticated callers with a verified email."""
    token = credentials.credentials if credentials is not None else None
    return gate.authorize(token, require_verified=True)


def validate_body(rule_set: RuleSet) -> Callable[[Request], Awaitable[dict[str, Any]]]:
    """
    Build a dependency validating the JSON body against a rule set.

    A body that is not a JSON object is validated as an empty record, so
    required fields report themselves.

    Raises:
        ValidationFailure: With field -> messages (mapped to HTTP 422)
    """

    async def dependency(request: Request) -> dict[str, Any]:
        return await _validated_record(request, rule_set)

    return dependency


async def validate_verify_email_body(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """Validate a verify-email body against the configured code length."""
    return await _validated_record(request, rulesets.verify_email_rules(settings.verification_code_length))


async def _validated_record(request: Request, rule_set: RuleSet) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        body = None
    record = body if isinstance(body, dict) else {}

    errors = validate(record, rule_set)
    if errors:
        logger.info("Validation failed on %s: %s", request.url.path, sorted(errors))
        raise ValidationFailure(errors)
    return record
