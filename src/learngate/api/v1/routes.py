"""
API v1 routes.

Defines REST endpoints for registration, login, email verification and
password recovery.
Each route validates its body with a rule set before the access gate runs.
"""

from typing import Any

from fastapi import APIRouter, Depends, status

from learngate.api.dependencies import (
    get_account_service,
    get_current_user,
    get_password_service,
    get_verification_lifecycle,
    get_verified_user,
    validate_body,
    validate_verify_email_body,
)
from learngate.api.models import (
    AuthData,
    AuthResponse,
    ErrorResponse,
    MessageResponse,
    ResendData,
    ResendResponse,
    UserOut,
    UserResponse,
    ValidationErrorResponse,
)
from learngate.domain import rulesets
from learngate.domain.access import AccessGrant
from learngate.domain.accounts import AccountService
from learngate.domain.passwords import PasswordService
from learngate.domain.verification import VerificationLifecycle

router = APIRouter(tags=["v1"])

_VALIDATION = {422: {"model": ValidationErrorResponse, "description": "Validation error"}}
_UNAUTHORIZED = {401: {"model": ErrorResponse, "description": "Missing, invalid or expired token"}}


@router.post(
    "/auth/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Email already registered"},
        **_VALIDATION,
    },
    summary="Register a new user",
    description="Create an account and send a verification code to the email address.",
)
async def register(
    body: dict[str, Any] = Depends(validate_body(rulesets.REGISTER)),
    service: AccountService = Depends(get_account_service),
) -> AuthResponse:
    """
    Register a new user and send verification code.

    - **email**: Valid email address
    - **name**: 2-50 characters
    - **password**: 6-50 characters
    """
    user, token = await service.register(body["email"], body["name"], body["password"])
    return AuthResponse(
        message="Registration successful. Verification code sent",
        data=AuthData(user=UserOut.from_record(user), token=token),
    )


@router.post(
    "/auth/login",
    response_model=AuthResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        **_VALIDATION,
    },
    summary="Log in with email and password",
)
async def login(
    body: dict[str, Any] = Depends(validate_body(rulesets.LOGIN)),
    service: AccountService = Depends(get_account_service),
) -> AuthResponse:
    user, token = await service.login(body["email"], body["password"])
    return AuthResponse(
        message="Login successful",
        data=AuthData(user=UserOut.from_record(user), token=token),
    )


@router.post(
    "/auth/verify-email",
    response_model=UserResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid code or already verified"},
        **_UNAUTHORIZED,
        **_VALIDATION,
    },
    summary="Confirm the emailed verification code",
)
async def verify_email(
    body: dict[str, Any] = Depends(validate_verify_email_body),
    grant: AccessGrant = Depends(get_current_user),
    lifecycle: VerificationLifecycle = Depends(get_verification_lifecycle),
) -> UserResponse:
    user = await lifecycle.confirm_code(grant.user, body["code"])
    return UserResponse(message="Email verified successfully", data=UserOut.from_record(user))


@router.post(
    "/auth/resend-verification",
    response_model=ResendResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Email already verified"},
        429: {"model": ErrorResponse, "description": "Cooldown not elapsed"},
        **_UNAUTHORIZED,
    },
    summary="Send a new verification code",
)
async def resend_verification(
    grant: AccessGrant = Depends(get_current_user),
    lifecycle: VerificationLifecycle = Depends(get_verification_lifecycle),
) -> ResendResponse:
    await lifecycle.issue_code(grant.user)
    return ResendResponse(
        message="Verification code sent",
        data=ResendData(retry_after_seconds=lifecycle.rate_limiter.remaining_wait(grant.user.last_code_sent_at)),
    )


@router.post(
    "/auth/forgot-password",
    response_model=MessageResponse,
    responses={
        404: {"model": ErrorResponse, "description": "No account with this email"},
        429: {"model": ErrorResponse, "description": "Cooldown not elapsed"},
        **_VALIDATION,
    },
    summary="Send a password reset token",
)
async def forgot_password(
    body: dict[str, Any] = Depends(validate_body(rulesets.FORGOT_PASSWORD)),
    service: PasswordService = Depends(get_password_service),
) -> MessageResponse:
    await service.request_reset(body["email"])
    return MessageResponse(message="Password reset instructions sent to your email")


@router.post(
    "/auth/reset-password",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or expired reset token"},
        **_VALIDATION,
    },
    summary="Set a new password with a reset token",
)
async def reset_password(
    body: dict[str, Any] = Depends(validate_body(rulesets.RESET_PASSWORD)),
    service: PasswordService = Depends(get_password_service),
) -> MessageResponse:
    await service.reset_password(body["token"], body["password"])
    return MessageResponse(message="Password reset successful")


@router.put(
    "/auth/change-password",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Wrong current password or unchanged password"},
        403: {"model": ErrorResponse, "description": "Email not verified"},
        **_UNAUTHORIZED,
        **_VALIDATION,
    },
    summary="Change the password (verified email required)",
)
async def change_password(
    body: dict[str, Any] = Depends(validate_body(rulesets.CHANGE_PASSWORD)),
    grant: AccessGrant = Depends(get_verified_user),
    service: PasswordService = Depends(get_password_service),
) -> MessageResponse:
    await service.change_password(grant.user, body["currentPassword"], body["newPassword"])
    return MessageResponse(message="Password changed successfully")


@router.get(
    "/users/me",
    response_model=UserResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Email not verified"},
        **_UNAUTHORIZED,
    },
    summary="Current user profile (verified email required)",
)
async def current_user(grant: AccessGrant = Depends(get_verified_user)) -> UserResponse:
    return UserResponse(message="Success", data=UserOut.from_record(grant.user))
