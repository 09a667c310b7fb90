"""
Error handlers - Map domain exceptions to client-facing responses.

Every failure body has the shape ``{"status": false, "message": ...}``;
validation failures add ``"errors": {field: [messages]}``.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from learngate.domain.exceptions import (
    EmailAlreadyRegistered,
    EmailAlreadyVerified,
    Forbidden,
    IncorrectPassword,
    InvalidCode,
    InvalidCredentials,
    InvalidResetToken,
    PasswordUnchanged,
    RateLimited,
    Unauthorized,
    UserNotFound,
    ValidationFailure,
    VerificationCodeMissing,
)

logger = logging.getLogger(__name__)

FORBIDDEN_MESSAGE = "Please verify your email address to access this resource"


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": False, "message": message},
        headers=headers,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI app."""

    @app.exception_handler(ValidationFailure)
    async def validation_failure_handler(request: Request, exc: ValidationFailure) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"status": False, "message": "Validation failed", "errors": exc.errors},
        )

    @app.exception_handler(Unauthorized)
    async def unauthorized_handler(request: Request, exc: Unauthorized) -> JSONResponse:
        return _error(
            status.HTTP_401_UNAUTHORIZED,
            exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(Forbidden)
    async def forbidden_handler(request: Request, exc: Forbidden) -> JSONResponse:
        logger.info("Forbidden on %s: %s", request.url.path, exc.reason.value)
        return _error(status.HTTP_403_FORBIDDEN, FORBIDDEN_MESSAGE)

    @app.exception_handler(RateLimited)
    async def rate_limited_handler(request: Request, exc: RateLimited) -> JSONResponse:
        return _error(
            status.HTTP_429_TOO_MANY_REQUESTS,
            str(exc),
            headers={"Retry-After": str(exc.remaining_seconds)},
        )

    for exc_class in (
        InvalidCode,
        EmailAlreadyVerified,
        VerificationCodeMissing,
        IncorrectPassword,
        PasswordUnchanged,
        InvalidResetToken,
    ):

        @app.exception_handler(exc_class)
        async def bad_request_handler(request: Request, exc: Exception) -> JSONResponse:
            return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(EmailAlreadyRegistered)
    async def email_registered_handler(request: Request, exc: EmailAlreadyRegistered) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, "Email already registered")

    @app.exception_handler(InvalidCredentials)
    async def invalid_credentials_handler(request: Request, exc: InvalidCredentials) -> JSONResponse:
        return _error(status.HTTP_401_UNAUTHORIZED, "Invalid credentials")

    @app.exception_handler(UserNotFound)
    async def user_not_found_handler(request: Request, exc: UserNotFound) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, str(exc))
