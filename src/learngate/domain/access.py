"""
Access gate - Authenticate a bearer token, then gate on email verification.

Authentication always runs first: a caller that is both unauthenticated
and unverified sees Unauthorized, never Forbidden.
"""

import logging
from dataclasses import dataclass

from .exceptions import EmailNotVerified, TokenError, Unauthorized
from .ports import UserRecord, UserRepository
from .tokens import TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessGrant:
    """Admitted caller, exposed to downstream handlers."""

    subject_id: str
    user: UserRecord


@dataclass
class AccessGate:
    tokens: TokenService
    repository: UserRepository

    def authorize(self, token: str | None, require_verified: bool = False) -> AccessGrant:
        """
        Admit or refuse a request.

        Raises:
            Unauthorized: Missing, expired or invalid token, or unknown subject
            EmailNotVerified: ``require_verified`` and the email is unverified
        """
        if not token:
            raise Unauthorized("No token provided")

        try:
            claims = self.tokens.verify(token)
        except TokenError as e:
            logger.info("Token rejected: %s", type(e).__name__)
            raise Unauthorized() from e

        user = self.repository.find_by_id(claims.subject_id)
        if user is None:
            raise Unauthorized()

        if require_verified and user.email_verified_at is None:
            raise EmailNotVerified()

        return AccessGrant(subject_id=claims.subject_id, user=user)
