"""
Password service - Password change and forgotten-password reset.

Reset flow:
    request_reset(email)   stores a token digest, sends the plaintext token
    reset_password(token)  swaps the password and clears the token

Reset tokens are 32 random bytes in hex. Only their SHA-256 digest is
stored: the token carries enough entropy that a fast digest cannot be
brute forced, and the digest can be looked up by equality. A token is
single-use and expires after ``reset_ttl``. Requests for the same account
share a cooldown, enforced with a compare-and-set like code resends.
"""

import asyncio
import hashlib
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .accounts import normalize_email
from .credentials import CredentialService
from .exceptions import (
    IncorrectPassword,
    InvalidResetToken,
    PasswordUnchanged,
    RateLimited,
    UserNotFound,
)
from .ports import CodeSender, UserRecord, UserRepository
from .rate_limit import ResendRateLimiter

logger = logging.getLogger(__name__)

RESET_COOLDOWN = timedelta(minutes=5)
RESET_TOKEN_TTL = timedelta(hours=1)
RESET_TOKEN_BYTES = 32

_RESET_ACTION = "another password reset"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _digest(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


@dataclass
class PasswordService:
    """Changes and resets account passwords."""

    repository: UserRepository
    credentials: CredentialService
    sender: CodeSender
    rate_limiter: ResendRateLimiter = field(
        default_factory=lambda: ResendRateLimiter(cooldown=RESET_COOLDOWN)
    )
    reset_ttl: timedelta = RESET_TOKEN_TTL
    clock: Callable[[], datetime] = field(default=_utcnow, repr=False)

    async def change_password(self, user: UserRecord, current_password: str, new_password: str) -> None:
        """
        Replace the password of an authenticated user.

        Raises:
            IncorrectPassword: ``current_password`` does not match, or the
                password was changed concurrently
            PasswordUnchanged: New password equals the current one
        """
        if not await self.credentials.verify(current_password, user.password_hash):
            logger.info("Password change refused for user %s: wrong current password", user.id)
            raise IncorrectPassword()
        if new_password == current_password:
            raise PasswordUnchanged()

        password_hash = await self.credentials.hash_password(new_password)
        replaced = await asyncio.to_thread(
            self.repository.replace_password, user.id, password_hash, user.password_hash
        )
        if not replaced:
            logger.warning("Password change for user %s lost a concurrent update", user.id)
            raise IncorrectPassword()

        user.password_hash = password_hash
        logger.info("Password changed for user %s", user.id)

    async def request_reset(self, email: str) -> None:
        """
        Issue a reset token and hand it to the sender.

        A delivery failure is logged and does not fail the call.

        Raises:
            UserNotFound: No account with this email
            RateLimited: The previous request is inside the cooldown
        """
        user = await asyncio.to_thread(self.repository.find_by_email, normalize_email(email))
        if user is None:
            raise UserNotFound()

        previous = user.last_reset_requested_at
        if not self.rate_limiter.can_resend(previous):
            wait = self.rate_limiter.remaining_wait(previous)
            logger.info("Reset refused for user %s, %d seconds remaining", user.id, wait)
            raise RateLimited(wait, action=_RESET_ACTION)

        token = secrets.token_hex(RESET_TOKEN_BYTES)
        requested_at = self.clock()
        claimed = await asyncio.to_thread(
            self.repository.claim_reset_slot,
            user.id,
            _digest(token),
            requested_at + self.reset_ttl,
            requested_at,
            previous,
        )
        if not claimed:
            current = await asyncio.to_thread(self.repository.find_by_id, user.id)
            if current is None:
                raise UserNotFound()
            logger.warning("Concurrent reset request for user %s lost the slot", user.id)
            raise RateLimited(
                self.rate_limiter.remaining_wait(current.last_reset_requested_at),
                action=_RESET_ACTION,
            )

        logger.info("Password reset token issued for user %s", user.id)
        try:
            self.sender.send_password_reset(user.email, token)
        except Exception:
            logger.exception("Failed to deliver password reset token for user %s", user.id)

    async def reset_password(self, token: str, new_password: str) -> None:
        """
        Set a new password with a reset token.

        Raises:
            InvalidResetToken: Unknown, used or expired token
        """
        password_hash = await self.credentials.hash_password(new_password)
        consumed = await asyncio.to_thread(
            self.repository.consume_reset_token, _digest(token), password_hash, self.clock()
        )
        if not consumed:
            logger.info("Password reset attempted with an invalid or expired token")
            raise InvalidResetToken()
        logger.info("Password reset completed")
