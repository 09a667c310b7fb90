"""
Verification lifecycle - Email verification state machine.

States (derived from the user record):
- UNVERIFIED: No code issued yet (initial)
- CODE_ISSUED: A code digest is stored, waiting for confirmation
- VERIFIED: Terminal, ``email_verified_at`` set and code digest cleared

Transitions:
    UNVERIFIED  -> CODE_ISSUED  issue_code()
    CODE_ISSUED -> CODE_ISSUED  issue_code() (resend, rate limited)
    CODE_ISSUED -> VERIFIED     confirm_code() with the right code

This service is the only writer of the verification fields. Both writes
are compare-and-set operations on the repository, so two racing resends
cannot both claim the same cooldown window.
Repository calls run in a worker thread; the adapters are synchronous.
"""

import asyncio
import logging
import secrets
import string
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .credentials import CredentialService
from .exceptions import (
    EmailAlreadyVerified,
    InvalidCode,
    RateLimited,
    Unauthorized,
    VerificationCodeMissing,
)
from .ports import CodeSender, UserRecord, UserRepository, VerificationState
from .rate_limit import ResendRateLimiter

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class VerificationLifecycle:
    """Owns every transition of a user's verification state."""

    repository: UserRepository
    credentials: CredentialService
    code_sender: CodeSender
    rate_limiter: ResendRateLimiter = field(default_factory=ResendRateLimiter)
    code_length: int = 6
    clock: Callable[[], datetime] = field(default=_utcnow, repr=False)

    async def issue_code(self, user: UserRecord) -> None:
        """
        Issue (or rotate) a verification code and hand it to the sender.

        A delivery failure is logged and does not fail the call.

        Raises:
            EmailAlreadyVerified: Lifecycle already terminal
            RateLimited: Cooldown since the last send has not elapsed,
                including when a concurrent request claimed the slot first
        """
        if user.verification_state is VerificationState.VERIFIED:
            raise EmailAlreadyVerified()

        previous_sent_at = user.last_code_sent_at
        if not self.rate_limiter.can_resend(previous_sent_at):
            wait = self.rate_limiter.remaining_wait(previous_sent_at)
            logger.info("Resend refused for user %s, %d seconds remaining", user.id, wait)
            raise RateLimited(wait)

        code = self._generate_code()
        code_hash = await self.credentials.hash_code(code)
        sent_at = self.clock()

        claimed = await asyncio.to_thread(
            self.repository.claim_code_slot, user.id, code_hash, sent_at, previous_sent_at
        )
        if not claimed:
            await self._raise_lost_claim(user.id)

        user.verification_code_hash = code_hash
        user.last_code_sent_at = sent_at
        logger.info("Verification code issued for user %s", user.id)

        # The slot stays claimed; the user can request another code after the cooldown.
        try:
            self.code_sender.send_verification_code(user.email, code)
        except Exception:
            logger.exception("Failed to deliver verification code for user %s", user.id)

    async def confirm_code(self, user: UserRecord, submitted_code: str) -> UserRecord:
        """
        Confirm a submitted code and move the user to VERIFIED.

        Raises:
            EmailAlreadyVerified: Lifecycle already terminal
            VerificationCodeMissing: No code was ever issued
            InvalidCode: Code mismatch, state unchanged
        """
        state = user.verification_state
        if state is VerificationState.VERIFIED:
            raise EmailAlreadyVerified()
        if state is VerificationState.UNVERIFIED:
            raise VerificationCodeMissing()

        code_hash = user.verification_code_hash
        if not await self.credentials.verify(submitted_code, code_hash):
            logger.info("Invalid verification code submitted for user %s", user.id)
            raise InvalidCode()

        verified_at = self.clock()
        if not await asyncio.to_thread(self.repository.mark_verified, user.id, verified_at, code_hash):
            # Code rotated or record verified by a concurrent request.
            logger.warning("Verification of user %s lost a concurrent update", user.id)
            current = await asyncio.to_thread(self.repository.find_by_id, user.id)
            if current is not None and current.verification_state is VerificationState.VERIFIED:
                raise EmailAlreadyVerified()
            raise InvalidCode()

        user.verification_code_hash = None
        user.email_verified_at = verified_at
        logger.info("Email verified for user %s", user.id)
        return user

    async def _raise_lost_claim(self, user_id: str) -> None:
        current = await asyncio.to_thread(self.repository.find_by_id, user_id)
        if current is None:
            raise Unauthorized("User not found")
        if current.verification_state is VerificationState.VERIFIED:
            raise EmailAlreadyVerified()
        wait = self.rate_limiter.remaining_wait(current.last_code_sent_at)
        logger.warning("Concurrent resend for user %s lost the send slot", user_id)
        raise RateLimited(wait)

    def _generate_code(self) -> str:
        """
        Generate a cryptographically secure numeric code.

        Returns a string to preserve leading zeros.
        """
        return "".join(secrets.choice(string.digits) for _ in range(self.code_length))
