"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol


class VerificationState(str, Enum):
    """
    Email-verification lifecycle states.

    State Transitions:
    - UNVERIFIED -> CODE_ISSUED (first code issued)
    - CODE_ISSUED -> CODE_ISSUED (resend rotates the code)
    - CODE_ISSUED -> VERIFIED (correct code confirmed)

    VERIFIED is terminal.
    """

    UNVERIFIED = "UNVERIFIED"
    CODE_ISSUED = "CODE_ISSUED"
    VERIFIED = "VERIFIED"


@dataclass
class UserRecord:
    """User-like record as seen by the core."""

    id: str
    email: str
    name: str
    password_hash: str
    email_verified_at: datetime | None = None
    verification_code_hash: str | None = None
    last_code_sent_at: datetime | None = None
    reset_token_hash: str | None = None
    reset_token_expires_at: datetime | None = None
    last_reset_requested_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def verification_state(self) -> VerificationState:
        if self.email_verified_at is not None:
            return VerificationState.VERIFIED
        if self.verification_code_hash is not None:
            return VerificationState.CODE_ISSUED
        return VerificationState.UNVERIFIED


class UserRepository(Protocol):
    """Port interface for user persistence."""

    def create_user(self, email: str, name: str, password_hash: str) -> UserRecord | None:
        """
        Atomically create a user with empty verification state.

        Returns:
            The new record, or None if the email is already registered
        """
        ...

    def find_by_id(self, user_id: str) -> UserRecord | None:
        ...

    def find_by_email(self, email: str) -> UserRecord | None:
        ...

    def claim_code_slot(
        self,
        user_id: str,
        code_hash: str,
        sent_at: datetime,
        expected_last_sent_at: datetime | None,
    ) -> bool:
        """
        Store a new code digest if nobody else sent one in the meantime.

        Compare-and-set on ``last_code_sent_at``: the write only happens when
        the stored value still equals ``expected_last_sent_at`` and the
        email is not verified yet.

        Returns:
            True if this caller claimed the send slot
        """
        ...

    def mark_verified(self, user_id: str, verified_at: datetime, expected_code_hash: str) -> bool:
        """
        Clear the code digest and set ``email_verified_at``.

        Compare-and-set on ``verification_code_hash`` so a code rotated by a
        concurrent resend is never confirmed with the old one.

        Returns:
            True if the record transitioned to VERIFIED
        """
        ...

    def claim_reset_slot(
        self,
        user_id: str,
        token_hash: str,
        expires_at: datetime,
        requested_at: datetime,
        expected_last_requested_at: datetime | None,
    ) -> bool:
        """
        Store a new reset token digest if no other request won the cooldown.

        Compare-and-set on ``last_reset_requested_at``, like
        ``claim_code_slot``. Any earlier reset token is replaced.

        Returns:
            True if this caller claimed the reset slot
        """
        ...

    def consume_reset_token(self, token_hash: str, password_hash: str, now: datetime) -> bool:
        """
        Replace the password of the holder of an unexpired reset token.

        The token digest and expiry are cleared in the same write, so a
        token resets the password at most once.

        Returns:
            True if a matching, unexpired token was consumed
        """
        ...

    def replace_password(self, user_id: str, password_hash: str, expected_password_hash: str) -> bool:
        """
        Compare-and-set the password digest.

        Returns:
            False if the digest changed since it was read
        """
        ...


class CodeSender(Protocol):
    """Port interface for verification code and reset token delivery."""

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Deliver a plaintext verification code.

        Args:
            email: Recipient email address
            code: Numeric verification code
        """
        ...

    def send_password_reset(self, email: str, token: str) -> None:
        """
        Deliver a plaintext password reset token.

        Args:
            email: Recipient email address
            token: Single-use reset token
        """
        ...
