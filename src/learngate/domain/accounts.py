"""
Account service - Registration and login.

Registration creates the user, issues the first verification code through
the lifecycle and returns a bearer token, so the caller can immediately
confirm the code on the authenticated verify-email endpoint.
"""

import asyncio
from dataclasses import dataclass
from functools import lru_cache

import bcrypt

from .credentials import CredentialService
from .exceptions import EmailAlreadyRegistered, InvalidCredentials
from .ports import UserRecord, UserRepository
from .tokens import TokenService
from .verification import VerificationLifecycle


@lru_cache
def _dummy_password_hash(cost: int) -> str:
    """
    Digest compared against when the email is unknown.

    Built at the password cost so login always pays the same bcrypt price.
    """
    return bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(cost)).decode()


def normalize_email(email: str) -> str:
    """Applies: strip whitespace + lowercase"""
    return email.strip().lower()


@dataclass
class AccountService:
    """Orchestrates registration and login."""

    repository: UserRepository
    credentials: CredentialService
    tokens: TokenService
    lifecycle: VerificationLifecycle

    async def register(self, email: str, name: str, password: str) -> tuple[UserRecord, str]:
        """
        Register a new user and send the first verification code.

        Returns:
            (user, bearer token)

        Raises:
            EmailAlreadyRegistered: If the email is already taken
        """
        normalized_email = normalize_email(email)
        password_hash = await self.credentials.hash_password(password)

        user = await asyncio.to_thread(
            self.repository.create_user, normalized_email, name.strip(), password_hash
        )
        if user is None:
            raise EmailAlreadyRegistered(normalized_email)

        await self.lifecycle.issue_code(user)
        return user, self.tokens.issue(user.id)

    async def login(self, email: str, password: str) -> tuple[UserRecord, str]:
        """
        Authenticate with email and password.

        Raises:
            InvalidCredentials: Unknown email or wrong password
        """
        user = await asyncio.to_thread(self.repository.find_by_email, normalize_email(email))
        if user is not None:
            stored_hash = user.password_hash
        else:
            stored_hash = await asyncio.to_thread(_dummy_password_hash, self.credentials.password_cost)

        password_valid = await self.credentials.verify(password, stored_hash)
        if user is None or not password_valid:
            raise InvalidCredentials()

        return user, self.tokens.issue(user.id)
