"""
Credential service - bcrypt digests for passwords and verification codes.

Two cost factors:

- Passwords: high cost (default 10), resists offline brute force.
- Verification codes: low cost (default 5), codes are short-lived and
  re-issued often, so extra rounds only add latency.

bcrypt is CPU-bound, so every digest runs in a worker thread and callers
await it without blocking the event loop.
"""

import asyncio
import logging
from dataclasses import dataclass

import bcrypt

logger = logging.getLogger(__name__)

# bcrypt only consumes the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72


def _encode(secret: str) -> bytes:
    return secret.encode()[:BCRYPT_MAX_BYTES]


def _hash_sync(secret: str, cost_factor: int) -> str:
    return bcrypt.hashpw(_encode(secret), bcrypt.gensalt(rounds=cost_factor)).decode()


def _verify_sync(secret: str, credential: str) -> bool:
    try:
        return bcrypt.checkpw(_encode(secret), credential.encode())
    except ValueError:
        logger.warning("Stored credential is not a valid bcrypt digest")
        return False


@dataclass
class CredentialService:
    """
    Computes and verifies irreversible digests.

    The cost factor is part of the digest format ($2b$<cost>$...), so
    verify() needs no cost argument.
    """

    password_cost: int = 10
    code_cost: int = 5

    async def hash(self, secret: str, cost_factor: int) -> str:
        """Digest a secret with an explicit bcrypt cost factor."""
        return await asyncio.to_thread(_hash_sync, secret, cost_factor)

    async def verify(self, secret: str, credential: str) -> bool:
        """
        Check a secret against a stored digest.

        A mismatch is a normal outcome and returns False.
        """
        return await asyncio.to_thread(_verify_sync, secret, credential)

    async def hash_password(self, password: str) -> str:
        return await self.hash(password, self.password_cost)

    async def hash_code(self, code: str) -> str:
        return await self.hash(code, self.code_cost)
