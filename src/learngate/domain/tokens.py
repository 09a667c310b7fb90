"""
Token service - Stateless signed bearer tokens (JWT, HS256).

Tokens carry the subject id in ``sub`` plus arbitrary claims and an
expiry. Nothing is stored server-side: validity is signature + expiry.
There is no revocation list, so a token stays usable until it expires.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from .exceptions import ExpiredToken, InvalidSignature

DEFAULT_TTL = timedelta(days=1)

_RESERVED_CLAIMS = frozenset({"sub", "iat", "exp"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenClaims:
    """Verified token payload."""

    subject_id: str
    claims: dict[str, Any]
    expires_at: datetime


@dataclass
class TokenService:
    """Issues and verifies signed, time-limited bearer tokens."""

    secret: str
    algorithm: str = "HS256"
    ttl: timedelta = DEFAULT_TTL
    clock: Callable[[], datetime] = field(default=_utcnow, repr=False)

    def issue(
        self,
        subject_id: str,
        claims: Mapping[str, Any] | None = None,
        ttl: timedelta | None = None,
    ) -> str:
        """
        Sign a token for a subject.

        Args:
            subject_id: Identity embedded as ``sub``
            claims: Extra claims; ``sub``, ``iat`` and ``exp`` are reserved
            ttl: Lifetime, defaults to the service TTL (1 day)
        """
        now = self.clock()
        payload = {key: value for key, value in (claims or {}).items() if key not in _RESERVED_CLAIMS}
        payload.update(
            sub=str(subject_id),
            iat=int(now.timestamp()),
            exp=int((now + (ttl if ttl is not None else self.ttl)).timestamp()),
        )
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Check signature and expiry.

        Raises:
            ExpiredToken: Signature valid, expiry passed
            InvalidSignature: Anything else (tampered, wrong key, malformed)
        """
        # Time claims are checked against the injected clock below.
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"], "verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidTokenError as e:
            raise InvalidSignature(str(e)) from e

        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        if self.clock() >= expires_at:
            raise ExpiredToken("Token has expired")

        claims = {key: value for key, value in payload.items() if key not in _RESERVED_CLAIMS}
        return TokenClaims(subject_id=payload["sub"], claims=claims, expires_at=expires_at)
