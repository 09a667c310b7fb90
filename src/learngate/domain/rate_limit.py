"""
Resend rate limiter - Cooldown between verification-code sends.

A missing last-sent timestamp always allows an immediate send (first
issuance). Otherwise a send is allowed once ``now - last_sent_at >= cooldown``.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

DEFAULT_COOLDOWN = timedelta(minutes=3)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def can_resend(
    last_sent_at: datetime | None,
    cooldown: timedelta = DEFAULT_COOLDOWN,
    now: datetime | None = None,
) -> bool:
    if last_sent_at is None:
        return True
    now = now or _utcnow()
    return now - last_sent_at >= cooldown


def remaining_wait(
    last_sent_at: datetime | None,
    cooldown: timedelta = DEFAULT_COOLDOWN,
    now: datetime | None = None,
) -> int:
    """
    Whole seconds until the next send is allowed.

    Rounded up so callers are never told to wait less than what remains;
    never negative.
    """
    if last_sent_at is None:
        return 0
    now = now or _utcnow()
    remaining = (cooldown - (now - last_sent_at)).total_seconds()
    return max(0, math.ceil(remaining))


@dataclass
class ResendRateLimiter:
    """Cooldown policy bound to a clock."""

    cooldown: timedelta = DEFAULT_COOLDOWN
    clock: Callable[[], datetime] = field(default=_utcnow, repr=False)

    def can_resend(self, last_sent_at: datetime | None) -> bool:
        return can_resend(last_sent_at, self.cooldown, now=self.clock())

    def remaining_wait(self, last_sent_at: datetime | None) -> int:
        return remaining_wait(last_sent_at, self.cooldown, now=self.clock())
