"""
Adversarial tests for race condition attack prevention.

Verifies that concurrent operations on the same user are handled atomically,
preventing attackers from exploiting race conditions to:
- Receive two codes inside one cooldown window
- Confirm a code that a concurrent resend has already rotated
- Register the same email twice
"""

import asyncio
from datetime import timedelta
from unittest.mock import Mock

import pytest
from psycopg_pool import ConnectionPool

from learngate.adapters.repository.memory import InMemoryUserRepository
from learngate.adapters.repository.postgres import PostgresUserRepository
from learngate.domain.accounts import AccountService
from learngate.domain.credentials import CredentialService
from learngate.domain.exceptions import (
    EmailAlreadyRegistered,
    EmailAlreadyVerified,
    InvalidCode,
    RateLimited,
)
from learngate.domain.rate_limit import ResendRateLimiter
from learngate.domain.tokens import TokenService
from learngate.domain.verification import VerificationLifecycle
from support import TEST_SECRET, FakeClock

pytestmark = pytest.mark.adversarial


async def gather_outcomes(*coros) -> list:
    """Run coroutines concurrently and return results or raised exceptions."""
    return await asyncio.gather(*coros, return_exceptions=True)


def build_lifecycle(repository, clock: FakeClock, code_sender: Mock) -> VerificationLifecycle:
    return VerificationLifecycle(
        repository=repository,
        credentials=CredentialService(password_cost=4, code_cost=4),
        code_sender=code_sender,
        rate_limiter=ResendRateLimiter(cooldown=timedelta(seconds=180), clock=clock),
        clock=clock,
    )


class TestConcurrentResend:
    """Two resends racing past the cooldown check."""

    def test_concurrent_resend_exactly_one_succeeds(
        self,
        lifecycle: VerificationLifecycle,
        repository: InMemoryUserRepository,
        code_sender: Mock,
        clock: FakeClock,
    ) -> None:
        user = repository.create_user("race@example.com", "Race", "$2b$04$pw")
        asyncio.run(lifecycle.issue_code(user))
        clock.advance(181)

        # Each request loads its own copy, as two HTTP requests would.
        first = repository.find_by_id(user.id)
        second = repository.find_by_id(user.id)
        outcomes = asyncio.run(gather_outcomes(lifecycle.issue_code(first), lifecycle.issue_code(second)))

        assert outcomes.count(None) == 1
        [loser] = [o for o in outcomes if o is not None]
        assert isinstance(loser, RateLimited)
        assert loser.remaining_seconds == 180
        assert code_sender.send_verification_code.call_count == 2

    def test_many_concurrent_resends_send_one_code(
        self,
        lifecycle: VerificationLifecycle,
        repository: InMemoryUserRepository,
        code_sender: Mock,
        clock: FakeClock,
    ) -> None:
        user = repository.create_user("flood@example.com", "Flood", "$2b$04$pw")
        asyncio.run(lifecycle.issue_code(user))
        clock.advance(181)
        code_sender.reset_mock()

        copies = [repository.find_by_id(user.id) for _ in range(10)]
        outcomes = asyncio.run(gather_outcomes(*(lifecycle.issue_code(c) for c in copies)))

        assert outcomes.count(None) == 1
        assert all(isinstance(o, RateLimited) for o in outcomes if o is not None)
        code_sender.send_verification_code.assert_called_once()

    def test_resend_racing_verification(
        self,
        lifecycle: VerificationLifecycle,
        repository: InMemoryUserRepository,
        last_code,
        clock: FakeClock,
    ) -> None:
        """A confirmed code and a rotation cannot both win."""
        user = repository.create_user("mixed@example.com", "Mixed", "$2b$04$pw")
        asyncio.run(lifecycle.issue_code(user))
        code = last_code()
        clock.advance(181)

        verifier = repository.find_by_id(user.id)
        resender = repository.find_by_id(user.id)
        outcomes = asyncio.run(
            gather_outcomes(lifecycle.confirm_code(verifier, code), lifecycle.issue_code(resender))
        )

        stored = repository.find_by_id(user.id)
        if stored.email_verified_at is not None:
            assert stored.verification_code_hash is None
            assert isinstance(outcomes[1], EmailAlreadyVerified)
        else:
            assert isinstance(outcomes[0], InvalidCode)
            assert outcomes[1] is None


class TestConcurrentRegistration:
    def test_same_email_registered_once(
        self, accounts: AccountService, repository: InMemoryUserRepository
    ) -> None:
        outcomes = asyncio.run(
            gather_outcomes(*(accounts.register("dup@example.com", f"User {i}", "secure123") for i in range(5)))
        )

        assert sum(isinstance(o, tuple) for o in outcomes) == 1
        assert sum(isinstance(o, EmailAlreadyRegistered) for o in outcomes) == 4


class TestConcurrentResendPostgres:
    """The same race against PostgreSQL's conditional UPDATE."""

    def test_concurrent_resend_exactly_one_succeeds(self, clean_pool: ConnectionPool) -> None:
        repository = PostgresUserRepository(clean_pool)
        clock = FakeClock()
        code_sender = Mock()
        lifecycle = build_lifecycle(repository, clock, code_sender)
        accounts = AccountService(
            repository=repository,
            credentials=lifecycle.credentials,
            tokens=TokenService(secret=TEST_SECRET, clock=clock),
            lifecycle=lifecycle,
        )
        user, _ = asyncio.run(accounts.register("pgrace@example.com", "Race", "secure123"))
        clock.advance(181)

        copies = [repository.find_by_id(user.id) for _ in range(5)]
        outcomes = asyncio.run(gather_outcomes(*(lifecycle.issue_code(c) for c in copies)))

        assert outcomes.count(None) == 1
        assert all(isinstance(o, RateLimited) for o in outcomes if o is not None)
        assert code_sender.send_verification_code.call_count == 2
