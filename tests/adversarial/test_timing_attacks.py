"""
Adversarial tests for timing oracle attack prevention.

Verifies that login failures for unknown emails and wrong passwords have
statistically similar response times, so response time does not reveal
which emails are registered.

Our defense: login always runs a bcrypt comparison at the password cost,
against a dummy digest when the email is unknown.
"""

import asyncio
import statistics
import time

import pytest

from learngate.adapters.repository.memory import InMemoryUserRepository
from learngate.domain.accounts import AccountService
from learngate.domain.credentials import CredentialService
from learngate.domain.exceptions import InvalidCredentials
from learngate.domain.tokens import TokenService
from learngate.domain.verification import VerificationLifecycle

pytestmark = pytest.mark.adversarial


class TestLoginTiming:
    """
    Verify constant-time behavior of login failures.

    Uses the production password cost so bcrypt dominates timing.
    """

    ITERATIONS = 10

    # Maximum allowed difference in mean times
    MAX_VARIANCE_RATIO = 0.20

    @pytest.fixture
    def production_accounts(
        self,
        repository: InMemoryUserRepository,
        tokens: TokenService,
        lifecycle: VerificationLifecycle,
    ) -> AccountService:
        credentials = CredentialService(password_cost=10)
        password_hash = asyncio.run(credentials.hash_password("password123"))
        repository.create_user("known@example.com", "Known", password_hash)
        accounts = AccountService(repository=repository, credentials=credentials, tokens=tokens, lifecycle=lifecycle)

        # The dummy digest is built on first use; keep that out of the measurements.
        with pytest.raises(InvalidCredentials):
            asyncio.run(accounts.login("warmup@example.com", "password123"))
        return accounts

    def measure_time(self, accounts: AccountService, email: str, password: str) -> float:
        start = time.perf_counter()
        with pytest.raises(InvalidCredentials):
            asyncio.run(accounts.login(email, password))
        return time.perf_counter() - start

    def test_unknown_email_timing_similar_to_wrong_password(self, production_accounts: AccountService) -> None:
        unknown_times = [
            self.measure_time(production_accounts, f"ghost{i}@example.com", "password123")
            for i in range(self.ITERATIONS)
        ]
        wrong_password_times = [
            self.measure_time(production_accounts, "known@example.com", "wrongpassword")
            for _ in range(self.ITERATIONS)
        ]

        mean1 = statistics.mean(unknown_times)
        mean2 = statistics.mean(wrong_password_times)
        ratio = abs(mean1 - mean2) / max(mean1, mean2)

        assert ratio < self.MAX_VARIANCE_RATIO, (
            f"Timing difference too large: {ratio:.1%} (threshold: {self.MAX_VARIANCE_RATIO:.0%})\n"
            f"  unknown_email: mean={mean1:.4f}s\n"
            f"  wrong_password: mean={mean2:.4f}s"
        )
