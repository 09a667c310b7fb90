"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- Domain services wired to the in-memory repository
- A controllable clock
- Minimum bcrypt cost so hashing stays fast
"""

from collections.abc import Callable
from datetime import timedelta
from unittest.mock import Mock

import pytest

from learngate.adapters.repository.memory import InMemoryUserRepository
from learngate.domain.access import AccessGate
from learngate.domain.accounts import AccountService
from learngate.domain.credentials import CredentialService
from learngate.domain.passwords import PasswordService
from learngate.domain.rate_limit import ResendRateLimiter
from learngate.domain.tokens import TokenService
from learngate.domain.verification import VerificationLifecycle
from support import TEST_SECRET, FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def credentials() -> CredentialService:
    """bcrypt's minimum cost (4) keeps the suite fast."""
    return CredentialService(password_cost=4, code_cost=4)


@pytest.fixture
def code_sender() -> Mock:
    return Mock()


@pytest.fixture
def tokens(clock: FakeClock) -> TokenService:
    return TokenService(secret=TEST_SECRET, clock=clock)


@pytest.fixture
def lifecycle(
    repository: InMemoryUserRepository,
    credentials: CredentialService,
    code_sender: Mock,
    clock: FakeClock,
) -> VerificationLifecycle:
    return VerificationLifecycle(
        repository=repository,
        credentials=credentials,
        code_sender=code_sender,
        rate_limiter=ResendRateLimiter(cooldown=timedelta(seconds=180), clock=clock),
        code_length=6,
        clock=clock,
    )


@pytest.fixture
def accounts(
    repository: InMemoryUserRepository,
    credentials: CredentialService,
    tokens: TokenService,
    lifecycle: VerificationLifecycle,
) -> AccountService:
    return AccountService(
        repository=repository,
        credentials=credentials,
        tokens=tokens,
        lifecycle=lifecycle,
    )


@pytest.fixture
def passwords(
    repository: InMemoryUserRepository,
    credentials: CredentialService,
    code_sender: Mock,
    clock: FakeClock,
) -> PasswordService:
    return PasswordService(
        repository=repository,
        credentials=credentials,
        sender=code_sender,
        rate_limiter=ResendRateLimiter(cooldown=timedelta(minutes=5), clock=clock),
        clock=clock,
    )


@pytest.fixture
def gate(tokens: TokenService, repository: InMemoryUserRepository) -> AccessGate:
    return AccessGate(tokens=tokens, repository=repository)


@pytest.fixture
def last_code(code_sender: Mock) -> Callable[[], str]:
    """Plaintext code from the most recent send."""
    return lambda: code_sender.send_verification_code.call_args[0][1]
