"""
In-memory repository adapter - Implements UserRepository protocol.

For development (``STORAGE_BACKEND=memory``) and tests. A single lock
makes every compare-and-set atomic, mirroring the conditional UPDATEs of
the PostgreSQL adapter. Records are copied in and out so callers never
share mutable state with the store.
"""

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone

from learngate.domain.ports import UserRecord


class InMemoryUserRepository:
    """
    Implements UserRepository protocol with a dict guarded by a lock.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: dict[str, UserRecord] = {}
        self._ids_by_email: dict[str, str] = {}

    def create_user(self, email: str, name: str, password_hash: str) -> UserRecord | None:
        with self._lock:
            if email in self._ids_by_email:
                return None
            user = UserRecord(
                id=str(uuid.uuid4()),
                email=email,
                name=name,
                password_hash=password_hash,
                created_at=datetime.now(timezone.utc),
            )
            self._users[user.id] = user
            self._ids_by_email[email] = user.id
            return replace(user)

    def find_by_id(self, user_id: str) -> UserRecord | None:
        with self._lock:
            user = self._users.get(user_id)
            return replace(user) if user is not None else None

    def find_by_email(self, email: str) -> UserRecord | None:
        with self._lock:
            user_id = self._ids_by_email.get(email)
            return replace(self._users[user_id]) if user_id is not None else None

    def claim_code_slot(
        self,
        user_id: str,
        code_hash: str,
        sent_at: datetime,
        expected_last_sent_at: datetime | None,
    ) -> bool:
        with self._lock:
            user = self._users.get(user_id)
            if user is None or user.email_verified_at is not None:
                return False
            if user.last_code_sent_at != expected_last_sent_at:
                return False
            user.verification_code_hash = code_hash
            user.last_code_sent_at = sent_at
            return True

    def mark_verified(self, user_id: str, verified_at: datetime, expected_code_hash: str) -> bool:
        with self._lock:
            user = self._users.get(user_id)
            if user is None or user.email_verified_at is not None:
                return False
            if user.verification_code_hash != expected_code_hash:
                return False
            user.verification_code_hash = None
            user.email_verified_at = verified_at
            return True

    def claim_reset_slot(
        self,
        user_id: str,
        token_hash: str,
        expires_at: datetime,
        requested_at: datetime,
        expected_last_requested_at: datetime | None,
    ) -> bool:
        with self._lock:
            user = self._users.get(user_id)
            if user is None or user.last_reset_requested_at != expected_last_requested_at:
                return False
            user.reset_token_hash = token_hash
            user.reset_token_expires_at = expires_at
            user.last_reset_requested_at = requested_at
            return True

    def consume_reset_token(self, token_hash: str, password_hash: str, now: datetime) -> bool:
        with self._lock:
            for user in self._users.values():
                if user.reset_token_hash == token_hash and user.reset_token_expires_at > now:
                    user.password_hash = password_hash
                    user.reset_token_hash = None
                    user.reset_token_expires_at = None
                    return True
            return False

    def replace_password(self, user_id: str, password_hash: str, expected_password_hash: str) -> bool:
        with self._lock:
            user = self._users.get(user_id)
            if user is None or user.password_hash != expected_password_hash:
                return False
            user.password_hash = password_hash
            return True
