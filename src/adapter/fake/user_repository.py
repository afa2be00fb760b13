"""In-memory implementation of UserRepository for testing."""

import threading
import uuid
from dataclasses import replace
from datetime import datetime

from domain.model.errors import ConflictError
from domain.model.user import PASSKEY_SENTINEL, User


class FakeUserRepository:
    def __init__(self):
        self.store: dict[str, User] = {}
        self._lock = threading.Lock()

    # ── write operations ─────────────────────────────────────

    def create(self, username: str, email: str, password_hash: str, now: datetime) -> User:
        with self._lock:
            if any(u.username == username for u in self.store.values()):
                raise ConflictError("Username already exists")

            user = User(
                id=uuid.uuid4().hex,
                username=username,
                email=email,
                password_hash=password_hash,
                created_at=now,
                updated_at=now,
            )
            self.store[user.id] = user
            return replace(user)

    def update_token(
        self,
        user_id: str,
        token: str,
        last_login: datetime,
        previous_token: str | None = None,
    ) -> bool:
        where = None if previous_token is None else {'token': previous_token}
        return self._update(user_id, where, token=token, last_login=last_login)

    def update_passkey(self, user_id: str, passkey: str, generated_at: datetime) -> bool:
        return self._update(user_id, passkey=passkey, passkey_generated_at=generated_at)

    def invalidate_passkey(self, user_id: str) -> bool:
        return self._update(user_id, passkey=PASSKEY_SENTINEL)

    def update_password(self, user_id: str, passkey: str, password_hash: str) -> bool:
        return self._update(
            user_id,
            {'passkey': passkey},
            password_hash=password_hash,
            passkey=None,
            passkey_generated_at=None,
        )

    def invalidate_passkeys_issued_before(self, cutoff: datetime) -> int:
        count = 0
        with self._lock:
            for user in self.store.values():
                if (
                    user.has_active_passkey()
                    and user.passkey_generated_at is not None
                    and user.passkey_generated_at < cutoff
                ):
                    user.passkey = PASSKEY_SENTINEL
                    count += 1
        return count

    def _update(self, user_id: str, where: dict | None = None, **fields) -> bool:
        with self._lock:
            user = self.store.get(user_id)
            if not user:
                return False
            if where and any(getattr(user, name) != value for name, value in where.items()):
                return False
            for name, value in fields.items():
                setattr(user, name, value)
            return True

    # ── read operations ──────────────────────────────────────
    # Copies are returned so callers never mutate stored state directly.

    def find_by_username(self, username: str) -> User | None:
        return self._find(lambda u: u.username == username)

    def find_by_email_and_username(self, email: str, username: str) -> User | None:
        return self._find(lambda u: u.email == email and u.username == username)

    def find_by_token(self, token: str) -> User | None:
        if not token:
            return None
        return self._find(lambda u: u.token == token)

    def get_by_id(self, user_id: str) -> User | None:
        return self._find(lambda u: u.id == user_id)

    def _find(self, predicate) -> User | None:
        with self._lock:
            for user in self.store.values():
                if predicate(user):
                    return replace(user)
        return None
