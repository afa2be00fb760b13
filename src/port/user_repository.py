from datetime import datetime
from typing import Protocol

from domain.model.user import User


class UserRepository(Protocol):
    """Protocol defining the interface for credential storage.

    Store failures raise InternalError. Update methods return False when no
    record matched the given id.
    """
    def create(self, username: str, email: str, password_hash: str, now: datetime) -> User:
        """Create a new user. Raise ConflictError if the username is taken."""
        ...

    def find_by_username(self, username: str) -> User | None:
        ...

    def find_by_email_and_username(self, email: str, username: str) -> User | None:
        """Find the user matching both fields. Return None if either differs."""
        ...

    def find_by_token(self, token: str) -> User | None:
        ...

    def get_by_id(self, user_id: str) -> User | None:
        ...

    def update_token(
        self,
        user_id: str,
        token: str,
        last_login: datetime,
        previous_token: str | None = None,
    ) -> bool:
        """Store the token and login time.

        When previous_token is given, update only if the stored token still
        equals it, so two concurrent rotations cannot both succeed.
        """
        ...

    def update_passkey(self, user_id: str, passkey: str, generated_at: datetime) -> bool:
        ...

    def invalidate_passkey(self, user_id: str) -> bool:
        """Set the passkey to the sentinel value."""
        ...

    def update_password(self, user_id: str, passkey: str, password_hash: str) -> bool:
        """Set the password hash and unset both passkey fields in one update.

        Applies only while the stored passkey still equals passkey; return
        False if it was consumed or invalidated in the meantime.
        """
        ...

    def invalidate_passkeys_issued_before(self, cutoff: datetime) -> int:
        """Sentinel every live passkey generated before cutoff. Return the count."""
        ...
