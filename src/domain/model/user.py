from dataclasses import dataclass
from datetime import datetime, timedelta

PASSKEY_SENTINEL = 'NOT_PASSKEY'
PASSKEY_TTL = timedelta(minutes=10)
TOKEN_FRESHNESS_WINDOW = timedelta(hours=48)


@dataclass
class User:
    """Domain model representing a user credential record."""
    id: str
    username: str
    email: str
    password_hash: str
    created_at: datetime
    updated_at: datetime
    is_admin: bool = False
    token: str = ''
    last_login: datetime | None = None
    passkey: str | None = None
    passkey_generated_at: datetime | None = None

    def has_active_passkey(self) -> bool:
        """True while a passkey is stored that is neither cleared nor the sentinel."""
        return bool(self.passkey) and self.passkey != PASSKEY_SENTINEL

    def passkey_expired(self, now: datetime) -> bool:
        if self.passkey_generated_at is None:
            return False
        return now - self.passkey_generated_at > PASSKEY_TTL

    def token_is_fresh(self, now: datetime) -> bool:
        """A token stays reusable for 48 hours after the last successful login."""
        if not self.token or self.last_login is None:
            return False
        return now - self.last_login <= TOKEN_FRESHNESS_WINDOW
