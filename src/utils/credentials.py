"""Password hashing and random secret generation."""

import hmac
import os
import secrets
import string

import bcrypt

# 2^12 iterations unless overridden
BCRYPT_ROUNDS = int(os.getenv('BCRYPT_ROUNDS', '12'))

TOKEN_BYTES = 32
PASSKEY_LENGTH = 6
PASSKEY_ALPHABET = string.ascii_letters + string.digits


def hash_password(password: str) -> str:
    """Hash password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hashed password as string
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash. Malformed hashes never verify."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        return False


def generate_token() -> str:
    """32 random bytes, url-safe base64 encoded."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def generate_passkey() -> str:
    return ''.join(secrets.choice(PASSKEY_ALPHABET) for _ in range(PASSKEY_LENGTH))


def passkeys_match(stored: str, supplied: str) -> bool:
    return hmac.compare_digest(stored.encode('utf-8'), supplied.encode('utf-8'))
