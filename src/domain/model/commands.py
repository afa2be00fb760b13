"""Request structures accepted by the auth service."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RegisterCommand:
    username: str
    password: str
    email: str


@dataclass(frozen=True)
class LoginCommand:
    username: str
    password: str


@dataclass(frozen=True)
class ResetCommand:
    """Both fields must match the same record on file."""
    email: str
    username: str


@dataclass(frozen=True)
class ChangePasswordCommand:
    email: str
    username: str
    passkey: str
    new_password: str
