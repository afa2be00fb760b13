"""Domain-level exceptions.

Services raise these errors to express business rule violations.
Route handlers catch them and map to appropriate HTTP status codes.
"""


class DomainError(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainError):
    """Required input is missing or empty."""


class ConflictError(DomainError):
    """Entity with the same unique key already exists."""


class UnauthorizedError(DomainError):
    """Credentials, token or passkey were rejected."""


class NotFoundError(DomainError):
    """Requested entity does not exist."""


class PermissionDeniedError(DomainError):
    """Caller lacks permission for the requested action."""


class InternalError(DomainError):
    """Hashing, persistence or notification failed."""
