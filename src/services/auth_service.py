"""Auth service: registration, login and passkey-based password reset.

Pure business logic with no HTTP dependencies.
Raises domain errors that route handlers map to HTTP status codes.

Passkey lifecycle per user:
    none/sentinel -> active (initiate_reset)
    active -> sentinel (scheduled expiry, or change_password past the window)
    active -> cleared (successful change_password)

The scheduled expiry and the explicit window check in change_password both
converge on the sentinel, so a lost timer (process restart) never extends
a passkey's life.
"""

import logging
from datetime import datetime

from domain.model.commands import (
    ChangePasswordCommand,
    LoginCommand,
    RegisterCommand,
    ResetCommand,
)
from domain.model.errors import (
    ConflictError,
    InternalError,
    NotFoundError,
    PermissionDeniedError,
    UnauthorizedError,
    ValidationError,
)
from domain.model.user import PASSKEY_TTL, User
from port.clock import ClockPort
from port.notifier import NotifierPort
from port.scheduler import SchedulerPort
from port.user_repository import UserRepository
from utils.credentials import (
    generate_passkey,
    generate_token,
    hash_password,
    passkeys_match,
    verify_password,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"
NO_MATCHING_USER = "No user matches the given email and username"
RESET_SUBJECT = "Password Reset Passkey"
RESET_BODY = "Your passkey for resetting your password is: {passkey}"


def _require(**fields: str) -> None:
    missing = [name for name, value in fields.items() if not value or not value.strip()]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _expiry_key(user_id: str) -> str:
    return f"passkey-expiry:{user_id}"


class AuthService:
    """Owns credential state transitions for every user record.

    All collaborators are injected. The scheduler is owned by the service
    from here on and drained by shutdown().
    """

    def __init__(
        self,
        repo: UserRepository,
        notifier: NotifierPort,
        clock: ClockPort,
        scheduler: SchedulerPort,
    ):
        self.repo = repo
        self.notifier = notifier
        self.clock = clock
        self.scheduler = scheduler

    # ── registration ─────────────────────────────────────────

    def register(self, cmd: RegisterCommand) -> User:
        """Register a new user.

        Raises:
            ValidationError: a field is empty
            ConflictError: username already registered
        """
        _require(username=cmd.username, password=cmd.password, email=cmd.email)

        if self.repo.find_by_username(cmd.username):
            raise ConflictError("Username already exists")

        password_hash = self._hash(cmd.password)

        # create() raises ConflictError itself if another request won the race
        user = self.repo.create(
            username=cmd.username,
            email=cmd.email,
            password_hash=password_hash,
            now=self.clock.now(),
        )
        logger.info("User registered", extra={"userId": user.id, "username": user.username})
        return user

    # ── login ────────────────────────────────────────────────

    def login(self, cmd: LoginCommand) -> str:
        """Verify credentials and return the session token.

        The stored token is reused while the last login is within the
        freshness window; otherwise a new one is issued.

        Raises:
            ValidationError: a field is empty
            UnauthorizedError: unknown username or wrong password (deliberately vague)
            InternalError: token could not be persisted
        """
        _require(username=cmd.username, password=cmd.password)

        user = self.repo.find_by_username(cmd.username)
        if not user:
            logger.warning("Login failed: unknown username", extra={"username": cmd.username})
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if not verify_password(cmd.password, user.password_hash):
            logger.warning("Login failed: wrong password", extra={"userId": user.id})
            raise UnauthorizedError(INVALID_CREDENTIALS)

        now = self.clock.now()
        if user.token_is_fresh(now):
            token = user.token
            if not self.repo.update_token(user.id, token, now):
                raise InternalError("Failed to update login information")
        else:
            token = generate_token()
            if self.repo.update_token(user.id, token, now, previous_token=user.token):
                logger.info("Issued new session token", extra={"userId": user.id})
            else:
                token = self._token_rotated_concurrently(user.id, now)

        logger.info("User logged in", extra={"userId": user.id})
        return token

    # ── password reset ───────────────────────────────────────

    def initiate_reset(self, cmd: ResetCommand) -> None:
        """Issue a passkey, schedule its expiry and email it to the user.

        A notifier failure is reported even though the passkey is already
        stored; the passkey stays live until it expires.

        Raises:
            ValidationError: a field is empty
            NotFoundError: no user matches the (email, username) pair
            InternalError: passkey could not be stored or sent
        """
        _require(email=cmd.email, username=cmd.username)

        user = self._find_for_reset(cmd.email, cmd.username)

        passkey = generate_passkey()
        if not self.repo.update_passkey(user.id, passkey, self.clock.now()):
            raise InternalError("Failed to save passkey")

        self.scheduler.schedule(
            _expiry_key(user.id),
            PASSKEY_TTL,
            lambda: self._expire_passkey(user.id),
        )

        body = RESET_BODY.format(passkey=passkey)
        if not self.notifier.send(user.email, RESET_SUBJECT, body):
            logger.warning(
                "Passkey stored but email delivery failed",
                extra={"userId": user.id},
            )
            raise InternalError("Failed to send email")

        logger.info("Passkey sent", extra={"userId": user.id})

    def change_password(self, cmd: ChangePasswordCommand) -> None:
        """Consume a passkey and set a new password.

        The expiry check runs before the passkey comparison and sentinels an
        expired passkey as a side effect.

        Raises:
            ValidationError: a field is empty
            NotFoundError: no user matches the (email, username) pair
            UnauthorizedError: passkey expired, does not match, or was
                consumed by a concurrent change
            InternalError: new password could not be stored
        """
        _require(
            email=cmd.email,
            username=cmd.username,
            passkey=cmd.passkey,
            new_password=cmd.new_password,
        )

        user = self._find_for_reset(cmd.email, cmd.username)

        if user.passkey_expired(self.clock.now()):
            self.repo.invalidate_passkey(user.id)
            self.scheduler.cancel(_expiry_key(user.id))
            logger.warning("Password change rejected: passkey expired", extra={"userId": user.id})
            raise UnauthorizedError("Passkey expired")

        if not user.has_active_passkey() or not passkeys_match(user.passkey, cmd.passkey):
            logger.warning("Password change rejected: invalid passkey", extra={"userId": user.id})
            raise UnauthorizedError("Invalid passkey")

        password_hash = self._hash(cmd.new_password)
        if not self.repo.update_password(user.id, user.passkey, password_hash):
            # consumed or expired between the read and the write
            logger.warning("Password change rejected: passkey no longer active", extra={"userId": user.id})
            raise UnauthorizedError("Invalid passkey")

        self.scheduler.cancel(_expiry_key(user.id))
        logger.info("Password changed", extra={"userId": user.id})

    def expire_stale_passkeys(self) -> int:
        """Sentinel passkeys whose expiry timer was lost, e.g. across a restart."""
        cutoff = self.clock.now() - PASSKEY_TTL
        count = self.repo.invalidate_passkeys_issued_before(cutoff)
        if count:
            logger.info("Expired stale passkeys", extra={"count": count})
        return count

    # ── token authentication ─────────────────────────────────

    def authenticate(self, token: str) -> User:
        """Resolve a bearer token to its user.

        Raises:
            UnauthorizedError: token unknown or outside the freshness window
        """
        user = self.repo.find_by_token(token) if token else None
        if not user or not user.token_is_fresh(self.clock.now()):
            raise UnauthorizedError("Invalid or expired token")
        return user

    @staticmethod
    def require_admin(user: User) -> User:
        if not user.is_admin:
            raise PermissionDeniedError("Admin privileges required")
        return user

    def shutdown(self) -> None:
        """Cancel pending expiry tasks."""
        self.scheduler.shutdown()

    # ── helpers ──────────────────────────────────────────────

    def _find_for_reset(self, email: str, username: str) -> User:
        user = self.repo.find_by_email_and_username(email, username)
        if not user:
            logger.warning("No user for reset request", extra={"username": username})
            raise NotFoundError(NO_MATCHING_USER)
        return user

    def _token_rotated_concurrently(self, user_id: str, now: datetime) -> str:
        """Return the token another login stored after our read."""
        current = self.repo.get_by_id(user_id)
        if not current or not current.token_is_fresh(now):
            raise InternalError("Failed to update login information")
        logger.info("Reusing token issued by a concurrent login", extra={"userId": user_id})
        return current.token

    def _expire_passkey(self, user_id: str) -> None:
        self.repo.invalidate_passkey(user_id)
        logger.info("Passkey expired", extra={"userId": user_id})

    @staticmethod
    def _hash(password: str) -> str:
        try:
            return hash_password(password)
        except ValueError as e:
            logger.error("Password hashing failed", extra={"error": str(e)})
            raise InternalError("Failed to hash password") from e
