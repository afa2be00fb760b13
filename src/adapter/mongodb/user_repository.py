"""MongoDB implementation of UserRepository."""

import uuid
from datetime import datetime, timezone
from logging import getLogger

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from adapter.mongodb import USERS_COLLECTION_NAME
from adapter.mongodb.indexes import create_index_safe
from domain.model.errors import ConflictError, InternalError
from domain.model.user import PASSKEY_SENTINEL, User

logger = getLogger(__name__)


def _as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes from the driver as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MongoUserRepository:
    def __init__(self, db: Database):
        self.collection = db[USERS_COLLECTION_NAME]

    def ensure_indexes(self) -> bool:
        """Create indexes for users collection.

        The unique username index is what actually enforces one record per
        username; the service-level lookup before insert is only a fast path.
        """
        try:
            create_index_safe(self.collection, [('username', 1)], 'idx_users_username', unique=True)
            create_index_safe(self.collection, [('email', 1), ('username', 1)], 'idx_users_email_username')
            create_index_safe(self.collection, [('token', 1)], 'idx_users_token')
            create_index_safe(self.collection, [('passkey_generated_at', 1)], 'idx_users_passkey_generated_at')
            return True
        except PyMongoError as e:
            logger.error("Failed to create users indexes", extra={"error": str(e)})
            return False

    def _to_domain(self, doc: dict) -> User:
        """Convert MongoDB document to User domain model."""
        return User(
            id=doc['_id'],
            username=doc['username'],
            email=doc['email'],
            password_hash=doc['password_hash'],
            created_at=_as_utc(doc['created_at']),
            updated_at=_as_utc(doc['updated_at']),
            is_admin=doc.get('is_admin', False),
            token=doc.get('token', ''),
            last_login=_as_utc(doc.get('last_login')),
            passkey=doc.get('passkey'),
            passkey_generated_at=_as_utc(doc.get('passkey_generated_at')),
        )

    # ── write operations ─────────────────────────────────────

    def create(self, username: str, email: str, password_hash: str, now: datetime) -> User:
        user_id = uuid.uuid4().hex
        user_doc = {
            '_id': user_id,
            'username': username,
            'email': email,
            'password_hash': password_hash,
            'is_admin': False,
            'token': '',
            'created_at': now,
            'updated_at': now,
        }
        try:
            self.collection.insert_one(user_doc)
        except DuplicateKeyError:
            logger.warning("User creation failed: username already exists", extra={"username": username})
            raise ConflictError("Username already exists")
        except PyMongoError as e:
            logger.error("Failed to create user", extra={"username": username, "error": str(e)})
            raise InternalError("Failed to create user") from e

        logger.info("User created", extra={"userId": user_id, "username": username})
        return self._to_domain(user_doc)

    def update_token(
        self,
        user_id: str,
        token: str,
        last_login: datetime,
        previous_token: str | None = None,
    ) -> bool:
        where = None
        if previous_token is not None:
            # a record that never logged in has no token field at all
            where = {'token': previous_token or {'$in': ['', None]}}
        return self._update_one(
            user_id,
            {'$set': {'token': token, 'last_login': last_login, 'updated_at': last_login}},
            "update token",
            where=where,
        )

    def update_passkey(self, user_id: str, passkey: str, generated_at: datetime) -> bool:
        return self._update_one(
            user_id,
            {'$set': {'passkey': passkey, 'passkey_generated_at': generated_at, 'updated_at': generated_at}},
            "update passkey",
        )

    def invalidate_passkey(self, user_id: str) -> bool:
        return self._update_one(
            user_id,
            {'$set': {'passkey': PASSKEY_SENTINEL}},
            "invalidate passkey",
        )

    def update_password(self, user_id: str, passkey: str, password_hash: str) -> bool:
        return self._update_one(
            user_id,
            {
                '$set': {'password_hash': password_hash, 'updated_at': datetime.now(timezone.utc)},
                '$unset': {'passkey': '', 'passkey_generated_at': ''},
            },
            "update password",
            where={'passkey': passkey},
        )

    def invalidate_passkeys_issued_before(self, cutoff: datetime) -> int:
        try:
            result = self.collection.update_many(
                {
                    'passkey_generated_at': {'$lt': cutoff},
                    'passkey': {'$exists': True, '$nin': [PASSKEY_SENTINEL, None, '']},
                },
                {'$set': {'passkey': PASSKEY_SENTINEL}},
            )
        except PyMongoError as e:
            logger.error("Failed to invalidate stale passkeys", extra={"error": str(e)})
            raise InternalError("Failed to invalidate stale passkeys") from e
        return result.modified_count

    def _update_one(self, user_id: str, update: dict, action: str, where: dict | None = None) -> bool:
        query = {'_id': user_id, **(where or {})}
        try:
            result = self.collection.update_one(query, update)
        except PyMongoError as e:
            logger.error(f"Failed to {action}", extra={"userId": user_id, "error": str(e)})
            raise InternalError(f"Failed to {action}") from e
        if result.matched_count == 0:
            logger.warning(f"Cannot {action}: no matching user", extra={"userId": user_id})
            return False
        return True

    # ── read operations ──────────────────────────────────────

    def find_by_username(self, username: str) -> User | None:
        return self._find_one({'username': username}, "find user by username")

    def find_by_email_and_username(self, email: str, username: str) -> User | None:
        return self._find_one({'email': email, 'username': username}, "find user by email and username")

    def find_by_token(self, token: str) -> User | None:
        if not token:
            return None
        return self._find_one({'token': token}, "find user by token")

    def get_by_id(self, user_id: str) -> User | None:
        return self._find_one({'_id': user_id}, "get user by ID")

    def _find_one(self, query: dict, action: str) -> User | None:
        try:
            doc = self.collection.find_one(query)
        except PyMongoError as e:
            logger.error(f"Failed to {action}", extra={"error": str(e)})
            raise InternalError(f"Failed to {action}") from e
        if doc:
            return self._to_domain(doc)
        return None
