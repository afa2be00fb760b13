"""MongoDB index management utilities."""

from logging import getLogger

from pymongo.errors import OperationFailure

logger = getLogger(__name__)


def create_index_safe(collection, keys: list, name: str, **kwargs) -> None:
    """Create an index, replacing any existing index it conflicts with.

    After a conflict error, any index sharing the name or the key spec is
    dropped (e.g. a non-unique index being made unique, or a rename).
    Raises PyMongoError if creation still fails.
    """
    try:
        collection.create_index(keys, name=name, **kwargs)
        return
    except OperationFailure as e:
        if "already exists" not in str(e) and "Conflict" not in str(e):
            raise

    wanted = dict(keys)
    for existing_name, info in collection.index_information().items():
        if existing_name == '_id_':
            continue
        if existing_name == name or dict(info.get('key', [])) == wanted:
            logger.warning("Dropping conflicting index", extra={"index": existing_name})
            collection.drop_index(existing_name)

    collection.create_index(keys, name=name, **kwargs)
    logger.info("Recreated index", extra={"index": name})


def ensure_all_indexes(db) -> bool:
    """Ensure indexes for all collections. Called at app startup."""
    from adapter.mongodb.user_repository import MongoUserRepository

    return MongoUserRepository(db).ensure_indexes()
