"""
MongoDB wiring: client factory, collection names, indexes and transactions.

run_in_transaction() is the single transactional scope used by every cascade.
With transactions enabled the callback runs inside
``ClientSession.with_transaction``, so it commits as a whole or aborts as a
whole, and the driver retries TransientTransactionError labels. With
transactions disabled (standalone servers, mongomock) the callback receives
``session=None`` and each write is individually atomic only.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, Optional, TypeVar

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.client_session import ClientSession
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError
from pymongo.read_concern import ReadConcern
from pymongo.write_concern import WriteConcern

from errors import ConflictError, InfrastructureError
from shared.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")

CREDENTIALS = "credentials"
PRINCIPALS = "principals"
SETTINGS = "settings"


def create_client(uri: str) -> MongoClient:
    return MongoClient(uri)


def ensure_indexes(db: Database) -> None:
    """Create the indexes the services rely on for uniqueness and lookups."""
    try:
        credentials = db[CREDENTIALS]
        credentials.create_index([("secret_hash", ASCENDING)], unique=True)
        credentials.create_index([("owner_id", ASCENDING), ("created_at", DESCENDING)])

        principals = db[PRINCIPALS]
        principals.create_index([("key_hash", ASCENDING)], unique=True)
        principals.create_index([("created_by", ASCENDING)])
        principals.create_index([("name", ASCENDING)])
        principals.create_index([("created_at", DESCENDING)])
    except PyMongoError as e:
        log.error("mongo_index_creation_failed", error=str(e))
        raise InfrastructureError("failed to create indexes") from e


@contextmanager
def translate_errors(operation: str, session: Optional[ClientSession] = None) -> Iterator[None]:
    """Map driver exceptions raised by a repository call onto AppError types.

    Inside a transaction other driver errors pass through untouched so
    ``with_transaction`` can still see their retry labels.
    """
    try:
        yield
    except DuplicateKeyError as e:
        raise ConflictError(f"{operation}: duplicate key") from e
    except PyMongoError as e:
        if session is not None:
            raise
        log.error("mongo_operation_failed", operation=operation, error=str(e))
        raise InfrastructureError(f"{operation} failed") from e


def run_in_transaction(
    db: Database,
    callback: Callable[[Optional[ClientSession]], T],
    *,
    enabled: bool = True,
) -> T:
    """Run *callback(session)* as one transaction and return its result.

    AppError subclasses raised by the callback abort the transaction and
    propagate unchanged; other driver failures surface as InfrastructureError.
    """
    try:
        if not enabled:
            return callback(None)
        with db.client.start_session() as session:
            return session.with_transaction(
                callback,
                read_concern=ReadConcern("snapshot"),
                write_concern=WriteConcern("majority"),
            )
    except PyMongoError as e:
        log.error("mongo_transaction_failed", error=str(e), error_type=type(e).__name__)
        raise InfrastructureError("storage transaction failed") from e
