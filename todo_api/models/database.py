"""
Embedded keyed store on top of a single SQLite file.

The store exposes named collections, each an independently keyed mapping
from byte keys to byte values with its own monotonically increasing
sequence counter. Keys iterate in ascending byte order.

Invariants:
    - One process (one open Store) per file: an exclusive advisory lock is
      taken on open and released on close
    - At most one write transaction runs at a time (BEGIN IMMEDIATE); readers
      see a consistent snapshot and are never blocked by the writer (WAL)
    - A write transaction commits only if its body returns normally; any
      exception rolls back everything it did, including sequence advances
    - Read transactions refuse every mutation
"""

import fcntl
import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from todo_api.core.exceptions import (
    CollectionNotFoundError,
    StoreError,
    StoreOpenError,
    TransactionNotWritableError,
)
from todo_api.models.base import BEGIN_MODE_OPTION, Base, create_store_engine
from todo_api.models.entities.record import CollectionRow, RecordRow

logger = logging.getLogger(__name__)

T = TypeVar('T')

TODOS_COLLECTION = "todos"


def _error_text(error: Exception) -> str:
    if isinstance(error, DBAPIError) and error.orig is not None:
        return str(error.orig)
    return str(error)


def _check_key(key: bytes) -> bytes:
    if not isinstance(key, (bytes, bytearray)):
        raise TypeError(f"key must be bytes, not {type(key).__name__}")
    if not key:
        raise ValueError("key required")
    return bytes(key)


class Collection:
    """A named, key-ordered partition seen through one transaction."""

    def __init__(self, tx: "Transaction", name: str):
        self._tx = tx
        self.name = name

    def get(self, key: bytes) -> bytes | None:
        stmt = select(RecordRow.value).where(
            RecordRow.collection == self.name, RecordRow.key == _check_key(key)
        )
        value = self._tx._execute(stmt).scalar_one_or_none()
        return bytes(value) if value is not None else None

    def put(self, key: bytes, value: bytes) -> None:
        self._tx._require_writable()
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError(f"value must be bytes, not {type(value).__name__}")
        stmt = sqlite_insert(RecordRow).values(
            collection=self.name, key=_check_key(key), value=bytes(value)
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[RecordRow.collection, RecordRow.key],
            set_={"value": stmt.excluded.value},
        )
        self._tx._execute(stmt)

    def delete(self, key: bytes) -> None:
        """Remove ``key``; deleting an absent key is not an error."""
        self._tx._require_writable()
        stmt = delete(RecordRow).where(
            RecordRow.collection == self.name, RecordRow.key == _check_key(key)
        )
        self._tx._execute(stmt)

    def items(self) -> Iterator[tuple[bytes, bytes]]:
        """Yield ``(key, value)`` pairs in ascending key order."""
        stmt = (
            select(RecordRow.key, RecordRow.value)
            .where(RecordRow.collection == self.name)
            .order_by(RecordRow.key)
        )
        for key, value in self._tx._execute(stmt):
            yield bytes(key), bytes(value)

    def count(self) -> int:
        stmt = select(func.count()).select_from(RecordRow).where(
            RecordRow.collection == self.name
        )
        return self._tx._execute(stmt).scalar_one()

    def sequence(self) -> int:
        stmt = select(CollectionRow.sequence).where(CollectionRow.name == self.name)
        return self._tx._execute(stmt).scalar_one()

    def next_sequence(self) -> int:
        """Advance the collection's sequence and return the new value (first call returns 1)."""
        self._tx._require_writable()
        self._tx._execute(
            update(CollectionRow)
            .where(CollectionRow.name == self.name)
            .values(sequence=CollectionRow.sequence + 1)
        )
        return self.sequence()


class Transaction:
    """Read-only or read-write view of the store, valid for one scope."""

    def __init__(self, connection: Connection, writable: bool):
        self._connection = connection
        self._writable = writable
        self._closed = False

    @property
    def writable(self) -> bool:
        return self._writable

    def _execute(self, statement: Any):
        if self._closed:
            raise StoreError("tx closed")
        return self._connection.execute(statement)

    def _require_writable(self) -> None:
        if not self._writable:
            raise TransactionNotWritableError()

    def _exists(self, name: str) -> bool:
        stmt = select(CollectionRow.name).where(CollectionRow.name == name)
        return self._execute(stmt).first() is not None

    def collection(self, name: str) -> Collection:
        if not self._exists(name):
            raise CollectionNotFoundError(name)
        return Collection(self, name)

    def create_collection_if_not_exists(self, name: str) -> Collection:
        self._require_writable()
        if not name:
            raise ValueError("collection name required")
        stmt = sqlite_insert(CollectionRow).values(name=name, sequence=0)
        self._execute(stmt.on_conflict_do_nothing(index_elements=[CollectionRow.name]))
        return Collection(self, name)

    def delete_collection(self, name: str) -> None:
        """Drop a collection together with its records and its sequence."""
        self._require_writable()
        if not self._exists(name):
            raise CollectionNotFoundError(name)
        self._execute(delete(RecordRow).where(RecordRow.collection == name))
        self._execute(delete(CollectionRow).where(CollectionRow.name == name))

    def collection_names(self) -> list[str]:
        stmt = select(CollectionRow.name).order_by(CollectionRow.name)
        return list(self._execute(stmt).scalars())


def _ensure_collections(tx: Transaction, names: Iterable[str]) -> None:
    for name in names:
        tx.create_collection_if_not_exists(name)


class Store:
    """
    Handle on an open single-file store.

    Usage:
        with Store.open("todos.db") as store:
            todo_ids = store.read_transaction(
                lambda tx: [key for key, _ in tx.collection("todos").items()]
            )

    The handle is safe to share between threads; each transaction checks
    out its own connection.
    """

    def __init__(
        self,
        path: str,
        busy_timeout: float = 30.0,
        collections: Iterable[str] = (TODOS_COLLECTION,),
    ):
        self.path = str(path)
        self._engine = None
        self._lock_file = None

        try:
            self._lock_file = open(self.path, "ab")
        except OSError as e:
            logger.error(f"Cannot open store file {self.path}: {e}")
            raise StoreOpenError(str(e)) from e

        try:
            fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            self._lock_file.close()
            self._lock_file = None
            logger.error(f"Store file {self.path} is locked: {e}")
            raise StoreOpenError(f"store is locked by another process: {self.path}") from e

        self._engine = create_store_engine(self.path, busy_timeout)
        try:
            Base.metadata.create_all(bind=self._engine)
            self.write_transaction(lambda tx: _ensure_collections(tx, collections))
        except (SQLAlchemyError, sqlite3.Error, StoreError) as e:
            self.close()
            message = _error_text(e)
            logger.error(f"Cannot initialize store {self.path}: {message}")
            raise StoreOpenError(message) from e

        logger.info(f"Opened store {self.path}")

    @classmethod
    def open(cls, path: str, **kwargs: Any) -> "Store":
        return cls(path, **kwargs)

    @property
    def closed(self) -> bool:
        return self._engine is None

    @contextmanager
    def transaction(self, writable: bool = False) -> Iterator[Transaction]:
        """
        Run a block inside a transaction.

        Write transactions commit when the block exits normally and roll
        back on any exception. Read transactions always roll back.
        SQLAlchemy errors are re-raised as StoreError carrying the driver's
        message.
        """
        if self._engine is None:
            raise StoreError("database not open")

        try:
            connection = self._engine.connect()
        except (SQLAlchemyError, sqlite3.Error) as e:
            raise StoreError(_error_text(e)) from e

        with connection:
            connection.execution_options(
                **{BEGIN_MODE_OPTION: "IMMEDIATE" if writable else "DEFERRED"}
            )
            try:
                trans = connection.begin()
            except SQLAlchemyError as e:
                raise StoreError(_error_text(e)) from e

            tx = Transaction(connection, writable)
            try:
                yield tx
                if writable:
                    trans.commit()
                else:
                    trans.rollback()
            except SQLAlchemyError as e:
                if trans.is_active:
                    trans.rollback()
                logger.error(f"Store transaction failed: {_error_text(e)}")
                raise StoreError(_error_text(e)) from e
            except BaseException:
                if trans.is_active:
                    trans.rollback()
                raise
            finally:
                tx._closed = True

    def read_transaction(self, fn: Callable[[Transaction], T]) -> T:
        """Run ``fn`` against a read-only snapshot and return its result."""
        with self.transaction(writable=False) as tx:
            return fn(tx)

    def write_transaction(self, fn: Callable[[Transaction], T]) -> T:
        """Run ``fn`` in an exclusive read-write transaction and return its result."""
        with self.transaction(writable=True) as tx:
            return fn(tx)

    def close(self) -> None:
        """Release the engine and the file lock. Safe to call more than once."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info(f"Closed store {self.path}")
        if self._lock_file is not None:
            try:
                fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_UN)
            finally:
                self._lock_file.close()
                self._lock_file = None

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
