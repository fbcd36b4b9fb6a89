"""SQLite-backed document store with change subscriptions.

Documents are JSON objects grouped into named collections and stored in a
single ``documents`` table keyed by ``(collection, id)``. Queries filter on
top-level fields with equality and order by one field using SQLite's JSON1
functions.

Subscribers receive the full current result set as soon as they subscribe
and again after every mutation of their collection. A query that filters on
one field and orders by another needs the composite index created by
:meth:`DocumentStore.init_db`; without it the subscription reports
:class:`MissingIndexError` instead of silently scanning.
"""

from __future__ import annotations

import itertools
import json
import logging
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from .config import ensure_data_directories, get_db_path
from .errors import DocumentNotFoundError, MissingIndexError

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
Listener = Callable[[List[Document]], None]
DocumentListener = Callable[[Optional[Document]], None]
ErrorHandler = Callable[[Exception], None]

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    data TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (collection, id)
);

CREATE INDEX IF NOT EXISTS ix_documents_collection ON documents (collection);
"""

# Composite indexes for the period-scoped queries ordered by creation time
COMPOSITE_INDEXES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ('transactions', ('payPeriodId', 'createdAt')),
    ('oneTimeIncome', ('payPeriodId', 'createdAt')),
)


def _json_default(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _encode(data: Mapping[str, Any]) -> str:
    return json.dumps({k: v for k, v in data.items() if k != 'id'}, default=_json_default)


def _encode_value(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _field_expr(field: str) -> str:
    if not field.replace('_', '').isalnum():
        raise ValueError(f"Invalid field name: {field!r}")
    return f"json_extract(data, '$.{field}')"


def _index_name(collection: str, fields: Tuple[str, ...]) -> str:
    return f"ix_{collection}_{'_'.join(fields)}"


@dataclass
class _Subscription:
    collection: str
    callback: Callable[[Any], None]
    where: Dict[str, Any]
    order_by: Optional[str] = None
    descending: bool = False
    on_error: Optional[ErrorHandler] = None
    doc_id: Optional[str] = None


class DocumentStore:
    """Collections of JSON documents in one SQLite database.

    Example:
        >>> store = DocumentStore(tmp_path / 'budget.db')
        >>> store.init_db()
        >>> pid = store.create('payPeriods', {'startDate': date(2026, 1, 2)})
        >>> unsubscribe = store.subscribe('payPeriods', print, order_by='startDate', descending=True)
    """

    def __init__(self, db_path: Optional[Any] = None):
        if db_path is None:
            ensure_data_directories()
            db_path = get_db_path()
        self.db_path = str(db_path)
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._subscriptions: Dict[int, _Subscription] = {}
        self._tokens = itertools.count(1)
        self._last_timestamp: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Connection and schema
    # ------------------------------------------------------------------

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Serialized access to the connection; commits on success, rolls back on error."""
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise

    def init_db(self, create_indexes: bool = True) -> None:
        with self.connect() as conn:
            conn.executescript(SCHEMA_SQL)
            if create_indexes:
                for collection, fields in COMPOSITE_INDEXES:
                    self._create_index(conn, collection, fields)

    def _create_index(self, conn: sqlite3.Connection, collection: str, fields: Tuple[str, ...]) -> None:
        columns = ', '.join(['collection'] + [_field_expr(f) for f in fields])
        name = _index_name(collection, fields)
        conn.execute(f"CREATE INDEX IF NOT EXISTS {name} ON documents ({columns})")
        logger.debug("Ensured index %s", name)

    def has_index(self, collection: str, fields: Tuple[str, ...]) -> bool:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM sqlite_master WHERE type = 'index' AND name = ?",
                (_index_name(collection, tuple(fields)),),
            ).fetchone()
        return row is not None

    def close(self) -> None:
        with self._lock:
            self._subscriptions.clear()
            self._conn.close()

    def _now(self) -> str:
        # strictly increasing so createdAt ordering matches insertion order
        now = datetime.now()
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now.isoformat(timespec='microseconds')

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, collection: str, doc_id: str) -> Optional[Document]:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT id, data FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            ).fetchone()
        if row is None:
            return None
        return {**json.loads(row[1]), 'id': row[0]}

    def _required_index(
        self,
        collection: str,
        where: Mapping[str, Any],
        order_by: Optional[str],
    ) -> Optional[Tuple[str, ...]]:
        if not where or order_by is None or order_by in where:
            return None
        return tuple(where) + (order_by,)

    def query(
        self,
        collection: str,
        where: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Document]:
        """Documents of ``collection`` matching every ``field == value`` in ``where``.

        Without ``order_by`` documents come back in insertion order.

        Raises:
            MissingIndexError: If the query filters and orders on different
                fields and the composite index for them does not exist
        """
        where = dict(where or {})
        required = self._required_index(collection, where, order_by)
        if required is not None and not self.has_index(collection, required):
            raise MissingIndexError(collection, required)

        sql = ["SELECT id, data FROM documents WHERE collection = ?"]
        params: List[Any] = [collection]
        for field, value in where.items():
            if value is None:
                sql.append(f"AND {_field_expr(field)} IS NULL")
            else:
                sql.append(f"AND {_field_expr(field)} = ?")
                params.append(_encode_value(value))

        direction = 'DESC' if descending else 'ASC'
        if order_by is not None:
            sql.append(f"ORDER BY {_field_expr(order_by)} {direction}, rowid {direction}")
        else:
            sql.append("ORDER BY rowid ASC")

        with self.connect() as conn:
            rows = conn.execute(' '.join(sql), params).fetchall()
        return [{**json.loads(data), 'id': doc_id} for doc_id, data in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, collection: str, data: Mapping[str, Any]) -> str:
        """Insert a new document with a generated id and return the id.

        ``createdAt`` is stamped unless the caller supplies one.
        """
        doc_id = uuid.uuid4().hex
        with self.connect() as conn:
            now = self._now()
            payload = {'createdAt': now, **data}
            conn.execute(
                "INSERT INTO documents (collection, id, data, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                (collection, doc_id, _encode(payload), now, now),
            )
        logger.debug("Created %s/%s", collection, doc_id)
        self._notify(collection)
        return doc_id

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any], merge: bool = False) -> None:
        """Write a document under a known id, replacing it unless ``merge`` is true."""
        with self.connect() as conn:
            payload = dict(data)
            if merge:
                existing = self.get(collection, doc_id)
                if existing is not None:
                    payload = {**existing, **payload}
            now = self._now()
            conn.execute(
                """
                INSERT INTO documents (collection, id, data, created_at, updated_at) VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (collection, id) DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at
                """,
                (collection, doc_id, _encode(payload), now, now),
            )
        logger.debug("Set %s/%s", collection, doc_id)
        self._notify(collection)

    def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        """Merge ``fields`` into an existing document.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        with self.connect() as conn:
            existing = self.get(collection, doc_id)
            if existing is None:
                raise DocumentNotFoundError(collection, doc_id)
            conn.execute(
                "UPDATE documents SET data = ?, updated_at = ? WHERE collection = ? AND id = ?",
                (_encode({**existing, **fields}), self._now(), collection, doc_id),
            )
        logger.debug("Updated %s/%s fields=%s", collection, doc_id, sorted(fields))
        self._notify(collection)

    def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document; deleting a missing id is a no-op."""
        with self.connect() as conn:
            conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, doc_id),
            )
        logger.debug("Deleted %s/%s", collection, doc_id)
        self._notify(collection)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(
        self,
        collection: str,
        callback: Listener,
        where: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        on_error: Optional[ErrorHandler] = None,
    ) -> Callable[[], None]:
        """Listen to a query; ``callback`` gets the full result now and after each change.

        Returns:
            A function that cancels the subscription

        Raises:
            MissingIndexError: If the query needs a missing index and no
                ``on_error`` handler is given
        """
        subscription = _Subscription(
            collection=collection,
            callback=callback,
            where=dict(where or {}),
            order_by=order_by,
            descending=descending,
            on_error=on_error,
        )
        required = self._required_index(collection, subscription.where, order_by)
        if required is not None and not self.has_index(collection, required):
            error = MissingIndexError(collection, required)
            logger.warning("Subscription rejected: %s", error)
            if on_error is None:
                raise error
            on_error(error)
            return lambda: None
        return self._register(subscription)

    def subscribe_document(
        self,
        collection: str,
        doc_id: str,
        callback: DocumentListener,
        on_error: Optional[ErrorHandler] = None,
    ) -> Callable[[], None]:
        """Listen to one document; ``callback`` gets ``None`` while it does not exist."""
        subscription = _Subscription(
            collection=collection,
            callback=callback,
            where={},
            on_error=on_error,
            doc_id=doc_id,
        )
        return self._register(subscription)

    def _register(self, subscription: _Subscription) -> Callable[[], None]:
        with self._lock:
            token = next(self._tokens)
            self._subscriptions[token] = subscription

        def unsubscribe() -> None:
            with self._lock:
                self._subscriptions.pop(token, None)

        self._deliver(token, subscription)
        return unsubscribe

    def _deliver(self, token: int, subscription: _Subscription) -> None:
        try:
            if subscription.doc_id is not None:
                result: Any = self.get(subscription.collection, subscription.doc_id)
            else:
                result = self.query(
                    subscription.collection,
                    subscription.where,
                    subscription.order_by,
                    subscription.descending,
                )
        except (sqlite3.Error, MissingIndexError) as exc:
            logger.exception("Query for %s subscription failed", subscription.collection)
            if subscription.on_error is None:
                raise
            subscription.on_error(exc)
            return

        with self._lock:
            if token not in self._subscriptions:
                return
        subscription.callback(result)

    def _notify(self, collection: str) -> None:
        with self._lock:
            targets = [
                (token, sub) for token, sub in self._subscriptions.items()
                if sub.collection == collection
            ]
        for token, subscription in targets:
            self._deliver(token, subscription)
