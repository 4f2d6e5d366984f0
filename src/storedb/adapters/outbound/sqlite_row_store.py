"""SQLite implementation of the RowStore port.

File Format:
    kv_store(collection TEXT, key BLOB, value BLOB, PRIMARY KEY(collection, key))
        One shared table for every collection's rows.
    collection_meta(collection TEXT PRIMARY KEY, key_type TEXT, value_type TEXT)
        The type tags each collection was created with.
    PRAGMA application_id
        Stamped on first open so that foreign SQLite files are rejected.

Connections:
    Every engine transaction runs on its own connection, checked out of a
    small pool and returned on commit/rollback. Writable transactions open
    with ``BEGIN IMMEDIATE`` and so hold SQLite's write lock for their whole
    life; a second writer waits up to ``busy_timeout_ms`` and then fails.
    Read-only transactions run with ``query_only=ON`` and pin their WAL
    snapshot at begin time.

Thread Safety:
    The pool and the open-transaction set are guarded by a lock. A single
    engine transaction must not be used from two threads at once.
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

from storedb.domain.errors import (
    CommitError,
    DatabaseClosedError,
    SchemaError,
    StorageError,
    TransactionClosedError,
)
from storedb.domain.value_objects import CollectionSchema, TypeTag
from storedb.infrastructure.config import StorageConfig, get_config
from storedb.infrastructure.logging import get_logger
from storedb.infrastructure.metrics import MetricsRegistry, get_metrics

logger = get_logger(__name__)

SCHEMA_SQL = (
    """
    CREATE TABLE IF NOT EXISTS kv_store (
        collection TEXT NOT NULL,
        key BLOB NOT NULL,
        value BLOB NOT NULL,
        PRIMARY KEY (collection, key)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS collection_meta (
        collection TEXT PRIMARY KEY,
        key_type TEXT NOT NULL,
        value_type TEXT NOT NULL
    )
    """,
)

EXPECTED_COLUMNS: dict[str, list[str]] = {
    "kv_store": ["collection", "key", "value"],
    "collection_meta": ["collection", "key_type", "value_type"],
}

MEMORY_PATHS = (":memory:", "")


class SQLiteEngineTransaction:
    """One SQLite transaction on a pooled connection.

    Created by ``SQLiteRowStore.begin_transaction``; never instantiated
    directly. After ``commit`` or ``rollback`` the connection goes back to
    the pool and every further call raises ``TransactionClosedError``.
    """

    def __init__(
        self, store: SQLiteRowStore, conn: sqlite3.Connection, writable: bool
    ) -> None:
        self._store = store
        self._conn = conn
        self._writable = writable
        self._closed = False

    @property
    def writable(self) -> bool:
        return self._writable

    @property
    def closed(self) -> bool:
        return self._closed

    # --- Row operations -------------------------------------------------------

    def get(self, collection: str, key: bytes) -> bytes | None:
        row = self._fetchone(
            "SELECT value FROM kv_store WHERE collection = ? AND key = ?",
            (collection, key),
        )
        return None if row is None else bytes(row[0])

    def put(self, collection: str, key: bytes, value: bytes) -> None:
        self._execute(
            "INSERT OR REPLACE INTO kv_store (collection, key, value) VALUES (?, ?, ?)",
            (collection, key, value),
        )

    def delete(self, collection: str, key: bytes) -> None:
        self._execute(
            "DELETE FROM kv_store WHERE collection = ? AND key = ?",
            (collection, key),
        )

    def contains(self, collection: str, key: bytes) -> bool:
        row = self._fetchone(
            "SELECT 1 FROM kv_store WHERE collection = ? AND key = ? LIMIT 1",
            (collection, key),
        )
        return row is not None

    def keys(self, collection: str) -> list[bytes]:
        rows = self._fetchall(
            "SELECT key FROM kv_store WHERE collection = ? ORDER BY key",
            (collection,),
        )
        return [bytes(row[0]) for row in rows]

    def scan(self, collection: str) -> list[tuple[bytes, bytes]]:
        rows = self._fetchall(
            "SELECT key, value FROM kv_store WHERE collection = ? ORDER BY key",
            (collection,),
        )
        return [(bytes(key), bytes(value)) for key, value in rows]

    def count(self, collection: str) -> int:
        row = self._fetchone(
            "SELECT COUNT(*) FROM kv_store WHERE collection = ?", (collection,)
        )
        return int(row[0])

    def clear(self, collection: str) -> int:
        cursor = self._execute(
            "DELETE FROM kv_store WHERE collection = ?", (collection,)
        )
        return cursor.rowcount

    # --- Metadata -------------------------------------------------------------

    def get_schema(self, collection: str) -> CollectionSchema | None:
        row = self._fetchone(
            "SELECT key_type, value_type FROM collection_meta WHERE collection = ?",
            (collection,),
        )
        if row is None:
            return None
        return CollectionSchema(TypeTag(row[0]), TypeTag(row[1]))

    def put_schema(self, collection: str, schema: CollectionSchema) -> None:
        self._execute(
            "INSERT INTO collection_meta (collection, key_type, value_type) VALUES (?, ?, ?)",
            (collection, schema.key_type, schema.value_type),
        )

    def list_schemas(self) -> dict[str, CollectionSchema]:
        rows = self._fetchall(
            "SELECT collection, key_type, value_type FROM collection_meta ORDER BY collection",
            (),
        )
        return {
            name: CollectionSchema(TypeTag(key_type), TypeTag(value_type))
            for name, key_type, value_type in rows
        }

    # --- Lifecycle ------------------------------------------------------------

    def commit(self) -> None:
        self._ensure_open()
        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error as e:
            self._close(discard=True)
            raise CommitError(f"Commit failed on {self._store.path}: {e}") from e
        self._close()

    def rollback(self) -> None:
        self._ensure_open()
        try:
            self._conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            self._close(discard=True)
            raise StorageError(f"Rollback failed on {self._store.path}: {e}") from e
        self._close()

    def abandon(self) -> None:
        """Tear the transaction down without reporting errors to a caller.

        Used by ``SQLiteRowStore.close`` for transactions still open when the
        store shuts down. Uncommitted effects are discarded either way: a
        connection whose ROLLBACK fails is closed, which rolls it back.
        """
        if self._closed:
            return
        self._close(discard=True)

    # --- Internal -------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise TransactionClosedError("Engine transaction already ended")

    def _close(self, discard: bool = False) -> None:
        self._closed = True
        self._store._release(self, self._conn, discard=discard)

    def _execute(self, sql: str, params: tuple) -> sqlite3.Cursor:
        self._ensure_open()
        try:
            return self._conn.execute(sql, params)
        except sqlite3.IntegrityError as e:
            raise StorageError(f"Constraint violation: {e}") from e
        except sqlite3.Error as e:
            raise StorageError(f"SQLite error: {e}") from e

    def _fetchone(self, sql: str, params: tuple) -> tuple | None:
        cursor = self._execute(sql, params)
        try:
            return cursor.fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"SQLite error: {e}") from e

    def _fetchall(self, sql: str, params: tuple) -> list[tuple]:
        cursor = self._execute(sql, params)
        try:
            return cursor.fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"SQLite error: {e}") from e


class SQLiteRowStore:
    """SQLite-backed implementation of the RowStore protocol.

    Opening the store creates the file, its parent directory and the schema
    when absent, and validates them when present.

    Attributes:
        path: Path to the database file.
        config: Engine tuning (journal mode, timeouts, pool size...).

    Raises:
        StorageError: If the path is unusable or the file cannot be opened.
        SchemaError: If the file is not a storedb database.
    """

    def __init__(
        self,
        path: str | Path,
        config: StorageConfig | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        if str(path) in MEMORY_PATHS:
            raise StorageError(
                "In-memory databases are not supported: every transaction uses "
                "its own connection and would see a different database"
            )
        self._path = Path(path)
        if self._path.is_dir():
            raise StorageError(f"Path points to a directory, expected file: {self._path}")

        self._config = config or get_config().storage
        self._metrics = metrics or get_metrics()
        self._lock = threading.Lock()
        self._idle: list[sqlite3.Connection] = []
        self._open_txns: set[SQLiteEngineTransaction] = set()
        self._closed = False

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create directory for {self._path}: {e}") from e

        self._initialize()

    @property
    def path(self) -> str:
        return str(self._path)

    @property
    def config(self) -> StorageConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def open_transactions(self) -> int:
        """Number of engine transactions currently holding a connection."""
        with self._lock:
            return len(self._open_txns)

    # --- Public API -----------------------------------------------------------

    def begin_transaction(self, writable: bool) -> SQLiteEngineTransaction:
        conn = self._checkout(writable)
        try:
            if writable:
                conn.execute("BEGIN IMMEDIATE")
            else:
                conn.execute("BEGIN")
                # Reading pins the snapshot now rather than at the first query
                conn.execute("SELECT 1 FROM collection_meta LIMIT 1").fetchall()
        except sqlite3.Error as e:
            self._discard(conn)
            mode = "write" if writable else "read"
            raise StorageError(f"Cannot begin {mode} transaction on {self._path}: {e}") from e

        txn = SQLiteEngineTransaction(self, conn, writable)
        with self._lock:
            if not self._closed:
                self._open_txns.add(txn)
                self._metrics.transactions_active.inc()
                return txn
        self._discard(conn)
        raise DatabaseClosedError(f"Database {self._path} is closed")

    def close(self) -> None:
        """Roll back open transactions and close every connection. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            open_txns = list(self._open_txns)
            idle, self._idle = self._idle, []

        for txn in open_txns:
            logger.warning("transaction_abandoned_on_close", path=self.path)
            txn.abandon()
        for conn in idle:
            conn.close()

    # --- Internal -------------------------------------------------------------

    def _initialize(self) -> None:
        """Create or validate the schema on a fresh connection."""
        try:
            conn = self._connect()
        except sqlite3.OperationalError as e:
            raise StorageError(f"Cannot open {self._path}: {e}") from e
        except sqlite3.DatabaseError as e:
            raise SchemaError(f"{self._path} is not a SQLite database: {e}") from e

        try:
            self._create_schema(conn)
        except sqlite3.OperationalError as e:
            conn.close()
            raise StorageError(f"Cannot initialize {self._path}: {e}") from e
        except sqlite3.DatabaseError as e:
            conn.close()
            raise SchemaError(f"{self._path} is not a SQLite database: {e}") from e
        except SchemaError:
            conn.close()
            raise

        if self._config.pool_size > 0:
            with self._lock:
                self._idle.append(conn)
        else:
            conn.close()

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute("BEGIN IMMEDIATE")
        try:
            app_id = conn.execute("PRAGMA application_id").fetchone()[0]
            if app_id not in (0, self._config.application_id):
                raise SchemaError(
                    f"{self._path} belongs to another application "
                    f"(application_id={app_id})"
                )
            for statement in SCHEMA_SQL:
                conn.execute(statement)
            for table, expected in EXPECTED_COLUMNS.items():
                columns = [row[1] for row in conn.execute(f"PRAGMA table_info({table})")]
                if columns != expected:
                    raise SchemaError(
                        f"Table {table} in {self._path} has columns {columns}, "
                        f"expected {expected}"
                    )
            if app_id == 0:
                conn.execute(f"PRAGMA application_id = {int(self._config.application_id)}")
            conn.execute("COMMIT")
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise

    def _connect(self) -> sqlite3.Connection:
        """Open and tune a new connection. sqlite3 errors propagate."""
        conn = sqlite3.connect(
            self._path,
            timeout=self._config.busy_timeout_ms / 1000,
            isolation_level=None,
            check_same_thread=False,
        )
        try:
            self._apply_pragmas(conn)
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    def _apply_pragmas(self, conn: sqlite3.Connection) -> None:
        cfg = self._config
        mode = conn.execute(f"PRAGMA journal_mode={cfg.journal_mode}").fetchone()[0]
        if mode.lower() != cfg.journal_mode:
            logger.warning(
                "journal_mode_unexpected", requested=cfg.journal_mode, got=mode, path=self.path
            )
        conn.execute(f"PRAGMA synchronous={cfg.synchronous}")
        conn.execute(f"PRAGMA busy_timeout={int(cfg.busy_timeout_ms)}")
        conn.execute(f"PRAGMA cache_size=-{int(cfg.cache_size_kib)}")  # negative => KiB
        conn.execute(f"PRAGMA mmap_size={int(cfg.mmap_size_bytes)}")
        conn.execute("PRAGMA foreign_keys=ON")

    def _checkout(self, writable: bool) -> sqlite3.Connection:
        with self._lock:
            if self._closed:
                raise DatabaseClosedError(f"Database {self._path} is closed")
            conn = self._idle.pop() if self._idle else None
        try:
            if conn is None:
                conn = self._connect()
            conn.execute(f"PRAGMA query_only={'OFF' if writable else 'ON'}")
        except sqlite3.Error as e:
            if conn is not None:
                conn.close()
            raise StorageError(f"Cannot open connection to {self._path}: {e}") from e
        return conn

    def _release(
        self, txn: SQLiteEngineTransaction, conn: sqlite3.Connection, discard: bool = False
    ) -> None:
        """Return a finished transaction's connection to the pool."""
        with self._lock:
            if txn in self._open_txns:
                self._open_txns.discard(txn)
                self._metrics.transactions_active.dec()
        if discard:
            self._discard(conn)
            return
        with self._lock:
            if not self._closed and len(self._idle) < self._config.pool_size:
                self._idle.append(conn)
                return
        conn.close()

    def _discard(self, conn: sqlite3.Connection) -> None:
        """Roll back whatever is pending on ``conn`` and close it."""
        if conn.in_transaction:
            try:
                conn.execute("ROLLBACK")
            except sqlite3.Error as e:
                logger.warning("rollback_failed", path=self.path, error=str(e))
        conn.close()

    def __repr__(self) -> str:
        return f"SQLiteRowStore({self.path!r})"
