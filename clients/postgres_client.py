"""
PostgreSQL client with connection pooling and explicit transactions.

Uses psycopg2 with ThreadedConnectionPool. Outside a transaction every
statement runs on a pooled connection and commits immediately. Inside
`transaction()` every statement issued from the same context reuses one
pinned connection and nothing commits until the block exits cleanly.
"""

import logging
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, List, Tuple
from uuid import UUID

import psycopg2
import psycopg2.extras
import psycopg2.pool

logger = logging.getLogger(__name__)

# Global adapter registration flag
_adapters_registered = False


class PostgresClient:
    """
    PostgreSQL client with context-pinned transactions.

    Usage:
        db = PostgresClient(database_url)

        # Autocommit per statement
        rows = db.execute("SELECT * FROM queue_entries WHERE shop_id = %s", (shop_id,))

        # Atomic unit of work
        with db.transaction():
            db.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", ("shop:...",))
            db.execute_returning("UPDATE queue_entries SET ... RETURNING *", (...))
    """

    # Class-level connection pools shared across instances
    _connection_pools: Dict[str, psycopg2.pool.ThreadedConnectionPool] = {}
    _pools_lock = threading.RLock()

    def __init__(self, database_url: str):
        self._database_url = database_url
        self._pinned: ContextVar[Any] = ContextVar(
            f"pg_pinned_connection_{id(self)}", default=None
        )
        self._ensure_connection_pool()

    def _ensure_connection_pool(self) -> None:
        """Create connection pool if it doesn't exist."""
        with self._pools_lock:
            if self._database_url not in self._connection_pools:
                pool = psycopg2.pool.ThreadedConnectionPool(
                    minconn=2,
                    maxconn=20,
                    dsn=self._database_url,
                    connect_timeout=30,
                )

                global _adapters_registered
                if not _adapters_registered:
                    psycopg2.extras.register_default_jsonb(globally=True)
                    psycopg2.extras.register_uuid()
                    _adapters_registered = True

                self._connection_pools[self._database_url] = pool
                logger.info("Connection pool created")

    @property
    def in_transaction(self) -> bool:
        """Whether the current context holds a pinned transaction connection."""
        return self._pinned.get() is not None

    @contextmanager
    def get_connection(self):
        """Get the pinned transaction connection, or borrow one from the pool."""
        pinned = self._pinned.get()
        if pinned is not None:
            yield pinned
            return

        if self._database_url not in self._connection_pools:
            self._ensure_connection_pool()

        pool = self._connection_pools[self._database_url]
        conn = None

        try:
            conn = pool.getconn()
            if conn is None:
                raise RuntimeError("Could not get connection from pool")
            yield conn
        finally:
            if conn:
                pool.putconn(conn)

    @contextmanager
    def transaction(self):
        """
        Run the block as one database transaction.

        Commits when the block exits cleanly, rolls back on any exception.
        Nested calls join the outer transaction.
        """
        if self.in_transaction:
            yield self._pinned.get()
            return

        with self.get_connection() as conn:
            token = self._pinned.set(conn)
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                logger.warning("Transaction rolled back", exc_info=True)
                raise
            finally:
                self._pinned.reset(token)

    def _finish(self, conn) -> None:
        """Commit unless a surrounding transaction owns the connection."""
        if not self.in_transaction:
            conn.commit()

    def _abort(self, conn) -> None:
        """Roll back a failed statement unless a surrounding transaction owns the connection."""
        if not self.in_transaction:
            conn.rollback()

    def _convert_params(self, params: Tuple | Dict | None) -> Tuple | Dict | None:
        """Convert UUID objects to strings."""
        if params is None:
            return None

        def convert(value: Any) -> Any:
            if isinstance(value, UUID):
                return str(value)
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, tuple):
                return tuple(convert(v) for v in value)
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(params)

    def execute(self, query: str, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        """Execute query, return list of row dicts. Empty list if no results."""
        params = self._convert_params(params)
        with self.get_connection() as conn:
            try:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                    cur.execute(query, params)
                    rows = [dict(row) for row in cur.fetchall()] if cur.description else []
            except Exception:
                self._abort(conn)
                raise
            self._finish(conn)
            return rows

    def execute_single(self, query: str, params: Tuple | Dict | None = None) -> Dict[str, Any] | None:
        """Execute query, return first row or None."""
        results = self.execute(query, params)
        return results[0] if results else None

    def execute_returning(self, query: str, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        """Execute INSERT/UPDATE with RETURNING, return results."""
        params = self._convert_params(params)
        with self.get_connection() as conn:
            try:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                    cur.execute(query, params)
                    rows = [dict(row) for row in cur.fetchall()]
            except Exception:
                self._abort(conn)
                raise
            self._finish(conn)
            return rows

    def close(self) -> None:
        """Close connection pool."""
        with self._pools_lock:
            if self._database_url in self._connection_pools:
                self._connection_pools[self._database_url].closeall()
                del self._connection_pools[self._database_url]

    @classmethod
    def close_all_pools(cls) -> None:
        """Close all connection pools."""
        with cls._pools_lock:
            for pool in cls._connection_pools.values():
                pool.closeall()
            cls._connection_pools.clear()
