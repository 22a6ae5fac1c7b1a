"""SQLite-backed key/value store with TTLs, shared by every process on a host.

The quota counters live here. Each `transaction()` runs under
`BEGIN IMMEDIATE`, which takes the database write lock up front, so a
read-modify-write sequence inside one transaction cannot interleave with
another process doing the same.
"""
import logging
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

from domain.errors import RateStoreUnavailableError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    expires_at REAL
)
"""


class KVTransaction:
    """Primitive operations bound to one open transaction and one clock reading."""

    def __init__(self, conn: sqlite3.Connection, now: float) -> None:
        self._conn = conn
        self.now = now

    def _row(self, key: str) -> Optional[tuple[str, Optional[float]]]:
        row = self._conn.execute("SELECT value, expires_at FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        value, expires_at = row
        if expires_at is not None and expires_at <= self.now:
            self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            return None
        return value, expires_at

    def get(self, key: str) -> Optional[str]:
        row = self._row(key)
        return row[0] if row else None

    def ttl(self, key: str) -> Optional[float]:
        """Seconds left before `key` expires; None if missing or persistent."""
        row = self._row(key)
        if row is None or row[1] is None:
            return None
        return max(0.0, row[1] - self.now)

    def set(self, key: str, value: str, ttl_s: Optional[float] = None) -> None:
        expires_at = self.now + ttl_s if ttl_s is not None else None
        self._conn.execute(
            "INSERT INTO kv(key, value, expires_at) VALUES(?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value, expires_at = excluded.expires_at",
            (key, value, expires_at),
        )

    def incr(self, key: str, by: int = 1) -> int:
        """Increment an integer counter, keeping its current expiry."""
        row = self._row(key)
        if row is None:
            self._conn.execute("INSERT INTO kv(key, value, expires_at) VALUES(?, ?, NULL)", (key, str(by)))
            return by
        value = int(row[0]) + by
        self._conn.execute("UPDATE kv SET value = ? WHERE key = ?", (str(value), key))
        return value

    def expire(self, key: str, ttl_s: float) -> bool:
        cur = self._conn.execute("UPDATE kv SET expires_at = ? WHERE key = ?", (self.now + ttl_s, key))
        return cur.rowcount > 0

    def delete(self, key: str) -> None:
        self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def purge_expired(self) -> int:
        cur = self._conn.execute("DELETE FROM kv WHERE expires_at IS NOT NULL AND expires_at <= ?", (self.now,))
        return cur.rowcount


class SQLiteKeyValueStore:
    """Connection-per-transaction store; safe to share between processes."""

    def __init__(self, db_path: Path, *, clock: Clock = time.time, timeout_s: float = 5.0) -> None:
        self.db_path = Path(db_path)
        self._clock = clock
        self._timeout_s = timeout_s
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, timeout=self._timeout_s, isolation_level=None)
        if not self._initialized:
            try:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute(_SCHEMA)
            except sqlite3.Error:
                conn.close()
                raise
            self._initialized = True
        return conn

    @contextmanager
    def transaction(self) -> Iterator[KVTransaction]:
        """Atomic unit of work. Any sqlite failure surfaces as RateStoreUnavailableError."""
        try:
            conn = self._connect()
        except (sqlite3.Error, OSError) as e:
            raise RateStoreUnavailableError(f"rate store {self.db_path} unreachable: {e}") from e
        try:
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise RateStoreUnavailableError(f"rate store {self.db_path} locked or unreadable: {e}") from e
            try:
                yield KVTransaction(conn, self._clock())
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                _rollback(conn)
                raise RateStoreUnavailableError(f"rate store {self.db_path} write failed: {e}") from e
            except BaseException:
                _rollback(conn)
                raise
        finally:
            conn.close()

    def get(self, key: str) -> Optional[str]:
        with self.transaction() as tx:
            return tx.get(key)

    def ttl(self, key: str) -> Optional[float]:
        with self.transaction() as tx:
            return tx.ttl(key)

    def purge_expired(self) -> int:
        with self.transaction() as tx:
            removed = tx.purge_expired()
        if removed:
            logger.debug(f"Purged {removed} expired rate keys")
        return removed


def _rollback(conn: sqlite3.Connection) -> None:
    # the original error is what the caller needs to see
    try:
        conn.execute("ROLLBACK")
    except sqlite3.Error as e:
        logger.debug(f"Rollback failed: {e}")
