"""SQLite database management for the AppSync response cache.

This module handles the database connection, schema initialization and the
record operations the client needs: point lookup, upsert and range delete,
with writes grouped into atomic transactions.
"""

import asyncio
import json
import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional, Union

import aiosqlite

from appsync.errors import CacheError
from appsync.models.request import CacheEntry
from appsync.utils.config import Config

logger = logging.getLogger(__name__)

DEFAULT_DB_NAME = "aws_appsync_cache.db"

# Database schema version for migrations
SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Query responses keyed by (endpoint, request body) digest
CREATE TABLE IF NOT EXISTS cache_entries (
    cache_key TEXT PRIMARY KEY,
    timestamp_millis INTEGER NOT NULL,
    data TEXT
);

CREATE INDEX IF NOT EXISTS idx_cache_entries_timestamp ON cache_entries(timestamp_millis);
"""


class CacheTransaction:
    """Write handle valid inside CacheDatabase.transaction()."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def get(self, cache_key: str) -> Optional[CacheEntry]:
        """Read an entry as seen by this transaction."""
        cursor = await self._conn.execute(
            "SELECT timestamp_millis, data FROM cache_entries WHERE cache_key = ?",
            (cache_key,)
        )
        row = await cursor.fetchone()
        return CacheEntry.from_row(row) if row else None

    async def put(self, cache_key: str, entry: CacheEntry) -> None:
        """Insert or replace the entry stored under cache_key."""
        await self._conn.execute("""
            INSERT INTO cache_entries (cache_key, timestamp_millis, data)
            VALUES (?, ?, ?)
            ON CONFLICT(cache_key) DO UPDATE SET
                timestamp_millis = excluded.timestamp_millis,
                data = excluded.data
        """, (cache_key, entry.timestamp_millis, json.dumps(entry.data)))

    async def delete(self, cache_key: str) -> bool:
        """Delete a single entry.

        Returns:
            True if an entry was deleted
        """
        cursor = await self._conn.execute(
            "DELETE FROM cache_entries WHERE cache_key = ?",
            (cache_key,)
        )
        return cursor.rowcount > 0

    async def delete_older_than(self, timestamp_millis: int) -> int:
        """Delete every entry written strictly before timestamp_millis.

        Returns:
            Number of entries deleted
        """
        cursor = await self._conn.execute(
            "DELETE FROM cache_entries WHERE timestamp_millis < ?",
            (timestamp_millis,)
        )
        return cursor.rowcount


class CacheDatabase:
    """SQLite cache database holding one connection for its lifetime."""

    def __init__(self, db_path: Union[str, Path]):
        """Initialize cache database.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self._conn: Optional[aiosqlite.Connection] = None
        # Serializes use of the shared connection so reads never see an open
        # transaction's uncommitted writes
        self._lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def open(self) -> "CacheDatabase":
        """Open the connection and initialize the schema if needed."""
        if self._conn is not None:
            return self

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = await aiosqlite.connect(self.db_path)
        except (OSError, sqlite3.Error) as e:
            raise CacheError(
                f"Failed to open cache database at {self.db_path}: {e}",
                original_error=e,
            ) from e

        try:
            conn.row_factory = aiosqlite.Row
            await conn.execute("PRAGMA journal_mode = WAL")
            await self._init_schema(conn)
        except sqlite3.Error as e:
            await conn.close()
            raise CacheError(
                f"Failed to initialize cache database at {self.db_path}: {e}",
                original_error=e,
            ) from e

        self._conn = conn
        return self

    async def _init_schema(self, conn: aiosqlite.Connection) -> None:
        cursor = await conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
        )
        if await cursor.fetchone() is None:
            await conn.executescript(SCHEMA_SQL)
            await conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,)
            )
            await conn.commit()
            logger.info(f"Initialized cache database at {self.db_path}")

    async def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            await self.open()
        return self._conn

    async def __aenter__(self) -> "CacheDatabase":
        return await self.open()

    async def __aexit__(self, *args) -> None:
        await self.close()

    # Record operations

    async def get(self, cache_key: str) -> Optional[CacheEntry]:
        """Look up the entry stored under cache_key, expired or not.

        Args:
            cache_key: Cache key

        Returns:
            CacheEntry or None if no entry exists
        """
        conn = await self._connection()
        try:
            async with self._lock:
                return await CacheTransaction(conn).get(cache_key)
        except sqlite3.Error as e:
            raise CacheError(f"Cache lookup failed: {e}", original_error=e) from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[CacheTransaction]:
        """Group writes into one atomic transaction.

        Commits when the block exits normally and rolls back on any
        exception, so either every write in the block lands or none does.
        Other reads and writes on this database wait until the block ends;
        read through the yielded handle inside the block.
        """
        conn = await self._connection()
        async with self._lock:
            try:
                yield CacheTransaction(conn)
                await conn.commit()
            except sqlite3.Error as e:
                await conn.rollback()
                raise CacheError(f"Cache transaction failed: {e}", original_error=e) from e
            except BaseException:
                await conn.rollback()
                raise

    async def put(self, cache_key: str, entry: CacheEntry) -> None:
        """Store a single entry in its own transaction."""
        async with self.transaction() as txn:
            await txn.put(cache_key, entry)

    async def delete(self, cache_key: str) -> bool:
        """Delete a single entry in its own transaction."""
        async with self.transaction() as txn:
            return await txn.delete(cache_key)

    async def count(self) -> int:
        """Count stored entries, including expired ones not yet swept."""
        conn = await self._connection()
        try:
            async with self._lock:
                cursor = await conn.execute("SELECT COUNT(*) FROM cache_entries")
                row = await cursor.fetchone()
        except sqlite3.Error as e:
            raise CacheError(f"Cache count failed: {e}", original_error=e) from e
        return row[0]

    async def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with cache stats
        """
        conn = await self._connection()
        try:
            async with self._lock:
                cursor = await conn.execute(
                    "SELECT COUNT(*), MIN(timestamp_millis), MAX(timestamp_millis) FROM cache_entries"
                )
                total, oldest, newest = await cursor.fetchone()
        except sqlite3.Error as e:
            raise CacheError(f"Cache stats failed: {e}", original_error=e) from e

        return {
            "entries_count": total,
            "oldest_timestamp_millis": oldest,
            "newest_timestamp_millis": newest,
            "db_path": str(self.db_path),
            "db_size_mb": round(self.db_path.stat().st_size / (1024 * 1024), 2),
        }

    # Lifecycle

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            await conn.close()
        except sqlite3.Error as e:
            raise CacheError(f"Failed to close cache database: {e}", original_error=e) from e

    async def destroy(self) -> None:
        """Close the connection and delete the database file from disk."""
        await self.close()
        try:
            for suffix in ("", "-wal", "-shm"):
                Path(f"{self.db_path}{suffix}").unlink(missing_ok=True)
        except OSError as e:
            raise CacheError(
                f"Failed to delete cache database at {self.db_path}: {e}",
                original_error=e,
            ) from e
        logger.info(f"Deleted cache database at {self.db_path}")


async def get_cache_database(root: Optional[Union[str, Path]] = None) -> CacheDatabase:
    """Open the cache database at '<root>/aws_appsync_cache.db'.

    Args:
        root: Directory holding the database. Defaults to Config.CACHE_DIR,
            which is the platform temp directory unless APPSYNC_CACHE_DIR is set.

    Returns:
        Opened CacheDatabase instance
    """
    root = Path(root) if root is not None else Config.CACHE_DIR
    return await CacheDatabase(root / DEFAULT_DB_NAME).open()


__all__ = [
    "CacheDatabase",
    "CacheTransaction",
    "get_cache_database",
    "DEFAULT_DB_NAME",
    "SCHEMA_VERSION",
]
