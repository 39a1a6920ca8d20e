"""Injectable key/value stores with per-entry TTL.

Values are JSON-serializable documents. Two backends share the
KeyValueStore protocol: an in-process dict for tests and single-run use, and
an aiosqlite-backed store for persistence across restarts.
"""

import json
import os
import time
from collections.abc import Callable
from typing import Any, Protocol, Self

import aiosqlite

from pendash.logging import get_logger

logger = get_logger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    expires_at REAL,
    updated_at REAL NOT NULL
);
"""


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store. Expired entries are dropped lazily on read."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[Any, float | None]] = {}

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        self._entries[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class SqliteKeyValueStore:
    """Async SQLite key/value store.

    Uses WAL mode for concurrent read/write. Values are stored as JSON text.

    Usage:
        async with SqliteKeyValueStore("data/history.db") as store:
            await store.set("key", {"a": "1"}, ttl_seconds=3600)
    """

    def __init__(self, db_path: str, clock: Callable[[], float] = time.time) -> None:
        self._db_path = db_path
        self._clock = clock
        self._connection: aiosqlite.Connection | None = None

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def db(self) -> aiosqlite.Connection:
        """Access the raw aiosqlite connection.

        Raises RuntimeError if not connected.
        """
        if self._connection is None:
            raise RuntimeError("Store not connected. Call connect() first.")
        return self._connection

    async def connect(self) -> None:
        """Open the database, configure pragmas and create the table.

        Creates the parent directory if it does not exist.
        """
        db_dir = os.path.dirname(self._db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._connection = await aiosqlite.connect(self._db_path)
        await self._connection.execute("PRAGMA journal_mode=WAL")
        await self._connection.execute("PRAGMA synchronous=NORMAL")
        await self._connection.executescript(_CREATE_TABLE_SQL)
        await self._connection.commit()

        logger.info("kv_store_connected", db_path=self._db_path)

    async def close(self) -> None:
        """Close the database connection if open."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("kv_store_closed", db_path=self._db_path)

    async def get(self, key: str) -> Any | None:
        async with self.db.execute(
            "SELECT value, expires_at FROM kv_store WHERE key = ?", (key,)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        value, expires_at = row
        if expires_at is not None and expires_at <= self._clock():
            await self.delete(key)
            return None
        return json.loads(value)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        now = self._clock()
        expires_at = now + ttl_seconds if ttl_seconds else None
        await self.db.execute(
            "INSERT INTO kv_store (key, value, expires_at, updated_at) VALUES (?, ?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
            "expires_at = excluded.expires_at, updated_at = excluded.updated_at",
            (key, json.dumps(value), expires_at, now),
        )
        await self.db.commit()

    async def delete(self, key: str) -> None:
        await self.db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        await self.db.commit()
