"""
SQLite local cache store.

Durable on-device cache using SQLite with async support via aiosqlite.
Each record set is one row in the `cache_sets` table, replaced wholesale
on write.

This implementation is suitable for:
- Offline-capable desktop and kiosk deployments
- Single-process applications that need the cache to survive restarts
- Development and testing with ':memory:' databases
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import aiosqlite

from safetysync.exceptions import CacheStoreError
from safetysync.observability import (
    ATTR_CACHE_KEY,
    ATTR_DB_NAME,
    ATTR_DB_SYSTEM,
    ATTR_RECORD_COUNT,
    Tracer,
    create_tracer,
)
from safetysync.schema import get_schema
from safetysync.serialization import decode_record_set, encode_record_set
from safetysync.types import Record

logger = logging.getLogger(__name__)


class SQLiteCacheStore:
    """
    SQLite implementation of LocalCacheStore.

    The store owns its aiosqlite connection. The connection is also exposed
    through `connection` so a SQLiteSyncStateRepository can share the same
    database file.

    Example:
        >>> async with SQLiteCacheStore("safety_cache.db") as cache:
        ...     await cache.initialize()
        ...     await cache.write_set("mms_training_records", records)
        ...     snapshot = await cache.read_set("mms_training_records")
    """

    def __init__(
        self,
        database: str,
        *,
        wal_mode: bool = True,
        busy_timeout: int = 5000,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the SQLite cache store.

        Args:
            database: Path to SQLite database file or ':memory:' for in-memory
            wal_mode: If True, enable WAL mode (default: True)
            busy_timeout: Timeout in milliseconds when database is locked
            tracer: Optional custom Tracer instance
            enable_tracing: Whether to enable OpenTelemetry tracing.
                Ignored if tracer is explicitly provided.
        """
        self._database = database
        self._wal_mode = wal_mode
        self._busy_timeout = busy_timeout
        self._connection: aiosqlite.Connection | None = None

        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._enable_tracing = self._tracer.enabled

    async def __aenter__(self) -> SQLiteCacheStore:
        await self._connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.close()

    @property
    def database(self) -> str:
        """Path of the underlying database."""
        return self._database

    @property
    def connection(self) -> aiosqlite.Connection:
        """
        The active database connection.

        Raises:
            CacheStoreError: If the store is not connected
        """
        return self._ensure_connected()

    @property
    def is_connected(self) -> bool:
        """Check if the store has an open connection."""
        return self._connection is not None

    async def _connect(self) -> None:
        if self._connection is not None:
            return

        self._connection = await aiosqlite.connect(self._database)
        await self._connection.execute(f"PRAGMA busy_timeout = {self._busy_timeout}")
        if self._wal_mode:
            await self._connection.execute("PRAGMA journal_mode = WAL")
        self._connection.row_factory = aiosqlite.Row

        logger.debug(
            "Connected to SQLite cache: %s (wal_mode=%s, busy_timeout=%d)",
            self._database,
            self._wal_mode,
            self._busy_timeout,
        )

    async def close(self) -> None:
        """
        Close the database connection.

        Safe to call multiple times.
        """
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.debug("Closed SQLite cache connection: %s", self._database)

    async def initialize(self) -> None:
        """
        Create the cache and sync-state tables if they don't exist.

        Idempotent; connects first if needed.
        """
        if self._connection is None:
            await self._connect()

        connection = self._ensure_connected()
        await connection.executescript(get_schema("all"))
        await connection.commit()

        logger.info("Initialized SQLite cache schema: %s", self._database)

    def _ensure_connected(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise CacheStoreError(
                f"SQLite cache '{self._database}' is not connected. "
                "Use 'async with' or call initialize() first."
            )
        return self._connection

    def _span_attributes(self, key: str) -> dict[str, Any]:
        return {
            ATTR_DB_SYSTEM: "sqlite",
            ATTR_DB_NAME: self._database,
            ATTR_CACHE_KEY: key,
        }

    async def read_set(self, key: str) -> list[Record] | None:
        with self._tracer.span("safetysync.cache.read_set", self._span_attributes(key)):
            connection = self._ensure_connected()
            cursor = await connection.execute(
                "SELECT payload FROM cache_sets WHERE cache_key = ?",
                (key,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return decode_record_set(key, row["payload"])

    async def write_set(self, key: str, records: Sequence[Record]) -> None:
        attributes = self._span_attributes(key)
        attributes[ATTR_RECORD_COUNT] = len(records)
        with self._tracer.span("safetysync.cache.write_set", attributes):
            connection = self._ensure_connected()
            payload = encode_record_set(list(records))
            now = datetime.now(UTC).isoformat()
            await connection.execute(
                """
                INSERT INTO cache_sets (cache_key, payload, record_count, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (cache_key) DO UPDATE
                SET payload = excluded.payload,
                    record_count = excluded.record_count,
                    updated_at = excluded.updated_at
                """,
                (key, payload, len(records), now),
            )
            await connection.commit()

    async def delete_set(self, key: str) -> bool:
        with self._tracer.span("safetysync.cache.delete_set", self._span_attributes(key)):
            connection = self._ensure_connected()
            cursor = await connection.execute(
                "DELETE FROM cache_sets WHERE cache_key = ?",
                (key,),
            )
            await connection.commit()
            return cursor.rowcount > 0

    async def keys(self) -> list[str]:
        connection = self._ensure_connected()
        cursor = await connection.execute("SELECT cache_key FROM cache_sets ORDER BY cache_key")
        rows = await cursor.fetchall()
        return [row["cache_key"] for row in rows]

    async def put_raw(self, key: str, payload: str) -> None:
        """
        Store a raw payload without validation.

        Used when importing legacy data exactly as another writer left it.
        """
        connection = self._ensure_connected()
        await connection.execute(
            """
            INSERT INTO cache_sets (cache_key, payload, record_count, updated_at)
            VALUES (?, ?, 0, ?)
            ON CONFLICT (cache_key) DO UPDATE
            SET payload = excluded.payload,
                record_count = excluded.record_count,
                updated_at = excluded.updated_at
            """,
            (key, payload, datetime.now(UTC).isoformat()),
        )
        await connection.commit()


__all__ = ["SQLiteCacheStore"]
