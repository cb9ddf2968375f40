"""
SQLAlchemy local cache store.

Cache store for deployments that keep the "local" cache in a server-side
database (for example a PostgreSQL instance colocated with a site gateway).
Works with any SQLAlchemy async engine whose dialect supports
`INSERT ... ON CONFLICT`, which includes PostgreSQL and SQLite.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from safetysync.observability import (
    ATTR_CACHE_KEY,
    ATTR_RECORD_COUNT,
    Tracer,
    create_tracer,
)
from safetysync.repositories._connection import execute_with_connection
from safetysync.schema import get_schema_statements
from safetysync.serialization import decode_record_set, encode_record_set
from safetysync.types import Record


class SQLAlchemyCacheStore:
    """
    SQLAlchemy implementation of LocalCacheStore.

    Stores record sets in the `cache_sets` table.

    Example:
        >>> engine = create_async_engine("postgresql+asyncpg://localhost/safety")
        >>> cache = SQLAlchemyCacheStore(engine)
        >>> await cache.initialize()
        >>> await cache.write_set("mms_recent_incidents", incidents)
    """

    def __init__(
        self,
        conn: AsyncConnection | AsyncEngine,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ):
        """
        Initialize the cache store.

        Args:
            conn: Database connection or engine
            tracer: Optional tracer (if not provided, one will be created)
            enable_tracing: Whether to enable OpenTelemetry tracing (default True)
        """
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._enable_tracing = self._tracer.enabled
        self.conn = conn

    async def initialize(self) -> None:
        """Create the `cache_sets` table if it does not exist."""
        async with execute_with_connection(self.conn, transactional=True) as conn:
            for statement in get_schema_statements("cache"):
                await conn.execute(text(statement))

    async def read_set(self, key: str) -> list[Record] | None:
        with self._tracer.span("safetysync.cache.read_set", {ATTR_CACHE_KEY: key}):
            query = text("SELECT payload FROM cache_sets WHERE cache_key = :key")
            async with execute_with_connection(self.conn, transactional=False) as conn:
                result = await conn.execute(query, {"key": key})
                row = result.fetchone()
            if row is None:
                return None
            return decode_record_set(key, row[0])

    async def write_set(self, key: str, records: Sequence[Record]) -> None:
        with self._tracer.span(
            "safetysync.cache.write_set",
            {ATTR_CACHE_KEY: key, ATTR_RECORD_COUNT: len(records)},
        ):
            query = text("""
                INSERT INTO cache_sets (cache_key, payload, record_count, updated_at)
                VALUES (:key, :payload, :record_count, :now)
                ON CONFLICT (cache_key) DO UPDATE
                SET payload = excluded.payload,
                    record_count = excluded.record_count,
                    updated_at = excluded.updated_at
            """)
            params = {
                "key": key,
                "payload": encode_record_set(list(records)),
                "record_count": len(records),
                "now": datetime.now(UTC).isoformat(),
            }
            async with execute_with_connection(self.conn, transactional=True) as conn:
                await conn.execute(query, params)

    async def delete_set(self, key: str) -> bool:
        with self._tracer.span("safetysync.cache.delete_set", {ATTR_CACHE_KEY: key}):
            query = text("DELETE FROM cache_sets WHERE cache_key = :key")
            async with execute_with_connection(self.conn, transactional=True) as conn:
                result = await conn.execute(query, {"key": key})
                return (result.rowcount or 0) > 0

    async def keys(self) -> list[str]:
        query = text("SELECT cache_key FROM cache_sets ORDER BY cache_key")
        async with execute_with_connection(self.conn, transactional=False) as conn:
            result = await conn.execute(query)
            return [row[0] for row in result.fetchall()]


__all__ = ["SQLAlchemyCacheStore"]
