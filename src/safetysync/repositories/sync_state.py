"""
Sync-state repository for persisting per-domain freshness.

The freshness tracker records the time of each domain's last successful
sync here so that staleness survives process restarts. Repositories store
timestamps only; due-ness is computed by the tracker.
"""

from __future__ import annotations

import contextlib
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from safetysync.observability import ATTR_DOMAIN_ID, Tracer, create_tracer
from safetysync.repositories._connection import execute_with_connection
from safetysync.schema import get_schema_statements

if TYPE_CHECKING:
    import aiosqlite


def _parse_timestamp(value: str | None) -> datetime | None:
    """Parse a stored ISO 8601 timestamp, assuming UTC when no offset is stored."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@runtime_checkable
class SyncStateRepository(Protocol):
    """
    Protocol for sync-state repositories.

    Tracks the last successful sync time per domain.
    """

    async def get_last_sync(self, domain_id: str) -> datetime | None:
        """
        Get the last successful sync time for a domain.

        Args:
            domain_id: Sync domain identifier

        Returns:
            Timestamp of the last successful sync, or None if never synced
        """
        ...

    async def save_last_sync(self, domain_id: str, synced_at: datetime) -> None:
        """
        Persist the last successful sync time for a domain.

        Uses UPSERT semantics; safe to call repeatedly.

        Args:
            domain_id: Sync domain identifier
            synced_at: Time of the successful sync
        """
        ...

    async def reset(self, domain_id: str) -> None:
        """
        Forget the last sync time for a domain, making it immediately due.

        Args:
            domain_id: Sync domain identifier
        """
        ...

    async def get_all(self) -> dict[str, datetime]:
        """
        Get last sync times for every domain that has synced.

        Returns:
            Mapping of domain id to last successful sync time
        """
        ...


class InMemorySyncStateRepository:
    """
    In-memory implementation of sync-state repository.

    Useful for testing and development. Not durable.
    """

    def __init__(
        self,
        tracer: Tracer | None = None,
        enable_tracing: bool = False,
    ) -> None:
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._enable_tracing = self._tracer.enabled
        self._state: dict[str, datetime] = {}

    async def get_last_sync(self, domain_id: str) -> datetime | None:
        return self._state.get(domain_id)

    async def save_last_sync(self, domain_id: str, synced_at: datetime) -> None:
        with self._tracer.span(
            "safetysync.sync_state.save_last_sync",
            {ATTR_DOMAIN_ID: domain_id},
        ):
            self._state[domain_id] = synced_at

    async def reset(self, domain_id: str) -> None:
        self._state.pop(domain_id, None)

    async def get_all(self) -> dict[str, datetime]:
        return dict(self._state)

    async def clear(self) -> None:
        """Clear all stored sync times. Useful for test cleanup."""
        self._state.clear()


class SQLiteSyncStateRepository:
    """
    SQLite implementation of sync-state repository.

    Stores sync times in the `sync_state` table. Timestamps are stored as
    ISO 8601 strings. Usually shares the connection of a SQLiteCacheStore.

    Example:
        >>> async with SQLiteCacheStore("safety_cache.db") as cache:
        ...     await cache.initialize()
        ...     state = SQLiteSyncStateRepository(cache.connection)
        ...     await state.save_last_sync("training", datetime.now(UTC))
    """

    def __init__(
        self,
        connection: aiosqlite.Connection,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the repository.

        Args:
            connection: Open aiosqlite connection with the schema applied
            tracer: Optional tracer (if not provided, one will be created)
            enable_tracing: Whether to enable OpenTelemetry tracing (default True)
        """
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._enable_tracing = self._tracer.enabled
        self._connection = connection

    async def get_last_sync(self, domain_id: str) -> datetime | None:
        with self._tracer.span(
            "safetysync.sync_state.get_last_sync",
            {ATTR_DOMAIN_ID: domain_id},
        ):
            cursor = await self._connection.execute(
                "SELECT last_sync_at FROM sync_state WHERE domain_id = ?",
                (domain_id,),
            )
            row = await cursor.fetchone()
            return _parse_timestamp(row[0]) if row else None

    async def save_last_sync(self, domain_id: str, synced_at: datetime) -> None:
        with self._tracer.span(
            "safetysync.sync_state.save_last_sync",
            {ATTR_DOMAIN_ID: domain_id},
        ):
            now = datetime.now(UTC).isoformat()
            await self._connection.execute(
                """
                INSERT INTO sync_state (domain_id, last_sync_at, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT (domain_id) DO UPDATE
                SET last_sync_at = excluded.last_sync_at,
                    updated_at = excluded.updated_at
                """,
                (domain_id, synced_at.isoformat(), now),
            )
            await self._connection.commit()

    async def reset(self, domain_id: str) -> None:
        with self._tracer.span(
            "safetysync.sync_state.reset",
            {ATTR_DOMAIN_ID: domain_id},
        ):
            await self._connection.execute(
                "DELETE FROM sync_state WHERE domain_id = ?",
                (domain_id,),
            )
            await self._connection.commit()

    async def get_all(self) -> dict[str, datetime]:
        cursor = await self._connection.execute(
            "SELECT domain_id, last_sync_at FROM sync_state ORDER BY domain_id"
        )
        rows = await cursor.fetchall()

        result: dict[str, datetime] = {}
        for row in rows:
            with contextlib.suppress(ValueError, TypeError):
                parsed = _parse_timestamp(row[1])
                if parsed is not None:
                    result[row[0]] = parsed
        return result


class SQLAlchemySyncStateRepository:
    """
    SQLAlchemy implementation of sync-state repository.

    Stores sync times in the `sync_state` table of any SQLAlchemy async
    database supporting `INSERT ... ON CONFLICT` (PostgreSQL, SQLite).
    """

    def __init__(
        self,
        conn: AsyncConnection | AsyncEngine,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ):
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._enable_tracing = self._tracer.enabled
        self.conn = conn

    async def initialize(self) -> None:
        """Create the `sync_state` table if it does not exist."""
        async with execute_with_connection(self.conn, transactional=True) as conn:
            for statement in get_schema_statements("sync_state"):
                await conn.execute(text(statement))

    async def get_last_sync(self, domain_id: str) -> datetime | None:
        with self._tracer.span(
            "safetysync.sync_state.get_last_sync",
            {ATTR_DOMAIN_ID: domain_id},
        ):
            query = text("SELECT last_sync_at FROM sync_state WHERE domain_id = :domain_id")
            async with execute_with_connection(self.conn, transactional=False) as conn:
                result = await conn.execute(query, {"domain_id": domain_id})
                row = result.fetchone()
                return _parse_timestamp(row[0]) if row else None

    async def save_last_sync(self, domain_id: str, synced_at: datetime) -> None:
        with self._tracer.span(
            "safetysync.sync_state.save_last_sync",
            {ATTR_DOMAIN_ID: domain_id},
        ):
            query = text("""
                INSERT INTO sync_state (domain_id, last_sync_at, updated_at)
                VALUES (:domain_id, :last_sync_at, :now)
                ON CONFLICT (domain_id) DO UPDATE
                SET last_sync_at = excluded.last_sync_at,
                    updated_at = excluded.updated_at
            """)
            params = {
                "domain_id": domain_id,
                "last_sync_at": synced_at.isoformat(),
                "now": datetime.now(UTC).isoformat(),
            }
            async with execute_with_connection(self.conn, transactional=True) as conn:
                await conn.execute(query, params)

    async def reset(self, domain_id: str) -> None:
        with self._tracer.span(
            "safetysync.sync_state.reset",
            {ATTR_DOMAIN_ID: domain_id},
        ):
            query = text("DELETE FROM sync_state WHERE domain_id = :domain_id")
            async with execute_with_connection(self.conn, transactional=True) as conn:
                await conn.execute(query, {"domain_id": domain_id})

    async def get_all(self) -> dict[str, datetime]:
        query = text("SELECT domain_id, last_sync_at FROM sync_state ORDER BY domain_id")
        async with execute_with_connection(self.conn, transactional=False) as conn:
            result = await conn.execute(query)
            rows = result.fetchall()

        parsed_rows: dict[str, datetime] = {}
        for domain_id, last_sync_at in rows:
            with contextlib.suppress(ValueError, TypeError):
                parsed = _parse_timestamp(last_sync_at)
                if parsed is not None:
                    parsed_rows[domain_id] = parsed
        return parsed_rows


__all__ = [
    "InMemorySyncStateRepository",
    "SQLAlchemySyncStateRepository",
    "SQLiteSyncStateRepository",
    "SyncStateRepository",
]
