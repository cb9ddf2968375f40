"""
SQL schema for the durable safetysync tables.

Tables:
    - cache_sets: One JSON record set per cache key (domain snapshots and
      legacy local-only sets)
    - sync_state: Last successful sync time per domain

Timestamps are stored as ISO 8601 text so the same schema works unchanged
on SQLite and PostgreSQL.

Usage:
    from safetysync.schema import get_schema, get_schema_statements

    # Script form for aiosqlite's executescript()
    await connection.executescript(get_schema("all"))

    # Statement form for SQLAlchemy
    for statement in get_schema_statements("all"):
        await conn.execute(text(statement))
"""

from typing import Literal

SchemaName = Literal["cache", "sync_state", "all"]

_CACHE_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS cache_sets (
        cache_key TEXT PRIMARY KEY,
        payload TEXT NOT NULL,
        record_count INTEGER NOT NULL DEFAULT 0,
        updated_at TEXT NOT NULL
    )
    """,
)

_SYNC_STATE_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS sync_state (
        domain_id TEXT PRIMARY KEY,
        last_sync_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
)

_SCHEMAS: dict[str, tuple[str, ...]] = {
    "cache": _CACHE_STATEMENTS,
    "sync_state": _SYNC_STATE_STATEMENTS,
    "all": _CACHE_STATEMENTS + _SYNC_STATE_STATEMENTS,
}


def get_schema_statements(name: SchemaName = "all") -> tuple[str, ...]:
    """
    Get the individual DDL statements for a schema.

    Args:
        name: Schema name ("cache", "sync_state" or "all")

    Returns:
        Tuple of CREATE TABLE statements

    Raises:
        ValueError: If the schema name is unknown
    """
    try:
        return _SCHEMAS[name]
    except KeyError:
        raise ValueError(
            f"Unknown schema '{name}'. Available: {', '.join(sorted(_SCHEMAS))}"
        ) from None


def get_schema(name: SchemaName = "all") -> str:
    """
    Get a schema as a single SQL script.

    Args:
        name: Schema name ("cache", "sync_state" or "all")

    Returns:
        Semicolon-separated SQL script
    """
    return ";\n".join(s.strip() for s in get_schema_statements(name)) + ";\n"


__all__ = ["SchemaName", "get_schema", "get_schema_statements"]
