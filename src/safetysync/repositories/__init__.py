"""
Repository infrastructure for safetysync.

Provides persistence for per-domain sync state with in-memory, SQLite and
SQLAlchemy backends.
"""

from safetysync.repositories.sync_state import (
    InMemorySyncStateRepository,
    SQLAlchemySyncStateRepository,
    SQLiteSyncStateRepository,
    SyncStateRepository,
)

__all__ = [
    "InMemorySyncStateRepository",
    "SQLAlchemySyncStateRepository",
    "SQLiteSyncStateRepository",
    "SyncStateRepository",
]
