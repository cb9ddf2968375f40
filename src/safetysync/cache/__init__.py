"""
Local cache stores for safetysync.

Backends:
    - InMemoryCacheStore: Ephemeral, for tests and short-lived sessions
    - SQLiteCacheStore: Durable on-device cache via aiosqlite
    - SQLAlchemyCacheStore: Server-side cache via SQLAlchemy async engines
"""

from safetysync.cache.in_memory import InMemoryCacheStore
from safetysync.cache.interface import LocalCacheStore
from safetysync.cache.sql import SQLAlchemyCacheStore
from safetysync.cache.sqlite import SQLiteCacheStore

__all__ = [
    "InMemoryCacheStore",
    "LocalCacheStore",
    "SQLAlchemyCacheStore",
    "SQLiteCacheStore",
]
