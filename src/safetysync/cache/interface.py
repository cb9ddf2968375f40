"""
Local cache store protocol.

The local cache store is the on-device key/value persistence used for
offline access. Each key holds one ordered, JSON-serializable record set:
either a domain snapshot written by the sync scheduler or a legacy
local-only set awaiting migration.

Stores provide no concurrency control of their own; callers serialize
writers through run guards.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from safetysync.types import Record


@runtime_checkable
class LocalCacheStore(Protocol):
    """
    Protocol for local cache stores.

    Implementations must survive process restarts (except the in-memory
    store, which is intended for tests and ephemeral sessions).
    """

    async def read_set(self, key: str) -> list[Record] | None:
        """
        Read the record set stored under a key.

        Args:
            key: Cache key

        Returns:
            The records in stored order, an empty list for an empty set,
            or None if nothing is stored under the key

        Raises:
            MalformedLocalDataError: If the stored payload cannot be parsed
        """
        ...

    async def write_set(self, key: str, records: Sequence[Record]) -> None:
        """
        Replace the record set stored under a key.

        The write is wholesale: readers see either the previous set or the
        new one, never a partial merge.

        Args:
            key: Cache key
            records: Records to store, in order
        """
        ...

    async def delete_set(self, key: str) -> bool:
        """
        Delete the record set stored under a key.

        Args:
            key: Cache key

        Returns:
            True if a set was deleted, False if none existed
        """
        ...

    async def keys(self) -> list[str]:
        """
        List all keys that currently hold a record set.

        Returns:
            Sorted list of cache keys
        """
        ...


__all__ = ["LocalCacheStore"]
