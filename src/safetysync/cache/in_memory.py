"""
In-memory local cache store.

Keeps each record set as serialized JSON text, mirroring how the dashboard
kept sets in on-device key/value storage. Storing text (rather than live
objects) means callers never share mutable records with the store, and lets
tests seed raw or corrupted payloads through `put_raw()`.
"""

from collections.abc import Sequence

from safetysync.serialization import decode_record_set, encode_record_set
from safetysync.types import Record


class InMemoryCacheStore:
    """
    In-memory implementation of LocalCacheStore.

    Not durable; intended for tests and ephemeral sessions.

    Example:
        >>> cache = InMemoryCacheStore()
        >>> await cache.write_set("mms_safety_standards", [{"id": "STD-1"}])
        >>> await cache.read_set("mms_safety_standards")
        [{'id': 'STD-1'}]
    """

    def __init__(self, initial: dict[str, Sequence[Record]] | None = None) -> None:
        """
        Initialize the store.

        Args:
            initial: Optional record sets to seed the store with
        """
        self._payloads: dict[str, str] = {}
        for key, records in (initial or {}).items():
            self._payloads[key] = encode_record_set(list(records))

    async def read_set(self, key: str) -> list[Record] | None:
        payload = self._payloads.get(key)
        if payload is None:
            return None
        return decode_record_set(key, payload)

    async def write_set(self, key: str, records: Sequence[Record]) -> None:
        self._payloads[key] = encode_record_set(list(records))

    async def delete_set(self, key: str) -> bool:
        return self._payloads.pop(key, None) is not None

    async def keys(self) -> list[str]:
        return sorted(self._payloads)

    def put_raw(self, key: str, payload: str) -> None:
        """
        Store a raw payload without validation.

        Used to seed legacy data exactly as another writer left it,
        including payloads that will fail to parse.
        """
        self._payloads[key] = payload

    def get_raw(self, key: str) -> str | None:
        """Get the raw stored payload for a key."""
        return self._payloads.get(key)

    def clear(self) -> None:
        """Remove all stored sets."""
        self._payloads.clear()

    def __len__(self) -> int:
        return len(self._payloads)
