"""
JSON serialization utilities for cached record sets.

Record sets are persisted as JSON text, the same shape the dashboard kept in
on-device storage. This module handles the types that are not natively
JSON-serializable (UUIDs, datetimes, dates) and validates payloads read back
from storage.

Example:
    >>> from safetysync.serialization import encode_record_set, decode_record_set
    >>>
    >>> payload = encode_record_set([{"id": "INC-1", "severity": "high"}])
    >>> records = decode_record_set("mmsIncidents", payload)
"""

import json
from datetime import date, datetime
from typing import Any
from uuid import UUID

from safetysync.exceptions import MalformedLocalDataError
from safetysync.types import Record


class SafetySyncJSONEncoder(json.JSONEncoder):
    """
    Custom JSON encoder that handles UUID, datetime and date objects.

    - UUID objects: Converted to string representation
    - datetime/date objects: Converted to ISO 8601 format string
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, datetime | date):
            return obj.isoformat()
        return super().default(obj)


def json_dumps(obj: Any, *, sort_keys: bool = False) -> str:
    """Serialize object to JSON string with UUID and datetime support."""
    return json.dumps(obj, cls=SafetySyncJSONEncoder, sort_keys=sort_keys)


def json_loads(s: str) -> Any:
    """
    Deserialize JSON string to Python object.

    UUID and datetime strings are NOT converted back to their original types.
    """
    return json.loads(s)


def encode_record_set(records: list[Record]) -> str:
    """
    Encode an ordered record set for storage.

    Args:
        records: Records to encode, in order

    Returns:
        JSON text of the record list
    """
    return json_dumps(list(records))


def decode_record_set(key: str, payload: str | bytes) -> list[Record]:
    """
    Decode and validate a stored record set.

    A valid payload is a JSON array whose items are all JSON objects.

    Args:
        key: Cache key the payload was stored under (for error reporting)
        payload: Stored JSON text

    Returns:
        The decoded records, in stored order

    Raises:
        MalformedLocalDataError: If the payload is not valid JSON or is not
            an array of objects
    """
    try:
        data = json_loads(payload)
    except (ValueError, TypeError) as e:
        raise MalformedLocalDataError(key, f"invalid JSON ({e})") from e

    if not isinstance(data, list):
        raise MalformedLocalDataError(key, f"expected a list, got {type(data).__name__}")

    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise MalformedLocalDataError(
                key, f"item {index} is {type(item).__name__}, expected an object"
            )

    return data


__all__ = [
    "SafetySyncJSONEncoder",
    "decode_record_set",
    "encode_record_set",
    "json_dumps",
    "json_loads",
]
