"""
Serialization utilities for safetysync.

Example:
    >>> from safetysync.serialization import json_dumps
    >>> from uuid import uuid4
    >>>
    >>> json_str = json_dumps({"id": uuid4()})
"""

from safetysync.serialization.json import (
    SafetySyncJSONEncoder,
    decode_record_set,
    encode_record_set,
    json_dumps,
    json_loads,
)

__all__ = [
    "SafetySyncJSONEncoder",
    "decode_record_set",
    "encode_record_set",
    "json_dumps",
    "json_loads",
]
