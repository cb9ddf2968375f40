"""Shared type aliases for safetysync."""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

# A single document as stored locally or returned by the remote store.
Record = dict[str, Any]

# Source of "now"; injectable so tests can control time.
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: timezone-aware current UTC time."""
    return datetime.now(UTC)


__all__ = ["Clock", "Record", "utc_now"]
