"""
Single-flight run guards.

A RunGuard lets at most one holder run a guarded operation at a time.
Contention is rejected immediately rather than queued, so a second trigger
that arrives while a pass is running is coalesced instead of waiting.

Acquisition is synchronous. Under asyncio this means a caller that acquires
before its first await cannot be interleaved by another task between the
check and the acquisition.

Usage:
    >>> guard = RunGuard("migration")
    >>> if not guard.try_acquire(run_id):
    ...     raise AlreadyRunningError(guard.name, guard.holder)
    >>> try:
    ...     await run_migration()
    ... finally:
    ...     guard.release(run_id)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from safetysync.exceptions import GuardNotHeldError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuardInfo:
    """
    Information about a held guard.

    Attributes:
        name: Guard name
        holder: Token of the current holder
        acquired_at: When the guard was acquired
    """

    name: str
    holder: str
    acquired_at: datetime


class RunGuard:
    """
    Non-blocking, in-process mutual exclusion for one named operation.

    Independent operations use independent guards, so a sync pass and a
    migration run can proceed at the same time while each is serialized
    against itself.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._info: GuardInfo | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_held(self) -> bool:
        return self._info is not None

    @property
    def holder(self) -> str | None:
        return self._info.holder if self._info else None

    def info(self) -> GuardInfo | None:
        """Return details of the current hold, or None if the guard is free."""
        return self._info

    def try_acquire(self, token: str) -> bool:
        """
        Try to acquire the guard without blocking.

        Args:
            token: Identifier of the would-be holder

        Returns:
            True if acquired, False if the guard is already held
        """
        if self._info is not None:
            logger.debug(
                "Guard %s already held by %s, rejecting %s",
                self._name,
                self._info.holder,
                token,
            )
            return False

        self._info = GuardInfo(name=self._name, holder=token, acquired_at=datetime.now(UTC))
        logger.debug("Acquired guard %s: holder=%s", self._name, token)
        return True

    def release(self, token: str) -> None:
        """
        Release the guard.

        Raises:
            GuardNotHeldError: If the guard is not held by `token`
        """
        if self._info is None or self._info.holder != token:
            raise GuardNotHeldError(self._name, token)
        self._info = None
        logger.debug("Released guard %s: holder=%s", self._name, token)

    def __repr__(self) -> str:
        return f"RunGuard(name={self._name!r}, holder={self.holder!r})"


__all__ = ["GuardInfo", "RunGuard"]
