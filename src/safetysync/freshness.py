"""
Per-domain freshness tracking.

The FreshnessTracker decides whether a domain is due for a refresh and
records successful syncs. Timestamps are persisted through a
SyncStateRepository on every success so staleness survives restarts.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from safetysync.domains import SyncDomain
from safetysync.exceptions import UnknownDomainError
from safetysync.observability import ATTR_DOMAIN_ID, Tracer, create_tracer
from safetysync.repositories.sync_state import SyncStateRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FreshnessStatus:
    """
    Freshness of one domain at a point in time.

    Attributes:
        domain_id: Domain identifier
        last_sync_at: Time of the last successful sync, None if never synced
        elapsed: Time since the last successful sync, None if never synced
        due: Whether the domain should be refreshed now
        refresh_interval: Configured minimum time between syncs
    """

    domain_id: str
    last_sync_at: datetime | None
    elapsed: timedelta | None
    due: bool
    refresh_interval: timedelta

    @property
    def hours_ago(self) -> float | None:
        """Elapsed time in hours, rounded to one decimal place."""
        if self.elapsed is None:
            return None
        return round(self.elapsed.total_seconds() / 3600, 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain_id": self.domain_id,
            "last_sync_at": self.last_sync_at.isoformat() if self.last_sync_at else None,
            "hours_ago": self.hours_ago,
            "due": self.due,
            "refresh_interval_ms": int(self.refresh_interval.total_seconds() * 1000),
        }


class FreshnessTracker:
    """
    Tracks the last successful sync of every registered domain.

    Due-ness checks are synchronous and read the in-memory view, so the
    scheduler can select due domains without suspending. Call load() once
    at startup to restore persisted timestamps.

    Example:
        >>> tracker = FreshnessTracker(default_domains(), InMemorySyncStateRepository())
        >>> await tracker.load()
        >>> tracker.is_due("standards", now)
        True
        >>> await tracker.record_success("standards", now)
        >>> tracker.is_due("standards", now)
        False
    """

    def __init__(
        self,
        domains: Iterable[SyncDomain],
        repository: SyncStateRepository,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._enable_tracing = self._tracer.enabled
        self._domains: dict[str, SyncDomain] = {}
        for domain in domains:
            if domain.id in self._domains:
                raise ValueError(f"Duplicate sync domain '{domain.id}'")
            self._domains[domain.id] = domain
        self._repository = repository
        self._last_sync: dict[str, datetime] = {}

    @property
    def domain_ids(self) -> list[str]:
        """Registered domain ids in registration order."""
        return list(self._domains)

    def domain(self, domain_id: str) -> SyncDomain:
        """
        Get a registered domain.

        Raises:
            UnknownDomainError: If the domain is not registered
        """
        try:
            return self._domains[domain_id]
        except KeyError:
            raise UnknownDomainError(domain_id, list(self._domains)) from None

    async def load(self) -> None:
        """Restore persisted sync times for the registered domains."""
        with self._tracer.span("safetysync.freshness.load"):
            stored = await self._repository.get_all()
            for domain_id, synced_at in stored.items():
                if domain_id in self._domains:
                    self._last_sync[domain_id] = synced_at
            logger.debug(
                "Loaded freshness state for %d domain(s)",
                len(self._last_sync),
                extra={"domains": sorted(self._last_sync)},
            )

    def last_sync_at(self, domain_id: str) -> datetime | None:
        """Time of the domain's last successful sync, or None if never synced."""
        self.domain(domain_id)
        return self._last_sync.get(domain_id)

    def is_due(self, domain_id: str, now: datetime) -> bool:
        """
        Check whether a domain should be refreshed.

        A domain that has never synced is always due. Otherwise it is due
        once its refresh interval has fully elapsed.
        """
        domain = self.domain(domain_id)
        last = self._last_sync.get(domain_id)
        return last is None or now - last >= domain.refresh_interval

    async def record_success(self, domain_id: str, now: datetime) -> datetime:
        """
        Record a successful sync and persist it.

        The stored time never moves backward: if a later sync has already
        been recorded, it is kept.

        Args:
            domain_id: Domain that synced
            now: Time of the successful sync

        Returns:
            The domain's last sync time after the update
        """
        self.domain(domain_id)
        with self._tracer.span(
            "safetysync.freshness.record_success",
            {ATTR_DOMAIN_ID: domain_id},
        ):
            current = self._last_sync.get(domain_id)
            if current is not None and current >= now:
                return current

            # Memory follows storage; a failed save leaves the domain due.
            await self._repository.save_last_sync(domain_id, now)
            self._last_sync[domain_id] = now
            return now

    async def reset(self, domain_id: str) -> None:
        """Forget the domain's last sync so it is due on the next pass."""
        self.domain(domain_id)
        self._last_sync.pop(domain_id, None)
        await self._repository.reset(domain_id)

    def status_of(self, domain_id: str, now: datetime) -> FreshnessStatus:
        """Describe the freshness of one domain."""
        domain = self.domain(domain_id)
        last = self._last_sync.get(domain_id)
        return FreshnessStatus(
            domain_id=domain_id,
            last_sync_at=last,
            elapsed=(now - last) if last is not None else None,
            due=self.is_due(domain_id, now),
            refresh_interval=domain.refresh_interval,
        )

    def statuses(self, now: datetime) -> dict[str, FreshnessStatus]:
        """Describe the freshness of every registered domain."""
        return {domain_id: self.status_of(domain_id, now) for domain_id in self._domains}


__all__ = ["FreshnessStatus", "FreshnessTracker"]
