"""
Composition root for safetysync.

SyncService wires the freshness tracker, sync scheduler and migration
coordinator around one gateway and one local cache. The host application
constructs it explicitly and hands it to its timers, event handlers and
admin actions.

Example:
    >>> async with await SyncService.open_sqlite("safety_cache.db", gateway) as service:
    ...     await service.start()
    ...     summary = await service.trigger_manual_sync("training")
    ...     result = await service.migrate(actor="admin@example.com")
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any

from safetysync.audit import AuditSink
from safetysync.cache.interface import LocalCacheStore
from safetysync.cache.sqlite import SQLiteCacheStore
from safetysync.config import SyncConfig
from safetysync.domains import SyncDomain, default_domains
from safetysync.freshness import FreshnessTracker
from safetysync.gateway.interface import RemoteGateway
from safetysync.migration import DEFAULT_MIGRATION_PLAN, MigrationCoordinator, MigrationMapping
from safetysync.migration.models import MigrationRunResult
from safetysync.notifications import NotificationSink
from safetysync.observability import Tracer
from safetysync.postprocessing import SnapshotPostProcessor, default_post_processors
from safetysync.repositories.sync_state import (
    InMemorySyncStateRepository,
    SQLiteSyncStateRepository,
    SyncStateRepository,
)
from safetysync.scheduler import ConnectivityProbe, SyncPassSummary, SyncScheduler
from safetysync.types import Clock, utc_now

logger = logging.getLogger(__name__)


class SyncService:
    """
    Explicitly constructed owner of the sync and migration components.

    Args:
        gateway: Remote store access
        cache: Local cache for snapshots and legacy sets
        sync_state: Persistence for freshness (default: in memory)
        config: Service configuration
        domains: Sync domains (default: the four safety domains)
        post_processors: Snapshot post-processors (default: the safety detectors)
        migration_plan: Legacy sets to migrate
        audit_sink: Receiver of audit entries
        notification_sink: Receiver of sync notices
        connectivity: Online probe for the scheduler
        clock: Source of the current time
        actor: Actor recorded on sync pass audit entries
        tracer: Tracer shared by all components
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        cache: LocalCacheStore,
        sync_state: SyncStateRepository | None = None,
        *,
        config: SyncConfig | None = None,
        domains: Iterable[SyncDomain] | None = None,
        post_processors: Iterable[SnapshotPostProcessor] | None = None,
        migration_plan: Sequence[MigrationMapping] = DEFAULT_MIGRATION_PLAN,
        audit_sink: AuditSink | None = None,
        notification_sink: NotificationSink | None = None,
        connectivity: ConnectivityProbe | None = None,
        clock: Clock | None = None,
        actor: str = "system",
        tracer: Tracer | None = None,
    ) -> None:
        self._config = config or SyncConfig()
        self._clock = clock or utc_now
        self._cache = cache
        self._owned_stores: list[SQLiteCacheStore] = []
        self._initialized = False
        enable_tracing = self._config.enable_tracing

        if post_processors is None:
            post_processors = default_post_processors(self._config.expiry_warning_days)

        self.freshness = FreshnessTracker(
            domains if domains is not None else default_domains(self._config.company_id),
            sync_state or InMemorySyncStateRepository(),
            tracer=tracer,
            enable_tracing=enable_tracing,
        )
        self.scheduler = SyncScheduler(
            self.freshness,
            gateway,
            cache,
            post_processors=post_processors,
            notification_sink=notification_sink,
            audit_sink=audit_sink,
            connectivity=connectivity,
            config=self._config.scheduler,
            clock=self._clock,
            actor=actor,
            tracer=tracer,
            enable_tracing=enable_tracing,
        )
        self.migration = MigrationCoordinator(
            gateway,
            cache,
            migration_plan,
            audit_sink=audit_sink,
            company_id=self._config.company_id,
            clock=self._clock,
            tracer=tracer,
            enable_tracing=enable_tracing,
        )

    @classmethod
    async def open_sqlite(
        cls,
        database: str,
        gateway: RemoteGateway,
        **kwargs: Any,
    ) -> SyncService:
        """
        Create a service backed by a SQLite cache file.

        The cache and the freshness state share one connection, which the
        service closes in stop().

        Args:
            database: Path to the SQLite file, or ':memory:'
            gateway: Remote store access
            **kwargs: Further SyncService arguments

        Returns:
            An initialized service
        """
        config: SyncConfig = kwargs.get("config") or SyncConfig()
        cache = SQLiteCacheStore(database, enable_tracing=config.enable_tracing)
        await cache.initialize()
        sync_state = SQLiteSyncStateRepository(
            cache.connection,
            enable_tracing=config.enable_tracing,
        )
        service = cls(gateway, cache, sync_state, **kwargs)
        service._owned_stores.append(cache)
        await service.initialize()
        return service

    @property
    def config(self) -> SyncConfig:
        return self._config

    @property
    def cache(self) -> LocalCacheStore:
        return self._cache

    async def initialize(self) -> None:
        """Restore persisted freshness state. Idempotent."""
        if self._initialized:
            return
        await self.freshness.load()
        self._initialized = True

    async def start(self) -> None:
        """Initialize and start the interval trigger."""
        await self.initialize()
        await self.scheduler.start()

    async def stop(self) -> None:
        """Stop the scheduler, drain background work and close owned stores."""
        await self.scheduler.stop()
        for store in self._owned_stores:
            await store.close()
        self._owned_stores.clear()

    async def __aenter__(self) -> SyncService:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()

    async def trigger_manual_sync(self, scope: str = "all") -> SyncPassSummary:
        """Sync one domain or all of them, ignoring due-ness."""
        await self.initialize()
        return await self.scheduler.trigger_manual_sync(scope)

    async def migrate(self, actor: str | None = None) -> MigrationRunResult:
        """Run the local data migration."""
        return await self.migration.run(actor)

    def sync_status(self, now: datetime | None = None) -> dict[str, dict[str, Any]]:
        """
        Freshness of every domain, keyed by domain id.

        Each entry holds last_sync_at, hours_ago, due and refresh_interval_ms.
        """
        statuses = self.scheduler.statuses(now or self._clock())
        return {domain_id: status.to_dict() for domain_id, status in statuses.items()}

    def __repr__(self) -> str:
        return f"SyncService(domains={self.freshness.domain_ids}, company={self._config.company_id!r})"


__all__ = ["SyncService"]
