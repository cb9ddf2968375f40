"""
Sync scheduler.

The SyncScheduler refreshes the local cache from the remote store. Every
trigger (interval timer, app foregrounded, network regained, manual) goes
through dispatch(), which:

1. Acquires the pass guard synchronously; a trigger arriving while a pass
   runs is coalesced, not queued.
2. Skips the pass when the device is offline.
3. Selects the due domains (or the scoped domains when forced).
4. Fetches them concurrently. Each success overwrites the domain snapshot
   and then advances its freshness; each failure leaves both untouched.
5. Returns a summary once every domain task has settled.

Post-processing, notices and audit entries are best-effort: their failures
are logged and never change the outcome of a domain or the pass.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from safetysync.audit import ACTION_SYNC_PASS, AuditSink, SecurityAuditEntry
from safetysync.cache.interface import LocalCacheStore
from safetysync.domains import CacheSnapshot
from safetysync.exceptions import (
    CacheStoreError,
    UnauthorizedError,
    UnreachableError,
)
from safetysync.freshness import FreshnessStatus, FreshnessTracker
from safetysync.gateway.interface import RemoteGateway
from safetysync.locks import RunGuard
from safetysync.notifications import NotificationSink, SyncNotice
from safetysync.observability import (
    ATTR_CACHE_KEY,
    ATTR_DOMAIN_COUNT,
    ATTR_DOMAIN_ID,
    ATTR_FORCE,
    ATTR_PASS_ID,
    ATTR_TRIGGER,
    Tracer,
    create_tracer,
)
from safetysync.postprocessing import SnapshotPostProcessor
from safetysync.scheduler.config import SchedulerConfig
from safetysync.scheduler.connectivity import ConnectivityProbe, ConnectivityState, probe_online
from safetysync.scheduler.models import (
    DomainOutcome,
    DomainSyncResult,
    SyncPassStatus,
    SyncPassSummary,
    SyncTrigger,
)
from safetysync.tasks import BackgroundTaskManager
from safetysync.types import Clock, Record, utc_now

logger = logging.getLogger(__name__)


def classify_error(error: BaseException) -> str:
    """Map a fetch failure to 'unreachable', 'unauthorized' or 'error'."""
    if isinstance(error, (UnreachableError, ConnectionError, TimeoutError)):
        return "unreachable"
    if isinstance(error, (UnauthorizedError, PermissionError)):
        return "unauthorized"
    return "error"


class SyncScheduler:
    """
    Orchestrates periodic refreshes of the local cache.

    The scheduler is the only writer of domain snapshots and freshness
    state. Construct one per application and pass it to whatever timers
    and event handlers the host platform provides.

    Example:
        >>> scheduler = SyncScheduler(
        ...     freshness=FreshnessTracker(default_domains(), InMemorySyncStateRepository()),
        ...     gateway=gateway,
        ...     cache=InMemoryCacheStore(),
        ...     post_processors=default_post_processors(),
        ... )
        >>> summary = await scheduler.dispatch(SyncTrigger.INTERVAL)
        >>> summary.successful, summary.failed
        (4, 0)
    """

    def __init__(
        self,
        freshness: FreshnessTracker,
        gateway: RemoteGateway,
        cache: LocalCacheStore,
        *,
        post_processors: Iterable[SnapshotPostProcessor] = (),
        notification_sink: NotificationSink | None = None,
        audit_sink: AuditSink | None = None,
        connectivity: ConnectivityProbe | None = None,
        config: SchedulerConfig | None = None,
        clock: Clock | None = None,
        background: BackgroundTaskManager | None = None,
        actor: str = "system",
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            freshness: Tracker holding the registered domains and their sync times
            gateway: Remote store access
            cache: Local cache receiving domain snapshots
            post_processors: Derivers of facts from fresh snapshots
            notification_sink: Receiver of post-processor notices
            audit_sink: Receiver of one audit entry per executed pass
            connectivity: Online probe (default: a ConnectivityState that is online)
            config: Scheduler configuration
            clock: Source of the current time
            background: Task manager for best-effort deliveries
            actor: Actor recorded on audit entries
            tracer: Optional tracer (if not provided, one will be created)
            enable_tracing: Whether to enable OpenTelemetry tracing (default True)
        """
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._enable_tracing = self._tracer.enabled

        self._freshness = freshness
        self._gateway = gateway
        self._cache = cache
        self._notification_sink = notification_sink
        self._audit_sink = audit_sink
        self._connectivity: ConnectivityProbe = connectivity or ConnectivityState()
        self._config = config or SchedulerConfig()
        self._clock = clock or utc_now
        self._background = background or BackgroundTaskManager()
        self._actor = actor

        self._post_processors: dict[str, list[SnapshotPostProcessor]] = {}
        for processor in post_processors:
            self.register_post_processor(processor)

        self._guard = RunGuard("sync-pass")
        self._loop_task: asyncio.Task[None] | None = None
        self._visible = True
        self._online = True
        self._last_summary: SyncPassSummary | None = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> SchedulerConfig:
        return self._config

    @property
    def domain_ids(self) -> list[str]:
        return self._freshness.domain_ids

    @property
    def pass_guard(self) -> RunGuard:
        return self._guard

    @property
    def is_running(self) -> bool:
        """True while a pass is executing."""
        return self._guard.is_held

    @property
    def is_started(self) -> bool:
        """True while the interval loop is active."""
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def last_summary(self) -> SyncPassSummary | None:
        """Summary of the most recent executed pass."""
        return self._last_summary

    @property
    def background(self) -> BackgroundTaskManager:
        return self._background

    def register_post_processor(self, processor: SnapshotPostProcessor) -> None:
        """
        Register a post-processor for its domain.

        Raises:
            UnknownDomainError: If the processor's domain is not registered
        """
        self._freshness.domain(processor.domain_id)
        self._post_processors.setdefault(processor.domain_id, []).append(processor)

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def dispatch(
        self,
        trigger: SyncTrigger,
        domains: Sequence[str] | None = None,
        *,
        force: bool = False,
    ) -> SyncPassSummary:
        """
        Run a sync pass.

        Args:
            trigger: What started the pass
            domains: Restrict the pass to these domains (default: all)
            force: Sync the scoped domains even if they are not due

        Returns:
            Summary of the pass. A pass that found another pass running is
            COALESCED and does no work.

        Raises:
            UnknownDomainError: If a scoped domain is not registered
        """
        scope = self._resolve_scope(domains)
        pass_id = uuid4()
        token = str(pass_id)
        started_at = self._clock()

        if not self._guard.try_acquire(token):
            logger.debug(
                "Sync pass already running, coalescing %s trigger",
                trigger.value,
                extra={"trigger": trigger.value, "holder": self._guard.holder},
            )
            return self._summary(pass_id, trigger, SyncPassStatus.COALESCED, started_at, force)

        try:
            with self._tracer.span(
                "safetysync.scheduler.dispatch",
                {
                    ATTR_PASS_ID: token,
                    ATTR_TRIGGER: trigger.value,
                    ATTR_FORCE: force,
                    ATTR_DOMAIN_COUNT: len(scope),
                },
            ):
                return await self._run_pass(pass_id, trigger, scope, started_at, force)
        finally:
            self._guard.release(token)

    async def _run_pass(
        self,
        pass_id: UUID,
        trigger: SyncTrigger,
        scope: list[str],
        started_at: datetime,
        force: bool,
    ) -> SyncPassSummary:
        if not await probe_online(self._connectivity):
            logger.debug("Offline, skipping %s sync pass", trigger.value)
            return self._summary(pass_id, trigger, SyncPassStatus.OFFLINE, started_at, force)

        now = self._clock()
        if force:
            selected = scope
        else:
            selected = [domain_id for domain_id in scope if self._freshness.is_due(domain_id, now)]

        if not selected:
            logger.debug("No domains due, %s sync pass is a no-op", trigger.value)
            return self._summary(pass_id, trigger, SyncPassStatus.NOTHING_DUE, started_at, force)

        limit = self._config.max_concurrent_fetches
        semaphore = asyncio.Semaphore(limit) if limit else None
        outcomes = await asyncio.gather(
            *(self._sync_domain(domain_id, semaphore) for domain_id in selected),
            return_exceptions=True,
        )

        results: list[DomainSyncResult] = []
        for domain_id, outcome in zip(selected, outcomes, strict=True):
            if isinstance(outcome, DomainSyncResult):
                results.append(outcome)
            else:
                logger.warning(
                    "Sync of domain %s ended abnormally: %s",
                    domain_id,
                    outcome,
                    extra={"domain_id": domain_id},
                )
                results.append(
                    DomainSyncResult(
                        domain_id=domain_id,
                        outcome=DomainOutcome.FAILED,
                        error=str(outcome),
                        error_type=classify_error(outcome),
                    )
                )

        summary = SyncPassSummary(
            pass_id=pass_id,
            trigger=trigger,
            status=SyncPassStatus.COMPLETED,
            started_at=started_at,
            finished_at=self._clock(),
            results=tuple(results),
            force=force,
        )
        self._last_summary = summary

        logger.info(
            "Sync pass complete: %d successful, %d failed",
            summary.successful,
            summary.failed,
            extra={
                "pass_id": str(pass_id),
                "trigger": trigger.value,
                "domains": selected,
                "failed_domains": summary.failed_domains,
            },
        )
        self._emit_audit(summary)
        return summary

    async def _sync_domain(
        self,
        domain_id: str,
        semaphore: asyncio.Semaphore | None,
    ) -> DomainSyncResult:
        domain = self._freshness.domain(domain_id)
        with self._tracer.span(
            "safetysync.scheduler.sync_domain",
            {ATTR_DOMAIN_ID: domain_id, ATTR_CACHE_KEY: domain.cache_key},
        ):
            try:
                async with semaphore or contextlib.nullcontext():
                    records = list(await self._gateway.fetch_domain(domain.fetch_spec))
                previous, restorable = await self._read_previous(domain_id, domain.cache_key)
                await self._cache.write_set(domain.cache_key, records)
                synced_at = self._clock()
                try:
                    await self._freshness.record_success(domain_id, synced_at)
                except Exception:
                    await self._restore_snapshot(domain_id, domain.cache_key, previous, restorable)
                    raise
            except Exception as e:
                error_type = classify_error(e)
                logger.warning(
                    "Sync of domain %s failed (%s): %s",
                    domain_id,
                    error_type,
                    e,
                    extra={"domain_id": domain_id, "error_type": error_type},
                )
                return DomainSyncResult(
                    domain_id=domain_id,
                    outcome=DomainOutcome.FAILED,
                    error=str(e),
                    error_type=error_type,
                )

            logger.debug(
                "Synced domain %s: %d record(s)",
                domain_id,
                len(records),
                extra={"domain_id": domain_id, "record_count": len(records)},
            )
            facts, notices = self._post_process(domain_id, records, previous, synced_at)
            for notice in notices:
                self._deliver_notice(notice)

            return DomainSyncResult(
                domain_id=domain_id,
                outcome=DomainOutcome.SUCCESS,
                record_count=len(records),
                facts=facts,
                notices=notices,
            )

    async def _read_previous(
        self, domain_id: str, cache_key: str
    ) -> tuple[list[Record] | None, bool]:
        """Read the snapshot about to be replaced, and whether it can be restored."""
        try:
            return await self._cache.read_set(cache_key), True
        except CacheStoreError as e:
            logger.warning("Previous snapshot of %s unreadable: %s", domain_id, e)
            return None, False

    async def _restore_snapshot(
        self,
        domain_id: str,
        cache_key: str,
        previous: list[Record] | None,
        restorable: bool,
    ) -> None:
        if not restorable:
            logger.warning(
                "Previous snapshot of %s was unreadable and cannot be restored",
                domain_id,
                extra={"domain_id": domain_id},
            )
            return
        try:
            if previous is None:
                await self._cache.delete_set(cache_key)
            else:
                await self._cache.write_set(cache_key, previous)
        except Exception as e:
            logger.error(
                "Failed to restore previous snapshot of %s: %s",
                domain_id,
                e,
                exc_info=True,
                extra={"domain_id": domain_id},
            )

    def _post_process(
        self,
        domain_id: str,
        records: list[Record],
        previous: list[Record] | None,
        now: datetime,
    ) -> tuple[dict[str, Any], tuple[SyncNotice, ...]]:
        facts: dict[str, Any] = {}
        notices: list[SyncNotice] = []
        for processor in self._post_processors.get(domain_id, []):
            try:
                result = processor.process(records, previous, now)
            except Exception as e:
                logger.warning(
                    "Post-processor %s failed for domain %s: %s",
                    type(processor).__name__,
                    domain_id,
                    e,
                    exc_info=True,
                    extra={"domain_id": domain_id},
                )
                continue
            facts.update(result.facts)
            notices.extend(result.notices)
        return facts, tuple(notices)

    def _deliver_notice(self, notice: SyncNotice) -> None:
        if self._notification_sink is None:
            return
        self._background.submit(
            self._notification_sink.notify(notice),
            label=f"notify:{notice.tag}",
        )

    def _emit_audit(self, summary: SyncPassSummary) -> None:
        if self._audit_sink is None:
            return
        if summary.failed == 0:
            outcome = "success"
        elif summary.successful > 0:
            outcome = "partial"
        else:
            outcome = "failure"
        entry = SecurityAuditEntry(
            timestamp=summary.finished_at,
            actor=self._actor,
            action=ACTION_SYNC_PASS,
            domain=",".join(result.domain_id for result in summary.results),
            outcome=outcome,
            details=summary.to_dict(),
        )
        self._background.submit(self._audit_sink.record(entry), label="audit:sync_pass")

    def _resolve_scope(self, domains: Sequence[str] | None) -> list[str]:
        if domains is None:
            return self._freshness.domain_ids
        if isinstance(domains, str):
            domains = [domains]
        scope: list[str] = []
        for domain_id in domains:
            self._freshness.domain(domain_id)
            if domain_id not in scope:
                scope.append(domain_id)
        return scope

    def _summary(
        self,
        pass_id: UUID,
        trigger: SyncTrigger,
        status: SyncPassStatus,
        started_at: datetime,
        force: bool,
    ) -> SyncPassSummary:
        return SyncPassSummary(
            pass_id=pass_id,
            trigger=trigger,
            status=status,
            started_at=started_at,
            finished_at=self._clock(),
            force=force,
        )

    # =========================================================================
    # Trigger adapters
    # =========================================================================

    async def trigger_manual_sync(self, scope: str = "all") -> SyncPassSummary:
        """
        Sync one domain, or all of them, regardless of due-ness.

        Args:
            scope: A domain id, or "all"
        """
        domains = None if scope == "all" else [scope]
        return await self.dispatch(SyncTrigger.MANUAL, domains, force=True)

    async def on_visibility_change(self, visible: bool) -> SyncPassSummary | None:
        """
        Handle an app visibility change.

        Dispatches a FOREGROUND pass when the app becomes visible.
        """
        became_visible = visible and not self._visible
        self._visible = visible
        if not became_visible:
            return None
        return await self.dispatch(SyncTrigger.FOREGROUND)

    async def on_connectivity_change(self, online: bool) -> SyncPassSummary | None:
        """
        Handle a network connectivity change.

        Updates a ConnectivityState probe and dispatches a RECONNECT pass
        when connectivity is regained.
        """
        if isinstance(self._connectivity, ConnectivityState):
            self._connectivity.set_online(online)
        regained = online and not self._online
        self._online = online
        if not regained:
            return None
        return await self.dispatch(SyncTrigger.RECONNECT)

    # =========================================================================
    # Interval loop
    # =========================================================================

    async def start(self) -> None:
        """Start the interval trigger. Does nothing if already started."""
        if self.is_started:
            return
        self._loop_task = asyncio.create_task(self._interval_loop())
        logger.info(
            "Sync scheduler started: check every %.0fs",
            self._config.check_interval_seconds,
            extra={"domains": self.domain_ids},
        )

    async def stop(self) -> None:
        """Stop the interval trigger and drain pending background deliveries."""
        if self._loop_task is not None:
            self._loop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._loop_task
            self._loop_task = None
            logger.info("Sync scheduler stopped")
        await self.drain_background(self._config.background_timeout)

    async def _interval_loop(self) -> None:
        if self._config.initial_check:
            await self._interval_pass()
        while True:
            await asyncio.sleep(self._config.check_interval_seconds)
            await self._interval_pass()

    async def _interval_pass(self) -> None:
        try:
            await self.dispatch(SyncTrigger.INTERVAL)
        except Exception as e:
            logger.error("Interval sync pass failed: %s", e, exc_info=True)

    async def drain_background(self, timeout: float | None = None) -> int:
        """Wait for pending notice and audit deliveries."""
        return await self._background.drain(timeout)

    # =========================================================================
    # Introspection
    # =========================================================================

    async def read_snapshot(self, domain_id: str) -> CacheSnapshot | None:
        """
        Read the cached snapshot of a domain.

        Returns:
            The snapshot, or None if the domain has never been cached
        """
        domain = self._freshness.domain(domain_id)
        records = await self._cache.read_set(domain.cache_key)
        if records is None:
            return None
        return CacheSnapshot(
            domain_id=domain_id,
            records=tuple(records),
            captured_at=self._freshness.last_sync_at(domain_id),
        )

    def statuses(self, now: datetime | None = None) -> dict[str, FreshnessStatus]:
        """Freshness of every domain."""
        return self._freshness.statuses(now or self._clock())

    def __repr__(self) -> str:
        return (
            f"SyncScheduler(domains={self.domain_ids}, "
            f"running={self.is_running}, started={self.is_started})"
        )


__all__ = ["SyncScheduler", "classify_error"]
