"""
Migration coordinator.

Moves legacy local-only record sets into the remote store, one mapping at
a time in plan order. Each non-empty set is stamped with provenance and
committed as a single atomic batch; the local set is deleted only after
its commit succeeds. A retried run therefore sees already migrated sets as
absent and skips them, while failed sets are still there to try again.

Authorization and user confirmation are the caller's responsibility.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime
from uuid import UUID, uuid4

from safetysync.audit import (
    ACTION_MIGRATION_COMPLETE,
    ACTION_MIGRATION_FAILED,
    AuditSink,
    SecurityAuditEntry,
)
from safetysync.cache.interface import LocalCacheStore
from safetysync.exceptions import AlreadyRunningError, MalformedLocalDataError
from safetysync.gateway.interface import DocumentWrite, RemoteGateway
from safetysync.locks import RunGuard
from safetysync.migration.models import (
    DEFAULT_MIGRATION_PLAN,
    MigrationItem,
    MigrationItemResult,
    MigrationMapping,
    MigrationOutcome,
    MigrationRunResult,
    MigrationRunStats,
    SkipReason,
)
from safetysync.migration.provenance import migration_document_ids, stamp_provenance
from safetysync.observability import (
    ATTR_ACTOR_ID,
    ATTR_COLLECTION,
    ATTR_MIGRATION_RUN_ID,
    ATTR_RECORD_COUNT,
    ATTR_SOURCE_KEY,
    Tracer,
    create_tracer,
)
from safetysync.types import Clock, utc_now

logger = logging.getLogger(__name__)


class MigrationCoordinator:
    """
    Runs the one-time migration of local-only data.

    Only one run may execute at a time; a second call while a run is in
    progress raises AlreadyRunningError immediately. Once started, a run
    completes its whole plan even if the caller is cancelled.

    Example:
        >>> coordinator = MigrationCoordinator(gateway, cache, audit_sink=audit)
        >>> if await coordinator.has_pending_data():
        ...     result = await coordinator.run(actor="admin@example.com")
        ...     print(result.message)
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        cache: LocalCacheStore,
        plan: Sequence[MigrationMapping] = DEFAULT_MIGRATION_PLAN,
        *,
        audit_sink: AuditSink | None = None,
        company_id: str | None = None,
        clock: Clock | None = None,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            gateway: Remote store receiving the batches
            cache: Local store holding the legacy sets
            plan: Ordered mappings to migrate
            audit_sink: Receiver of one audit entry per run
            company_id: Company stamped onto migrated records, if any
            clock: Source of the current time
            tracer: Optional tracer (if not provided, one will be created)
            enable_tracing: Whether to enable OpenTelemetry tracing (default True)
        """
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._enable_tracing = self._tracer.enabled

        source_keys = [mapping.source_key for mapping in plan]
        duplicates = sorted({key for key in source_keys if source_keys.count(key) > 1})
        if duplicates:
            raise ValueError(f"Migration plan lists source keys more than once: {duplicates}")

        self._gateway = gateway
        self._cache = cache
        self._plan = tuple(plan)
        self._audit_sink = audit_sink
        self._company_id = company_id
        self._clock = clock or utc_now
        self._guard = RunGuard("migration")

    @property
    def plan(self) -> tuple[MigrationMapping, ...]:
        return self._plan

    @property
    def guard(self) -> RunGuard:
        return self._guard

    @property
    def is_running(self) -> bool:
        return self._guard.is_held

    async def run(self, actor: str | None = None) -> MigrationRunResult:
        """
        Migrate every mapping of the plan.

        Args:
            actor: Who is running the migration (default "system")

        Returns:
            The run result. success is True iff at least one item migrated.

        Raises:
            AlreadyRunningError: If a run is already in progress
        """
        actor_name = actor or "system"
        run_id = uuid4()
        token = str(run_id)
        if not self._guard.try_acquire(token):
            raise AlreadyRunningError(self._guard.name, self._guard.holder)

        return await asyncio.shield(self._guarded_run(run_id, token, actor_name))

    async def _guarded_run(self, run_id: UUID, token: str, actor: str) -> MigrationRunResult:
        try:
            with self._tracer.span(
                "safetysync.migration.run",
                {ATTR_MIGRATION_RUN_ID: token, ATTR_ACTOR_ID: actor},
            ):
                result = await self._execute(run_id, actor)
            await self._record_audit(result)
            return result
        finally:
            self._guard.release(token)

    async def _execute(self, run_id: UUID, actor: str) -> MigrationRunResult:
        started_at = self._clock()
        logger.info(
            "Starting local data migration %s (%d mapping(s))",
            run_id,
            len(self._plan),
            extra={"run_id": str(run_id), "actor": actor},
        )

        try:
            await self._gateway.ping()
        except Exception as e:
            logger.error(
                "Migration %s aborted: remote store unavailable: %s",
                run_id,
                e,
                extra={"run_id": str(run_id)},
            )
            return MigrationRunResult(
                run_id=run_id,
                success=False,
                stats=MigrationRunStats(),
                items=(),
                actor=actor,
                started_at=started_at,
                finished_at=self._clock(),
                error=str(e) or type(e).__name__,
            )

        items: list[MigrationItemResult] = []
        for mapping in self._plan:
            items.append(await self._migrate_item(mapping, run_id, actor, started_at))

        stats = MigrationRunStats.from_results(items)
        result = MigrationRunResult(
            run_id=run_id,
            success=stats.migrated_items > 0,
            stats=stats,
            items=tuple(items),
            actor=actor,
            started_at=started_at,
            finished_at=self._clock(),
        )
        logger.info(
            "Migration %s finished: %d record(s) migrated, %d failed, %d item(s) skipped",
            run_id,
            stats.migrated_records,
            stats.failed_records,
            stats.skipped_items,
            extra={"run_id": str(run_id), "stats": stats.to_dict()},
        )
        return result

    async def _migrate_item(
        self,
        mapping: MigrationMapping,
        run_id: UUID,
        actor: str,
        migrated_at: datetime,
    ) -> MigrationItemResult:
        with self._tracer.span(
            "safetysync.migration.migrate_item",
            {
                ATTR_SOURCE_KEY: mapping.source_key,
                ATTR_COLLECTION: mapping.target_collection,
            },
        ):
            record_count = 0
            try:
                try:
                    records = await self._cache.read_set(mapping.source_key)
                except MalformedLocalDataError as e:
                    logger.warning(
                        "Skipping %s: local data is malformed: %s",
                        mapping.source_key,
                        e.reason,
                        extra={"source_key": mapping.source_key},
                    )
                    return self._skipped(mapping, SkipReason.MALFORMED)

                if records is None:
                    logger.debug("Skipping %s: no local data", mapping.source_key)
                    return self._skipped(mapping, SkipReason.ABSENT)
                if not records:
                    logger.debug("Skipping %s: local set is empty", mapping.source_key)
                    return self._skipped(mapping, SkipReason.EMPTY)

                item = MigrationItem(mapping=mapping, record_count=len(records))
                record_count = item.record_count
                document_ids = migration_document_ids(mapping.source_key, records)
                documents = [
                    DocumentWrite(
                        document_id=document_id,
                        data=stamp_provenance(
                            record,
                            source_key=mapping.source_key,
                            run_id=run_id,
                            actor=actor,
                            migrated_at=migrated_at,
                            company=self._company_id,
                        ),
                    )
                    for document_id, record in zip(document_ids, records, strict=True)
                ]

                with self._tracer.span(
                    "safetysync.migration.commit_batch",
                    {ATTR_COLLECTION: item.target_collection, ATTR_RECORD_COUNT: record_count},
                ):
                    await self._gateway.commit_batch(item.target_collection, documents)

                await self._delete_migrated_set(item)
                logger.info(
                    "Migrated %d record(s) from %s to %s",
                    record_count,
                    item.source_key,
                    item.target_collection,
                    extra={"source_key": item.source_key, "record_count": record_count},
                )
                return MigrationItemResult(
                    source_key=item.source_key,
                    target_collection=item.target_collection,
                    outcome=MigrationOutcome.MIGRATED,
                    record_count=record_count,
                )
            except Exception as e:
                logger.warning(
                    "Migration of %s to %s failed: %s",
                    mapping.source_key,
                    mapping.target_collection,
                    e,
                    extra={"source_key": mapping.source_key, "record_count": record_count},
                )
                return MigrationItemResult(
                    source_key=mapping.source_key,
                    target_collection=mapping.target_collection,
                    outcome=MigrationOutcome.FAILED,
                    record_count=record_count,
                    error=str(e) or type(e).__name__,
                )

    async def _delete_migrated_set(self, item: MigrationItem) -> None:
        # A leftover set is re-committed onto the same document ids next run.
        try:
            await self._cache.delete_set(item.source_key)
        except Exception as e:
            logger.warning(
                "Migrated %s but could not delete the local set: %s",
                item.source_key,
                e,
                extra={"source_key": item.source_key},
            )

    @staticmethod
    def _skipped(mapping: MigrationMapping, reason: SkipReason) -> MigrationItemResult:
        return MigrationItemResult(
            source_key=mapping.source_key,
            target_collection=mapping.target_collection,
            outcome=MigrationOutcome.SKIPPED,
            skip_reason=reason,
        )

    async def _record_audit(self, result: MigrationRunResult) -> None:
        if self._audit_sink is None:
            return
        entry = SecurityAuditEntry(
            timestamp=result.finished_at,
            actor=result.actor,
            action=ACTION_MIGRATION_COMPLETE if result.success else ACTION_MIGRATION_FAILED,
            domain="migration",
            outcome="success" if result.success else "failure",
            details=result.to_dict(),
        )
        try:
            await self._audit_sink.record(entry)
        except Exception as e:
            logger.error("Failed to record migration audit entry: %s", e, exc_info=True)

    async def pending_items(self) -> list[MigrationItem]:
        """
        List the plan entries whose local sets still hold records.

        Malformed sets are not pending: a run would skip them.
        """
        pending: list[MigrationItem] = []
        for mapping in self._plan:
            try:
                records = await self._cache.read_set(mapping.source_key)
            except MalformedLocalDataError as e:
                logger.debug("Ignoring malformed local set %s: %s", mapping.source_key, e.reason)
                continue
            if records:
                pending.append(MigrationItem(mapping=mapping, record_count=len(records)))
        return pending

    async def has_pending_data(self) -> bool:
        """True if any local set of the plan still holds records."""
        return bool(await self.pending_items())

    def __repr__(self) -> str:
        return f"MigrationCoordinator(mappings={len(self._plan)}, running={self.is_running})"


__all__ = ["MigrationCoordinator"]
