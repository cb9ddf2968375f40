"""
Unit tests for SyncScheduler.

Covers:
- Due-domain selection and snapshot/freshness updates
- Failure isolation between domains
- Offline, nothing-due and coalesced passes
- Trigger adapters (manual, visibility, connectivity, interval loop)
- Post-processing, notices and audit entries
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from conftest import START_TIME, FakeClock, company_records

from safetysync.audit import ACTION_SYNC_PASS, InMemoryAuditSink
from safetysync.cache import InMemoryCacheStore
from safetysync.domains import default_domains
from safetysync.exceptions import UnauthorizedError, UnknownDomainError, UnreachableError
from safetysync.freshness import FreshnessTracker
from safetysync.gateway import InMemoryRemoteGateway
from safetysync.notifications import InMemoryNotificationSink
from safetysync.postprocessing import PostProcessResult, default_post_processors
from safetysync.repositories import InMemorySyncStateRepository
from safetysync.scheduler import (
    ConnectivityState,
    SchedulerConfig,
    SyncIndicator,
    SyncPassStatus,
    SyncScheduler,
    SyncTrigger,
    classify_error,
)

ALL_DOMAINS = ["standards", "training", "incidents", "employee_health"]


class ConcurrencyTrackingGateway(InMemoryRemoteGateway):
    """Gateway that records the peak number of simultaneous fetches."""

    def __init__(self) -> None:
        super().__init__(delay=0.01)
        self.active = 0
        self.peak = 0

    async def fetch_domain(self, spec):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            return await super().fetch_domain(spec)
        finally:
            self.active -= 1


class FailingWriteCache(InMemoryCacheStore):
    def __init__(self, failing_key: str) -> None:
        super().__init__()
        self.failing_key = failing_key

    async def write_set(self, key, records):
        if key == self.failing_key:
            raise OSError("disk full")
        await super().write_set(key, records)


class FailingSaveRepository(InMemorySyncStateRepository):
    def __init__(self, failing_domain: str) -> None:
        super().__init__()
        self.failing_domain = failing_domain

    async def save_last_sync(self, domain_id, synced_at):
        if domain_id == self.failing_domain:
            raise OSError("disk full")
        await super().save_last_sync(domain_id, synced_at)


class BrokenProcessor:
    domain_id = "standards"

    def process(self, records, previous, now):
        raise RuntimeError("bad record")


class CountingProcessor:
    domain_id = "standards"

    def process(self, records, previous, now):
        return PostProcessResult(facts={"count": len(records)})


class FailingAuditSink:
    async def record(self, entry):
        raise ConnectionError("audit store down")


def build_scheduler(gateway, cache, freshness, **kwargs) -> SyncScheduler:
    kwargs.setdefault("config", SchedulerConfig(initial_check=False))
    kwargs.setdefault("clock", FakeClock())
    return SyncScheduler(freshness, gateway, cache, enable_tracing=False, **kwargs)


# =============================================================================
# Dispatch
# =============================================================================


class TestDispatch:
    @pytest.mark.asyncio
    async def test_first_pass_syncs_all_domains(self, scheduler, cache, freshness):
        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)

        assert summary.status is SyncPassStatus.COMPLETED
        assert summary.successful_domains == ALL_DOMAINS
        assert summary.failed == 0
        assert summary.indicator is SyncIndicator.SYNCED
        assert [r.record_count for r in summary.results] == [3, 2, 4, 5]
        assert len(await cache.read_set("mms_safety_standards")) == 3
        assert freshness.last_sync_at("incidents") == START_TIME

    @pytest.mark.asyncio
    async def test_nothing_due_makes_no_network_calls(self, scheduler, seeded_gateway):
        await scheduler.dispatch(SyncTrigger.INTERVAL)
        calls = len(seeded_gateway.fetch_calls)

        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)

        assert summary.status is SyncPassStatus.NOTHING_DUE
        assert summary.results == ()
        assert summary.indicator is SyncIndicator.IDLE
        assert len(seeded_gateway.fetch_calls) == calls

    @pytest.mark.asyncio
    async def test_only_due_domains_are_fetched(self, scheduler, seeded_gateway, clock):
        await scheduler.dispatch(SyncTrigger.INTERVAL)
        seeded_gateway.fetch_calls.clear()

        clock.advance(hours=2)
        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)

        assert summary.successful_domains == ["incidents"]
        assert seeded_gateway.fetch_calls == ["incidents"]

    @pytest.mark.asyncio
    async def test_snapshot_is_replaced_wholesale(self, scheduler, seeded_gateway, cache, clock):
        await scheduler.dispatch(SyncTrigger.INTERVAL)

        seeded_gateway.seed("incidents", company_records("inc-new", 1))
        clock.advance(hours=2)
        await scheduler.dispatch(SyncTrigger.INTERVAL)

        ids = {r["id"] for r in await cache.read_set("mms_recent_incidents")}
        assert len(ids) == 5
        assert "inc-new-1" in ids

    @pytest.mark.asyncio
    async def test_offline_pass_is_a_no_op(self, scheduler, seeded_gateway, connectivity, audit_sink):
        connectivity.set_online(False)

        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)
        await scheduler.drain_background()

        assert summary.status is SyncPassStatus.OFFLINE
        assert seeded_gateway.fetch_calls == []
        assert audit_sink.entries == []

    @pytest.mark.asyncio
    async def test_async_connectivity_probe(self, seeded_gateway, cache, freshness):
        async def offline() -> bool:
            return False

        scheduler = build_scheduler(seeded_gateway, cache, freshness, connectivity=offline)
        summary = await scheduler.dispatch(SyncTrigger.MANUAL)
        assert summary.status is SyncPassStatus.OFFLINE

    @pytest.mark.asyncio
    async def test_unknown_domain_in_scope(self, scheduler):
        with pytest.raises(UnknownDomainError):
            await scheduler.dispatch(SyncTrigger.MANUAL, ["chemicals"])
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_scope_is_deduplicated(self, scheduler, seeded_gateway):
        summary = await scheduler.dispatch(SyncTrigger.MANUAL, ["training", "training"], force=True)
        assert summary.successful_domains == ["training"]
        assert seeded_gateway.fetch_calls == ["training_records"]

    @pytest.mark.asyncio
    async def test_last_summary_tracks_executed_passes(self, scheduler):
        assert scheduler.last_summary is None
        first = await scheduler.dispatch(SyncTrigger.INTERVAL)
        await scheduler.dispatch(SyncTrigger.INTERVAL)
        assert scheduler.last_summary is first


# =============================================================================
# Failure isolation
# =============================================================================


class TestFailureIsolation:
    @pytest.mark.asyncio
    async def test_failed_domain_does_not_abort_pass(self, scheduler, seeded_gateway, freshness):
        seeded_gateway.fail_fetch["training_records"] = UnreachableError()

        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)

        assert summary.failed_domains == ["training"]
        assert summary.successful_domains == ["standards", "incidents", "employee_health"]
        assert summary.indicator is SyncIndicator.ISSUES
        result = summary.result_for("training")
        assert result.error_type == "unreachable"
        assert result.record_count == 0
        assert freshness.last_sync_at("training") is None
        assert freshness.is_due("training", START_TIME)

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_snapshot(self, scheduler, seeded_gateway, cache):
        await cache.write_set("mms_training_records", [{"id": "old"}])
        seeded_gateway.fail_fetch["training_records"] = UnauthorizedError("training_records")

        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)

        assert summary.result_for("training").error_type == "unauthorized"
        assert await cache.read_set("mms_training_records") == [{"id": "old"}]

    @pytest.mark.asyncio
    async def test_failed_domain_retried_next_pass(self, scheduler, seeded_gateway):
        seeded_gateway.fail_fetch["training_records"] = UnreachableError()
        await scheduler.dispatch(SyncTrigger.INTERVAL)

        del seeded_gateway.fail_fetch["training_records"]
        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)

        assert summary.successful_domains == ["training"]

    @pytest.mark.asyncio
    async def test_cache_write_failure_does_not_advance_freshness(self, seeded_gateway, freshness):
        cache = FailingWriteCache("mms_employee_health")
        scheduler = build_scheduler(seeded_gateway, cache, freshness)

        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)

        assert summary.failed_domains == ["employee_health"]
        assert summary.result_for("employee_health").error_type == "error"
        assert freshness.last_sync_at("employee_health") is None
        assert freshness.last_sync_at("standards") == START_TIME

    @pytest.mark.asyncio
    async def test_freshness_save_failure_keeps_domain_due(self, seeded_gateway, clock):
        freshness = FreshnessTracker(
            default_domains(), FailingSaveRepository("standards"), enable_tracing=False
        )
        cache = InMemoryCacheStore({"mms_safety_standards": [{"id": "std-old"}]})
        scheduler = build_scheduler(seeded_gateway, cache, freshness, clock=clock)

        summary = await scheduler.dispatch(SyncTrigger.MANUAL, ["standards"], force=True)

        assert summary.failed_domains == ["standards"]
        assert summary.result_for("standards").error == "disk full"
        assert freshness.last_sync_at("standards") is None
        assert freshness.is_due("standards", clock()) is True
        assert await cache.read_set("mms_safety_standards") == [{"id": "std-old"}]

    @pytest.mark.asyncio
    async def test_freshness_save_failure_removes_first_snapshot(self, seeded_gateway, clock):
        freshness = FreshnessTracker(
            default_domains(), FailingSaveRepository("incidents"), enable_tracing=False
        )
        cache = InMemoryCacheStore()
        scheduler = build_scheduler(seeded_gateway, cache, freshness, clock=clock)

        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)

        assert summary.failed_domains == ["incidents"]
        assert await cache.read_set("mms_recent_incidents") is None
        assert freshness.last_sync_at("training") == START_TIME
        assert len(await cache.read_set("mms_training_records")) == 2

    @pytest.mark.asyncio
    async def test_domain_retried_after_freshness_save_failure(self, seeded_gateway, clock):
        repository = FailingSaveRepository("standards")
        freshness = FreshnessTracker(default_domains(), repository, enable_tracing=False)
        scheduler = build_scheduler(seeded_gateway, InMemoryCacheStore(), freshness, clock=clock)
        await scheduler.dispatch(SyncTrigger.INTERVAL)

        repository.failing_domain = ""
        clock.advance(minutes=1)
        summary = await scheduler.dispatch(SyncTrigger.FOREGROUND)

        assert summary.successful_domains == ["standards"]
        assert freshness.last_sync_at("standards") == clock()

    @pytest.mark.asyncio
    async def test_all_domains_failing(self, scheduler, seeded_gateway):
        for collection in ["safety_standards", "training_records", "incidents", "employees"]:
            seeded_gateway.fail_fetch[collection] = TimeoutError()

        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)

        assert summary.status is SyncPassStatus.COMPLETED
        assert summary.successful == 0
        assert summary.failed == 4


class TestClassifyError:
    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (UnreachableError(), "unreachable"),
            (ConnectionError(), "unreachable"),
            (TimeoutError(), "unreachable"),
            (UnauthorizedError("incidents"), "unauthorized"),
            (PermissionError(), "unauthorized"),
            (ValueError("bad"), "error"),
        ],
    )
    def test_classification(self, error, expected):
        assert classify_error(error) == expected


# =============================================================================
# Single flight
# =============================================================================


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_concurrent_trigger_is_coalesced(self, scheduler, seeded_gateway):
        seeded_gateway.delay = 0.02

        first, second = await asyncio.gather(
            scheduler.dispatch(SyncTrigger.INTERVAL),
            scheduler.dispatch(SyncTrigger.FOREGROUND),
        )

        assert first.status is SyncPassStatus.COMPLETED
        assert second.status is SyncPassStatus.COALESCED
        assert second.results == ()
        assert len(seeded_gateway.fetch_calls) == 4

    @pytest.mark.asyncio
    async def test_guard_released_after_pass(self, scheduler):
        await scheduler.dispatch(SyncTrigger.INTERVAL)
        assert not scheduler.is_running
        assert not scheduler.pass_guard.is_held

    @pytest.mark.asyncio
    async def test_is_running_during_pass(self, scheduler, seeded_gateway):
        seeded_gateway.delay = 0.02
        task = asyncio.create_task(scheduler.dispatch(SyncTrigger.INTERVAL))
        await asyncio.sleep(0)

        assert scheduler.is_running
        await task
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_unbounded_fetches_run_concurrently(self, cache, freshness):
        gateway = ConcurrencyTrackingGateway()
        scheduler = build_scheduler(gateway, cache, freshness)

        await scheduler.dispatch(SyncTrigger.INTERVAL)

        assert gateway.peak == 4

    @pytest.mark.asyncio
    async def test_max_concurrent_fetches(self, cache, freshness):
        gateway = ConcurrencyTrackingGateway()
        scheduler = build_scheduler(
            gateway,
            cache,
            freshness,
            config=SchedulerConfig(initial_check=False, max_concurrent_fetches=1),
        )

        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)

        assert summary.successful == 4
        assert gateway.peak == 1


# =============================================================================
# Trigger adapters
# =============================================================================


class TestManualSync:
    @pytest.mark.asyncio
    async def test_manual_sync_ignores_due_ness(self, scheduler, seeded_gateway):
        await scheduler.dispatch(SyncTrigger.INTERVAL)
        seeded_gateway.fetch_calls.clear()

        summary = await scheduler.trigger_manual_sync("training")

        assert summary.trigger is SyncTrigger.MANUAL
        assert summary.force is True
        assert summary.successful_domains == ["training"]
        assert seeded_gateway.fetch_calls == ["training_records"]

    @pytest.mark.asyncio
    async def test_manual_sync_all(self, scheduler):
        await scheduler.dispatch(SyncTrigger.INTERVAL)
        summary = await scheduler.trigger_manual_sync()
        assert summary.successful_domains == ALL_DOMAINS

    @pytest.mark.asyncio
    async def test_manual_sync_unknown_domain(self, scheduler):
        with pytest.raises(UnknownDomainError):
            await scheduler.trigger_manual_sync("chemicals")


class TestVisibility:
    @pytest.mark.asyncio
    async def test_already_visible_does_nothing(self, scheduler, seeded_gateway):
        assert await scheduler.on_visibility_change(True) is None
        assert seeded_gateway.fetch_calls == []

    @pytest.mark.asyncio
    async def test_becoming_visible_dispatches(self, scheduler):
        assert await scheduler.on_visibility_change(False) is None
        summary = await scheduler.on_visibility_change(True)

        assert summary.trigger is SyncTrigger.FOREGROUND
        assert summary.status is SyncPassStatus.COMPLETED


class TestConnectivity:
    @pytest.mark.asyncio
    async def test_going_offline_blocks_passes(self, scheduler, connectivity):
        assert await scheduler.on_connectivity_change(False) is None
        assert connectivity.online is False

        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)
        assert summary.status is SyncPassStatus.OFFLINE

    @pytest.mark.asyncio
    async def test_reconnect_dispatches(self, scheduler, connectivity):
        await scheduler.on_connectivity_change(False)
        summary = await scheduler.on_connectivity_change(True)

        assert connectivity.online is True
        assert summary.trigger is SyncTrigger.RECONNECT
        assert summary.status is SyncPassStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_online_while_online_does_nothing(self, scheduler):
        assert await scheduler.on_connectivity_change(True) is None


class TestIntervalLoop:
    @pytest.mark.asyncio
    async def test_start_runs_initial_check(self, seeded_gateway, cache, freshness):
        scheduler = build_scheduler(
            seeded_gateway,
            cache,
            freshness,
            config=SchedulerConfig(check_interval=timedelta(hours=1), initial_check=True),
        )

        await scheduler.start()
        assert scheduler.is_started
        for _ in range(100):
            if scheduler.last_summary is not None:
                break
            await asyncio.sleep(0.01)
        await scheduler.stop()

        assert scheduler.last_summary.trigger is SyncTrigger.INTERVAL
        assert scheduler.last_summary.successful == 4
        assert not scheduler.is_started

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, scheduler):
        await scheduler.start()
        await scheduler.start()
        assert scheduler.is_started
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self, scheduler):
        await scheduler.stop()
        assert not scheduler.is_started

    @pytest.mark.asyncio
    async def test_short_interval_repeats(self, seeded_gateway, cache, freshness):
        scheduler = build_scheduler(
            seeded_gateway,
            cache,
            freshness,
            config=SchedulerConfig(check_interval=timedelta(milliseconds=10), initial_check=False),
        )

        await scheduler.start()
        for _ in range(100):
            if scheduler.last_summary is not None:
                break
            await asyncio.sleep(0.01)
        await scheduler.stop()

        assert scheduler.last_summary is not None


# =============================================================================
# Post-processing, notices and audit
# =============================================================================


class TestPostProcessing:
    @pytest.mark.asyncio
    async def test_expiring_training_raises_notice(
        self, scheduler, seeded_gateway, notification_sink: InMemoryNotificationSink
    ):
        expiry = (START_TIME + timedelta(days=5)).isoformat()
        seeded_gateway.seed("training_records", company_records("exp", 2, expiry_date=expiry))

        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)
        await scheduler.drain_background()

        training = summary.result_for("training")
        assert training.facts["expiring"] == 2
        assert len(training.notices) == 1
        (notice,) = notification_sink.by_tag("training-expiry")
        assert notice.title == "2 Training(s) Expiring Soon"

    @pytest.mark.asyncio
    async def test_new_incidents_compared_to_previous_snapshot(self, scheduler, seeded_gateway, clock):
        first = await scheduler.dispatch(SyncTrigger.INTERVAL)
        assert first.result_for("incidents").facts["new"] == 4

        seeded_gateway.seed("incidents", company_records("inc-late", 1))
        clock.advance(hours=2)
        second = await scheduler.dispatch(SyncTrigger.INTERVAL)

        assert second.result_for("incidents").facts == {"new": 1, "new_ids": ["inc-late-1"]}

    @pytest.mark.asyncio
    async def test_post_processor_failure_does_not_fail_domain(self, seeded_gateway, cache, freshness):
        scheduler = build_scheduler(
            seeded_gateway,
            cache,
            freshness,
            post_processors=[BrokenProcessor(), CountingProcessor()],
        )

        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)

        standards = summary.result_for("standards")
        assert standards.succeeded
        assert standards.facts == {"count": 3}
        assert freshness.last_sync_at("standards") == START_TIME

    def test_post_processor_for_unknown_domain(self, scheduler):
        class Orphan:
            domain_id = "chemicals"

            def process(self, records, previous, now):
                return PostProcessResult()

        with pytest.raises(UnknownDomainError):
            scheduler.register_post_processor(Orphan())

    @pytest.mark.asyncio
    async def test_failing_notification_sink_does_not_fail_pass(self, seeded_gateway, cache, freshness):
        class BrokenSink:
            async def notify(self, notice):
                raise RuntimeError("push service down")

        expiry = (START_TIME + timedelta(days=1)).isoformat()
        seeded_gateway.seed("training_records", company_records("exp", 1, expiry_date=expiry))
        scheduler = build_scheduler(
            seeded_gateway,
            cache,
            freshness,
            post_processors=default_post_processors(),
            notification_sink=BrokenSink(),
        )

        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)
        await scheduler.drain_background()

        assert summary.result_for("training").succeeded
        assert scheduler.background.failure_count == 1


class TestAudit:
    @pytest.mark.asyncio
    async def test_successful_pass_audited(self, scheduler, audit_sink: InMemoryAuditSink):
        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)
        await scheduler.drain_background()

        (entry,) = audit_sink.by_action(ACTION_SYNC_PASS)
        assert entry.outcome == "success"
        assert entry.actor == "system"
        assert entry.domain == "standards,training,incidents,employee_health"
        assert entry.details["pass_id"] == str(summary.pass_id)
        assert entry.details["successful"] == 4

    @pytest.mark.asyncio
    async def test_partial_pass_audited(self, scheduler, seeded_gateway, audit_sink):
        seeded_gateway.fail_fetch["incidents"] = UnreachableError()
        await scheduler.dispatch(SyncTrigger.INTERVAL)
        await scheduler.drain_background()

        assert audit_sink.entries[0].outcome == "partial"

    @pytest.mark.asyncio
    async def test_failed_pass_audited(self, scheduler, seeded_gateway, audit_sink):
        await scheduler.dispatch(SyncTrigger.INTERVAL)
        seeded_gateway.fail_fetch["safety_standards"] = UnreachableError()

        await scheduler.trigger_manual_sync("standards")
        await scheduler.drain_background()

        assert [e.outcome for e in audit_sink.entries] == ["success", "failure"]

    @pytest.mark.asyncio
    async def test_no_audit_for_skipped_passes(self, scheduler, audit_sink, connectivity):
        await scheduler.dispatch(SyncTrigger.INTERVAL)
        await scheduler.dispatch(SyncTrigger.INTERVAL)
        connectivity.set_online(False)
        await scheduler.dispatch(SyncTrigger.INTERVAL)
        await scheduler.drain_background()

        assert len(audit_sink.entries) == 1

    @pytest.mark.asyncio
    async def test_failing_audit_sink_does_not_fail_pass(self, seeded_gateway, cache, freshness):
        scheduler = build_scheduler(seeded_gateway, cache, freshness, audit_sink=FailingAuditSink())

        summary = await scheduler.dispatch(SyncTrigger.INTERVAL)
        await scheduler.drain_background()

        assert summary.successful == 4
        assert scheduler.background.failure_count == 1

    @pytest.mark.asyncio
    async def test_custom_actor(self, seeded_gateway, cache, freshness):
        audit_sink = InMemoryAuditSink()
        scheduler = build_scheduler(
            seeded_gateway, cache, freshness, audit_sink=audit_sink, actor="scheduler@plant-2"
        )
        await scheduler.dispatch(SyncTrigger.INTERVAL)
        await scheduler.drain_background()

        assert audit_sink.entries[0].actor == "scheduler@plant-2"


# =============================================================================
# Introspection
# =============================================================================


class TestIntrospection:
    @pytest.mark.asyncio
    async def test_read_snapshot(self, scheduler):
        assert await scheduler.read_snapshot("standards") is None

        await scheduler.dispatch(SyncTrigger.INTERVAL)
        snapshot = await scheduler.read_snapshot("standards")

        assert len(snapshot) == 3
        assert snapshot.captured_at == START_TIME

    @pytest.mark.asyncio
    async def test_statuses(self, scheduler, clock):
        await scheduler.dispatch(SyncTrigger.INTERVAL)
        clock.advance(hours=3)

        statuses = scheduler.statuses()

        assert statuses["incidents"].due is True
        assert statuses["employee_health"].due is False
        assert statuses["standards"].hours_ago == 3.0

    def test_domain_ids(self, scheduler):
        assert scheduler.domain_ids == ALL_DOMAINS

    def test_default_connectivity_is_online(self, seeded_gateway, cache, freshness: FreshnessTracker):
        scheduler = build_scheduler(seeded_gateway, cache, freshness)
        assert isinstance(scheduler._connectivity, ConnectivityState)


class TestCollaboratorMocks:
    @pytest.mark.asyncio
    async def test_back_to_back_manual_syncs(self, scheduler, seeded_gateway):
        seeded_gateway.delay = 0.02

        first, second = await asyncio.gather(
            scheduler.trigger_manual_sync(),
            scheduler.trigger_manual_sync(),
        )

        assert [first.status, second.status] == [SyncPassStatus.COMPLETED, SyncPassStatus.COALESCED]
        assert len(seeded_gateway.fetch_calls) == 4

    @pytest.mark.asyncio
    async def test_notice_delivered_to_sink(self, seeded_gateway, cache, freshness):
        sink = AsyncMock()
        expiry = (START_TIME + timedelta(days=2)).isoformat()
        seeded_gateway.seed("training_records", company_records("exp", 1, expiry_date=expiry))
        scheduler = build_scheduler(
            seeded_gateway,
            cache,
            freshness,
            post_processors=default_post_processors(),
            notification_sink=sink,
        )

        await scheduler.dispatch(SyncTrigger.INTERVAL)
        await scheduler.drain_background()

        sink.notify.assert_awaited_once()
        notice = sink.notify.await_args.args[0]
        assert notice.tag == "training-expiry"

    @pytest.mark.asyncio
    async def test_gateway_mock_receives_fetch_specs(self, cache, freshness):
        gateway = AsyncMock()
        gateway.fetch_domain.return_value = []
        scheduler = build_scheduler(gateway, cache, freshness)

        summary = await scheduler.trigger_manual_sync("standards")

        spec = gateway.fetch_domain.await_args.args[0]
        assert spec.collection == "safety_standards"
        assert spec.limit == 50
        assert summary.result_for("standards").record_count == 0
        assert await cache.read_set("mms_safety_standards") == []
